"""
Horizon price projection from ATR, technical bias and event dampening, plus
the volatility-adaptive ETA to fair value.
"""

from __future__ import annotations
import math
from dataclasses import asdict, dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from signal_desk.core.params import ScreenerParams
from signal_desk.indicators.technical import atr, true_range
from signal_desk.providers.base import NearResult
from signal_desk.utils.numeric import clamp, finite_or_none, median

SCORE_FACTORS = {
    "Strong Buy": 1.6,
    "Buy": 1.3,
    "Neutral": 1.0,
    "Sell": 0.8,
    "Strong Sell": 0.6,
}
REFERENCE_ATR_PCT = 0.02


@dataclass(frozen=True)
class Projection:
    atr: float
    atr_pct: float
    k: float
    direction: int
    estimate: float
    lo1: float
    hi1: float
    lo2: float
    hi2: float
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def tr_pct_series(daily: pd.DataFrame) -> pd.Series:
    """True range as a fraction of the close, from the second candle on."""
    tr = true_range(daily["high"], daily["low"], daily["close"])
    closes = daily["close"].astype(float).clip(lower=1e-9).to_numpy()
    return pd.Series(tr.to_numpy() / closes, index=tr.index).iloc[1:]


def project(
    daily: pd.DataFrame,
    score: float,
    summary: str,
    params: ScreenerParams,
    macro: Optional[NearResult] = None,
    earnings: Optional[NearResult] = None,
) -> Optional[Projection]:
    """
    estimate = last + dir * k * ATR * macro_mult (* earnings_damping), where
    dir follows the score sign (|score| >= 1) and k = base_k * score factor *
    clamp(last TR% / 2%, 0.8, 1.8). Dampening applies to the move only.
    Band is +/-1 and +/-2 ATR around the estimate. None when ATR is undefined.
    """
    last = finite_or_none(daily["close"].iloc[-1]) if not daily.empty else None
    a = atr(daily["high"], daily["low"], daily["close"], params.atr_period) if len(daily) else None
    if last is None or a is None:
        return None

    tr_pct = tr_pct_series(daily)
    last_tr_pct = finite_or_none(tr_pct.iloc[-1]) if len(tr_pct) else None
    vol_factor = clamp((last_tr_pct if last_tr_pct is not None else REFERENCE_ATR_PCT) / REFERENCE_ATR_PCT, 0.8, 1.8)
    k = params.base_k * SCORE_FACTORS.get(summary, 1.0) * vol_factor

    direction = 1 if score >= 1 else (-1 if score <= -1 else 0)
    mult = 1.0
    notes: List[str] = []
    if macro is not None and macro.near:
        mult *= params.macro_damping
        notes.append(macro.note)
    if earnings is not None and earnings.near:
        mult *= params.earnings_damping
        notes.append(earnings.note)

    est = last + direction * k * a * mult
    return Projection(
        atr=a,
        atr_pct=a / max(1e-9, last),
        k=k,
        direction=direction,
        estimate=est,
        lo1=est - a,
        hi1=est + a,
        lo2=est - 2 * a,
        hi2=est + 2 * a,
        note="; ".join(notes) or None,
    )


def fair_eta_days(daily: pd.DataFrame, fair: Optional[float], atr_value: Optional[float]) -> Optional[int]:
    """
    Sessions to cover |fair - last| at one ATR per session, scaled by current
    TR% relative to its median (clamped to [0.7, 1.5]). At least 1.
    """
    fair = finite_or_none(fair)
    if fair is None or not atr_value or atr_value <= 0 or daily.empty:
        return None
    last = float(daily["close"].iloc[-1])
    tr_pct = tr_pct_series(daily).to_numpy()
    tr_pct = tr_pct[np.isfinite(tr_pct)]
    med = median(tr_pct)
    scale = 1.0
    if med and len(tr_pct):
        scale = clamp(float(tr_pct[-1]) / med, 0.7, 1.5)
    return max(1, math.ceil(abs(fair - last) / atr_value * scale))
