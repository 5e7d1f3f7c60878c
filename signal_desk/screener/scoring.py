"""
Per-ticker score shaping: daily/weekly blend, breadth gate, order-flow and
relative-volume bumps.
"""

from __future__ import annotations
from typing import Optional

import numpy as np
import pandas as pd

from signal_desk.core.params import ScreenerParams
from signal_desk.utils.numeric import clamp, finite_or_none, median, round_half_away

# one-minute bars in the trailing hour
FLOW_1H_BARS = 60
RVOL_BASE_SESSIONS = 10


def blend_score(daily: float, weekly: float, params: ScreenerParams) -> int:
    return round_half_away(params.daily_weight * daily + params.weekly_weight * weekly)


def breadth_gate(score: float, breadth: int, params: ScreenerParams) -> float:
    """Weak, narrow signals are zeroed: breadth below breadth_min and |score| below the floor."""
    if breadth < params.breadth_min and abs(score) < params.breadth_score_floor:
        return 0
    return score


def buy_pct(intraday: pd.DataFrame) -> Optional[float]:
    """Share of volume (percent) traded on bars that closed at or above their open."""
    if intraday.empty:
        return None
    vol = intraday["volume"].to_numpy(dtype=float)
    o = intraday["open"].to_numpy(dtype=float)
    c = intraday["close"].to_numpy(dtype=float)
    valid = np.isfinite(vol) & (vol > 0)
    total = vol[valid].sum()
    if total <= 0:
        return None
    up = valid & np.isfinite(o) & np.isfinite(c) & (c >= o)
    return float(vol[up].sum() / total * 100.0)


def flow_snapshots(intraday: pd.DataFrame):
    """(1h buy %, last-session buy %) from one-minute candles; None where unavailable."""
    if intraday.empty:
        return None, None
    times = pd.to_datetime(intraday["time"])
    session = intraday[times.dt.date == times.iloc[-1].date()]
    return buy_pct(intraday.tail(FLOW_1H_BARS)), buy_pct(session)


def rvol_1d(volumes) -> Optional[float]:
    """Last session volume / median of the previous ten sessions."""
    v = np.asarray(volumes, dtype=float)
    if len(v) < RVOL_BASE_SESSIONS + 1:
        return None
    base = v[-(RVOL_BASE_SESSIONS + 1):-1]
    med = median(base[np.isfinite(base)])
    today = finite_or_none(v[-1])
    if not med or today is None:
        return None
    return today / med


def rvol_1w(volumes) -> Optional[float]:
    """Last five sessions' volume / median of the two prior five-session sums."""
    v = np.nan_to_num(np.asarray(volumes, dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
    if len(v) < 15:
        return None
    last5 = v[-5:].sum()
    sums = [s for s in (v[-15:-10].sum(), v[-10:-5].sum()) if s > 0]
    med = median(sums)
    if not med:
        return None
    return float(last5 / med)


def flow_bump(
    score: float,
    flow_1h: Optional[float],
    flow_1d: Optional[float],
    rvol: Optional[float],
    weekly_score: float,
    params: ScreenerParams,
) -> float:
    """
    Nudge the score by intraday order flow and relative volume.

    The flow bias ((f1h-50)+(f1d-50))/100 is clipped to [-1, 1], weighted by
    RVOL tier and zeroed when it opposes the weekly trend. RVOL then adds
    rvol_bump_high_step at >= rvol_bump_high (defaults 2.0 -> +1), rvol_bump_mid_step
    at >= rvol_bump_mid (1.5 -> +0.5) and subtracts rvol_bump_low_step at
    <= rvol_bump_low (0.7 -> -0.5).
    """
    f1h = finite_or_none(flow_1h)
    f1d = finite_or_none(flow_1d)
    rv = finite_or_none(rvol)
    if f1h is not None and f1d is not None:
        bias = clamp(((f1h - 50.0) + (f1d - 50.0)) / 100.0, -1.0, 1.0)
        if (bias > 0 and weekly_score < 0) or (bias < 0 and weekly_score > 0):
            bias = 0.0
        if rv is None:
            weight = params.flow_weight_low
        elif rv >= params.flow_rvol_high:
            weight = params.flow_weight_high
        elif rv >= params.flow_rvol_mid:
            weight = params.flow_weight_mid
        else:
            weight = params.flow_weight_low
        score = round_half_away(score + weight * bias)
    if rv is not None:
        if rv >= params.rvol_bump_high:
            score += params.rvol_bump_high_step
        elif rv >= params.rvol_bump_mid:
            score += params.rvol_bump_mid_step
        elif rv <= params.rvol_bump_low:
            score -= params.rvol_bump_low_step
    return score
