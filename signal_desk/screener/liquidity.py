"""Dollar-volume liquidity filter."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from signal_desk.core.params import ScreenerParams
from signal_desk.utils.numeric import median


@dataclass(frozen=True)
class LiquidityCheck:
    passed: bool
    adv10: Optional[float] = None
    days_traded: int = 0
    reason: Optional[str] = None


def check_liquidity(daily: pd.DataFrame, params: ScreenerParams) -> LiquidityCheck:
    """
    Median close*volume over the `liquidity_window` sessions before the
    current one. Needs window+1 candles and at least `liquidity_min_sessions`
    finite sessions; the median must reach `min_dollar_volume`.
    """
    window = params.liquidity_window
    if len(daily) < window + 1:
        return LiquidityCheck(False, reason=f"insufficient history ({len(daily)} candles)")
    prior = daily.iloc[-(window + 1):-1]
    dollars = prior["close"].to_numpy(dtype=float) * prior["volume"].to_numpy(dtype=float)
    dollars = dollars[np.isfinite(dollars)]
    days = len(dollars)
    if days < params.liquidity_min_sessions:
        return LiquidityCheck(False, days_traded=days, reason=f"only {days} sessions traded")
    adv = median(dollars)
    if adv < params.min_dollar_volume:
        return LiquidityCheck(False, adv10=adv, days_traded=days, reason=f"illiquid (ADV ${adv:,.0f})")
    return LiquidityCheck(True, adv10=adv, days_traded=days)
