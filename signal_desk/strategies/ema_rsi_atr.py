"""
EMA + RSI + ATR long-only momentum strategy.
Long: close > EMA, RSI > enter threshold, ATR > 0. Stop = entry - mult * ATR.
Exit: stop, optional R-multiple target, or RSI below the exit threshold.
"""

from __future__ import annotations
import math
from typing import Any, Optional

import pandas as pd

from signal_desk.core.params import SimulatorParams
from signal_desk.core.types import ExitReason, Position, Side, Signal
from signal_desk.indicators.technical import atr_series, ema_series, rsi_series
from signal_desk.strategies.base import BaseStrategy


def _defined(*values: float) -> bool:
    return all(v is not None and math.isfinite(v) for v in values)


class EmaRsiAtrStrategy(BaseStrategy):
    """Default long strategy (ema20 / rsi7 / simple ATR14 with a 1.2 ATR stop)."""

    def __init__(self, params: Optional[SimulatorParams] = None):
        self.params = params or SimulatorParams()

    @property
    def name(self) -> str:
        p = self.params
        return f"ema{p.ema_period}_rsi{p.rsi_period}_long"

    @property
    def warmup_bars(self) -> int:
        return self.params.warmup_bars

    def compute_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        p = self.params
        df = df.copy()
        df["ema"] = ema_series(df["close"], p.ema_period)
        df["rsi"] = rsi_series(df["close"], p.rsi_period)
        df["atr"] = atr_series(df["high"], df["low"], df["close"], p.atr_period, method="simple")
        return df

    def get_signal(self, bar: Any, entry_price: float) -> Optional[Signal]:
        p = self.params
        close, ema, rsi, atr = float(bar.close), float(bar.ema), float(bar.rsi), float(bar.atr)
        if not _defined(close, ema, rsi, atr):
            return None
        if not (close > ema and rsi > p.rsi_enter_threshold and atr > 0):
            return None
        stop = entry_price - p.atr_stop_multiple * atr
        tp = None
        if p.take_profit_r_multiple is not None:
            tp = entry_price + p.take_profit_r_multiple * (entry_price - stop)
        return Signal(
            side=Side.LONG,
            entry_price=entry_price,
            stop_price=stop,
            take_profit_price=tp,
            time=bar.time,
            metadata={"atr": atr, "rsi": rsi, "ema": ema},
        )

    def exit_reason(self, bar: Any, position: Position) -> Optional[ExitReason]:
        close = float(bar.close)
        if close <= position.stop_price:
            return ExitReason.STOP
        if position.take_profit_price is not None and close >= position.take_profit_price:
            return ExitReason.TAKE_PROFIT
        rsi = float(bar.rsi)
        if math.isfinite(rsi) and rsi < self.params.rsi_exit_threshold:
            return ExitReason.SIGNAL_EXIT
        return None
