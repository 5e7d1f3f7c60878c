"""Abstract strategy: indicators + entry/exit rules evaluated one closed bar at a time."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional

import pandas as pd

from signal_desk.core.types import ExitReason, Position, Signal


class BaseStrategy(ABC):
    """Strategy computes indicator columns once, then answers per-bar questions."""

    name: str = "base"

    @property
    @abstractmethod
    def warmup_bars(self) -> int:
        """Index of the first bar on which all indicators are defined."""

    @abstractmethod
    def compute_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        """Add indicator columns to the candle frame. No lookahead."""

    @abstractmethod
    def get_signal(self, bar: Any, entry_price: float) -> Optional[Signal]:
        """Entry signal for this bar (fill at entry_price) or None. Undefined indicators never signal."""

    @abstractmethod
    def exit_reason(self, bar: Any, position: Position) -> Optional[ExitReason]:
        """Reason to close the open position on this bar, or None to hold."""
