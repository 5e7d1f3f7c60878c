"""Collaborator interfaces: candle provider, valuation oracle, event calendar."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from signal_desk.core.types import Resolution


class CandleProvider(ABC):
    """Ordered OHLCV candles. Returns an empty frame (never raises) when data is unavailable."""

    @abstractmethod
    def get_candles(self, ticker: str, resolution: Resolution, lookback_days: int) -> pd.DataFrame:
        """Return OHLCV DataFrame with columns: time, open, high, low, close, volume."""


class ValuationOracle(ABC):
    @abstractmethod
    def get_fair_value(self, ticker: str) -> Optional[float]:
        """Fair value per share, or None when unavailable."""


class StaticValuationOracle(ValuationOracle):
    """Fair values from a fixed mapping (e.g. loaded from the valuation service export)."""

    def __init__(self, values: Optional[dict] = None):
        self._values = {k.upper(): v for k, v in (values or {}).items()}

    def get_fair_value(self, ticker: str) -> Optional[float]:
        v = self._values.get(ticker.upper())
        return float(v) if v is not None else None


@dataclass(frozen=True)
class NearResult:
    near: bool
    note: str = ""


class EventCalendar(ABC):
    @abstractmethod
    def is_near(self, as_of: date, horizon_days: int) -> NearResult:
        """Whether an event falls within [as_of, as_of + horizon_days]."""
