"""Macro and earnings calendars as date-range lookups."""

from __future__ import annotations
from datetime import date, timedelta
from typing import Dict, Iterable, Optional, Union

import pandas as pd

from signal_desk.providers.base import EventCalendar, NearResult

DateLike = Union[str, date]

FOMC_2025 = (
    "2025-01-29", "2025-03-19", "2025-04-30", "2025-06-18",
    "2025-07-30", "2025-09-17", "2025-11-05", "2025-12-17",
)


def to_date(value: DateLike) -> date:
    return pd.Timestamp(value).date()


class DateListCalendar(EventCalendar):
    """Calendar over a fixed list of event dates."""

    def __init__(self, dates: Iterable[DateLike], label: str):
        self.label = label
        self._dates = sorted({to_date(d) for d in dates})

    def is_near(self, as_of: DateLike, horizon_days: int) -> NearResult:
        start = to_date(as_of)
        end = start + timedelta(days=horizon_days)
        for d in self._dates:
            if start <= d <= end:
                return NearResult(near=True, note=f"{self.label} near {d.isoformat()}")
            if d > end:
                break
        return NearResult(near=False)


class MacroCalendar(DateListCalendar):
    """Scheduled policy announcements (FOMC by default)."""

    def __init__(self, dates: Optional[Iterable[DateLike]] = None, label: str = "FOMC"):
        super().__init__(FOMC_2025 if dates is None else dates, label)


class EarningsCalendar:
    """Per-ticker earnings dates."""

    def __init__(self, dates_by_ticker: Optional[Dict[str, Iterable[DateLike]]] = None):
        self._by_ticker = {k.upper(): list(v) for k, v in (dates_by_ticker or {}).items()}

    def for_ticker(self, ticker: str) -> DateListCalendar:
        return DateListCalendar(self._by_ticker.get(ticker.upper(), []), "Earnings")
