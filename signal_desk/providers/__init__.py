"""Providers: candle sources, valuation oracle, event calendars, TTL cache."""

from signal_desk.providers.base import (
    CandleProvider,
    EventCalendar,
    NearResult,
    StaticValuationOracle,
    ValuationOracle,
)
from signal_desk.providers.cache import NullCache, TTLCache
from signal_desk.providers.calendar import DateListCalendar, EarningsCalendar, MacroCalendar
from signal_desk.providers.candles import CsvCandleProvider, YahooChartProvider

__all__ = [
    "CandleProvider",
    "EventCalendar",
    "NearResult",
    "StaticValuationOracle",
    "ValuationOracle",
    "NullCache",
    "TTLCache",
    "DateListCalendar",
    "EarningsCalendar",
    "MacroCalendar",
    "CsvCandleProvider",
    "YahooChartProvider",
]
