"""Candle resolution -> provider interval mapping and lookback conversion."""

from __future__ import annotations
from typing import Tuple

from signal_desk.core.errors import ValidationError
from signal_desk.core.types import Resolution

# Yahoo chart API interval per resolution
_INTERVALS = {
    Resolution.INTRADAY: "1m",
    Resolution.DAILY: "1d",
}

# Yahoo caps 1m history at 7 days
MAX_INTRADAY_DAYS = 7


def parse_resolution(value: str) -> Resolution:
    """Accept 'intraday'/'daily' plus the short forms '1' and 'D'."""
    v = str(value).strip().lower()
    if v in ("intraday", "1", "1m"):
        return Resolution.INTRADAY
    if v in ("daily", "d", "1d"):
        return Resolution.DAILY
    raise ValidationError(f"Unsupported resolution: {value}")


def chart_interval_and_range(resolution: Resolution, lookback_days: int) -> Tuple[str, str]:
    """Return (interval, range) query params for a lookback in calendar days."""
    if lookback_days < 1:
        raise ValidationError(f"lookback_days must be >= 1, got {lookback_days}")
    interval = _INTERVALS[resolution]
    if resolution == Resolution.INTRADAY:
        return interval, f"{min(lookback_days, MAX_INTRADAY_DAYS)}d"
    return interval, f"{lookback_days}d"
