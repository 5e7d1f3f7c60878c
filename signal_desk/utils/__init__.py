"""Utils: numeric guards, resolution mapping."""

from signal_desk.utils.numeric import clamp, finite_or_none, median, round_half_away
from signal_desk.utils.pool import PoolOutcome, run_bounded
from signal_desk.utils.resolutions import parse_resolution, chart_interval_and_range

__all__ = [
    "clamp",
    "finite_or_none",
    "median",
    "round_half_away",
    "PoolOutcome",
    "run_bounded",
    "parse_resolution",
    "chart_interval_and_range",
]
