"""Forecast: single-point evaluation, rolling sweep and multi-ticker batch sweep."""

from signal_desk.forecast.evaluator import (
    ForecastResult,
    SweepResult,
    evaluate_forecast,
    resolve_direction,
    resolve_entry_index,
    rolling_sweep,
    scores_from_candles,
)
from signal_desk.forecast.batch import BatchSweepResult, batch_sweep

__all__ = [
    "ForecastResult",
    "SweepResult",
    "evaluate_forecast",
    "resolve_direction",
    "resolve_entry_index",
    "rolling_sweep",
    "scores_from_candles",
    "BatchSweepResult",
    "batch_sweep",
]
