"""Analytics: run metrics (win rate, R-multiple, drawdown)."""

from signal_desk.analytics.metrics import (
    Metrics,
    compute_metrics,
    max_drawdown,
    running_max_drawdown,
    win_rate,
)

__all__ = [
    "Metrics",
    "compute_metrics",
    "max_drawdown",
    "running_max_drawdown",
    "win_rate",
]
