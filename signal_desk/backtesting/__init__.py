"""Backtesting: bar-by-bar single-position simulation and run records."""

from signal_desk.backtesting.engine import BacktestEngine, BacktestResult
from signal_desk.backtesting.record import BacktestRun, JsonRunStore, RunStore, run_backtest

__all__ = ["BacktestEngine", "BacktestResult", "BacktestRun", "JsonRunStore", "RunStore", "run_backtest"]
