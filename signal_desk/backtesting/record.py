"""
Backtest run records: JSON-serialisable output and a file-backed store.
"""

from __future__ import annotations
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from signal_desk.backtesting.engine import BacktestEngine, BacktestResult
from signal_desk.core.errors import InsufficientHistoryError, ValidationError
from signal_desk.core.params import SimulatorParams
from signal_desk.core.types import Resolution
from signal_desk.providers.base import CandleProvider
from signal_desk.strategies.ema_rsi_atr import EmaRsiAtrStrategy

logger = logging.getLogger("signal_desk.backtest.record")

MIN_LOOKBACK_DAYS = 30
MAX_LOOKBACK_DAYS = 365


@dataclass
class BacktestRun:
    id: str
    strategy_name: str
    result: BacktestResult
    ticker: str = ""
    persisted: bool = False

    def to_dict(self, include_trades: bool = False) -> dict:
        out = {
            "id": self.id,
            "ticker": self.ticker,
            "strategyName": self.strategy_name,
            "metrics": self.result.metrics.to_dict() if self.result.metrics else None,
            "equityCurve": [p.to_dict() for p in self.result.equity_curve],
        }
        if include_trades:
            out["trades"] = [t.to_dict() for t in self.result.trades]
        return out


class RunStore(ABC):
    @abstractmethod
    def save(self, run: BacktestRun) -> None:
        """Persist a run. Raises OSError on storage failure."""

    @abstractmethod
    def get(self, run_id: str) -> Optional[dict]:
        """Stored record for run_id, or None."""


class JsonRunStore(RunStore):
    """One <id>.json file per run, trades included."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def save(self, run: BacktestRun) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{run.id}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(run.to_dict(include_trades=True), f, indent=2)

    def get(self, run_id: str) -> Optional[dict]:
        path = self.directory / f"{run_id}.json"
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)


def run_backtest(
    ticker: str,
    provider: CandleProvider,
    params: Optional[SimulatorParams] = None,
    resolution: Resolution = Resolution.DAILY,
    lookback_days: int = 180,
    store: Optional[RunStore] = None,
    run_id: Optional[str] = None,
) -> BacktestRun:
    """
    Fetch candles once, simulate, and persist when a store is given.
    A store failure is logged and leaves persisted=False; it never fails the run.
    """
    ticker = ticker.strip().upper()
    if not ticker:
        raise ValidationError("ticker required")
    lookback_days = max(MIN_LOOKBACK_DAYS, min(MAX_LOOKBACK_DAYS, int(lookback_days)))
    params = params or SimulatorParams()
    strategy = EmaRsiAtrStrategy(params)
    df = provider.get_candles(ticker, resolution, lookback_days)
    if df.empty:
        raise InsufficientHistoryError(strategy.warmup_bars + 1, 0, f"backtest of {ticker}")
    result = BacktestEngine(strategy, params).run(df)
    run = BacktestRun(id=run_id or str(uuid.uuid4()), strategy_name=strategy.name, result=result, ticker=ticker)
    if store is not None:
        try:
            store.save(run)
            run.persisted = True
        except OSError as e:
            logger.error("Could not persist backtest %s: %s", run.id, e)
    return run
