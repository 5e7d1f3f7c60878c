"""
Rolling sweeps across many tickers through the bounded worker pool.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from signal_desk.core.errors import InsufficientHistoryError
from signal_desk.core.params import ForecastParams, SweepWindow
from signal_desk.core.types import Resolution
from signal_desk.forecast.evaluator import SweepResult, rolling_sweep, scores_from_candles
from signal_desk.providers.base import CandleProvider, ValuationOracle
from signal_desk.utils.pool import run_bounded

logger = logging.getLogger("signal_desk.forecast.batch")

# candles fetched per ticker: enough for the deepest sweep entry plus ATR warm-up
DEFAULT_LOOKBACK_DAYS = 365


@dataclass
class BatchSweepResult:
    results: Dict[str, SweepResult] = field(default_factory=dict)
    dropped: List[dict] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return sum(r.count for r in self.results.values())

    @property
    def mean_hit_rate(self) -> Optional[float]:
        if not self.results:
            return None
        return sum(r.hit_rate for r in self.results.values()) / len(self.results)

    @property
    def mean_mae(self) -> Optional[float]:
        if not self.results:
            return None
        return sum(r.mae for r in self.results.values()) / len(self.results)

    @property
    def mean_mape(self) -> Optional[float]:
        vals = [r.mape for r in self.results.values() if r.mape is not None]
        return sum(vals) / len(vals) if vals else None

    def to_dict(self) -> dict:
        return {
            "summary": {
                "tickers": len(self.results),
                "count": self.total_count,
                "meanHitRate": self.mean_hit_rate,
                "meanMae": self.mean_mae,
                "meanMape": self.mean_mape,
            },
            "results": {t: r.to_dict(include_items=False) for t, r in sorted(self.results.items())},
            "dropped": self.dropped,
        }


def batch_sweep(
    tickers: Sequence[str],
    provider: CandleProvider,
    params: Optional[ForecastParams] = None,
    window: Optional[SweepWindow] = None,
    oracle: Optional[ValuationOracle] = None,
    max_workers: int = 4,
    deadline: Optional[float] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> BatchSweepResult:
    """
    Sweep each ticker independently. A ticker that fails (no candles, too
    short, bad data) is listed in `dropped` and never affects the others.
    """
    params = params or ForecastParams()
    window = window or SweepWindow()
    unique = list(dict.fromkeys(t.strip().upper() for t in tickers if t and t.strip()))

    def sweep_one(ticker: str) -> SweepResult:
        df = provider.get_candles(ticker, Resolution.DAILY, lookback_days)
        if df.empty:
            raise InsufficientHistoryError(max(window.offsets()) + 2, 0, f"sweep of {ticker}")
        daily = weekly = None
        if params.direction == "auto":
            daily, weekly = scores_from_candles(df)
        fair = oracle.get_fair_value(ticker) if oracle is not None and params.method == "fair" else None
        return rolling_sweep(df, params, window, fair_value=fair, daily_score=daily, weekly_score=weekly)

    outcome = run_bounded(unique, sweep_one, max_workers=max_workers, deadline=deadline)
    batch = BatchSweepResult(results=dict(outcome.results))
    for ticker in unique:
        if ticker in outcome.failures:
            batch.dropped.append({"ticker": ticker, "reason": outcome.failures[ticker]})
        elif ticker in outcome.timed_out:
            batch.dropped.append({"ticker": ticker, "reason": "deadline"})
    logger.info("Batch sweep: %d swept, %d dropped", len(batch.results), len(batch.dropped))
    return batch
