"""
Backtest engine: single position, closed bars only, bar-by-bar in time order.
Slippage is a fraction of price; fees are a flat amount per fill.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from signal_desk.analytics.metrics import Metrics, compute_metrics, running_max_drawdown
from signal_desk.core.errors import InsufficientHistoryError
from signal_desk.core.params import SimulatorParams
from signal_desk.core.types import EquityPoint, Position, Trade, require_finite_prices, validate_candles
from signal_desk.strategies.base import BaseStrategy

logger = logging.getLogger("signal_desk.backtest")


@dataclass
class BacktestResult:
    """Trade ledger, equity curve (one point per processed bar) and metrics."""
    strategy_name: str
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)
    metrics: Optional[Metrics] = None
    open_position: Optional[Position] = None

    @property
    def final_equity(self) -> float:
        return self.equity_curve[-1].equity if self.equity_curve else 0.0

    @property
    def drawdown_curve(self) -> List[float]:
        return running_max_drawdown([p.equity for p in self.equity_curve])


class BacktestEngine:
    """
    FLAT -> LONG on an entry signal, LONG -> FLAT on stop / target / signal exit.
    An exit bar never re-enters. Bars before the strategy warm-up are skipped.
    """

    def __init__(self, strategy: BaseStrategy, params: SimulatorParams):
        self.strategy = strategy
        self.params = params

    def run(self, df: pd.DataFrame) -> BacktestResult:
        """
        Run on an OHLCV frame (columns: time, open, high, low, close, volume).
        Non-finite OHLC values raise DataError.
        """
        df = validate_candles(df)
        require_finite_prices(df, "backtest")
        warmup = self.strategy.warmup_bars
        if len(df) < warmup + 1:
            raise InsufficientHistoryError(warmup + 1, len(df), "backtest")
        df = self.strategy.compute_indicators(df)

        slip = self.params.slippage_pct
        fee = self.params.fee_per_side
        cash = self.params.initial_cash
        realized = 0.0
        pos: Optional[Position] = None
        trades: List[Trade] = []
        curve: List[EquityPoint] = []

        for bar in df.iloc[warmup:].itertuples(index=False):
            close = float(bar.close)
            if pos is not None:
                reason = self.strategy.exit_reason(bar, pos)
                if reason is not None:
                    exit_price = close * (1 - slip)
                    pnl = exit_price - pos.entry_price - 2 * fee
                    risk = pos.risk
                    r_multiple = pnl / risk if risk > 0 else 0.0
                    trades.append(Trade(
                        side=pos.side,
                        entry_price=pos.entry_price,
                        exit_price=exit_price,
                        entry_time=pos.entry_time,
                        exit_time=bar.time,
                        pnl=pnl,
                        r_multiple=r_multiple,
                        exit_reason=reason,
                    ))
                    realized += pnl
                    logger.debug("Exit %s @ %.4f (%s) pnl=%.4f r=%.2f", bar.time, exit_price, reason.value, pnl, r_multiple)
                    pos = None
            else:
                signal = self.strategy.get_signal(bar, entry_price=close * (1 + slip))
                if signal is not None:
                    pos = Position(
                        side=signal.side,
                        entry_price=signal.entry_price,
                        stop_price=signal.stop_price,
                        take_profit_price=signal.take_profit_price,
                        entry_time=bar.time,
                    )
                    logger.debug("Entry %s @ %.4f stop=%.4f tp=%s", bar.time, pos.entry_price, pos.stop_price, pos.take_profit_price)

            unrealized = close - pos.entry_price if pos is not None else 0.0
            curve.append(EquityPoint(time=bar.time, equity=cash + realized + unrealized))

        metrics = compute_metrics(trades, curve)
        logger.info(
            "Backtest %s: %d bars, %d trades, pnl=%.4f, max_dd=%.2f%%",
            self.strategy.name, len(curve), metrics.trade_count, metrics.total_pnl, metrics.max_drawdown_pct * 100,
        )
        return BacktestResult(
            strategy_name=self.strategy.name,
            trades=trades,
            equity_curve=curve,
            metrics=metrics,
            open_position=pos,
        )
