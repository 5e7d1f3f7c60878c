"""
Run metrics: trade counts, win rate, average R-multiple, total PnL and
peak-to-trough drawdown of the equity curve.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from signal_desk.core.types import EquityPoint, Trade


@dataclass(frozen=True)
class Metrics:
    """Derived at the end of a simulation run."""
    trade_count: int
    wins: int
    losses: int
    win_rate: float  # percent
    avg_r_multiple: float
    total_pnl: float
    max_drawdown_pct: float  # fraction in [0, 1]
    peak_equity: float
    trough_equity: float

    def to_dict(self) -> dict:
        return {
            "tradeCount": self.trade_count,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "avgRMultiple": self.avg_r_multiple,
            "totalPnL": self.total_pnl,
            "maxDrawdownPct": self.max_drawdown_pct,
            "peakEquity": self.peak_equity,
            "troughEquity": self.trough_equity,
        }


def running_max_drawdown(equities: Sequence[float]) -> List[float]:
    """
    Max drawdown seen so far at each bar (non-decreasing).
    Bars with a non-positive running peak contribute 0; each value is within [0, 1].
    Non-finite equities are skipped: they neither set the peak nor add a drawdown.
    """
    if len(equities) == 0:
        return []
    arr = np.asarray(equities, dtype=float)
    finite = np.isfinite(arr)
    peak = np.fmax.accumulate(np.where(finite, arr, np.nan))
    valid = finite & (np.nan_to_num(peak, nan=0.0) > 0)
    safe_peak = np.where(valid, peak, 1.0)
    dd = np.where(valid, (safe_peak - np.where(finite, arr, 0.0)) / safe_peak, 0.0)
    dd = np.clip(dd, 0.0, 1.0)
    return np.maximum.accumulate(dd).tolist()


def max_drawdown(equities: Sequence[float]) -> float:
    """Max drawdown as a fraction (0.15 = 15%)."""
    curve = running_max_drawdown(equities)
    return float(curve[-1]) if curve else 0.0


def win_rate(pnls: Sequence[float]) -> float:
    """Percent of trades with pnl >= 0."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p >= 0) / len(pnls) * 100.0


def compute_metrics(trades: Sequence[Trade], equity_curve: Sequence[EquityPoint]) -> Metrics:
    pnls = [t.pnl for t in trades]
    wins = sum(1 for p in pnls if p >= 0)
    equities = [p.equity for p in equity_curve]
    finite = [e for e in equities if np.isfinite(e)]
    n = len(trades)
    return Metrics(
        trade_count=n,
        wins=wins,
        losses=n - wins,
        win_rate=win_rate(pnls),
        avg_r_multiple=sum(t.r_multiple for t in trades) / n if n else 0.0,
        total_pnl=float(sum(pnls)),
        max_drawdown_pct=max_drawdown(equities),
        peak_equity=float(max(finite)) if finite else 0.0,
        trough_equity=float(min(finite)) if finite else 0.0,
    )
