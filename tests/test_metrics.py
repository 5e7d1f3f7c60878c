"""Unit tests for analytics.metrics."""

from datetime import datetime, timedelta

import pytest
from signal_desk.analytics.metrics import (
    compute_metrics,
    max_drawdown,
    running_max_drawdown,
    win_rate,
)
from signal_desk.core.types import EquityPoint, ExitReason, Side, Trade


def _trade(pnl, r):
    t0 = datetime(2025, 1, 1)
    return Trade(
        side=Side.LONG,
        entry_price=100.0,
        exit_price=100.0 + pnl,
        entry_time=t0,
        exit_time=t0 + timedelta(days=1),
        pnl=pnl,
        r_multiple=r,
        exit_reason=ExitReason.SIGNAL_EXIT,
    )


def _curve(equities):
    t0 = datetime(2025, 1, 1)
    return [EquityPoint(time=t0 + timedelta(days=i), equity=e) for i, e in enumerate(equities)]


def test_win_rate_percent_and_breakeven_is_win():
    assert win_rate([1, -1, 0, 2]) == 75.0
    assert win_rate([]) == 0.0


def test_max_drawdown():
    # peak 1.2, trough 1.0 -> (1.2-1.0)/1.2
    assert max_drawdown([1.0, 1.2, 1.0, 1.1]) == pytest.approx(0.2 / 1.2)
    assert max_drawdown([]) == 0.0


def test_max_drawdown_non_positive_peak():
    assert max_drawdown([0.0, -1.0, -2.0]) == 0.0


def test_running_max_drawdown_monotone():
    dd = running_max_drawdown([100, 110, 99, 105, 120, 90])
    assert dd[0] == 0.0
    assert all(b >= a for a, b in zip(dd, dd[1:]))
    assert dd[-1] == pytest.approx(30 / 120)


def test_compute_metrics():
    trades = [_trade(10.0, 2.0), _trade(-5.0, -1.0), _trade(15.0, 3.0), _trade(-3.0, -0.5)]
    m = compute_metrics(trades, _curve([0.0, 10.0, 5.0, 20.0, 17.0]))
    assert m.trade_count == 4
    assert m.wins == 2
    assert m.losses == 2
    assert m.win_rate == pytest.approx(50.0)
    assert m.avg_r_multiple == pytest.approx(0.875)
    assert m.total_pnl == pytest.approx(17.0)
    assert m.peak_equity == 20.0
    assert m.trough_equity == 0.0
    assert m.max_drawdown_pct == pytest.approx(0.5)


def test_compute_metrics_empty():
    m = compute_metrics([], [])
    assert m.trade_count == 0
    assert m.win_rate == 0.0
    assert m.avg_r_multiple == 0.0
    assert m.max_drawdown_pct == 0.0


def test_metrics_to_dict_keys():
    d = compute_metrics([_trade(1.0, 0.5)], _curve([0.0, 1.0])).to_dict()
    assert set(d) == {
        "tradeCount", "wins", "losses", "winRate", "avgRMultiple",
        "totalPnL", "maxDrawdownPct", "peakEquity", "troughEquity",
    }


def test_running_max_drawdown_skips_nan():
    dd = running_max_drawdown([100, 90, float("nan"), 120, 60])
    assert dd == pytest.approx([0.0, 0.1, 0.1, 0.1, 0.5])
    assert max_drawdown([float("nan"), 100, 80]) == pytest.approx(0.2)


def test_compute_metrics_ignores_nan_equity():
    m = compute_metrics([], _curve([100.0, float("nan"), 120.0, 60.0]))
    assert m.max_drawdown_pct == pytest.approx(0.5)
    assert m.peak_equity == 120.0
    assert m.trough_equity == 60.0
