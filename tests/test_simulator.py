"""Unit tests for backtesting.engine with the EMA/RSI/ATR strategy."""

import numpy as np
import pandas as pd
import pytest

from signal_desk.backtesting.engine import BacktestEngine
from signal_desk.core.errors import DataError, InsufficientHistoryError, ValidationError
from signal_desk.core.params import SimulatorParams
from signal_desk.core.types import ExitReason
from signal_desk.strategies.ema_rsi_atr import EmaRsiAtrStrategy


def _frame(closes):
    closes = np.asarray(closes, dtype=float)
    return pd.DataFrame({
        "time": pd.date_range("2025-01-01", periods=len(closes), freq="D"),
        "open": closes,
        "high": closes + 0.5,
        "low": closes - 0.5,
        "close": closes,
        "volume": np.full(len(closes), 1000.0),
    })


class ScriptedStrategy(EmaRsiAtrStrategy):
    """Entry/exit rules of the real strategy over hand-written indicator columns."""

    def __init__(self, params, ema, rsi, atr):
        super().__init__(params)
        self._cols = {"ema": ema, "rsi": rsi, "atr": atr}

    def compute_indicators(self, df):
        df = df.copy()
        for name, values in self._cols.items():
            df[name] = np.asarray(values, dtype=float)
        return df


# warm-up of one bar: bar 0 is never traded
SCRIPT_PARAMS = dict(ema_period=2, rsi_period=1, atr_period=1)


def _run(closes, ema, rsi, atr, **overrides):
    params = SimulatorParams(**{**SCRIPT_PARAMS, **overrides})
    strategy = ScriptedStrategy(params, ema, rsi, atr)
    return BacktestEngine(strategy, params).run(_frame(closes))


def test_stop_exit_example():
    # entry 100, ATR 2, 1.2 ATR stop -> 97.6; close 97.5 stops out
    result = _run(
        closes=[99, 100, 97.5],
        ema=[98, 99, 99],
        rsi=[50, 70, 55],
        atr=[2, 2, 2],
    )
    assert len(result.trades) == 1
    t = result.trades[0]
    assert t.entry_price == pytest.approx(100.0)
    assert t.exit_price == pytest.approx(97.5)
    assert t.exit_reason == ExitReason.STOP
    assert t.pnl == pytest.approx(-2.5)
    assert t.r_multiple == pytest.approx(-2.5 / 2.4)
    assert result.open_position is None


def test_no_reentry_on_exit_bar():
    # entry conditions still hold on the stop bar; re-entry waits for the next bar
    result = _run(
        closes=[99, 100, 97.5, 98],
        ema=[90, 90, 90, 90],
        rsi=[70, 70, 70, 70],
        atr=[2, 2, 2, 2],
    )
    assert len(result.trades) == 1
    assert result.trades[0].exit_time == pd.Timestamp("2025-01-03")
    assert result.open_position is not None
    assert result.open_position.entry_time == pd.Timestamp("2025-01-04")
    assert result.equity_curve[1].equity == pytest.approx(-2.5)


def test_take_profit_exit():
    result = _run(
        closes=[99, 100, 105],
        ema=[98, 99, 99],
        rsi=[50, 70, 70],
        atr=[2, 2, 2],
        take_profit_r_multiple=2.0,
    )
    t = result.trades[0]
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.pnl == pytest.approx(5.0)
    assert t.r_multiple == pytest.approx(5.0 / 2.4)


def test_signal_exit_on_rsi():
    result = _run(
        closes=[99, 100, 101],
        ema=[98, 99, 99],
        rsi=[50, 70, 45],
        atr=[2, 2, 2],
    )
    assert result.trades[0].exit_reason == ExitReason.SIGNAL_EXIT
    assert result.trades[0].pnl == pytest.approx(1.0)


def test_undefined_indicators_never_enter():
    result = _run(
        closes=[99, 100, 101],
        ema=[98, np.nan, 99],
        rsi=[50, 70, np.nan],
        atr=[2, 2, 2],
    )
    assert result.trades == []
    assert result.open_position is None


def test_slippage_and_fees():
    result = _run(
        closes=[99, 100, 97.5],
        ema=[98, 99, 99],
        rsi=[50, 70, 55],
        atr=[2, 2, 2],
        slippage_pct=0.01,
        fee_per_side=0.5,
    )
    t = result.trades[0]
    assert t.entry_price == pytest.approx(101.0)
    assert t.exit_price == pytest.approx(96.525)
    assert t.pnl == pytest.approx(96.525 - 101.0 - 1.0)


def test_insufficient_history():
    params = SimulatorParams()
    with pytest.raises(InsufficientHistoryError):
        BacktestEngine(EmaRsiAtrStrategy(params), params).run(_frame([100.0] * 10))


def test_params_validation():
    with pytest.raises(ValidationError):
        SimulatorParams(ema_period=0)
    with pytest.raises(ValidationError):
        SimulatorParams(atr_stop_multiple=0)
    with pytest.raises(ValidationError):
        SimulatorParams(rsi_enter_threshold=120)


def _wave(n=300):
    i = np.arange(n)
    return 100 + 0.05 * i + 6 * np.sin(i / 7.0) + 2 * np.sin(i / 2.3)


def test_deterministic_runs():
    params = SimulatorParams()
    df = _frame(_wave())
    a = BacktestEngine(EmaRsiAtrStrategy(params), params).run(df)
    b = BacktestEngine(EmaRsiAtrStrategy(params), params).run(df)
    assert [t.to_dict() for t in a.trades] == [t.to_dict() for t in b.trades]
    assert [p.equity for p in a.equity_curve] == [p.equity for p in b.equity_curve]
    assert len(a.trades) > 0


def test_equity_identity():
    params = SimulatorParams()
    df = _frame(_wave())
    result = BacktestEngine(EmaRsiAtrStrategy(params), params).run(df)
    realized = sum(t.pnl for t in result.trades)
    unrealized = 0.0
    if result.open_position is not None:
        unrealized = df["close"].iloc[-1] - result.open_position.entry_price
    assert result.final_equity == pytest.approx(realized + unrealized)
    assert len(result.equity_curve) == len(df) - params.warmup_bars


def test_drawdown_curve_monotone():
    params = SimulatorParams(initial_cash=1000.0)
    result = BacktestEngine(EmaRsiAtrStrategy(params), params).run(_frame(_wave()))
    dd = result.drawdown_curve
    assert all(b >= a for a, b in zip(dd, dd[1:]))
    assert all(0.0 <= x <= 1.0 for x in dd)
    assert result.metrics.max_drawdown_pct == pytest.approx(dd[-1])


def test_non_finite_close_rejected():
    params = SimulatorParams(initial_cash=1000.0)
    df = _frame(_wave())
    df.loc[150, "close"] = np.nan
    with pytest.raises(DataError, match="non-finite"):
        BacktestEngine(EmaRsiAtrStrategy(params), params).run(df)
