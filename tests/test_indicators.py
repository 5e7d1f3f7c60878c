"""Unit tests for indicators.technical and indicators.snapshot."""

import math

import numpy as np
import pandas as pd
import pytest

from signal_desk.core.errors import ValidationError
from signal_desk.indicators.snapshot import indicator_snapshot, label_from_score, technical_score, weekly_closes
from signal_desk.indicators.technical import (
    atr,
    atr_series,
    ema,
    ema_series,
    macd,
    macd_series,
    rsi,
    rsi_series,
    true_range,
    vwap,
    wilder_atr,
)


def test_ema_seeded_with_sma():
    s = ema_series([1, 2, 3, 4, 5], 3)
    assert math.isnan(s[0]) and math.isnan(s[1])
    # seed = mean(1,2,3) = 2, then alpha = 0.5
    assert s[2] == pytest.approx(2.0)
    assert s[3] == pytest.approx(3.0)
    assert s[4] == pytest.approx(4.0)


def test_ema_undefined_with_short_input():
    assert ema([1.0, 2.0], 3) is None


def test_ema_constant_series_converges():
    assert ema([10.0] * 50, 20) == pytest.approx(10.0)


def _ema_gaps(closes, period=20):
    closes = np.asarray(closes, dtype=float)
    s = ema_series(closes, period).to_numpy()
    defined = ~np.isnan(s)
    return s[defined], closes[defined] - s[defined]


def test_ema_rising_series_no_overshoot():
    # linear: the lag settles at (1 - alpha) / alpha * slope and never grows
    values, gaps = _ema_gaps(np.arange(1.0, 101.0))
    assert np.all(np.diff(values) >= 0)
    assert np.all(gaps >= 0)
    assert np.all(np.diff(gaps) <= 1e-9)

    # decelerating rise: the gap closes
    values, gaps = _ema_gaps(100 - 50 * 0.9 ** np.arange(120))
    assert np.all(np.diff(values) >= 0)
    assert np.all(gaps >= 0)
    assert gaps[-1] < gaps[0] / 100


def test_ema_skips_non_finite():
    s = ema_series([1, 2, float("nan"), 3, 4], 3)
    assert math.isnan(s[2])
    assert s[3] == pytest.approx(2.0)
    assert s[4] == pytest.approx(3.0)


def test_invalid_period_raises():
    with pytest.raises(ValidationError):
        ema_series([1, 2, 3], 0)
    with pytest.raises(ValidationError):
        rsi_series([1, 2, 3], -1)


def test_rsi_wilder_smoothing():
    s = rsi_series([10, 11, 10, 12], 2)
    assert math.isnan(s[1])
    # bootstrap: avg gain 0.5, avg loss 0.5
    assert s[2] == pytest.approx(50.0)
    # gain 1.25, loss 0.25 -> rs 5
    assert s[3] == pytest.approx(100 - 100 / 6)


def test_rsi_first_defined_at_period():
    closes = list(range(1, 30))
    s = rsi_series(closes, 14)
    assert s[:14].isna().all()
    assert not math.isnan(s[14])


def test_rsi_bounds_and_no_losses():
    rng = np.random.default_rng(7)
    closes = 100 + np.cumsum(rng.normal(0, 1, 300))
    s = rsi_series(closes, 14).dropna()
    assert ((s >= 0) & (s <= 100)).all()
    assert rsi(list(range(1, 40)), 14) == pytest.approx(100.0)


def test_true_range_first_undefined():
    tr = true_range([10, 11, 12], [9, 10, 11], [9.5, 10.5, 11.5])
    assert math.isnan(tr[0])
    assert tr[1] == pytest.approx(1.5)


def test_atr_simple_vs_wilder():
    # constant close so TR = high - low: 2, 4, 6
    high = [10.5, 11, 12, 13]
    low = [9.5, 9, 8, 7]
    close = [10, 10, 10, 10]
    simple = atr_series(high, low, close, 2, method="simple")
    wilder = atr_series(high, low, close, 2, method="wilder")
    assert math.isnan(simple[1]) and math.isnan(wilder[1])
    assert simple[2] == pytest.approx(3.0)
    assert wilder[2] == pytest.approx(3.0)
    assert simple[3] == pytest.approx(5.0)
    assert wilder[3] == pytest.approx(4.5)
    assert atr(high, low, close, 2) == pytest.approx(5.0)
    assert wilder_atr(high, low, close, 2) == pytest.approx(4.5)


def test_atr_unknown_method():
    with pytest.raises(ValidationError):
        atr_series([1, 2], [1, 2], [1, 2], 1, method="ewm")


def test_macd_requires_fast_below_slow():
    with pytest.raises(ValidationError):
        macd_series([1.0] * 40, 26, 12, 9)


def test_macd_constant_series_is_flat():
    m = macd([100.0] * 60)
    assert m.macd == pytest.approx(0.0)
    assert m.signal == pytest.approx(0.0)
    assert m.hist == pytest.approx(0.0)


def test_macd_undefined_when_short():
    m = macd([100.0] * 20)
    assert m.macd is None and m.hist is None


def test_vwap_volume_weighted():
    df = pd.DataFrame({
        "high": [10.0, 20.0],
        "low": [10.0, 20.0],
        "close": [10.0, 20.0],
        "volume": [1.0, 3.0],
    })
    assert vwap(df) == pytest.approx(17.5)


def test_vwap_zero_volume_is_undefined():
    df = pd.DataFrame({"high": [10.0], "low": [9.0], "close": [9.5], "volume": [0.0]})
    assert vwap(df) is None


def test_technical_score_neutral_when_short():
    s = technical_score([100.0] * 10)
    assert s.score == 0
    assert s.summary == "Neutral"


def test_technical_score_strong_uptrend():
    closes = [100 * 1.01 ** i for i in range(250)]
    s = technical_score(closes)
    assert s.ma_buy == 5
    assert s.ind_buy == 2
    assert s.score == 7
    assert s.breadth == 7
    assert s.summary == "Strong Buy"


def test_label_from_score():
    assert label_from_score(3) == "Strong Buy"
    assert label_from_score(1) == "Buy"
    assert label_from_score(0) == "Neutral"
    assert label_from_score(-1) == "Sell"
    assert label_from_score(-4) == "Strong Sell"


def test_weekly_closes_friday_anchor():
    times = pd.date_range("2025-01-06", periods=10, freq="B")  # Mon 6th .. Fri 17th
    df = pd.DataFrame({"time": times, "close": np.arange(10, dtype=float)})
    w = weekly_closes(df)
    assert list(w) == [4.0, 9.0]


def test_indicator_snapshot():
    n = 80
    closes = np.array([100 + 0.1 * i for i in range(n)])
    intraday = pd.DataFrame({
        "time": pd.date_range("2025-01-02 14:30", periods=n, freq="min"),
        "open": closes,
        "high": closes + 0.05,
        "low": closes - 0.05,
        "close": closes,
        "volume": np.full(n, 100.0),
    })
    daily = pd.DataFrame({
        "time": pd.date_range("2024-12-01", periods=30, freq="D"),
        "open": np.full(30, 100.0),
        "high": np.full(30, 101.0),
        "low": np.full(30, 99.0),
        "close": np.full(30, 100.0),
        "volume": np.full(30, 1e6),
    })
    snap = indicator_snapshot(intraday, daily)
    assert snap.last == pytest.approx(closes[-1])
    assert snap.rsi14 == pytest.approx(100.0)
    assert snap.above_ema20 is True
    assert snap.ema_aligned is True
    assert snap.atr_pct == pytest.approx(2.0)
    assert snap.vwap == pytest.approx(closes.mean())
    assert snap.vwap_dist_pct > 0
