"""
Technical indicators over numeric sequences.

Series functions return a pandas Series aligned 1:1 with the input; positions
before the warm-up period hold NaN (undefined, never 0). Trailing helpers
return a float, or None when undefined.

Conventions (used at every call site):
  - EMA is seeded with the simple average of the first `period` finite values.
  - RSI bootstraps avg gain/loss as simple means over the first `period`
    deltas, then applies Wilder smoothing. RSI = 100 when avg loss is 0.
  - ATR is available as a simple trailing mean of TR or Wilder-smoothed.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from signal_desk.core.errors import ValidationError
from signal_desk.utils.numeric import finite_or_none

Values = Union[Sequence[float], np.ndarray, pd.Series]


def _check_period(period: int, name: str = "period") -> int:
    if not isinstance(period, (int, np.integer)) or period < 1:
        raise ValidationError(f"{name} must be a positive integer, got {period!r}")
    return int(period)


def _as_array(values: Values) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _index(values: Values, n: int) -> pd.Index:
    if isinstance(values, pd.Series):
        return values.index
    return pd.RangeIndex(n)


def last_defined(series: pd.Series) -> Optional[float]:
    """Value at the last index, or None if it is undefined."""
    if len(series) == 0:
        return None
    return finite_or_none(series.iloc[-1])


def sma_series(values: Values, period: int) -> pd.Series:
    period = _check_period(period)
    s = pd.Series(_as_array(values), index=_index(values, len(values)))
    return s.rolling(period, min_periods=period).mean()


def ema_series(values: Values, period: int) -> pd.Series:
    """EMA, SMA-seeded. Non-finite inputs are skipped (NaN at that index, recurrence continues)."""
    period = _check_period(period)
    arr = _as_array(values)
    out = np.full(len(arr), np.nan)
    k = 2.0 / (period + 1)
    seed: list = []
    e: Optional[float] = None
    for i, v in enumerate(arr):
        if not math.isfinite(v):
            continue
        if e is None:
            seed.append(v)
            if len(seed) == period:
                e = sum(seed) / period
                out[i] = e
            continue
        e = v * k + e * (1 - k)
        out[i] = e
    return pd.Series(out, index=_index(values, len(arr)))


def ema(values: Values, period: int) -> Optional[float]:
    """Trailing EMA over the finite values, or None with fewer than `period` of them."""
    s = ema_series(values, period).dropna()
    return float(s.iloc[-1]) if len(s) else None


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_series(values: Values, period: int = 14) -> pd.Series:
    """Wilder RSI; first defined at the `period`-th delta. Non-finite inputs are skipped."""
    period = _check_period(period)
    arr = _as_array(values)
    out = np.full(len(arr), np.nan)
    prev: Optional[float] = None
    gain_sum = loss_sum = 0.0
    n_deltas = 0
    avg_gain: Optional[float] = None
    avg_loss = 0.0
    for i, v in enumerate(arr):
        if not math.isfinite(v):
            continue
        if prev is None:
            prev = v
            continue
        delta = v - prev
        prev = v
        gain = delta if delta > 0 else 0.0
        loss = -delta if delta < 0 else 0.0
        if avg_gain is None:
            gain_sum += gain
            loss_sum += loss
            n_deltas += 1
            if n_deltas == period:
                avg_gain = gain_sum / period
                avg_loss = loss_sum / period
                out[i] = _rsi_value(avg_gain, avg_loss)
            continue
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return pd.Series(out, index=_index(values, len(arr)))


def rsi(values: Values, period: int = 14) -> Optional[float]:
    s = rsi_series(values, period).dropna()
    return float(s.iloc[-1]) if len(s) else None


def true_range(high: Values, low: Values, close: Values) -> pd.Series:
    """TR[i] = max(h-l, |h-c[i-1]|, |l-c[i-1]|). TR[0] is undefined."""
    h, l, c = _as_array(high), _as_array(low), _as_array(close)
    if not (len(h) == len(l) == len(c)):
        raise ValidationError("high, low and close must have equal length")
    tr = np.full(len(c), np.nan)
    if len(c) > 1:
        pc = c[:-1]
        tr[1:] = np.maximum(h[1:] - l[1:], np.maximum(np.abs(h[1:] - pc), np.abs(l[1:] - pc)))
    return pd.Series(tr, index=_index(close, len(c)))


def atr_series(
    high: Values,
    low: Values,
    close: Values,
    period: int = 14,
    method: str = "simple",
) -> pd.Series:
    """
    ATR aligned with the candles. Defined once `period` TR values exist
    (first defined index = period).
    method: "simple" (trailing mean of the last `period` TR) | "wilder".
    """
    period = _check_period(period)
    tr = true_range(high, low, close)
    if method == "simple":
        return tr.rolling(period, min_periods=period).mean()
    if method != "wilder":
        raise ValidationError(f"unknown ATR method: {method!r}")
    out = np.full(len(tr), np.nan)
    seed: list = []
    atr_val: Optional[float] = None
    for i, x in enumerate(tr.to_numpy()):
        if not math.isfinite(x):
            continue
        if atr_val is None:
            seed.append(x)
            if len(seed) == period:
                atr_val = sum(seed) / period
                out[i] = atr_val
            continue
        atr_val = (atr_val * (period - 1) + x) / period
        out[i] = atr_val
    return pd.Series(out, index=tr.index)


def atr(high: Values, low: Values, close: Values, period: int = 14) -> Optional[float]:
    """Trailing simple ATR at the last candle."""
    return last_defined(atr_series(high, low, close, period, method="simple"))


def wilder_atr(high: Values, low: Values, close: Values, period: int = 14) -> Optional[float]:
    """Trailing Wilder-smoothed ATR at the last candle."""
    return last_defined(atr_series(high, low, close, period, method="wilder"))


@dataclass(frozen=True)
class MacdValue:
    macd: Optional[float]
    signal: Optional[float]
    hist: Optional[float]


def macd_series(values: Values, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """Columns: macd (EMA fast - EMA slow), signal (EMA of macd), hist (macd - signal)."""
    fast = _check_period(fast, "fast")
    slow = _check_period(slow, "slow")
    signal = _check_period(signal, "signal")
    if fast >= slow:
        raise ValidationError(f"fast period ({fast}) must be shorter than slow period ({slow})")
    line = ema_series(values, fast) - ema_series(values, slow)
    sig = ema_series(line, signal)
    return pd.DataFrame({"macd": line, "signal": sig, "hist": line - sig})


def macd(values: Values, fast: int = 12, slow: int = 26, signal: int = 9) -> MacdValue:
    df = macd_series(values, fast, slow, signal)
    if df.empty:
        return MacdValue(None, None, None)
    last = df.iloc[-1]
    return MacdValue(
        macd=finite_or_none(last["macd"]),
        signal=finite_or_none(last["signal"]),
        hist=finite_or_none(last["hist"]),
    )


def vwap(df: pd.DataFrame) -> Optional[float]:
    """
    Volume-weighted mean of typical price (h+l+c)/3 over the supplied rows.
    The caller picks the window (e.g. one session of intraday bars).
    """
    if df is None or df.empty:
        return None
    typ = (df["high"].astype(float) + df["low"].astype(float) + df["close"].astype(float)) / 3.0
    vol = df["volume"].astype(float)
    ok = np.isfinite(typ) & np.isfinite(vol)
    total = float(vol[ok].sum())
    if total <= 0:
        return None
    return float((typ[ok] * vol[ok]).sum() / total)
