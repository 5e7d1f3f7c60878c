"""
Core data types: candles, trades, equity points.
Candle sequences travel as DataFrames (columns: time, open, high, low, close, volume).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from signal_desk.core.errors import DataError

CANDLE_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    STOP = "stop"
    TAKE_PROFIT = "take_profit"
    SIGNAL_EXIT = "signal_exit"


class Resolution(str, Enum):
    INTRADAY = "intraday"
    DAILY = "daily"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class Signal:
    """Entry signal with stop and optional target."""
    side: Side
    entry_price: float
    stop_price: float
    time: datetime
    take_profit_price: Optional[float] = None
    metadata: dict = field(default_factory=dict)


@dataclass
class Position:
    """Open simulated position (LONG only for the default strategy)."""
    side: Side
    entry_price: float
    stop_price: float
    entry_time: datetime
    take_profit_price: Optional[float] = None

    @property
    def risk(self) -> float:
        return self.entry_price - self.stop_price


@dataclass(frozen=True)
class Trade:
    """Closed trade."""
    side: Side
    entry_price: float
    exit_price: float
    entry_time: datetime
    exit_time: datetime
    pnl: float
    r_multiple: float
    exit_reason: ExitReason

    def to_dict(self) -> dict:
        return {
            "side": self.side.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "entryTime": _iso(self.entry_time),
            "exitTime": _iso(self.exit_time),
            "pnl": self.pnl,
            "rMultiple": self.r_multiple,
            "exitReason": self.exit_reason.value,
        }


@dataclass(frozen=True)
class EquityPoint:
    time: datetime
    equity: float

    def to_dict(self) -> dict:
        return {"t": _iso(self.time), "equity": self.equity}


def _iso(ts: datetime) -> str:
    return pd.Timestamp(ts).isoformat()


def candles_to_frame(candles: Iterable[Candle]) -> pd.DataFrame:
    """Build a candle DataFrame from Candle records."""
    rows = [
        {"time": c.time, "open": c.open, "high": c.high, "low": c.low, "close": c.close, "volume": c.volume}
        for c in candles
    ]
    if not rows:
        return empty_frame()
    df = pd.DataFrame(rows, columns=CANDLE_COLUMNS)
    df["time"] = pd.to_datetime(df["time"])
    return df


def frame_to_candles(df: pd.DataFrame) -> List[Candle]:
    return [
        Candle(
            time=pd.Timestamp(row.time).to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    ]


def empty_frame() -> pd.DataFrame:
    df = pd.DataFrame({col: pd.Series(dtype="float64") for col in CANDLE_COLUMNS})
    df["time"] = pd.to_datetime(df["time"])
    return df


def validate_candles(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check columns, ascending order and unique timestamps.
    Returns a copy with a fresh RangeIndex and float OHLCV columns.
    """
    missing = [c for c in CANDLE_COLUMNS if c not in df.columns]
    if missing:
        raise DataError(f"candle frame missing columns: {', '.join(missing)}")
    out = df[CANDLE_COLUMNS].copy().reset_index(drop=True)
    out["time"] = pd.to_datetime(out["time"])
    if out["time"].duplicated().any():
        raise DataError("duplicate candle timestamps")
    if not out["time"].is_monotonic_increasing:
        raise DataError("candles must be ordered by time ascending")
    out[["open", "high", "low", "close", "volume"]] = out[["open", "high", "low", "close", "volume"]].astype(float)
    return out


def require_finite_prices(df: pd.DataFrame, context: str = "candles") -> None:
    """Raise DataError if any open/high/low/close is NaN or infinite."""
    prices = df[["open", "high", "low", "close"]].to_numpy(dtype=float)
    bad = ~np.isfinite(prices).all(axis=1)
    if bad.any():
        first = int(np.argmax(bad))
        raise DataError(
            f"{context}: non-finite price on {int(bad.sum())} bar(s), first at {_iso(df['time'].iloc[first])}"
        )
