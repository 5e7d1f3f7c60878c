"""Unit tests for core.types candle helpers."""

from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from signal_desk.core.errors import DataError
from signal_desk.core.types import (
    Candle,
    candles_to_frame,
    frame_to_candles,
    require_finite_prices,
    validate_candles,
)


def _candles():
    return [
        Candle(datetime(2025, 1, 2), 10.0, 11.0, 9.5, 10.5, 1000.0),
        Candle(datetime(2025, 1, 3), 10.5, 12.0, 10.0, 11.5, 1500.0),
    ]


def test_candle_frame_conversion():
    df = candles_to_frame(_candles())
    assert list(df.columns) == ["time", "open", "high", "low", "close", "volume"]
    assert pd.api.types.is_datetime64_any_dtype(df["time"])
    assert list(df["close"]) == [10.5, 11.5]
    back = frame_to_candles(df)
    assert back == _candles()
    assert candles_to_frame([]).empty


def test_validate_candles_ordering():
    df = candles_to_frame(_candles())
    with pytest.raises(DataError, match="ascending"):
        validate_candles(df.iloc[::-1])
    with pytest.raises(DataError, match="duplicate"):
        validate_candles(pd.concat([df, df.iloc[[0]]]))
    with pytest.raises(DataError, match="missing columns"):
        validate_candles(df.drop(columns=["volume"]))


def test_require_finite_prices():
    df = candles_to_frame(_candles())
    require_finite_prices(df)
    df.loc[1, "high"] = np.inf
    with pytest.raises(DataError, match="first at 2025-01-03"):
        require_finite_prices(df)
