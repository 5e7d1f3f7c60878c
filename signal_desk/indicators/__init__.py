"""Indicators: EMA, RSI, ATR (simple / Wilder), MACD, VWAP and the technical score."""

from signal_desk.indicators.technical import (
    MacdValue,
    atr,
    atr_series,
    ema,
    ema_series,
    macd,
    macd_series,
    rsi,
    rsi_series,
    sma_series,
    true_range,
    vwap,
    wilder_atr,
)
from signal_desk.indicators.snapshot import (
    IndicatorSnapshot,
    TechnicalScore,
    indicator_snapshot,
    label_from_score,
    technical_score,
    weekly_closes,
)

__all__ = [
    "MacdValue",
    "atr",
    "atr_series",
    "ema",
    "ema_series",
    "macd",
    "macd_series",
    "rsi",
    "rsi_series",
    "sma_series",
    "true_range",
    "vwap",
    "wilder_atr",
    "IndicatorSnapshot",
    "TechnicalScore",
    "indicator_snapshot",
    "label_from_score",
    "technical_score",
    "weekly_closes",
]
