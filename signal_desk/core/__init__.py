"""Core: config, params, types, errors, logging."""

from signal_desk.core.config import load_config, Config
from signal_desk.core.errors import (
    DataError,
    InsufficientHistoryError,
    ProviderError,
    SignalDeskError,
    ValidationError,
)
from signal_desk.core.logger import setup_logging
from signal_desk.core.params import ForecastParams, ScreenerParams, SimulatorParams, SweepWindow
from signal_desk.core.types import Candle, EquityPoint, ExitReason, Position, Resolution, Side, Signal, Trade

__all__ = [
    "load_config",
    "Config",
    "DataError",
    "InsufficientHistoryError",
    "ProviderError",
    "SignalDeskError",
    "ValidationError",
    "setup_logging",
    "ForecastParams",
    "ScreenerParams",
    "SimulatorParams",
    "SweepWindow",
    "Candle",
    "EquityPoint",
    "ExitReason",
    "Position",
    "Resolution",
    "Side",
    "Signal",
    "Trade",
]
