"""Strategies: base interface and implementations."""

from signal_desk.strategies.base import BaseStrategy
from signal_desk.strategies.ema_rsi_atr import EmaRsiAtrStrategy

__all__ = ["BaseStrategy", "EmaRsiAtrStrategy"]
