"""Typed, validated parameter structs: one per computation (simulator, forecast, screener)."""

from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional, Union

from signal_desk.core.errors import ValidationError


@dataclass(frozen=True)
class SimulatorParams:
    ema_period: int = 20
    rsi_period: int = 7
    atr_period: int = 14
    rsi_enter_threshold: float = 60.0
    rsi_exit_threshold: float = 50.0
    atr_stop_multiple: float = 1.2
    take_profit_r_multiple: Optional[float] = None
    slippage_pct: float = 0.0  # fraction, 0.001 = 10 bps
    fee_per_side: float = 0.0  # price units per fill
    initial_cash: float = 0.0

    def __post_init__(self) -> None:
        for name in ("ema_period", "rsi_period", "atr_period"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v < 1:
                raise ValidationError(f"{name} must be a positive integer, got {v!r}")
        for name in ("rsi_enter_threshold", "rsi_exit_threshold"):
            v = getattr(self, name)
            if not 0.0 <= v <= 100.0:
                raise ValidationError(f"{name} must be within [0, 100], got {v}")
        if self.atr_stop_multiple <= 0:
            raise ValidationError(f"atr_stop_multiple must be > 0, got {self.atr_stop_multiple}")
        if self.take_profit_r_multiple is not None and self.take_profit_r_multiple <= 0:
            raise ValidationError(f"take_profit_r_multiple must be > 0, got {self.take_profit_r_multiple}")
        if not 0.0 <= self.slippage_pct < 1.0:
            raise ValidationError(f"slippage_pct must be within [0, 1), got {self.slippage_pct}")
        if self.fee_per_side < 0:
            raise ValidationError(f"fee_per_side must be >= 0, got {self.fee_per_side}")

    @property
    def warmup_bars(self) -> int:
        """Index of the first bar on which every indicator is defined."""
        return max(self.ema_period - 1, self.rsi_period, self.atr_period)

    def to_dict(self) -> dict:
        return asdict(self)


FORECAST_METHODS = ("atr_k", "fair")
DIRECTIONS = ("up", "down", "auto")


@dataclass(frozen=True)
class ForecastParams:
    """
    Single-point forecast. Entry is either `entry_date` (first candle on or
    after it) or `entry_bars_ago` bars before the last candle.
    tolerance_pct is in percent (1.0 = 1%).
    """
    horizon_bars: int = 10
    method: str = "atr_k"
    k: float = 1.5
    direction: str = "up"
    tolerance_pct: float = 1.0
    atr_period: int = 14
    entry_date: Optional[Union[str, date, datetime]] = None
    entry_bars_ago: Optional[int] = 20
    end_date: Optional[Union[str, date, datetime]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.horizon_bars, int) or self.horizon_bars < 1:
            raise ValidationError(f"horizon_bars must be a positive integer, got {self.horizon_bars!r}")
        if self.method not in FORECAST_METHODS:
            raise ValidationError(f"method must be one of {FORECAST_METHODS}, got {self.method!r}")
        if self.direction not in DIRECTIONS:
            raise ValidationError(f"direction must be one of {DIRECTIONS}, got {self.direction!r}")
        if not (self.k > 0):
            raise ValidationError(f"k must be > 0, got {self.k}")
        if self.tolerance_pct < 0:
            raise ValidationError(f"tolerance_pct must be >= 0, got {self.tolerance_pct}")
        if not isinstance(self.atr_period, int) or self.atr_period < 1:
            raise ValidationError(f"atr_period must be a positive integer, got {self.atr_period!r}")
        if self.entry_date is None:
            if self.entry_bars_ago is None or not isinstance(self.entry_bars_ago, int) or self.entry_bars_ago < 1:
                raise ValidationError(f"entry_bars_ago must be a positive integer, got {self.entry_bars_ago!r}")

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("entry_date", "end_date"):
            if d[key] is not None:
                d[key] = str(d[key])
        return d


@dataclass(frozen=True)
class SweepWindow:
    """Entry offsets start_bars_ago, start_bars_ago - step, ... down to >= end_bars_ago."""
    start_bars_ago: int = 120
    end_bars_ago: int = 20
    step: int = 5

    def __post_init__(self) -> None:
        for name in ("start_bars_ago", "end_bars_ago", "step"):
            v = getattr(self, name)
            if not isinstance(v, int) or v < 1:
                raise ValidationError(f"{name} must be a positive integer, got {v!r}")
        if self.start_bars_ago < self.end_bars_ago:
            raise ValidationError(
                f"start_bars_ago ({self.start_bars_ago}) must be >= end_bars_ago ({self.end_bars_ago})"
            )

    def offsets(self) -> list:
        return list(range(self.start_bars_ago, self.end_bars_ago - 1, -self.step))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ScreenerParams:
    # score blend + breadth gate
    daily_weight: float = 0.7
    weekly_weight: float = 0.3
    breadth_min: int = 3
    breadth_score_floor: int = 2
    # liquidity
    min_dollar_volume: float = 5_000_000.0
    liquidity_window: int = 10
    liquidity_min_sessions: int = 8
    # normalisation
    min_bucket_size: int = 8
    z_clip: float = 3.5
    mad_scale: float = 1.4826
    # projection + dampening
    horizon_days: int = 10
    atr_period: int = 14
    base_k: float = 1.4
    macro_damping: float = 0.9
    earnings_damping: float = 0.85
    earnings_window_days: int = 10
    # intraday flow / RVOL bump (empirical constants)
    flow_rvol_high: float = 2.0
    flow_rvol_mid: float = 1.2
    flow_weight_high: float = 1.0
    flow_weight_mid: float = 0.7
    flow_weight_low: float = 0.4
    rvol_bump_high: float = 2.0
    rvol_bump_high_step: float = 1.0
    rvol_bump_mid: float = 1.5
    rvol_bump_mid_step: float = 0.5
    rvol_bump_low: float = 0.7
    rvol_bump_low_step: float = 0.5
    # execution
    max_workers: int = 4
    top: int = 25

    def __post_init__(self) -> None:
        for name in ("macro_damping", "earnings_damping"):
            v = getattr(self, name)
            if not 0.0 < v <= 1.0:
                raise ValidationError(f"{name} must be within (0, 1], got {v}")
        for name in ("liquidity_window", "liquidity_min_sessions", "min_bucket_size", "horizon_days",
                     "atr_period", "earnings_window_days", "top"):
            v = getattr(self, name)
            if not isinstance(v, int) or v < 1:
                raise ValidationError(f"{name} must be a positive integer, got {v!r}")
        if self.liquidity_min_sessions > self.liquidity_window:
            raise ValidationError("liquidity_min_sessions cannot exceed liquidity_window")
        if not 1 <= self.max_workers <= 32:
            raise ValidationError(f"max_workers must be within [1, 32], got {self.max_workers}")
        if self.min_dollar_volume < 0:
            raise ValidationError(f"min_dollar_volume must be >= 0, got {self.min_dollar_volume}")
        if self.z_clip <= 0 or self.mad_scale <= 0:
            raise ValidationError("z_clip and mad_scale must be > 0")
        if not self.rvol_bump_low < self.rvol_bump_mid <= self.rvol_bump_high:
            raise ValidationError("RVOL bump thresholds must satisfy low < mid <= high")

    def to_dict(self) -> dict:
        return asdict(self)
