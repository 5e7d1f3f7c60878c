"""
Load configuration from config.yaml and .env. Environment variables override the file.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from signal_desk.core.params import ForecastParams, ScreenerParams, SimulatorParams, SweepWindow


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    data_cfg = data.get("data", {})
    simulator = data.get("simulator", {})
    forecast = data.get("forecast", {})
    sweep = data.get("sweep", {})
    screener = data.get("screener", {})
    logging_cfg = data.get("logging", {})

    tp = simulator.get("take_profit_r_multiple")
    return Config(
        # Data
        provider=env("CANDLE_PROVIDER", data_cfg.get("provider", "csv")).lower(),
        data_dir=Path(env("DATA_DIR", str(data_cfg.get("data_dir", "data")))),
        runs_dir=Path(env("RUNS_DIR", str(data_cfg.get("runs_dir", "runs")))),
        cache_ttl_seconds=env_float("CACHE_TTL_SECONDS", data_cfg.get("cache_ttl_seconds", 60.0)),
        lookback_days=env_int("LOOKBACK_DAYS", data_cfg.get("lookback_days", 180)),
        # Simulator
        ema_period=env_int("EMA_PERIOD", simulator.get("ema_period", 20)),
        rsi_period=env_int("RSI_PERIOD", simulator.get("rsi_period", 7)),
        atr_period=env_int("ATR_PERIOD", simulator.get("atr_period", 14)),
        rsi_enter_threshold=env_float("RSI_ENTER", simulator.get("rsi_enter_threshold", 60.0)),
        rsi_exit_threshold=env_float("RSI_EXIT", simulator.get("rsi_exit_threshold", 50.0)),
        atr_stop_mult=env_float("ATR_STOP_MULT", simulator.get("atr_stop_multiple", 1.2)),
        take_profit_r_multiple=float(tp) if tp is not None else None,
        slippage_pct=env_float("SLIPPAGE_PCT", simulator.get("slippage_pct", 0.0)),
        fee_per_side=env_float("FEE_PER_SIDE", simulator.get("fee_per_side", 0.0)),
        initial_cash=env_float("INITIAL_CASH", simulator.get("initial_cash", 0.0)),
        # Forecast
        horizon_bars=env_int("HORIZON_BARS", forecast.get("horizon_bars", 10)),
        forecast_method=env("FORECAST_METHOD", forecast.get("method", "atr_k")),
        forecast_k=env_float("FORECAST_K", forecast.get("k", 1.5)),
        forecast_direction=env("FORECAST_DIRECTION", forecast.get("direction", "up")),
        tolerance_pct=env_float("TOLERANCE_PCT", forecast.get("tolerance_pct", 1.0)),
        entry_bars_ago=env_int("ENTRY_BARS_AGO", forecast.get("entry_bars_ago", 20)),
        sweep_start=int(sweep.get("start_bars_ago", 120)),
        sweep_end=int(sweep.get("end_bars_ago", 20)),
        sweep_step=int(sweep.get("step", 5)),
        # Screener
        min_dollar_volume=env_float("MIN_DOLLAR_VOLUME", screener.get("min_dollar_volume", 5_000_000.0)),
        max_workers=env_int("MAX_WORKERS", screener.get("max_workers", 4)),
        screener_top=env_int("SCREENER_TOP", screener.get("top", 25)),
        screener_deadline=screener.get("deadline_seconds"),
        screener_overrides={
            k: v for k, v in screener.items()
            if k not in ("min_dollar_volume", "max_workers", "top", "deadline_seconds")
        },
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "signal_desk.log"),
    )


class Config:
    """Unified configuration. Immutable after load; params structs built on demand."""

    __slots__ = (
        "provider", "data_dir", "runs_dir", "cache_ttl_seconds", "lookback_days",
        "ema_period", "rsi_period", "atr_period", "rsi_enter_threshold", "rsi_exit_threshold",
        "atr_stop_mult", "take_profit_r_multiple", "slippage_pct", "fee_per_side", "initial_cash",
        "horizon_bars", "forecast_method", "forecast_k", "forecast_direction", "tolerance_pct",
        "entry_bars_ago", "sweep_start", "sweep_end", "sweep_step",
        "min_dollar_volume", "max_workers", "screener_top", "screener_deadline", "screener_overrides",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        provider: str = "csv",
        data_dir: Path = None,
        runs_dir: Path = None,
        cache_ttl_seconds: float = 60.0,
        lookback_days: int = 180,
        ema_period: int = 20,
        rsi_period: int = 7,
        atr_period: int = 14,
        rsi_enter_threshold: float = 60.0,
        rsi_exit_threshold: float = 50.0,
        atr_stop_mult: float = 1.2,
        take_profit_r_multiple: Optional[float] = None,
        slippage_pct: float = 0.0,
        fee_per_side: float = 0.0,
        initial_cash: float = 0.0,
        horizon_bars: int = 10,
        forecast_method: str = "atr_k",
        forecast_k: float = 1.5,
        forecast_direction: str = "up",
        tolerance_pct: float = 1.0,
        entry_bars_ago: int = 20,
        sweep_start: int = 120,
        sweep_end: int = 20,
        sweep_step: int = 5,
        min_dollar_volume: float = 5_000_000.0,
        max_workers: int = 4,
        screener_top: int = 25,
        screener_deadline: Optional[float] = None,
        screener_overrides: Optional[dict] = None,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "signal_desk.log",
    ):
        self.provider = provider
        self.data_dir = Path(data_dir) if data_dir else Path("data")
        self.runs_dir = Path(runs_dir) if runs_dir else Path("runs")
        self.cache_ttl_seconds = cache_ttl_seconds
        self.lookback_days = lookback_days
        self.ema_period = ema_period
        self.rsi_period = rsi_period
        self.atr_period = atr_period
        self.rsi_enter_threshold = rsi_enter_threshold
        self.rsi_exit_threshold = rsi_exit_threshold
        self.atr_stop_mult = atr_stop_mult
        self.take_profit_r_multiple = take_profit_r_multiple
        self.slippage_pct = slippage_pct
        self.fee_per_side = fee_per_side
        self.initial_cash = initial_cash
        self.horizon_bars = horizon_bars
        self.forecast_method = forecast_method
        self.forecast_k = forecast_k
        self.forecast_direction = forecast_direction
        self.tolerance_pct = tolerance_pct
        self.entry_bars_ago = entry_bars_ago
        self.sweep_start = sweep_start
        self.sweep_end = sweep_end
        self.sweep_step = sweep_step
        self.min_dollar_volume = min_dollar_volume
        self.max_workers = max_workers
        self.screener_top = screener_top
        self.screener_deadline = float(screener_deadline) if screener_deadline is not None else None
        self.screener_overrides = dict(screener_overrides or {})
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def simulator_params(self) -> SimulatorParams:
        return SimulatorParams(
            ema_period=self.ema_period,
            rsi_period=self.rsi_period,
            atr_period=self.atr_period,
            rsi_enter_threshold=self.rsi_enter_threshold,
            rsi_exit_threshold=self.rsi_exit_threshold,
            atr_stop_multiple=self.atr_stop_mult,
            take_profit_r_multiple=self.take_profit_r_multiple,
            slippage_pct=self.slippage_pct,
            fee_per_side=self.fee_per_side,
            initial_cash=self.initial_cash,
        )

    def forecast_params(self, **overrides) -> ForecastParams:
        kwargs = dict(
            horizon_bars=self.horizon_bars,
            method=self.forecast_method,
            k=self.forecast_k,
            direction=self.forecast_direction,
            tolerance_pct=self.tolerance_pct,
            atr_period=self.atr_period,
            entry_bars_ago=self.entry_bars_ago,
        )
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return ForecastParams(**kwargs)

    def sweep_window(self) -> SweepWindow:
        return SweepWindow(self.sweep_start, self.sweep_end, self.sweep_step)

    def screener_params(self) -> ScreenerParams:
        return ScreenerParams(
            min_dollar_volume=self.min_dollar_volume,
            max_workers=self.max_workers,
            top=self.screener_top,
            **self.screener_overrides,
        )
