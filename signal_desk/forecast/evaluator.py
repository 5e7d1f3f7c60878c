"""
Forecast evaluation: project a target from an entry bar and score the realised
outcome over a horizon. Single point and rolling sweep share evaluate_at().

Hit detection uses the path extremes between entry and horizon, so a target
touched intra-window counts even if the close reversed afterwards.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from signal_desk.core.errors import InsufficientHistoryError, ValidationError
from signal_desk.core.params import ForecastParams, SweepWindow
from signal_desk.core.types import validate_candles
from signal_desk.indicators.snapshot import technical_score, weekly_closes
from signal_desk.indicators.technical import atr_series
from signal_desk.utils.numeric import finite_or_none

logger = logging.getLogger("signal_desk.forecast")

FAIR_FALLBACK_NOTE = "fair value unavailable; used atr_k"


@dataclass(frozen=True)
class ForecastResult:
    entry_date: str
    entry_index: int
    entry_price: float
    target_price: float
    actual_price: float
    end_date: str
    bars_held: int
    abs_error: float
    pct_error: Optional[float]
    hit_within_tolerance: bool
    max_favorable_excursion: float
    max_adverse_excursion: float
    method: str
    k: float
    direction: str
    horizon_bars: int
    tolerance_pct: float
    fallback_note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "entryDate": self.entry_date,
            "entryIndex": self.entry_index,
            "entryPrice": self.entry_price,
            "targetPrice": self.target_price,
            "actualPrice": self.actual_price,
            "endDate": self.end_date,
            "barsHeld": self.bars_held,
            "absError": self.abs_error,
            "pctError": self.pct_error,
            "hitWithinTolerance": self.hit_within_tolerance,
            "maxFavorableExcursion": self.max_favorable_excursion,
            "maxAdverseExcursion": self.max_adverse_excursion,
            "method": self.method,
            "k": self.k,
            "direction": self.direction,
            "horizonBars": self.horizon_bars,
            "tolerancePct": self.tolerance_pct,
            "fallbackNote": self.fallback_note,
        }


@dataclass(frozen=True)
class SweepResult:
    count: int
    hits: int
    hit_rate: float  # percent
    mae: float
    mape: Optional[float]
    method: str
    direction: str
    k: float
    horizon_bars: int
    tolerance_pct: float
    window: SweepWindow
    items: List[ForecastResult] = field(default_factory=list)
    fallback_note: Optional[str] = None

    def to_dict(self, include_items: bool = True) -> dict:
        out = {
            "count": self.count,
            "hits": self.hits,
            "hitRate": self.hit_rate,
            "mae": self.mae,
            "mape": self.mape,
            "method": self.method,
            "direction": self.direction,
            "k": self.k,
            "horizonBars": self.horizon_bars,
            "tolerancePct": self.tolerance_pct,
            "window": self.window.to_dict(),
            "fallbackNote": self.fallback_note,
        }
        if include_items:
            out["items"] = [it.to_dict() for it in self.items]
        return out


def resolve_direction(
    requested: str,
    daily_score: Optional[float] = None,
    weekly_score: Optional[float] = None,
) -> Tuple[str, str]:
    """
    Returns (side, echo). side is "up"/"down"; echo is what the result reports
    ("up", "down", "auto->up", "auto->down").
    auto: blend = 0.7*daily + 0.3*weekly; >= 1 up, <= -1 down, otherwise up.
    A missing score counts as 0.
    """
    if requested in ("up", "down"):
        return requested, requested
    if requested != "auto":
        raise ValidationError(f"direction must be up, down or auto, got {requested!r}")
    d = finite_or_none(daily_score) or 0.0
    w = finite_or_none(weekly_score) or 0.0
    blend = 0.7 * d + 0.3 * w
    side = "down" if blend <= -1 else "up"
    return side, f"auto->{side}"


def scores_from_candles(df: pd.DataFrame) -> Tuple[int, int]:
    """Daily and weekly technical scores from the candles available now."""
    daily = technical_score(df["close"].to_numpy(dtype=float)).score
    weekly = technical_score(weekly_closes(df).to_numpy(dtype=float)).score
    return daily, weekly


def resolve_entry_index(df: pd.DataFrame, params: ForecastParams) -> int:
    """First candle on/after entry_date, or last index - entry_bars_ago. Must land in [1, len-2]."""
    n = len(df)
    if params.entry_date is not None:
        try:
            target = pd.Timestamp(params.entry_date)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"unparseable entry date {params.entry_date!r}") from e
        idx = _first_index_at_or_after(df["time"], target, 0)
        if idx is None:
            raise ValidationError(f"entry date {params.entry_date} is after the last candle")
    else:
        idx = n - 1 - params.entry_bars_ago
    if idx < 1 or idx > n - 2:
        raise ValidationError(f"unable to resolve entry index: {idx} outside [1, {n - 2}]")
    return idx


def _first_index_at_or_after(times: pd.Series, target: pd.Timestamp, start: int) -> Optional[int]:
    if times.dt.tz is not None and target.tzinfo is None:
        target = target.tz_localize(times.dt.tz)
    elif times.dt.tz is None and target.tzinfo is not None:
        target = target.tz_convert(None)
    hits = np.flatnonzero((times >= target).to_numpy())
    hits = hits[hits >= start]
    return int(hits[0]) if len(hits) else None


def _resolve_end_index(df: pd.DataFrame, entry_idx: int, params: ForecastParams) -> int:
    last = len(df) - 1
    end_idx = min(last, entry_idx + params.horizon_bars)
    if params.end_date is not None:
        try:
            target = pd.Timestamp(params.end_date)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"unparseable end date {params.end_date!r}") from e
        idx = _first_index_at_or_after(df["time"], target, entry_idx)
        if idx is not None:
            end_idx = idx
        if end_idx <= entry_idx:
            raise ValidationError("end date must fall after the entry candle")
    return end_idx


class _Prepared:
    """Candle arrays + the simple ATR series computed once per frame."""

    def __init__(self, df: pd.DataFrame, atr_period: int):
        self.df = validate_candles(df)
        self.times = self.df["time"]
        self.high = self.df["high"].to_numpy(dtype=float)
        self.low = self.df["low"].to_numpy(dtype=float)
        self.close = self.df["close"].to_numpy(dtype=float)
        self.atr = atr_series(self.high, self.low, self.close, atr_period, method="simple").to_numpy()
        self.atr_period = atr_period

    def __len__(self) -> int:
        return len(self.df)


def _target(
    prep: _Prepared,
    entry_idx: int,
    side: str,
    k: float,
    fair_value: Optional[float],
) -> float:
    if fair_value is not None:
        return fair_value
    atr = finite_or_none(prep.atr[entry_idx])
    if atr is None:
        raise InsufficientHistoryError(prep.atr_period + 1, entry_idx + 1, "ATR at entry")
    entry = float(prep.close[entry_idx])
    return entry + k * atr if side == "up" else entry - k * atr


def evaluate_at(
    prep: _Prepared,
    entry_idx: int,
    end_idx: int,
    params: ForecastParams,
    side: str,
    direction_echo: str,
    fair_value: Optional[float],
    method_used: str,
    fallback_note: Optional[str],
) -> ForecastResult:
    entry_price = finite_or_none(prep.close[entry_idx])
    actual = finite_or_none(prep.close[end_idx])
    if entry_price is None or actual is None:
        raise ValidationError("entry and horizon candles must have a finite close")
    target = _target(prep, entry_idx, side, params.k, fair_value)

    abs_error = abs(actual - target)
    pct_error = abs_error / abs(target) * 100.0 if target != 0 else None

    span = slice(entry_idx + 1, end_idx + 1)
    hi = float(np.nanmax(np.concatenate([prep.high[span], prep.close[span]])))
    lo = float(np.nanmin(np.concatenate([prep.low[span], prep.close[span]])))
    tol = params.tolerance_pct / 100.0
    if side == "up":
        hit = hi >= target * (1 - tol)
        mfe = max(0.0, hi - entry_price)
        mae = max(0.0, entry_price - lo)
    else:
        hit = lo <= target * (1 + tol)
        mfe = max(0.0, entry_price - lo)
        mae = max(0.0, hi - entry_price)

    return ForecastResult(
        entry_date=prep.times.iloc[entry_idx].date().isoformat(),
        entry_index=entry_idx,
        entry_price=entry_price,
        target_price=target,
        actual_price=actual,
        end_date=prep.times.iloc[end_idx].date().isoformat(),
        bars_held=end_idx - entry_idx,
        abs_error=abs_error,
        pct_error=pct_error,
        hit_within_tolerance=bool(hit),
        max_favorable_excursion=mfe,
        max_adverse_excursion=mae,
        method=method_used,
        k=params.k,
        direction=direction_echo,
        horizon_bars=params.horizon_bars,
        tolerance_pct=params.tolerance_pct,
        fallback_note=fallback_note,
    )


def _resolve_method(params: ForecastParams, fair_value: Optional[float]) -> Tuple[str, Optional[float], Optional[str]]:
    """(method used, fair value or None, fallback note)."""
    if params.method != "fair":
        return "atr_k", None, None
    fv = finite_or_none(fair_value)
    if fv is None:
        logger.info("Fair value unavailable, falling back to atr_k")
        return "atr_k", None, FAIR_FALLBACK_NOTE
    return "fair", fv, None


def evaluate_forecast(
    df: pd.DataFrame,
    params: ForecastParams,
    fair_value: Optional[float] = None,
    daily_score: Optional[float] = None,
    weekly_score: Optional[float] = None,
) -> ForecastResult:
    """
    Single-point evaluation. For direction="auto" pass the daily/weekly technical
    scores (see scores_from_candles); for method="fair" pass the oracle value.
    """
    prep = _Prepared(df, params.atr_period)
    if len(prep) < 3:
        raise InsufficientHistoryError(3, len(prep), "forecast")
    entry_idx = resolve_entry_index(prep.df, params)
    end_idx = _resolve_end_index(prep.df, entry_idx, params)
    side, echo = resolve_direction(params.direction, daily_score, weekly_score)
    method_used, fv, note = _resolve_method(params, fair_value)
    result = evaluate_at(prep, entry_idx, end_idx, params, side, echo, fv, method_used, note)
    logger.debug(
        "Forecast entry=%s target=%.4f actual=%.4f hit=%s",
        result.entry_date, result.target_price, result.actual_price, result.hit_within_tolerance,
    )
    return result


def rolling_sweep(
    df: pd.DataFrame,
    params: ForecastParams,
    window: Optional[SweepWindow] = None,
    fair_value: Optional[float] = None,
    daily_score: Optional[float] = None,
    weekly_score: Optional[float] = None,
) -> SweepResult:
    """
    Evaluate entries at window.offsets() bars before the last candle with the
    same horizon, method and direction (resolved once). The window is validated
    up front, so either every entry is evaluated or nothing is.
    """
    window = window or SweepWindow()
    prep = _Prepared(df, params.atr_period)
    n = len(prep)
    offsets = window.offsets()
    oldest = n - 1 - max(offsets)
    if oldest < 1:
        raise InsufficientHistoryError(max(offsets) + 2, n, "sweep window")
    side, echo = resolve_direction(params.direction, daily_score, weekly_score)
    method_used, fv, note = _resolve_method(params, fair_value)
    if fv is None and oldest < params.atr_period:
        raise InsufficientHistoryError(max(offsets) + params.atr_period + 1, n, "sweep window ATR")

    items: List[ForecastResult] = []
    for d in offsets:
        entry_idx = n - 1 - d
        end_idx = min(n - 1, entry_idx + params.horizon_bars)
        items.append(evaluate_at(prep, entry_idx, end_idx, params, side, echo, fv, method_used, note))

    count = len(items)
    hits = sum(1 for it in items if it.hit_within_tolerance)
    pct = [it.pct_error for it in items if it.pct_error is not None]
    result = SweepResult(
        count=count,
        hits=hits,
        hit_rate=hits / count * 100.0,
        mae=sum(it.abs_error for it in items) / count,
        mape=sum(pct) / len(pct) if pct else None,
        method=method_used,
        direction=echo,
        k=params.k,
        horizon_bars=params.horizon_bars,
        tolerance_pct=params.tolerance_pct,
        window=window,
        items=items,
        fallback_note=note,
    )
    logger.info("Sweep: %d entries, hit rate %.1f%%, mae %.4f", count, result.hit_rate, result.mae)
    return result
