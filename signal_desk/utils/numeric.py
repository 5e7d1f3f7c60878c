"""Small numeric helpers shared by the evaluators. None is the undefined marker for scalars."""

from __future__ import annotations
import math
from typing import Iterable, Optional


def finite_or_none(x: Optional[float]) -> Optional[float]:
    """Return float(x) if finite, else None (NaN/inf never leave a result)."""
    if x is None:
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def median(values: Iterable[float]) -> Optional[float]:
    """True median (mean of the two middle values for even counts). None if empty."""
    vals = sorted(values)
    n = len(vals)
    if n == 0:
        return None
    mid = n // 2
    if n % 2:
        return float(vals[mid])
    return (vals[mid - 1] + vals[mid]) / 2.0


def round_half_away(x: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.floor(abs(x) + 0.5)) * (1 if x >= 0 else -1)
