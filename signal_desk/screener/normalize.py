"""
Robust cross-sectional normalisation: median/MAD z-score per sector bucket
and the deterministic ranking order.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, List, Sequence

from signal_desk.core.params import ScreenerParams
from signal_desk.utils.numeric import clamp, median

GLOBAL_BUCKET = "ALL"


def robust_zscores(values: Sequence[float], params: ScreenerParams) -> List[float]:
    """z = (x - median) / (mad_scale * MAD), clipped to +/-z_clip. MAD == 0 gives 0 for every member."""
    if not values:
        return []
    med = median(values)
    mad = median(abs(v - med) for v in values)
    if not mad:
        return [0.0] * len(values)
    sigma = params.mad_scale * mad
    return [clamp((v - med) / sigma, -params.z_clip, params.z_clip) for v in values]


def assign_buckets(sectors: Dict[str, str], params: ScreenerParams) -> Dict[str, str]:
    """
    ticker -> bucket. Sectors with fewer than min_bucket_size members (and
    tickers without a sector) share the global bucket.
    """
    members: Dict[str, List[str]] = defaultdict(list)
    for ticker, sector in sectors.items():
        members[sector or GLOBAL_BUCKET].append(ticker)
    out = {}
    for sector, tickers in members.items():
        bucket = sector if len(tickers) >= params.min_bucket_size else GLOBAL_BUCKET
        for t in tickers:
            out[t] = bucket
    return out


def sector_zscores(scores: Dict[str, float], sectors: Dict[str, str], params: ScreenerParams) -> Dict[str, float]:
    buckets = assign_buckets(sectors, params)
    grouped: Dict[str, List[str]] = defaultdict(list)
    for ticker in scores:
        grouped[buckets.get(ticker, GLOBAL_BUCKET)].append(ticker)
    z: Dict[str, float] = {}
    for tickers in grouped.values():
        for t, v in zip(tickers, robust_zscores([scores[t] for t in tickers], params)):
            z[t] = v
    return z


def ranking_key(z_score: float, adv10: float, ticker: str):
    """z desc, 10-day median dollar volume desc, ticker asc."""
    return (-z_score, -(adv10 or 0.0), ticker)
