"""Screener: cross-sectional ranking with liquidity filter and sector-robust z-scores."""

from signal_desk.screener.liquidity import LiquidityCheck, check_liquidity
from signal_desk.screener.normalize import GLOBAL_BUCKET, robust_zscores, sector_zscores
from signal_desk.screener.projection import Projection, fair_eta_days, project
from signal_desk.screener.ranker import Candidate, Exclusion, Screener, ScreenerItem, ScreenerResult
from signal_desk.screener.scoring import blend_score, breadth_gate, buy_pct, flow_bump, rvol_1d, rvol_1w

__all__ = [
    "LiquidityCheck",
    "check_liquidity",
    "GLOBAL_BUCKET",
    "robust_zscores",
    "sector_zscores",
    "Projection",
    "fair_eta_days",
    "project",
    "Candidate",
    "Exclusion",
    "Screener",
    "ScreenerItem",
    "ScreenerResult",
    "blend_score",
    "breadth_gate",
    "buy_pct",
    "flow_bump",
    "rvol_1d",
    "rvol_1w",
]
