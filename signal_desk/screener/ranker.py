"""
Cross-sectional screener: evaluate each candidate in isolation on a bounded
worker pool, filter for liquidity, normalise scores per sector and rank.
"""

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from signal_desk.core.errors import DataError
from signal_desk.core.params import ScreenerParams
from signal_desk.core.types import Resolution, validate_candles
from signal_desk.indicators.snapshot import label_from_score, technical_score, weekly_closes
from signal_desk.providers.base import CandleProvider, EventCalendar, ValuationOracle
from signal_desk.providers.calendar import EarningsCalendar, MacroCalendar, to_date
from signal_desk.screener.liquidity import check_liquidity
from signal_desk.screener.normalize import ranking_key, sector_zscores
from signal_desk.screener.projection import fair_eta_days, project
from signal_desk.screener.scoring import (
    blend_score,
    breadth_gate,
    flow_bump,
    flow_snapshots,
    rvol_1d,
    rvol_1w,
)
from signal_desk.utils.numeric import finite_or_none
from signal_desk.utils.pool import run_bounded

logger = logging.getLogger("signal_desk.screener")

# calendar days of daily candles: covers SMA200 plus the weekly resample
DAILY_LOOKBACK_DAYS = 400
INTRADAY_LOOKBACK_DAYS = 1


@dataclass(frozen=True)
class Candidate:
    ticker: str
    sector: Optional[str] = None


@dataclass
class ScreenerItem:
    ticker: str
    sector: Optional[str]
    last: float
    score: float
    daily_score: int
    weekly_score: int
    breadth: int
    summary: str
    adv10: float
    days_traded10: int
    z_score: float = 0.0
    atr: Optional[float] = None
    atr_pct: Optional[float] = None
    est_price: Optional[float] = None
    est_lo1: Optional[float] = None
    est_hi1: Optional[float] = None
    est_lo2: Optional[float] = None
    est_hi2: Optional[float] = None
    adj_note: Optional[str] = None
    fair: Optional[float] = None
    fair_eta_days: Optional[int] = None
    rvol_1d: Optional[float] = None
    rvol_1w: Optional[float] = None
    flow_1h_buy_pct: Optional[float] = None
    flow_1d_buy_pct: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Exclusion:
    ticker: str
    reason: str

    def to_dict(self) -> dict:
        return {"ticker": self.ticker, "reason": self.reason}


@dataclass
class ScreenerResult:
    items: List[ScreenerItem] = field(default_factory=list)
    dropped: List[Exclusion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "items": [it.to_dict() for it in self.items],
            "dropped": [d.to_dict() for d in self.dropped],
        }


CandidateLike = Union[Candidate, str, Tuple[str, Optional[str]]]


def _normalise_candidates(candidates: Iterable[CandidateLike]) -> List[Candidate]:
    seen: Dict[str, Candidate] = {}
    for c in candidates:
        if isinstance(c, str):
            c = Candidate(c)
        elif not isinstance(c, Candidate):
            c = Candidate(*c)
        ticker = c.ticker.strip().upper()
        if ticker and ticker not in seen:
            seen[ticker] = Candidate(ticker, c.sector or None)
    return list(seen.values())


class Screener:
    """
    Ranks candidates by sector-normalised technical score.

    Collaborators are injected: candle provider, valuation oracle (optional),
    macro calendar (FOMC dates by default) and earnings calendar.
    """

    def __init__(
        self,
        provider: CandleProvider,
        oracle: Optional[ValuationOracle] = None,
        macro: Optional[EventCalendar] = None,
        earnings: Optional[EarningsCalendar] = None,
        params: Optional[ScreenerParams] = None,
    ):
        self.provider = provider
        self.oracle = oracle
        self.macro = macro if macro is not None else MacroCalendar()
        self.earnings = earnings if earnings is not None else EarningsCalendar()
        self.params = params or ScreenerParams()

    def evaluate(self, candidate: Candidate, as_of: date) -> Union[ScreenerItem, Exclusion]:
        """Evaluate one ticker. Raises on provider/data failure; the pool records it."""
        p = self.params
        ticker = candidate.ticker
        daily = self.provider.get_candles(ticker, Resolution.DAILY, DAILY_LOOKBACK_DAYS)
        if daily.empty:
            raise DataError(f"no daily candles for {ticker}")
        daily = validate_candles(daily)
        last = finite_or_none(daily["close"].iloc[-1])
        if last is None:
            return Exclusion(ticker, "no finite last close")

        liq = check_liquidity(daily, p)
        if not liq.passed:
            return Exclusion(ticker, liq.reason)

        d = technical_score(daily["close"].to_numpy(dtype=float))
        w = technical_score(weekly_closes(daily).to_numpy(dtype=float))
        score = breadth_gate(blend_score(d.score, w.score, p), d.breadth, p)
        summary = label_from_score(score)

        proj = project(
            daily,
            score,
            summary,
            p,
            macro=self.macro.is_near(as_of, p.horizon_days),
            earnings=self.earnings.for_ticker(ticker).is_near(as_of, p.earnings_window_days),
        )
        fair = self.oracle.get_fair_value(ticker) if self.oracle is not None else None

        intraday = self.provider.get_candles(ticker, Resolution.INTRADAY, INTRADAY_LOOKBACK_DAYS)
        f1h, f1d = flow_snapshots(intraday)
        volumes = daily["volume"].to_numpy(dtype=float)
        rv1d = rvol_1d(volumes)
        final_score = flow_bump(score, f1h, f1d, rv1d, w.score, p)

        return ScreenerItem(
            ticker=ticker,
            sector=candidate.sector,
            last=last,
            score=final_score,
            daily_score=d.score,
            weekly_score=w.score,
            breadth=d.breadth,
            summary=summary,
            adv10=liq.adv10,
            days_traded10=liq.days_traded,
            atr=proj.atr if proj else None,
            atr_pct=proj.atr_pct if proj else None,
            est_price=proj.estimate if proj else None,
            est_lo1=proj.lo1 if proj else None,
            est_hi1=proj.hi1 if proj else None,
            est_lo2=proj.lo2 if proj else None,
            est_hi2=proj.hi2 if proj else None,
            adj_note=proj.note if proj else None,
            fair=fair,
            fair_eta_days=fair_eta_days(daily, fair, proj.atr if proj else None),
            rvol_1d=rv1d,
            rvol_1w=rvol_1w(volumes),
            flow_1h_buy_pct=f1h,
            flow_1d_buy_pct=f1d,
        )

    def run(
        self,
        candidates: Sequence[CandidateLike],
        as_of: Optional[Union[str, date]] = None,
        deadline: Optional[float] = None,
    ) -> ScreenerResult:
        """
        Evaluate candidates concurrently (at most max_workers in flight), then
        z-score per sector and rank. Tickers that fail, are illiquid or do not
        finish before the deadline (seconds) are listed in `dropped`.
        """
        as_of_date = to_date(as_of) if as_of is not None else pd.Timestamp.now(tz="UTC").date()
        cands = _normalise_candidates(candidates)
        by_ticker = {c.ticker: c for c in cands}

        outcome = run_bounded(
            [c.ticker for c in cands],
            lambda t: self.evaluate(by_ticker[t], as_of_date),
            max_workers=self.params.max_workers,
            deadline=deadline,
        )

        result = ScreenerResult()
        items: List[ScreenerItem] = []
        for c in cands:
            t = c.ticker
            if t in outcome.results:
                r = outcome.results[t]
                if isinstance(r, Exclusion):
                    result.dropped.append(r)
                else:
                    items.append(r)
            elif t in outcome.failures:
                result.dropped.append(Exclusion(t, outcome.failures[t]))
            else:
                result.dropped.append(Exclusion(t, "deadline"))

        z = sector_zscores({it.ticker: it.score for it in items}, {it.ticker: it.sector for it in items}, self.params)
        for it in items:
            it.z_score = z.get(it.ticker, 0.0)
        items.sort(key=lambda it: ranking_key(it.z_score, it.adv10, it.ticker))
        result.items = items[: self.params.top]
        logger.info(
            "Screener: %d candidates, %d ranked, %d dropped (as of %s)",
            len(cands), len(items), len(result.dropped), as_of_date.isoformat(),
        )
        return result
