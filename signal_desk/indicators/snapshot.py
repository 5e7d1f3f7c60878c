"""
Indicator snapshot (intraday + daily) and the vote-based technical score used
by the forecast direction resolver and the screener.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np
import pandas as pd

from signal_desk.indicators.technical import (
    Values,
    ema,
    macd,
    rsi,
    sma_series,
    last_defined,
    vwap,
    wilder_atr,
)

MA_PERIODS = (5, 10, 20, 50, 200)
MIN_SCORE_BARS = 30


@dataclass(frozen=True)
class TechnicalScore:
    """Vote count over moving averages, RSI14 and MACD histogram."""
    score: int
    summary: str
    breadth: int
    ma_buy: int = 0
    ma_sell: int = 0
    ind_buy: int = 0
    ind_sell: int = 0
    rsi: Optional[float] = None
    macd_hist: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


NEUTRAL_SCORE = TechnicalScore(score=0, summary="Neutral", breadth=0)


def label_from_score(score: float) -> str:
    if score >= 3:
        return "Strong Buy"
    if score >= 1:
        return "Buy"
    if score <= -3:
        return "Strong Sell"
    if score <= -1:
        return "Sell"
    return "Neutral"


def technical_score(closes: Values) -> TechnicalScore:
    """
    +1/-1 per SMA (5/10/20/50/200) the last close is above/below, +1 for
    RSI14 >= 60, -1 for RSI14 <= 40, +1/-1 for MACD histogram sign.
    Undefined indicators do not vote. Breadth counts the votes agreeing with
    the sign of the score.
    """
    arr = np.asarray(closes, dtype=float)
    arr = arr[np.isfinite(arr)]
    if len(arr) < MIN_SCORE_BARS:
        return NEUTRAL_SCORE
    last = float(arr[-1])

    ma_buy = ma_sell = 0
    for p in MA_PERIODS:
        v = last_defined(sma_series(arr, p))
        if v is None:
            continue
        if last >= v:
            ma_buy += 1
        else:
            ma_sell += 1

    ind_buy = ind_sell = 0
    rsi_last = rsi(arr, 14)
    if rsi_last is not None:
        if rsi_last >= 60:
            ind_buy += 1
        elif rsi_last <= 40:
            ind_sell += 1
    hist = macd(arr, 12, 26, 9).hist
    if hist is not None:
        if hist >= 0:
            ind_buy += 1
        else:
            ind_sell += 1

    score = (ma_buy - ma_sell) + (ind_buy - ind_sell)
    if score > 0:
        breadth = ma_buy + ind_buy
    elif score < 0:
        breadth = ma_sell + ind_sell
    else:
        breadth = 0
    return TechnicalScore(
        score=score,
        summary=label_from_score(score),
        breadth=breadth,
        ma_buy=ma_buy,
        ma_sell=ma_sell,
        ind_buy=ind_buy,
        ind_sell=ind_sell,
        rsi=rsi_last,
        macd_hist=hist,
    )


def weekly_closes(df: pd.DataFrame) -> pd.Series:
    """Resample daily candles to Friday-anchored weekly closes."""
    if df.empty:
        return pd.Series(dtype=float)
    s = df.set_index(pd.to_datetime(df["time"]))["close"].astype(float)
    return s.resample("W-FRI").last().dropna()


@dataclass(frozen=True)
class IndicatorSnapshot:
    rsi7: Optional[float]
    rsi14: Optional[float]
    ema20: Optional[float]
    ema50: Optional[float]
    last: Optional[float]
    macd_hist: Optional[float]
    atr_pct: Optional[float]
    vwap: Optional[float]
    vwap_dist_pct: Optional[float]
    above_ema20: Optional[bool]
    ema_aligned: Optional[bool]

    def to_dict(self) -> dict:
        return asdict(self)


def indicator_snapshot(intraday: pd.DataFrame, daily: pd.DataFrame) -> IndicatorSnapshot:
    """
    Momentum from intraday closes, Wilder ATR% from daily candles, VWAP over the
    supplied intraday window.
    """
    close1 = intraday["close"].astype(float).to_numpy() if not intraday.empty else np.array([])
    close1 = close1[np.isfinite(close1)]
    last = float(close1[-1]) if len(close1) else None
    ema20 = ema(close1, 20)
    ema50 = ema(close1, 50)

    atr_pct = None
    if not daily.empty:
        atr_d = wilder_atr(daily["high"], daily["low"], daily["close"], 14)
        last_d = float(daily["close"].iloc[-1])
        if atr_d is not None and last_d:
            atr_pct = atr_d / last_d * 100.0

    vw = vwap(intraday)
    vwap_dist = (last - vw) / vw * 100.0 if vw and last is not None else None
    return IndicatorSnapshot(
        rsi7=rsi(close1, 7),
        rsi14=rsi(close1, 14),
        ema20=ema20,
        ema50=ema50,
        last=last,
        macd_hist=macd(close1, 12, 26, 9).hist if len(close1) else None,
        atr_pct=atr_pct,
        vwap=vw,
        vwap_dist_pct=vwap_dist,
        above_ema20=(last >= ema20) if last is not None and ema20 is not None else None,
        ema_aligned=(ema20 >= ema50) if ema20 is not None and ema50 is not None else None,
    )
