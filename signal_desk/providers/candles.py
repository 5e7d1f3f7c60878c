"""
Candle providers: local CSV files and the Yahoo chart API (with retry and
host fallback). Both return an empty frame when data is unavailable.
"""

from __future__ import annotations
import logging
import time
from functools import wraps
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd
import requests

from signal_desk.core.errors import DataError, ProviderError
from signal_desk.core.types import CANDLE_COLUMNS, Resolution, empty_frame, validate_candles
from signal_desk.providers.base import CandleProvider
from signal_desk.providers.cache import NullCache
from signal_desk.utils.resolutions import chart_interval_and_range

logger = logging.getLogger("signal_desk.providers")


def _trim_lookback(df: pd.DataFrame, lookback_days: int) -> pd.DataFrame:
    """Keep candles within lookback_days calendar days of the last candle."""
    if df.empty:
        return df
    cutoff = df["time"].iloc[-1] - pd.Timedelta(days=lookback_days)
    return df[df["time"] > cutoff].reset_index(drop=True)


class CsvCandleProvider(CandleProvider):
    """Reads <directory>/<TICKER>_<resolution>.csv with columns time, open, high, low, close, volume."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, ticker: str, resolution: Resolution) -> Path:
        return self.directory / f"{ticker.upper()}_{Resolution(resolution).value}.csv"

    def get_candles(self, ticker: str, resolution: Resolution, lookback_days: int) -> pd.DataFrame:
        path = self.path_for(ticker, resolution)
        if not path.exists():
            logger.info("No candle file for %s (%s)", ticker, path.name)
            return empty_frame()
        try:
            df = pd.read_csv(path)
            df = validate_candles(df)
        except (DataError, ValueError, KeyError) as e:
            logger.warning("Unreadable candle file %s: %s", path, e)
            return empty_frame()
        return _trim_lookback(df, lookback_days)


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on HTTP 429 with exponential backoff."""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except requests.HTTPError as e:
                    status = e.response.status_code if e.response is not None else None
                    if status == 429 and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
        return wrapped
    return decorator


class YahooChartProvider(CandleProvider):
    """Yahoo Finance v8 chart endpoint, query1 then query2."""

    HOSTS = ("query1", "query2")
    HEADERS = {"User-Agent": "signal-desk/1.0", "Accept": "application/json"}

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Any = None,
        ttl_seconds: float = 60.0,
        timeout: float = 10.0,
        retry_delay: float = 1.0,
    ):
        self._session = session or requests.Session()
        self._cache = cache or NullCache()
        self._ttl = ttl_seconds
        self._timeout = timeout
        self._retry_delay = retry_delay

    def get_candles(self, ticker: str, resolution: Resolution, lookback_days: int) -> pd.DataFrame:
        resolution = Resolution(resolution)
        key = ("candles", ticker.upper(), resolution.value, int(lookback_days))
        try:
            df = self._cache.get_or_set(key, self._ttl, lambda: self._fetch(ticker, resolution, lookback_days))
        except ProviderError as e:
            logger.warning("Candles unavailable for %s: %s", ticker, e)
            return empty_frame()
        return df.copy()

    def _fetch(self, ticker: str, resolution: Resolution, lookback_days: int) -> pd.DataFrame:
        interval, rng = chart_interval_and_range(resolution, lookback_days)
        last_error: Optional[Exception] = None
        for host in self.HOSTS:
            url = f"https://{host}.finance.yahoo.com/v8/finance/chart/{requests.utils.quote(ticker.upper())}"
            try:
                payload = self._get_json(url, {"interval": interval, "range": rng})
                df = parse_chart_payload(payload)
            except (requests.RequestException, ValueError, DataError) as e:
                last_error = e
                logger.debug("%s chart fetch failed for %s: %s", host, ticker, e)
                continue
            if not df.empty:
                return df
        if last_error is not None:
            raise ProviderError(f"chart fetch failed for {ticker}: {last_error}")
        raise ProviderError(f"no candles for {ticker}")

    def _get_json(self, url: str, params: dict) -> dict:
        @retry_on_rate_limit(max_retries=3, base_delay=self._retry_delay)
        def call() -> dict:
            r = self._session.get(url, params=params, headers=self.HEADERS, timeout=self._timeout)
            r.raise_for_status()
            return r.json()
        return call()


def parse_chart_payload(payload: dict) -> pd.DataFrame:
    """Convert a v8 chart response into a candle frame; rows without a finite close are dropped."""
    result = ((payload or {}).get("chart") or {}).get("result") or []
    if not result:
        return empty_frame()
    res = result[0]
    ts = res.get("timestamp") or []
    quote = ((res.get("indicators") or {}).get("quote") or [{}])[0]
    if not ts:
        return empty_frame()
    n = len(ts)

    def col(name: str) -> np.ndarray:
        vals = quote.get(name) or [None] * n
        return np.array([np.nan if v is None else v for v in vals[:n]], dtype=float)

    df = pd.DataFrame({
        "time": pd.to_datetime(ts, unit="s", utc=True),
        "open": col("open"),
        "high": col("high"),
        "low": col("low"),
        "close": col("close"),
        "volume": col("volume"),
    })
    df = df[np.isfinite(df["close"])]
    df = df.drop_duplicates(subset="time", keep="last").sort_values("time")
    return validate_candles(df[CANDLE_COLUMNS])
