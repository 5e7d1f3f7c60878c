"""Unit tests for the Yahoo chart provider (no network: fake session)."""

import pytest
import requests

from signal_desk.core.errors import ValidationError
from signal_desk.core.types import Resolution
from signal_desk.providers.cache import TTLCache
from signal_desk.providers.candles import YahooChartProvider, parse_chart_payload
from signal_desk.utils.resolutions import chart_interval_and_range, parse_resolution

PAYLOAD = {
    "chart": {
        "result": [{
            "timestamp": [1735740000, 1735826400, 1735912800],
            "indicators": {"quote": [{
                "open": [10.0, 11.0, 12.0],
                "high": [10.5, 11.5, 12.5],
                "low": [9.5, 10.5, None],
                "close": [10.2, None, 12.2],
                "volume": [100, 200, 300],
            }]},
        }],
    },
}


class FakeResponse:
    def __init__(self, status, payload=None):
        self.status_code = status
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}", response=self)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.urls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.urls.append(url)
        return self.responses.pop(0)


def test_parse_chart_payload_drops_missing_close():
    df = parse_chart_payload(PAYLOAD)
    assert len(df) == 2
    assert list(df["close"]) == [10.2, 12.2]
    assert parse_chart_payload({"chart": {"result": []}}).empty


def test_host_fallback_and_cache():
    session = FakeSession([FakeResponse(500), FakeResponse(200, PAYLOAD)])
    provider = YahooChartProvider(session=session, cache=TTLCache())
    df = provider.get_candles("aapl", Resolution.DAILY, 30)
    assert len(df) == 2
    assert "query1" in session.urls[0] and "query2" in session.urls[1]
    # second call served from cache
    assert len(provider.get_candles("AAPL", Resolution.DAILY, 30)) == 2
    assert len(session.urls) == 2


def test_rate_limit_retry():
    session = FakeSession([FakeResponse(429), FakeResponse(200, PAYLOAD)])
    provider = YahooChartProvider(session=session, retry_delay=0.0)
    assert len(provider.get_candles("AAPL", Resolution.DAILY, 30)) == 2
    assert len(session.urls) == 2


def test_failure_returns_empty_frame():
    session = FakeSession([FakeResponse(500), FakeResponse(503)])
    provider = YahooChartProvider(session=session)
    assert provider.get_candles("AAPL", Resolution.DAILY, 30).empty


def test_resolutions():
    assert parse_resolution("D") == Resolution.DAILY
    assert parse_resolution("1") == Resolution.INTRADAY
    with pytest.raises(ValidationError, match="Unsupported resolution"):
        parse_resolution("5m")
    with pytest.raises(ValidationError):
        chart_interval_and_range(Resolution.DAILY, 0)
    assert chart_interval_and_range(Resolution.INTRADAY, 30) == ("1m", "7d")
    assert chart_interval_and_range(Resolution.DAILY, 180) == ("1d", "180d")
