"""Unit tests for providers.calendar."""

from datetime import date

from signal_desk.providers.calendar import FOMC_2025, EarningsCalendar, MacroCalendar


def test_macro_near_within_horizon():
    cal = MacroCalendar(["2025-03-19"])
    r = cal.is_near(date(2025, 3, 9), 10)
    assert r.near is True
    assert r.note == "FOMC near 2025-03-19"


def test_macro_outside_horizon():
    cal = MacroCalendar(["2025-03-19"])
    assert cal.is_near(date(2025, 3, 8), 10).near is False
    assert cal.is_near(date(2025, 3, 20), 10).near is False


def test_macro_defaults_to_fomc_2025():
    cal = MacroCalendar()
    r = cal.is_near("2025-06-10", 10)
    assert r.near is True
    assert "2025-06-18" in r.note
    assert len(FOMC_2025) == 8


def test_earnings_per_ticker():
    cal = EarningsCalendar({"aapl": ["2025-05-01"]})
    r = cal.for_ticker("AAPL").is_near(date(2025, 4, 25), 10)
    assert r.near is True
    assert r.note == "Earnings near 2025-05-01"
    assert cal.for_ticker("MSFT").is_near(date(2025, 4, 25), 10).near is False
