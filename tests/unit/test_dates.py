"""
Tests for Date Normalization
============================

Version: 0.1.0
"""

import time
from datetime import date

import pytest

from services.regulatory_feed.dates import (
    feed_entry_date,
    is_within_window,
    parse_iso_date,
    parse_named_date,
    parse_numeric_date,
)


class TestNamedDates:
    """Tests for month-name dates."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Feb 26, 2026", date(2026, 2, 26)),
            ("February 26 2026", date(2026, 2, 26)),
            ("sept 3, 2025", date(2025, 9, 3)),
            ("Issued on Dec 31, 2025 by the Board", date(2025, 12, 31)),
        ],
    )
    def test_parses(self, text: str, expected: date) -> None:
        assert parse_named_date(text) == expected

    def test_unknown_month_is_none(self) -> None:
        """Only the first candidate is considered."""
        assert parse_named_date("Circular 12, 2026 dated Feb 26, 2026") is None

    def test_invalid_day_is_none(self) -> None:
        assert parse_named_date("Feb 30, 2026") is None

    def test_no_date(self) -> None:
        assert parse_named_date("Master Direction on KYC") is None


class TestNumericDates:
    """Tests for dd/mm/yyyy dates."""

    def test_day_first(self) -> None:
        assert parse_numeric_date("26/02/2026") == date(2026, 2, 26)

    def test_first_match_wins(self) -> None:
        assert parse_numeric_date("01/03/2026 and 02/03/2026") == date(2026, 3, 1)

    def test_invalid_month_is_none(self) -> None:
        assert parse_numeric_date("12/13/2026") is None


class TestFeedEntryDate:
    """Tests for feed timestamp conversion."""

    def test_utc_struct(self) -> None:
        parsed = time.strptime("2026-02-26 23:30:00", "%Y-%m-%d %H:%M:%S")

        assert feed_entry_date(parsed) == date(2026, 2, 26)

    def test_missing(self) -> None:
        assert feed_entry_date(None) is None


class TestIsoDates:
    """Tests for dates returned by the extraction model."""

    def test_iso(self) -> None:
        assert parse_iso_date("2026-04-01") == date(2026, 4, 1)

    @pytest.mark.parametrize("value", [None, "", "null", "N/A", "next quarter", 20260401])
    def test_blank_or_junk(self, value: object) -> None:
        assert parse_iso_date(value) is None


class TestRecencyWindow:
    """Tests for the trailing recency window."""

    TODAY = date(2026, 3, 10)

    def test_seven_days_ago_accepted(self) -> None:
        assert is_within_window(date(2026, 3, 3), days=7, today=self.TODAY)

    def test_eight_days_ago_rejected(self) -> None:
        assert not is_within_window(date(2026, 3, 2), days=7, today=self.TODAY)

    def test_today_accepted(self) -> None:
        assert is_within_window(self.TODAY, today=self.TODAY)

    def test_tomorrow_tolerated(self) -> None:
        assert is_within_window(date(2026, 3, 11), today=self.TODAY)

    def test_far_future_rejected(self) -> None:
        assert not is_within_window(date(2026, 3, 12), today=self.TODAY)
