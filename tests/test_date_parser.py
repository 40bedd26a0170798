"""Tests for date and period-label parsing."""

import pytest
from datetime import date, timedelta

from ledgerkit.utils.date_parser import parse_date, parse_period_range


def test_parse_iso_date():
    """Test that ISO dates are not read day first."""
    assert parse_date("2024-03-05") == date(2024, 3, 5)


def test_parse_statement_date():
    assert parse_date("05/03/2024") == date(2024, 3, 5)
    assert parse_date("5 March 2024") == date(2024, 3, 5)


def test_parse_month_first():
    assert parse_date("03/05/2024", dayfirst=False) == date(2024, 3, 5)


def test_parse_today():
    assert parse_date("today") == date.today()
    assert parse_date(" Yesterday ") == date.today() - timedelta(days=1)


def test_parse_invalid_date():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_period_range_calendar_year():
    assert parse_period_range("2024") == (date(2024, 1, 1), date(2024, 12, 31))


def test_period_range_fiscal_year():
    """Test a fiscal year starting in March."""
    start, end = parse_period_range("FY2024", fiscal_start_month=3)

    assert start == date(2024, 3, 1)
    assert end == date(2025, 2, 28)


def test_period_range_month():
    assert parse_period_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))


def test_period_range_explicit():
    assert parse_period_range("2024-03-01..2024-05-31") == (date(2024, 3, 1), date(2024, 5, 31))


@pytest.mark.parametrize("label", ["2024-13", "last quarter", ""])
def test_period_range_unknown(label):
    with pytest.raises(ValueError):
        parse_period_range(label)
