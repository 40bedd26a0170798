"""Tests for period name/ID resolution."""

from datetime import date

import pytest

from ledgerkit.utils.period_resolver import resolve_period


def test_resolve_by_name(period_service, period, company_id):
    assert resolve_period(period_service, company_id, "P1") == period.id


def test_resolve_by_id(period_service, period, company_id):
    assert resolve_period(period_service, company_id, str(period.id)) == period.id
    assert resolve_period(period_service, company_id, period.id) == period.id


def test_resolve_other_company(period_service, period):
    with pytest.raises(ValueError, match="not found for company 2"):
        resolve_period(period_service, 2, period.id)


def test_resolve_unknown_name(period_service, period, company_id):
    period_service.create_period(company_id, "P2", date(2024, 4, 1), date(2024, 4, 30))

    with pytest.raises(ValueError, match="Period 'P9' not found for company 1"):
        resolve_period(period_service, company_id, "P9")
