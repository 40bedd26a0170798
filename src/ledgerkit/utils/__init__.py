"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_date, parse_period_range
from ledgerkit.utils.amount_parser import parse_amount, parse_positive_amount
from ledgerkit.utils.logging import setup_logging
from ledgerkit.utils.period_resolver import resolve_period

__all__ = ["parse_date", "parse_period_range", "parse_amount", "parse_positive_amount", "setup_logging", "resolve_period"]
