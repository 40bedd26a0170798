"""Shared pytest fixtures for ledgerkit tests."""

import logging
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.classification import ClassificationService
from ledgerkit.domain.journal import JournalService
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.domain.period import PeriodService
from ledgerkit.domain.reprocess import ReprocessingService
from ledgerkit.domain.rules import RuleCache, RuleService
from ledgerkit.domain.transaction import TransactionService

COMPANY_ID = 1


@pytest.fixture(autouse=True)
def reset_ledgerkit_logger():
    """Drop handlers installed by CLI runs so they don't outlive the runner's streams."""
    yield
    logger = logging.getLogger("ledgerkit")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def company_id():
    return COMPANY_ID


@pytest.fixture
def rule_cache():
    """Rule cache shared by every service of a test."""
    return RuleCache()


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def period_service(temp_db):
    """Create a PeriodService with a temporary database."""
    return PeriodService(temp_db)


@pytest.fixture
def rule_service(temp_db, rule_cache, account_service):
    """Create a RuleService sharing the test's cache and registry."""
    return RuleService(temp_db, cache=rule_cache, account_service=account_service)


@pytest.fixture
def classification_service(temp_db, rule_service, account_service, period_service):
    """Create a ClassificationService wired to the shared rule and period services."""
    return ClassificationService(
        temp_db, rule_service=rule_service, account_service=account_service, period_service=period_service
    )


@pytest.fixture
def transaction_service(temp_db, account_service, period_service):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, account_service=account_service, period_service=period_service)


@pytest.fixture
def journal_service(temp_db, account_service, period_service):
    """Create a JournalService with a temporary database."""
    return JournalService(temp_db, account_service=account_service, period_service=period_service)


@pytest.fixture
def ledger_service(temp_db, account_service, period_service):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db, account_service=account_service, period_service=period_service)


@pytest.fixture
def reprocessing_service(temp_db, classification_service, journal_service, period_service):
    """Create a ReprocessingService sharing the other services."""
    return ReprocessingService(
        temp_db,
        classification_service=classification_service,
        journal_service=journal_service,
        period_service=period_service,
    )


@pytest.fixture
def chart(account_service, rule_service, company_id):
    """Initialize the standard chart and rules; return accounts by code."""
    accounts = account_service.initialize_chart_of_accounts(company_id)
    rule_service.initialize_standard_rules(company_id)
    return {account.code: account for account in accounts}


@pytest.fixture
def period(period_service, company_id):
    """March 2024 period."""
    return period_service.create_period(company_id, "P1", date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def scenario(chart, period, transaction_service, company_id):
    """Brought-forward balance plus an insurance premium and a salary run."""
    opening = transaction_service.record_transaction(
        company_id,
        date(2024, 3, 1),
        "BALANCE BROUGHT FORWARD",
        credit_amount=Decimal("479507.94"),
        running_balance=Decimal("479507.94"),
    )
    insurance = transaction_service.record_transaction(
        company_id,
        date(2024, 3, 5),
        "ABC INSURANCE PREMIUM",
        debit_amount=Decimal("1200.00"),
        running_balance=Decimal("478307.94"),
    )
    salaries = transaction_service.record_transaction(
        company_id,
        date(2024, 3, 25),
        "XG SALARIES",
        debit_amount=Decimal("25000.00"),
        running_balance=Decimal("453307.94"),
    )
    return {"opening": opening, "insurance": insurance, "salaries": salaries}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
