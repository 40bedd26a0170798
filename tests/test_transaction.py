"""Tests for transaction intake and the txn commands."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.cli.main import cli
from ledgerkit.domain.entities import ResolutionSource
from ledgerkit.domain.errors import NotFoundError, ValidationError


def test_record_transaction(transaction_service, chart, period, company_id):
    txn = transaction_service.record_transaction(
        company_id, date(2024, 3, 5), "  abc   insurance premium ", debit_amount=Decimal("1200")
    )

    assert txn.period_id == period.id
    assert txn.description == "abc insurance premium"
    assert txn.debit_amount == Decimal("1200.00")
    assert txn.credit_amount is None
    assert txn.amount == Decimal("1200.00")
    assert not txn.is_money_in
    assert txn.bank_account_code == "1100"


def test_record_transaction_money_in(transaction_service, chart, period, company_id):
    txn = transaction_service.record_transaction(
        company_id, date(2024, 3, 5), "INTEREST EARNED", credit_amount=Decimal("12.346")
    )

    assert txn.is_money_in
    assert txn.amount == Decimal("12.35")


@pytest.mark.parametrize(
    "debit,credit",
    [(None, None), (Decimal("1"), Decimal("1")), (Decimal("-5"), None), (Decimal("0"), Decimal("0"))],
)
def test_record_transaction_requires_one_positive_amount(transaction_service, chart, period, company_id, debit, credit):
    with pytest.raises(ValidationError):
        transaction_service.record_transaction(
            company_id, date(2024, 3, 5), "X", debit_amount=debit, credit_amount=credit
        )


def test_record_transaction_empty_description(transaction_service, chart, period, company_id):
    with pytest.raises(ValidationError, match="description"):
        transaction_service.record_transaction(company_id, date(2024, 3, 5), " ", debit_amount=Decimal("1"))


def test_record_transaction_without_period(transaction_service, chart, period, company_id):
    with pytest.raises(NotFoundError, match="No period covers"):
        transaction_service.record_transaction(company_id, date(2024, 5, 5), "X", debit_amount=Decimal("1"))


def test_record_transaction_outside_given_period(transaction_service, chart, period, company_id):
    with pytest.raises(ValidationError, match="outside period"):
        transaction_service.record_transaction(
            company_id, date(2024, 4, 5), "X", debit_amount=Decimal("1"), period_id=period.id
        )


def test_record_transaction_unknown_bank(transaction_service, chart, period, company_id):
    with pytest.raises(NotFoundError):
        transaction_service.record_transaction(
            company_id, date(2024, 3, 5), "X", debit_amount=Decimal("1"), bank_account_code="1199"
        )


def test_list_transactions(transaction_service, classification_service, scenario, company_id):
    """Test ordering and the unclassified filter."""
    transaction_service.record_transaction(company_id, date(2024, 3, 2), "ZZ TOP", debit_amount=Decimal("5"))
    classification_service.classify_all(company_id)

    listed = transaction_service.list_transactions(company_id)
    assert [t.transaction.date for t in listed] == sorted(t.transaction.date for t in listed)

    pending = transaction_service.list_transactions(company_id, unclassified_only=True)
    assert [t.transaction.description for t in pending] == ["ZZ TOP"]
    assert pending[0].source == ResolutionSource.NONE


def test_unclassified_includes_never_classified(transaction_service, scenario, company_id):
    pending = transaction_service.list_transactions(company_id, unclassified_only=True)
    assert len(pending) == 3


def test_get_transaction_missing(transaction_service):
    with pytest.raises(NotFoundError, match="Transaction 5 not found"):
        transaction_service.get_transaction(5)


def test_txn_cli_add_and_list(cli_runner, temp_db, chart, period):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "txn", "add", "1", "05/03/2024", "ABC INSURANCE PREMIUM", "--debit", "R1,200.00"],
    )
    assert result.exit_code == 0
    assert "Recorded transaction 1" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "txn", "list", "1", "--period", "P1"])
    assert result.exit_code == 0
    assert "2024-03-05" in result.output
    assert "OUT" in result.output
    assert "1,200.00" in result.output
    assert "ABC INSURANCE PREMIUM" in result.output


def test_txn_cli_requires_one_amount(cli_runner, temp_db, chart, period):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "txn", "add", "1", "2024-03-05", "X", "--debit", "1", "--credit", "1"],
    )

    assert result.exit_code == 1
    assert "exactly one of --debit or --credit" in result.output


def test_txn_cli_bad_amount(cli_runner, temp_db, chart, period):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "txn", "add", "1", "2024-03-05", "X", "--credit", "lots"]
    )

    assert result.exit_code == 1
    assert "Error" in result.output


def test_txn_cli_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "txn", "list", "1"])
    assert "No transactions found" in result.output
