"""Tests for mapper functions."""

from datetime import date, datetime, UTC
from decimal import Decimal

from ledgerkit.database.mappers import (
    account_to_domain,
    classified_transaction_to_domain,
    journal_entry_to_domain,
    period_to_domain,
    rule_to_domain,
    transaction_to_domain,
)
from ledgerkit.database.models import (
    Account as ORMAccount,
    ClassificationRule as ORMClassificationRule,
    JournalEntry as ORMJournalEntry,
    JournalEntryLine as ORMJournalEntryLine,
    Period as ORMPeriod,
    Transaction as ORMTransaction,
    TransactionClassification as ORMTransactionClassification,
)
from ledgerkit.domain.entities import (
    AccountCategory,
    EntryOrigin,
    MatchKind,
    NormalBalance,
    PeriodStatus,
    ResolutionSource,
)


def _orm_transaction(**overrides):
    values = dict(
        id=3,
        company_id=1,
        period_id=2,
        date=date(2024, 3, 5),
        description="ABC INSURANCE PREMIUM",
        debit_amount=Decimal("1200"),
        credit_amount=None,
        running_balance=Decimal("478307.9400"),
        bank_account_code="1100",
        imported_at=datetime.now(UTC),
    )
    values.update(overrides)
    return ORMTransaction(**values)


class TestAccountMapper:
    def test_account_to_domain(self):
        orm_account = ORMAccount(
            id=1,
            company_id=1,
            code="8800",
            name="Insurance",
            category="EXPENSE",
            normal_balance="DEBIT",
            parent_id=None,
            is_active=True,
            created_at=datetime.now(UTC),
        )

        account = account_to_domain(orm_account)

        assert account.code == "8800"
        assert account.category == AccountCategory.EXPENSE
        assert account.normal_balance == NormalBalance.DEBIT
        assert account.is_active


class TestRuleMapper:
    def test_rule_to_domain_carries_account_code(self):
        orm_rule = ORMClassificationRule(
            id=4,
            company_id=1,
            name="Insurance",
            pattern="INSURANCE",
            match_kind="STARTS_WITH",
            priority=8,
            account_id=1,
            usage_count=3,
            is_active=True,
            created_at=datetime.now(UTC),
        )
        orm_rule.account = ORMAccount(id=1, code="8800")

        rule = rule_to_domain(orm_rule)

        assert rule.match_kind == MatchKind.STARTS_WITH
        assert rule.account_code == "8800"
        assert rule.usage_count == 3


class TestPeriodMapper:
    def test_period_to_domain(self):
        orm_period = ORMPeriod(
            id=2, company_id=1, name="P1", start_date=date(2024, 3, 1), end_date=date(2024, 3, 31), status="APPROVED"
        )

        period = period_to_domain(orm_period)

        assert period.status == PeriodStatus.APPROVED
        assert period.contains(date(2024, 3, 31))
        assert not period.contains(date(2024, 4, 1))


class TestTransactionMapper:
    def test_amounts_quantized(self):
        txn = transaction_to_domain(_orm_transaction())

        assert txn.debit_amount == Decimal("1200.00")
        assert str(txn.running_balance) == "478307.94"
        assert txn.credit_amount is None

    def test_without_classification(self):
        classified = classified_transaction_to_domain(_orm_transaction())

        assert classified.source == ResolutionSource.NONE
        assert classified.account_code is None
        assert not classified.is_classified

    def test_cleared_classification_is_unclassified(self):
        orm_transaction = _orm_transaction()
        orm_transaction.classification = ORMTransactionClassification(account_id=None, source="NONE")

        classified = classified_transaction_to_domain(orm_transaction)

        assert classified.source == ResolutionSource.NONE
        assert classified.account_id is None

    def test_with_classification(self):
        orm_transaction = _orm_transaction()
        orm_transaction.classification = ORMTransactionClassification(
            account_id=7, source="RULE", matched_rule_id=4, counterparty="ABC PREMIUM"
        )
        orm_transaction.classification.account = ORMAccount(id=7, code="8800")

        classified = classified_transaction_to_domain(orm_transaction)

        assert classified.account_code == "8800"
        assert classified.source == ResolutionSource.RULE
        assert classified.matched_rule_id == 4
        assert classified.counterparty == "ABC PREMIUM"


class TestJournalMapper:
    def _orm_entry(self):
        entry = ORMJournalEntry(
            id=9,
            company_id=1,
            period_id=2,
            reference="JE-2-000003",
            entry_date=date(2024, 3, 5),
            description="ABC INSURANCE PREMIUM",
            origin="SYSTEM",
            is_opening_balance=False,
            source_transaction_id=3,
            created_at=datetime.now(UTC),
        )
        entry.lines.append(ORMJournalEntryLine(id=1, account_id=7, debit_amount=Decimal("1200"), credit_amount=None))
        entry.lines.append(ORMJournalEntryLine(id=2, account_id=5, debit_amount=None, credit_amount=Decimal("1200")))
        return entry

    def test_entry_with_lines(self):
        entry = journal_entry_to_domain(self._orm_entry())

        assert entry.origin == EntryOrigin.SYSTEM
        assert len(entry.lines) == 2
        assert entry.total_debits == Decimal("1200.00")
        assert entry.is_balanced()
        assert entry.lines[1].debit == Decimal("0.00")

    def test_entry_header_only(self):
        entry = journal_entry_to_domain(self._orm_entry(), include_lines=False)

        assert entry.lines == ()
        assert entry.reference == "JE-2-000003"
