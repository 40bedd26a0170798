"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so enum and amount handling lives in
one place when the schema changes.
"""

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Account as ORMAccount,
    ClassificationRule as ORMClassificationRule,
    Period as ORMPeriod,
    Transaction as ORMTransaction,
    JournalEntry as ORMJournalEntry,
    JournalEntryLine as ORMJournalEntryLine,
)


def optional_money(value):
    """Quantize a stored amount to cents, keeping None."""
    return None if value is None else domain.to_money(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        company_id=orm_account.company_id,
        code=orm_account.code,
        name=orm_account.name,
        category=domain.AccountCategory(orm_account.category),
        normal_balance=domain.NormalBalance(orm_account.normal_balance),
        parent_id=orm_account.parent_id,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def rule_to_domain(orm_rule: ORMClassificationRule) -> domain.ClassificationRule:
    """Convert SQLAlchemy ClassificationRule model to domain entity."""
    return domain.ClassificationRule(
        id=orm_rule.id,
        company_id=orm_rule.company_id,
        name=orm_rule.name,
        pattern=orm_rule.pattern,
        match_kind=domain.MatchKind(orm_rule.match_kind),
        priority=orm_rule.priority,
        account_id=orm_rule.account_id,
        account_code=orm_rule.account.code,
        usage_count=orm_rule.usage_count,
        is_active=orm_rule.is_active,
        created_at=orm_rule.created_at,
    )


def period_to_domain(orm_period: ORMPeriod) -> domain.Period:
    """Convert SQLAlchemy Period model to domain Period entity."""
    return domain.Period(
        id=orm_period.id,
        company_id=orm_period.company_id,
        name=orm_period.name,
        start_date=orm_period.start_date,
        end_date=orm_period.end_date,
        status=domain.PeriodStatus(orm_period.status),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        company_id=orm_transaction.company_id,
        period_id=orm_transaction.period_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        debit_amount=optional_money(orm_transaction.debit_amount),
        credit_amount=optional_money(orm_transaction.credit_amount),
        running_balance=optional_money(orm_transaction.running_balance),
        bank_account_code=orm_transaction.bank_account_code,
        imported_at=orm_transaction.imported_at,
    )


def classified_transaction_to_domain(orm_transaction: ORMTransaction) -> domain.ClassifiedTransaction:
    """Convert a Transaction row and its classification row (if any)."""
    transaction = transaction_to_domain(orm_transaction)
    classification = orm_transaction.classification
    if classification is None or classification.account_id is None:
        return domain.ClassifiedTransaction(
            transaction=transaction,
            account_id=None,
            account_code=None,
            source=domain.ResolutionSource.NONE,
        )
    return domain.ClassifiedTransaction(
        transaction=transaction,
        account_id=classification.account_id,
        account_code=classification.account.code,
        source=domain.ResolutionSource(classification.source),
        matched_rule_id=classification.matched_rule_id,
        counterparty=classification.counterparty,
    )


def journal_line_to_domain(orm_line: ORMJournalEntryLine) -> domain.JournalEntryLine:
    """Convert SQLAlchemy JournalEntryLine model to domain entity."""
    return domain.JournalEntryLine(
        id=orm_line.id,
        journal_entry_id=orm_line.journal_entry_id,
        account_id=orm_line.account_id,
        debit_amount=optional_money(orm_line.debit_amount),
        credit_amount=optional_money(orm_line.credit_amount),
        description=orm_line.description,
        source_transaction_id=orm_line.source_transaction_id,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry, include_lines: bool = True) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with its lines) to domain entity."""
    lines = tuple(journal_line_to_domain(line) for line in orm_entry.lines) if include_lines else ()
    return domain.JournalEntry(
        id=orm_entry.id,
        company_id=orm_entry.company_id,
        period_id=orm_entry.period_id,
        reference=orm_entry.reference,
        entry_date=orm_entry.entry_date,
        description=orm_entry.description,
        origin=domain.EntryOrigin(orm_entry.origin),
        is_opening_balance=orm_entry.is_opening_balance,
        source_transaction_id=orm_entry.source_transaction_id,
        created_at=orm_entry.created_at,
        lines=lines,
    )
