"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class PeriodLockedError(DomainError):
    """Period state forbids the requested operation."""


class IntegrityViolation(DomainError):
    """A would-be posting breaks a ledger invariant.

    Carries the offending transaction id and, for unbalanced entries, the
    computed imbalance (debits minus credits).
    """

    def __init__(
        self,
        message: str,
        transaction_id: Optional[int] = None,
        imbalance: Optional[Decimal] = None,
    ):
        super().__init__(message)
        self.transaction_id = transaction_id
        self.imbalance = imbalance


class ConcurrencyConflict(DomainError):
    """Account creation race that could not be resolved by retrying."""


class StorageFailure(DomainError):
    """Persistence layer failed; the enclosing unit of work was rolled back."""


def account_not_found(code: str, company_id: int) -> str:
    """Return message for missing account by code."""
    return f"Account {code} not found for company {company_id}"


def account_id_not_found(account_id: int) -> str:
    """Return message for missing account by ID."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def period_not_found(period_id: int) -> str:
    """Return message for missing period."""
    return f"Period {period_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing rule."""
    return f"Rule {rule_id} not found"


def invalid_account_code(code: str) -> str:
    """Return message for a code outside every configured range."""
    return f"Account code '{code}' is not in a recognized chart-of-accounts range"


def unbalanced_entry(transaction_id: Optional[int], imbalance: Decimal) -> str:
    """Return message for an entry whose debits and credits differ."""
    subject = f"transaction {transaction_id}" if transaction_id is not None else "manual entry"
    return f"Journal entry for {subject} does not balance (debits - credits = {imbalance})"


def duplicate_posting(transaction_id: int) -> str:
    """Return message when a transaction already has a journal entry."""
    return f"Transaction {transaction_id} already has a journal entry"


def period_locked(period_id: int, status: str) -> str:
    """Return message when a period is approved and must be unlocked first."""
    return f"Period {period_id} is {status}; unlock it before changing its ledger"
