"""Domain model entities for ledgerkit.

These are pure data classes representing bookkeeping concepts, independent of
database schema. Services return these; the database layer converts its ORM
rows into them through the mappers module.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize an amount to cents."""
    return Decimal(value).quantize(CENT)


class NormalBalance(str, Enum):
    """Side on which an account's balance naturally increases."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    @property
    def opposite(self) -> "NormalBalance":
        return NormalBalance.CREDIT if self is NormalBalance.DEBIT else NormalBalance.DEBIT


class AccountCategory(str, Enum):
    """Top-level chart-of-accounts category."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class MatchKind(str, Enum):
    """How a rule pattern is compared with a transaction description."""

    EQUALS = "EQUALS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    CONTAINS = "CONTAINS"
    REGEX = "REGEX"


class ResolutionSource(str, Enum):
    """Where a classification came from."""

    RULE = "RULE"
    MANUAL = "MANUAL"
    NONE = "NONE"


class EntryOrigin(str, Enum):
    """Who created a journal entry."""

    SYSTEM = "SYSTEM"
    MANUAL = "MANUAL"


class PeriodStatus(str, Enum):
    """Accounting period lifecycle state."""

    OPEN = "OPEN"
    PROCESSED = "PROCESSED"
    APPROVED = "APPROVED"


class SkipReason(str, Enum):
    """Why the generator declined to create an entry."""

    EXISTING = "EXISTING"
    UNCLASSIFIED = "UNCLASSIFIED"


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    company_id: int
    code: str
    name: str
    category: AccountCategory
    normal_balance: NormalBalance
    parent_id: Optional[int]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Found:
    """Lookup result holding the account that was found."""

    account: Account


@dataclass(frozen=True)
class NotFound:
    """Lookup result for an account code that does not exist."""

    code: str


AccountLookup = Union[Found, NotFound]


@dataclass(frozen=True)
class ClassificationRule:
    """Pattern rule mapping transaction descriptions to an account."""

    id: int
    company_id: int
    name: str
    pattern: str
    match_kind: MatchKind
    priority: int
    account_id: int
    account_code: str
    usage_count: int
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Period:
    """Accounting period for one company."""

    id: int
    company_id: int
    name: str
    start_date: date
    end_date: date
    status: PeriodStatus

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Transaction:
    """Normalized bank transaction. Exactly one of debit/credit is set.

    A debit on a bank statement is money out of the account; a credit is
    money in.
    """

    id: int
    company_id: int
    period_id: int
    date: date
    description: str
    debit_amount: Optional[Decimal]
    credit_amount: Optional[Decimal]
    running_balance: Optional[Decimal]
    bank_account_code: str
    imported_at: datetime

    @property
    def is_money_in(self) -> bool:
        return self.credit_amount is not None and self.credit_amount > 0

    @property
    def amount(self) -> Decimal:
        """Unsigned amount of the movement."""
        if self.credit_amount is not None:
            return self.credit_amount
        return self.debit_amount if self.debit_amount is not None else ZERO


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one description."""

    account_id: Optional[int]
    account_code: Optional[str]
    source: ResolutionSource
    matched_rule_id: Optional[int] = None

    @property
    def is_classified(self) -> bool:
        return self.account_id is not None


UNCLASSIFIED = ClassificationResult(account_id=None, account_code=None, source=ResolutionSource.NONE)


@dataclass(frozen=True)
class ClassifiedTransaction:
    """A transaction together with its stored classification."""

    transaction: Transaction
    account_id: Optional[int]
    account_code: Optional[str]
    source: ResolutionSource
    matched_rule_id: Optional[int] = None
    counterparty: Optional[str] = None

    @property
    def is_classified(self) -> bool:
        return self.account_id is not None


@dataclass(frozen=True)
class JournalEntryLine:
    """One debit or credit line of a journal entry."""

    id: int
    journal_entry_id: int
    account_id: int
    debit_amount: Optional[Decimal]
    credit_amount: Optional[Decimal]
    description: Optional[str]
    source_transaction_id: Optional[int]

    @property
    def debit(self) -> Decimal:
        return self.debit_amount if self.debit_amount is not None else ZERO

    @property
    def credit(self) -> Decimal:
        return self.credit_amount if self.credit_amount is not None else ZERO


@dataclass(frozen=True)
class JournalEntry:
    """Balanced double-entry record for one economic event."""

    id: int
    company_id: int
    period_id: int
    reference: str
    entry_date: date
    description: str
    origin: EntryOrigin
    is_opening_balance: bool
    source_transaction_id: Optional[int]
    created_at: datetime
    lines: tuple[JournalEntryLine, ...] = ()

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class LineDraft:
    """Journal line before it is persisted."""

    account_id: int
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    description: Optional[str] = None
    source_transaction_id: Optional[int] = None


@dataclass(frozen=True)
class Skipped:
    """Generator result when no entry was created."""

    transaction_id: int
    reason: SkipReason


@dataclass(frozen=True)
class AccountBalance:
    """Opening, movement and closing balance of an account for a period.

    ``opening`` and ``closing`` are signed relative to the account's normal
    side: a negative closing means the account sits on its opposite side.
    """

    account_id: int
    account_code: str
    account_name: str
    period_id: int
    normal_balance: NormalBalance
    opening: Decimal
    total_debits: Decimal
    total_credits: Decimal
    closing: Decimal

    @property
    def side(self) -> NormalBalance:
        """Side label the closing balance is reported on."""
        if self.closing < 0:
            return self.normal_balance.opposite
        return self.normal_balance

    @property
    def amount(self) -> Decimal:
        """Closing magnitude reported on ``side``."""
        return abs(self.closing)

    @property
    def debit_balance(self) -> Decimal:
        return self.amount if self.side is NormalBalance.DEBIT else ZERO

    @property
    def credit_balance(self) -> Decimal:
        return self.amount if self.side is NormalBalance.CREDIT else ZERO


@dataclass(frozen=True)
class TrialBalance:
    """Per-account closing balances with the debit/credit column totals."""

    company_id: int
    period_id: int
    balances: tuple[AccountBalance, ...]
    total_debits: Decimal
    total_credits: Decimal
    posted_debits: Decimal
    posted_credits: Decimal

    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass(frozen=True)
class StatementLine:
    """General-ledger line for one account with its running balance."""

    entry_id: int
    reference: str
    entry_date: date
    description: Optional[str]
    debit: Decimal
    credit: Decimal
    balance: Decimal
    side: NormalBalance


@dataclass(frozen=True)
class BatchFailure:
    """One transaction that failed inside a batch operation."""

    transaction_id: int
    reason: str
    imbalance: Optional[Decimal] = None


@dataclass(frozen=True)
class ClassificationBatchResult:
    """Counts reported by a classify-all pass."""

    processed: int = 0
    classified: int = 0
    unclassified: int = 0
    failures: tuple[BatchFailure, ...] = ()

    @property
    def success(self) -> int:
        return self.classified

    @property
    def skipped(self) -> int:
        return self.unclassified

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class GenerationBatchResult:
    """Counts reported by a generate-all pass."""

    processed: int = 0
    generated: int = 0
    skipped_existing: int = 0
    skipped_unclassified: int = 0
    failures: tuple[BatchFailure, ...] = ()

    @property
    def success(self) -> int:
        return self.generated

    @property
    def skipped(self) -> int:
        return self.skipped_existing + self.skipped_unclassified

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class ReprocessResult:
    """Outcome of a full clear-and-regenerate of a period."""

    company_id: int
    period_id: int
    deleted_entries: int
    preserved_manual_entries: int
    classification: ClassificationBatchResult
    generation: GenerationBatchResult

    @property
    def success(self) -> int:
        return self.generation.success

    @property
    def skipped(self) -> int:
        return self.generation.skipped

    @property
    def failed(self) -> int:
        return self.classification.failed + self.generation.failed


@dataclass(frozen=True)
class LearningResult:
    """Rule created or updated by a manual correction."""

    rule: ClassificationRule
    replaced_rule_id: Optional[int]
    reclassified_transaction_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class ClassificationSummary:
    """Classification progress for one period."""

    total: int
    classified: int
    unclassified: int

    @property
    def percentage(self) -> float:
        return (self.classified * 100.0 / self.total) if self.total else 0.0


@dataclass(frozen=True)
class AccountSuggestion:
    """Candidate account for an unclassified description."""

    code: str
    name: str
    reason: str


@dataclass(frozen=True)
class StandardAccount:
    """Account template from the standard chart."""

    code: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class StandardRule:
    """Rule template from the standard rule set."""

    name: str
    pattern: str
    account_code: str
    priority: int
    match_kind: MatchKind = MatchKind.CONTAINS


@dataclass(frozen=True)
class CodeRange:
    """One row of the chart taxonomy table."""

    start: int
    end: int
    category: AccountCategory
    normal_balance: NormalBalance
    label: str = field(default="")

    def covers(self, number: int) -> bool:
        return self.start <= number <= self.end
