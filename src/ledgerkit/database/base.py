"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    AccountCategory,
    ClassificationRule,
    ClassifiedTransaction,
    EntryOrigin,
    JournalEntry,
    JournalEntryLine,
    LineDraft,
    MatchKind,
    NormalBalance,
    Period,
    PeriodStatus,
    ResolutionSource,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerkit.

    Every write method is atomic on its own. Callers that need several writes
    to succeed or fail together wrap them in ``with db.transaction():``;
    scopes nest, and only the outermost one commits.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open a (possibly nested) unit of work.

        The outermost scope commits on normal exit and rolls back every write
        made inside it when an exception escapes.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        company_id: int,
        code: str,
        name: str,
        category: AccountCategory,
        normal_balance: NormalBalance,
        parent_id: Optional[int] = None,
    ) -> int:
        """Create an account. Returns account ID."""
        pass

    @abstractmethod
    def get_or_create_account(
        self,
        company_id: int,
        code: str,
        name: str,
        category: AccountCategory,
        normal_balance: NormalBalance,
        parent_id: Optional[int] = None,
    ) -> Account:
        """Atomically insert an account unless its code exists; return the stored row."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, company_id: int, code: str) -> Optional[Account]:
        """Get account by company and code."""
        pass

    @abstractmethod
    def list_accounts(self, company_id: int, include_inactive: bool = True) -> list[Account]:
        """List a company's accounts ordered by code."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    # Rule operations
    @abstractmethod
    def create_rule(
        self,
        company_id: int,
        name: str,
        pattern: str,
        match_kind: MatchKind,
        priority: int,
        account_id: int,
    ) -> int:
        """Create a classification rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[ClassificationRule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, company_id: int, active_only: bool = True) -> list[ClassificationRule]:
        """List a company's rules ordered by ID."""
        pass

    @abstractmethod
    def find_rules_by_pattern(
        self, company_id: int, pattern: str, match_kind: MatchKind
    ) -> list[ClassificationRule]:
        """Find active rules with exactly this pattern and match kind."""
        pass

    @abstractmethod
    def set_rule_active(self, rule_id: int, is_active: bool) -> None:
        """Activate or deactivate a rule."""
        pass

    @abstractmethod
    def update_rule_priority(self, rule_id: int, priority: int) -> None:
        """Change a rule's priority."""
        pass

    @abstractmethod
    def increment_rule_usage(self, rule_id: int) -> None:
        """Increment a rule's usage counter by one."""
        pass

    # Period operations
    @abstractmethod
    def create_period(self, company_id: int, name: str, start_date: date, end_date: date) -> int:
        """Create an accounting period. Returns period ID."""
        pass

    @abstractmethod
    def get_period(self, period_id: int) -> Optional[Period]:
        """Get period by ID."""
        pass

    @abstractmethod
    def list_periods(self, company_id: int) -> list[Period]:
        """List a company's periods ordered by start date."""
        pass

    @abstractmethod
    def find_period_for_date(self, company_id: int, day: date) -> Optional[Period]:
        """Get the period containing ``day``."""
        pass

    @abstractmethod
    def set_period_status(self, period_id: int, status: PeriodStatus) -> None:
        """Change a period's status."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        company_id: int,
        period_id: int,
        date: date,
        description: str,
        debit_amount: Optional[Decimal],
        credit_amount: Optional[Decimal],
        running_balance: Optional[Decimal],
        bank_account_code: str,
    ) -> int:
        """Store a normalized transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def get_classified_transaction(self, transaction_id: int) -> Optional[ClassifiedTransaction]:
        """Get a transaction together with its stored classification."""
        pass

    @abstractmethod
    def list_classified_transactions(
        self,
        company_id: int,
        period_id: Optional[int] = None,
        unclassified_only: bool = False,
    ) -> list[ClassifiedTransaction]:
        """List transactions with classifications in ascending (date, id) order."""
        pass

    @abstractmethod
    def save_classification(
        self,
        transaction_id: int,
        account_id: Optional[int],
        source: ResolutionSource,
        matched_rule_id: Optional[int] = None,
        counterparty: Optional[str] = None,
    ) -> None:
        """Insert or replace the classification of a transaction."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(
        self,
        company_id: int,
        period_id: int,
        reference: str,
        entry_date: date,
        description: str,
        lines: Sequence[LineDraft],
        origin: EntryOrigin = EntryOrigin.SYSTEM,
        is_opening_balance: bool = False,
        source_transaction_id: Optional[int] = None,
    ) -> int:
        """Store an entry header and all of its lines as one unit. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry with its lines."""
        pass

    @abstractmethod
    def get_entry_for_transaction(self, transaction_id: int) -> Optional[JournalEntry]:
        """Get the journal entry generated from a transaction, if any."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        company_id: int,
        period_id: Optional[int] = None,
        origin: Optional[EntryOrigin] = None,
    ) -> list[JournalEntry]:
        """List entries with lines ordered by (entry date, id)."""
        pass

    @abstractmethod
    def count_journal_entries(
        self, company_id: int, period_id: int, origin: Optional[EntryOrigin] = None
    ) -> int:
        """Count a period's entries, optionally by origin."""
        pass

    @abstractmethod
    def list_opening_balance_periods(self, company_id: int) -> set[int]:
        """IDs of the company's periods holding an opening-balance entry."""
        pass

    @abstractmethod
    def delete_system_entries(self, company_id: int, period_id: int) -> int:
        """Delete system entries (and lines) sourced from the period's transactions.

        Returns the number of entries deleted.
        """
        pass

    @abstractmethod
    def list_account_lines(
        self,
        account_id: int,
        period_id: Optional[int] = None,
        before: Optional[date] = None,
        opening_balance: Optional[bool] = None,
    ) -> list[tuple[JournalEntry, JournalEntryLine]]:
        """List an account's lines with their entry headers.

        Args:
            account_id: Account whose lines to return
            period_id: Only entries of this period
            before: Only entries of periods starting before this date
            opening_balance: Only opening-balance entries (True) or only
                regular entries (False)

        Returns:
            (entry, line) pairs ordered by (entry date, entry id, line id);
            entries carry no lines of their own
        """
        pass
