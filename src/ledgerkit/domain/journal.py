"""Journal entry generator domain service."""

import logging
from datetime import date
from typing import Optional, Sequence, Union

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.chart import (
    OPENING_BALANCE_EQUITY_CODE,
    is_opening_balance_description,
)
from ledgerkit.domain.entities import (
    ZERO,
    Account,
    BatchFailure,
    ClassifiedTransaction,
    EntryOrigin,
    GenerationBatchResult,
    JournalEntry,
    LineDraft,
    SkipReason,
    Skipped,
    to_money,
)
from ledgerkit.domain.errors import (
    ConflictError,
    DomainError,
    IntegrityViolation,
    NotFoundError,
    StorageFailure,
    ValidationError,
    account_id_not_found,
    duplicate_posting,
    transaction_not_found,
    unbalanced_entry,
)
from ledgerkit.domain.period import PeriodService

logger = logging.getLogger(__name__)

GenerationOutcome = Union[JournalEntry, Skipped]


def transaction_reference(period_id: int, transaction_id: int) -> str:
    """Deterministic reference of the entry generated from a transaction."""
    return f"JE-{period_id}-{transaction_id:06d}"


def validate_lines(lines: Sequence[LineDraft], transaction_id: Optional[int] = None) -> None:
    """Check the posting invariants of a would-be entry.

    Raises:
        IntegrityViolation: If there are fewer than two lines, a line is not
            exactly one positive debit or credit, or debits differ from credits
    """
    if len(lines) < 2:
        raise IntegrityViolation(
            f"A journal entry needs at least two lines (got {len(lines)})",
            transaction_id=transaction_id,
        )

    total_debits = total_credits = ZERO
    for line in lines:
        has_debit = line.debit_amount is not None and line.debit_amount != 0
        has_credit = line.credit_amount is not None and line.credit_amount != 0
        if has_debit == has_credit:
            raise IntegrityViolation(
                f"Line for account {line.account_id} must have exactly one of debit or credit",
                transaction_id=transaction_id,
            )
        amount = line.debit_amount if has_debit else line.credit_amount
        if amount < 0:
            raise IntegrityViolation(
                f"Line for account {line.account_id} has a negative amount ({amount})",
                transaction_id=transaction_id,
            )
        if has_debit:
            total_debits += to_money(amount)
        else:
            total_credits += to_money(amount)

    imbalance = total_debits - total_credits
    if imbalance != 0:
        raise IntegrityViolation(
            unbalanced_entry(transaction_id, imbalance),
            transaction_id=transaction_id,
            imbalance=imbalance,
        )


class JournalService:
    """Service turning classified transactions into balanced journal entries."""

    def __init__(
        self,
        db: Database,
        account_service: Optional[AccountService] = None,
        period_service: Optional[PeriodService] = None,
        opening_balance_code: str = OPENING_BALANCE_EQUITY_CODE,
    ):
        """Initialize journal service.

        Args:
            db: Database instance
            account_service: Account registry; created from db if None
            period_service: Period service; created from db if None
            opening_balance_code: Equity account receiving brought-forward balances
        """
        self.db = db
        self.account_service = account_service or AccountService(db)
        self.period_service = period_service or PeriodService(db)
        self.opening_balance_code = opening_balance_code

    def build_lines(
        self, classified: ClassifiedTransaction, bank: Account, counter: Account
    ) -> list[LineDraft]:
        """Two lines moving the transaction amount between bank and counter account.

        Money in debits the bank and credits the counter account; money out
        does the reverse.
        """
        transaction = classified.transaction
        debit, credit = transaction.debit_amount, transaction.credit_amount
        if (debit is None or debit == 0) == (credit is None or credit == 0):
            raise ValidationError(
                f"Transaction {transaction.id} must have exactly one of debit or credit"
            )
        amount = to_money(transaction.amount)
        if amount <= 0:
            raise ValidationError(f"Transaction {transaction.id} has a non-positive amount ({amount})")

        counter_description = classified.counterparty or transaction.description
        bank_line = dict(account_id=bank.id, description=transaction.description, source_transaction_id=transaction.id)
        counter_line = dict(account_id=counter.id, description=counter_description, source_transaction_id=transaction.id)
        if transaction.is_money_in:
            return [
                LineDraft(debit_amount=amount, **bank_line),
                LineDraft(credit_amount=amount, **counter_line),
            ]
        return [
            LineDraft(debit_amount=amount, **counter_line),
            LineDraft(credit_amount=amount, **bank_line),
        ]

    def generate(self, transaction_id: int) -> GenerationOutcome:
        """Create the journal entry for one classified transaction.

        Returns Skipped(EXISTING) when the transaction already has an entry and
        Skipped(UNCLASSIFIED) when it has no account. A brought-forward
        transaction is posted against the opening-balance equity account and
        dated at the start of its period, whatever its classification.

        Args:
            transaction_id: Transaction ID

        Returns:
            The created JournalEntry or a Skipped marker

        Raises:
            NotFoundError: If the transaction or an account is missing
            ValidationError: If the transaction amounts are malformed
            IntegrityViolation: If the built entry does not balance, or another
                entry for the transaction was stored concurrently
        """
        classified = self.db.get_classified_transaction(transaction_id)
        if classified is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        transaction = classified.transaction

        if self.db.get_entry_for_transaction(transaction_id) is not None:
            logger.debug("Transaction %s already posted", transaction_id)
            return Skipped(transaction_id, SkipReason.EXISTING)

        opening = is_opening_balance_description(transaction.description)
        if not opening and not classified.is_classified:
            logger.debug("Transaction %s is unclassified", transaction_id)
            return Skipped(transaction_id, SkipReason.UNCLASSIFIED)

        company_id = transaction.company_id
        period = self.period_service.require_period(transaction.period_id, company_id)
        self.period_service.ensure_modifiable(period)
        bank = self.account_service.require_account(company_id, transaction.bank_account_code)
        if opening:
            counter = self.account_service.require_account(company_id, self.opening_balance_code)
        else:
            counter = self.db.get_account(classified.account_id)
            if counter is None:
                raise NotFoundError(account_id_not_found(classified.account_id))

        lines = self.build_lines(classified, bank, counter)
        validate_lines(lines, transaction_id)

        try:
            with self.db.transaction():
                entry_id = self.db.create_journal_entry(
                    company_id=company_id,
                    period_id=period.id,
                    reference=transaction_reference(period.id, transaction_id),
                    entry_date=period.start_date if opening else transaction.date,
                    description=transaction.description,
                    lines=lines,
                    origin=EntryOrigin.SYSTEM,
                    is_opening_balance=opening,
                    source_transaction_id=transaction_id,
                )
        except ConflictError as e:
            raise IntegrityViolation(duplicate_posting(transaction_id), transaction_id=transaction_id) from e
        logger.debug("Posted transaction %s as entry %s (%s / %s)", transaction_id, entry_id, bank.code, counter.code)
        return self.db.get_journal_entry(entry_id)

    def generate_journal_entries(
        self, company_id: int, period_id: int, strict: bool = False
    ) -> GenerationBatchResult:
        """Generate entries for every transaction of a period.

        Transactions are processed in ascending (date, id) order, so a second
        run over an unchanged period only reports skips. Without ``strict`` a
        failing transaction is recorded and the batch continues; storage
        failures always propagate. A pass with no failures and nothing left
        unclassified marks an OPEN period PROCESSED.

        Args:
            company_id: Company ID
            period_id: Period ID
            strict: Re-raise the first failure instead of recording it

        Returns:
            Batch counts and per-failure reasons

        Raises:
            PeriodLockedError: If the period policy forbids changes
        """
        period = self.period_service.require_period(period_id, company_id)
        self.period_service.ensure_modifiable(period)

        transactions = self.db.list_classified_transactions(company_id, period_id=period_id)
        generated = skipped_existing = skipped_unclassified = 0
        failures: list[BatchFailure] = []

        for classified in transactions:
            transaction_id = classified.transaction.id
            try:
                outcome = self.generate(transaction_id)
            except StorageFailure:
                raise
            except DomainError as e:
                if strict:
                    raise
                logger.warning("Journal generation failed for transaction %s: %s", transaction_id, e)
                failures.append(BatchFailure(transaction_id, str(e), getattr(e, "imbalance", None)))
                continue
            if isinstance(outcome, Skipped):
                if outcome.reason is SkipReason.EXISTING:
                    skipped_existing += 1
                else:
                    skipped_unclassified += 1
            else:
                generated += 1

        batch = GenerationBatchResult(
            processed=len(transactions),
            generated=generated,
            skipped_existing=skipped_existing,
            skipped_unclassified=skipped_unclassified,
            failures=tuple(failures),
        )
        if not failures and not skipped_unclassified:
            self.period_service.mark_processed(period_id)
        logger.info(
            "Generated entries for company %s period %s: %d created, %d skipped, %d failed",
            company_id,
            period_id,
            batch.generated,
            batch.skipped,
            batch.failed,
        )
        return batch

    def create_manual_entry(
        self,
        company_id: int,
        period_id: int,
        entry_date: date,
        description: str,
        lines: Sequence[LineDraft],
        reference: Optional[str] = None,
    ) -> JournalEntry:
        """Record a manual adjustment entry.

        Manual entries carry no source transaction and survive reprocessing.

        Args:
            company_id: Company ID
            period_id: Period ID
            entry_date: Entry date, inside the period
            description: Entry description
            lines: At least two balanced lines
            reference: Entry reference; generated if None

        Returns:
            The created entry

        Raises:
            ValidationError: If the date is outside the period or description empty
            IntegrityViolation: If the lines break a posting invariant
            NotFoundError: If the period or a line account is missing
            PeriodLockedError: If the period policy forbids changes
        """
        period = self.period_service.require_period(period_id, company_id)
        self.period_service.ensure_modifiable(period)
        if not period.contains(entry_date):
            raise ValidationError(f"Entry date {entry_date} is outside period '{period.name}'")
        if not description or not description.strip():
            raise ValidationError("Entry description cannot be empty")

        validate_lines(lines)
        for line in lines:
            account = self.db.get_account(line.account_id)
            if account is None or account.company_id != company_id:
                raise NotFoundError(account_id_not_found(line.account_id))

        drafts = [
            LineDraft(
                account_id=line.account_id,
                debit_amount=to_money(line.debit_amount) if line.debit_amount else None,
                credit_amount=to_money(line.credit_amount) if line.credit_amount else None,
                description=line.description,
            )
            for line in lines
        ]
        with self.db.transaction():
            if reference is None:
                sequence = self.db.count_journal_entries(company_id, period_id, origin=EntryOrigin.MANUAL) + 1
                reference = f"MJ-{period_id}-{sequence:04d}"
            entry_id = self.db.create_journal_entry(
                company_id=company_id,
                period_id=period_id,
                reference=reference,
                entry_date=entry_date,
                description=description.strip(),
                lines=drafts,
                origin=EntryOrigin.MANUAL,
            )
        logger.info("Recorded manual entry %s (%s)", entry_id, reference)
        return self.db.get_journal_entry(entry_id)

    def list_entries(
        self, company_id: int, period_id: Optional[int] = None, origin: Optional[EntryOrigin] = None
    ) -> list[JournalEntry]:
        """List entries with lines by (entry date, id)."""
        return self.db.list_journal_entries(company_id, period_id=period_id, origin=origin)
