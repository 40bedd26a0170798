"""Transaction intake domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.chart import BANK_ACCOUNT_CODE
from ledgerkit.domain.entities import (
    ClassifiedTransaction,
    Transaction as TransactionEntity,
    to_money,
)
from ledgerkit.domain.errors import NotFoundError, ValidationError, transaction_not_found
from ledgerkit.domain.period import PeriodService

logger = logging.getLogger(__name__)


class TransactionService:
    """Service storing normalized bank transactions.

    Transactions are read-only once recorded; classification and journal
    entries are derived from them.
    """

    def __init__(
        self,
        db: Database,
        account_service: Optional[AccountService] = None,
        period_service: Optional[PeriodService] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            account_service: Account registry; created from db if None
            period_service: Period service; created from db if None
        """
        self.db = db
        self.account_service = account_service or AccountService(db)
        self.period_service = period_service or PeriodService(db)

    def record_transaction(
        self,
        company_id: int,
        date: date,
        description: str,
        debit_amount: Optional[Decimal] = None,
        credit_amount: Optional[Decimal] = None,
        running_balance: Optional[Decimal] = None,
        period_id: Optional[int] = None,
        bank_account_code: str = BANK_ACCOUNT_CODE,
    ) -> TransactionEntity:
        """Record one transaction from the normalized feed.

        A debit is money leaving the bank account, a credit money arriving.

        Args:
            company_id: Company ID
            date: Transaction date
            description: Statement description
            debit_amount: Money out (positive)
            credit_amount: Money in (positive)
            running_balance: Statement running balance, kept for reference
            period_id: Period ID; looked up from the date if None
            bank_account_code: Bank account the statement belongs to

        Returns:
            The stored transaction

        Raises:
            ValidationError: If amounts are malformed, the description is
                empty or the date is outside the period
            NotFoundError: If the period or bank account doesn't exist
        """
        if not description or not description.strip():
            raise ValidationError("Transaction description cannot be empty")
        has_debit = debit_amount is not None and debit_amount != 0
        has_credit = credit_amount is not None and credit_amount != 0
        if has_debit == has_credit:
            raise ValidationError("Exactly one of debit or credit amount must be given")
        amount = debit_amount if has_debit else credit_amount
        if amount < 0:
            raise ValidationError(f"Amount must be positive (got {amount})")

        if period_id is None:
            period = self.period_service.period_for_date(company_id, date)
            if period is None:
                raise NotFoundError(f"No period covers {date} for company {company_id}")
        else:
            period = self.period_service.require_period(period_id, company_id)
            if not period.contains(date):
                raise ValidationError(f"Date {date} is outside period '{period.name}'")

        self.account_service.require_account(company_id, bank_account_code)

        transaction_id = self.db.create_transaction(
            company_id=company_id,
            period_id=period.id,
            date=date,
            description=" ".join(description.split()),
            debit_amount=to_money(debit_amount) if has_debit else None,
            credit_amount=to_money(credit_amount) if has_credit else None,
            running_balance=to_money(running_balance) if running_balance is not None else None,
            bank_account_code=bank_account_code,
        )
        logger.debug("Recorded transaction %s in period %s", transaction_id, period.id)
        return self.get_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> TransactionEntity:
        """Get transaction by ID.

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self,
        company_id: int,
        period_id: Optional[int] = None,
        unclassified_only: bool = False,
    ) -> list[ClassifiedTransaction]:
        """List transactions with their classification, oldest first."""
        return self.db.list_classified_transactions(
            company_id, period_id=period_id, unclassified_only=unclassified_only
        )
