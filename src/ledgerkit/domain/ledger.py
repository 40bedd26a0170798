"""Ledger balance calculator domain service.

Balances are derived on demand from journal lines; nothing here writes.

Sign convention: every figure is signed relative to the account's normal
side. A debit-normal account closes at opening + debits - credits, a
credit-normal account at opening + credits - debits. A negative closing is
reported as its magnitude on the opposite side.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    ZERO,
    Account,
    AccountBalance,
    JournalEntryLine,
    NormalBalance,
    Period,
    StatementLine,
    TrialBalance,
)
from ledgerkit.domain.errors import NotFoundError, account_id_not_found
from ledgerkit.domain.period import PeriodService

logger = logging.getLogger(__name__)


def signed_movement(normal_balance: NormalBalance, debits: Decimal, credits: Decimal) -> Decimal:
    """Net movement on the account's normal side."""
    if normal_balance is NormalBalance.DEBIT:
        return debits - credits
    return credits - debits


def closing_balance(normal_balance: NormalBalance, opening: Decimal, debits: Decimal, credits: Decimal) -> Decimal:
    """Closing balance signed relative to the normal side."""
    return opening + signed_movement(normal_balance, debits, credits)


def side_of(normal_balance: NormalBalance, balance: Decimal) -> NormalBalance:
    """Side label for a signed balance (flips when negative)."""
    return normal_balance.opposite if balance < 0 else normal_balance


def _totals(lines: Iterable[JournalEntryLine]) -> tuple[Decimal, Decimal]:
    debits = credits = ZERO
    for line in lines:
        debits += line.debit
        credits += line.credit
    return debits, credits


class LedgerService:
    """Service computing account balances, trial balances and statements."""

    def __init__(
        self,
        db: Database,
        account_service: Optional[AccountService] = None,
        period_service: Optional[PeriodService] = None,
    ):
        """Initialize ledger service.

        Args:
            db: Database instance
            account_service: Account registry; created from db if None
            period_service: Period service; created from db if None
        """
        self.db = db
        self.account_service = account_service or AccountService(db)
        self.period_service = period_service or PeriodService(db)

    def _require_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_id_not_found(account_id))
        return account

    def _carried_periods(self, period: Period) -> set[int]:
        """Earlier periods whose net is carried into ``period``.

        A period holding an opening-balance entry restarts the books, so the
        walk back stops at the latest such period (inclusive) and a period
        with its own opening balance carries nothing.
        """
        anchored = self.db.list_opening_balance_periods(period.company_id)
        if period.id in anchored:
            return set()
        earlier = [p for p in self.period_service.list_periods(period.company_id) if p.start_date < period.start_date]
        carried = set()
        for prior in sorted(earlier, key=lambda p: p.start_date, reverse=True):
            carried.add(prior.id)
            if prior.id in anchored:
                break
        return carried

    def _carried(self, account: Account, period: Period, carried: set[int]) -> Decimal:
        if not carried:
            return ZERO
        lines = [
            line
            for entry, line in self.db.list_account_lines(account.id, before=period.start_date)
            if entry.period_id in carried
        ]
        return signed_movement(account.normal_balance, *_totals(lines))

    def _opening(self, account: Account, period: Period, carried: set[int]) -> Decimal:
        """Carried net plus this period's opening-balance entries."""
        brought_forward = [
            line for _, line in self.db.list_account_lines(account.id, period_id=period.id, opening_balance=True)
        ]
        return self._carried(account, period, carried) + signed_movement(
            account.normal_balance, *_totals(brought_forward)
        )

    def _balance(self, account: Account, period: Period, carried: Optional[set[int]] = None) -> AccountBalance:
        if carried is None:
            carried = self._carried_periods(period)
        opening = self._opening(account, period, carried)
        movements = self.db.list_account_lines(account.id, period_id=period.id, opening_balance=False)
        debits, credits = _totals(line for _, line in movements)
        return AccountBalance(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            period_id=period.id,
            normal_balance=account.normal_balance,
            opening=opening,
            total_debits=debits,
            total_credits=credits,
            closing=closing_balance(account.normal_balance, opening, debits, credits),
        )

    def compute_balance(self, account_id: int, period_id: int) -> AccountBalance:
        """Opening, movements and closing of an account for a period.

        Opening is this period's opening-balance entries plus the net of the
        earlier periods back to the latest one holding opening-balance
        entries. Movements exclude opening-balance entries.

        Args:
            account_id: Account ID
            period_id: Period ID

        Returns:
            AccountBalance (use ``side`` and ``amount`` for display)

        Raises:
            NotFoundError: If the account or period doesn't exist
        """
        account = self._require_account(account_id)
        period = self.period_service.require_period(period_id, account.company_id)
        return self._balance(account, period)

    def get_account_balance(self, account_id: int, period_id: int) -> AccountBalance:
        """Alias of compute_balance."""
        return self.compute_balance(account_id, period_id)

    def get_trial_balance(self, company_id: int, period_id: int) -> TrialBalance:
        """Closing balances of every account with activity, with column totals.

        Total debit-side closings equal total credit-side closings whenever
        every posted entry balances; ``is_balanced()`` exposes that check.

        Args:
            company_id: Company ID
            period_id: Period ID

        Returns:
            TrialBalance ordered by account code
        """
        period = self.period_service.require_period(period_id, company_id)
        carried = self._carried_periods(period)
        balances = []
        posted_debits = posted_credits = ZERO
        for account in self.db.list_accounts(company_id, include_inactive=True):
            balance = self._balance(account, period, carried)
            period_lines = [line for _, line in self.db.list_account_lines(account.id, period_id=period.id)]
            debits, credits = _totals(period_lines)
            posted_debits += debits
            posted_credits += credits
            if balance.opening or balance.closing or period_lines:
                balances.append(balance)

        trial_balance = TrialBalance(
            company_id=company_id,
            period_id=period_id,
            balances=tuple(balances),
            total_debits=sum((b.debit_balance for b in balances), ZERO),
            total_credits=sum((b.credit_balance for b in balances), ZERO),
            posted_debits=posted_debits,
            posted_credits=posted_credits,
        )
        if not trial_balance.is_balanced():
            logger.error(
                "Trial balance for company %s period %s is out by %s",
                company_id,
                period_id,
                trial_balance.total_debits - trial_balance.total_credits,
            )
        return trial_balance

    def get_account_statement(self, company_id: int, account_code: str, period_id: int) -> list[StatementLine]:
        """General-ledger lines of an account for a period with a running balance.

        The running balance starts from the carried net of earlier periods,
        so opening-balance entries appear as the first lines.
        """
        account = self.account_service.require_account(company_id, account_code)
        period = self.period_service.require_period(period_id, company_id)

        running = self._carried(account, period, self._carried_periods(period))

        statement = []
        for entry, line in self.db.list_account_lines(account.id, period_id=period.id):
            running += signed_movement(account.normal_balance, line.debit, line.credit)
            statement.append(
                StatementLine(
                    entry_id=entry.id,
                    reference=entry.reference,
                    entry_date=entry.entry_date,
                    description=line.description or entry.description,
                    debit=line.debit,
                    credit=line.credit,
                    balance=abs(running),
                    side=side_of(account.normal_balance, running),
                )
            )
        return statement
