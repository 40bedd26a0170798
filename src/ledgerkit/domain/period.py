"""Accounting period domain service."""

import logging
from datetime import date
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Period, PeriodStatus
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    PeriodLockedError,
    ValidationError,
    period_locked,
    period_not_found,
)

logger = logging.getLogger(__name__)


class PeriodPolicy:
    """Governance hook deciding whether a period's ledger may change.

    The default policy locks approved periods until they are unlocked.
    Subclass and inject into PeriodService to change the rule.
    """

    def check_can_modify(self, period: Period) -> None:
        """Raise PeriodLockedError when the period's entries must not change."""
        if period.status is PeriodStatus.APPROVED:
            raise PeriodLockedError(period_locked(period.id, period.status.value))


class PeriodService:
    """Service for accounting periods and their status machine.

    OPEN -> PROCESSED (complete generation pass) -> APPROVED (explicit).
    Reprocessing moves PROCESSED back through OPEN; APPROVED periods must be
    unlocked (back to PROCESSED) first.
    """

    def __init__(self, db: Database, policy: Optional[PeriodPolicy] = None):
        """Initialize period service.

        Args:
            db: Database instance
            policy: Modification policy; defaults to locking approved periods
        """
        self.db = db
        self.policy = policy or PeriodPolicy()

    def create_period(self, company_id: int, name: str, start_date: date, end_date: date) -> Period:
        """Create an accounting period.

        Args:
            company_id: Company ID
            name: Period name, unique per company (e.g. "FY2024")
            start_date: First day of the period
            end_date: Last day of the period

        Returns:
            The created period

        Raises:
            ValidationError: If dates are inverted or the name is empty
            ConflictError: If the name exists or the dates overlap another period
        """
        if not name or not name.strip():
            raise ValidationError("Period name cannot be empty")
        if start_date > end_date:
            raise ValidationError(f"Period start {start_date} is after its end {end_date}")

        for existing in self.db.list_periods(company_id):
            if existing.name == name.strip():
                raise ConflictError(f"Period '{name}' already exists for company {company_id}")
            if existing.start_date <= end_date and start_date <= existing.end_date:
                raise ConflictError(
                    f"Period {start_date}..{end_date} overlaps period '{existing.name}' "
                    f"({existing.start_date}..{existing.end_date})"
                )

        period_id = self.db.create_period(company_id, name.strip(), start_date, end_date)
        logger.info("Created period %s '%s' for company %s", period_id, name, company_id)
        return self.require_period(period_id)

    def get_period(self, period_id: int) -> Optional[Period]:
        """Get period by ID."""
        return self.db.get_period(period_id)

    def require_period(self, period_id: int, company_id: Optional[int] = None) -> Period:
        """Get period by ID, raising when missing or owned by another company.

        Raises:
            NotFoundError: If the period doesn't exist for the company
        """
        period = self.db.get_period(period_id)
        if period is None or (company_id is not None and period.company_id != company_id):
            raise NotFoundError(period_not_found(period_id))
        return period

    def period_for_date(self, company_id: int, day: date) -> Optional[Period]:
        """Get the period containing a date."""
        return self.db.find_period_for_date(company_id, day)

    def list_periods(self, company_id: int) -> list[Period]:
        """List a company's periods by start date."""
        return self.db.list_periods(company_id)

    def ensure_modifiable(self, period: Period) -> None:
        """Apply the policy hook before changing a period's ledger."""
        self.policy.check_can_modify(period)

    def _set_status(self, period: Period, status: PeriodStatus) -> Period:
        self.db.set_period_status(period.id, status)
        logger.info("Period %s: %s -> %s", period.id, period.status.value, status.value)
        return self.require_period(period.id)

    def reopen(self, period_id: int) -> Period:
        """Move a period back to OPEN ahead of reprocessing.

        Raises:
            PeriodLockedError: If the policy forbids changes
        """
        period = self.require_period(period_id)
        self.ensure_modifiable(period)
        if period.status is PeriodStatus.OPEN:
            return period
        return self._set_status(period, PeriodStatus.OPEN)

    def mark_processed(self, period_id: int) -> Period:
        """Move an OPEN period to PROCESSED; other states are left as they are."""
        period = self.require_period(period_id)
        if period.status is not PeriodStatus.OPEN:
            return period
        return self._set_status(period, PeriodStatus.PROCESSED)

    def approve(self, period_id: int) -> Period:
        """Approve a processed period, locking its ledger.

        Raises:
            ValidationError: If the period is not PROCESSED
        """
        period = self.require_period(period_id)
        if period.status is not PeriodStatus.PROCESSED:
            raise ValidationError(f"Only processed periods can be approved (period {period_id} is {period.status.value})")
        return self._set_status(period, PeriodStatus.APPROVED)

    def unlock(self, period_id: int) -> Period:
        """Unlock an approved period so it can be reprocessed.

        Raises:
            ValidationError: If the period is not APPROVED
        """
        period = self.require_period(period_id)
        if period.status is not PeriodStatus.APPROVED:
            raise ValidationError(f"Only approved periods can be unlocked (period {period_id} is {period.status.value})")
        return self._set_status(period, PeriodStatus.PROCESSED)
