"""Reprocessing coordinator: atomic clear-and-regenerate of a period."""

import logging
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.classification import ClassificationService
from ledgerkit.domain.entities import EntryOrigin, ReprocessResult
from ledgerkit.domain.journal import JournalService
from ledgerkit.domain.period import PeriodService

logger = logging.getLogger(__name__)


class ReprocessingService:
    """Service rebuilding a period's derived ledger data from its transactions."""

    def __init__(
        self,
        db: Database,
        classification_service: Optional[ClassificationService] = None,
        journal_service: Optional[JournalService] = None,
        period_service: Optional[PeriodService] = None,
    ):
        """Initialize reprocessing service.

        Args:
            db: Database instance
            classification_service: Classification engine; created from db if None
            journal_service: Journal generator; created from db if None
            period_service: Period service (carries the lock policy); created from db if None
        """
        self.db = db
        self.period_service = period_service or PeriodService(db)
        self.classification_service = classification_service or ClassificationService(db, period_service=self.period_service)
        self.journal_service = journal_service or JournalService(
            db,
            account_service=self.classification_service.account_service,
            period_service=self.period_service,
        )

    def reprocess_period(self, company_id: int, period_id: int) -> ReprocessResult:
        """Clear and regenerate every system entry of a period as one unit.

        Steps, all inside a single unit of work:
          1. delete system entries sourced from the period's transactions
             (manual entries are kept)
          2. reopen the period
          3. reclassify every transaction (manual overrides are kept)
          4. regenerate entries, which marks the period processed when complete

        Any failure rolls everything back, leaving the period exactly as it
        was, and is re-raised. Running it twice on unchanged data produces
        the same entries and balances.

        Args:
            company_id: Company ID
            period_id: Period ID

        Returns:
            ReprocessResult with deletion and batch counts

        Raises:
            PeriodLockedError: If the period policy forbids changes (e.g. APPROVED)
            DomainError: Whatever aborted the run, after rollback
        """
        period = self.period_service.require_period(period_id, company_id)
        self.period_service.ensure_modifiable(period)
        logger.info("Reprocessing company %s period %s (%s)", company_id, period_id, period.status.value)

        try:
            with self.db.transaction():
                preserved = self.db.count_journal_entries(company_id, period_id, origin=EntryOrigin.MANUAL)
                deleted = self.db.delete_system_entries(company_id, period_id)
                self.period_service.reopen(period_id)
                classification = self.classification_service.classify_all(company_id, period_id, strict=True)
                generation = self.journal_service.generate_journal_entries(company_id, period_id, strict=True)
        except Exception:
            logger.exception("Reprocessing company %s period %s failed; changes rolled back", company_id, period_id)
            self.classification_service.rule_service.cache.invalidate(company_id)
            raise

        result = ReprocessResult(
            company_id=company_id,
            period_id=period_id,
            deleted_entries=deleted,
            preserved_manual_entries=preserved,
            classification=classification,
            generation=generation,
        )
        logger.info(
            "Reprocessed company %s period %s: %d entries replaced by %d, %d manual kept",
            company_id,
            period_id,
            deleted,
            generation.generated,
            preserved,
        )
        return result
