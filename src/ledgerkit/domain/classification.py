"""Classification engine domain service."""

import logging
import re
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    BatchFailure,
    ClassificationBatchResult,
    ClassificationResult,
    ClassificationRule,
    ClassificationSummary,
    ClassifiedTransaction,
    LearningResult,
    MatchKind,
    ResolutionSource,
    UNCLASSIFIED,
)
from ledgerkit.domain.errors import (
    DomainError,
    NotFoundError,
    PeriodLockedError,
    StorageFailure,
    ValidationError,
    transaction_not_found,
)
from ledgerkit.domain.period import PeriodService
from ledgerkit.domain.rules import (
    RuleCache,
    RuleService,
    derive_pattern,
    matches,
    normalize_description,
)

logger = logging.getLogger(__name__)

LEARNED_RULE_PRIORITY = 100
MAX_SIMILAR_TRANSACTIONS = 10


def extract_counterparty(description: str, rule: Optional[ClassificationRule]) -> Optional[str]:
    """Description words left once the matched pattern and numbers are removed.

    Kept as metadata on the classification; never turned into an account.
    """
    text = normalize_description(description)
    if rule is not None and rule.match_kind is MatchKind.REGEX:
        text = re.sub(rule.pattern, " ", text, flags=re.IGNORECASE)
    elif rule is not None:
        text = text.replace(normalize_description(rule.pattern), " ")
    words = [w for w in text.split() if not any(c.isdigit() for c in w)]
    return " ".join(words) or None


class ClassificationService:
    """Service resolving transactions to accounts through the rule store."""

    def __init__(
        self,
        db: Database,
        rule_service: Optional[RuleService] = None,
        account_service: Optional[AccountService] = None,
        cache: Optional[RuleCache] = None,
        period_service: Optional[PeriodService] = None,
    ):
        """Initialize classification service.

        Args:
            db: Database instance
            rule_service: Rule store; created from db (and cache) if None
            account_service: Account registry; created from db if None
            cache: Rule cache used when rule_service is created here
            period_service: Period service (carries the lock policy); created from db if None
        """
        self.db = db
        self.account_service = account_service or AccountService(db)
        self.rule_service = rule_service or RuleService(db, cache=cache, account_service=self.account_service)
        self.period_service = period_service or PeriodService(db)

    def _ensure_period_modifiable(self, period_id: int) -> None:
        self.period_service.ensure_modifiable(self.period_service.require_period(period_id))

    def _locked_periods(self, company_id: int) -> set[int]:
        """IDs of the company's periods the policy currently locks."""
        locked = set()
        for period in self.period_service.list_periods(company_id):
            try:
                self.period_service.ensure_modifiable(period)
            except PeriodLockedError:
                locked.add(period.id)
        return locked

    def classify(self, description: str, company_id: int) -> ClassificationResult:
        """Resolve a description to an account without touching storage.

        The first rule in precedence order whose pattern matches wins. No
        match is not an error: the UNCLASSIFIED sentinel is returned and the
        transaction is left for manual review.

        Args:
            description: Transaction description
            company_id: Company whose rules apply

        Returns:
            ClassificationResult (UNCLASSIFIED when no rule matches)
        """
        rule = self.rule_service.find_matching_rule(company_id, description)
        if rule is None:
            return UNCLASSIFIED
        return ClassificationResult(
            account_id=rule.account_id,
            account_code=rule.account_code,
            source=ResolutionSource.RULE,
            matched_rule_id=rule.id,
        )

    def _require_transaction(self, transaction_id: int) -> ClassifiedTransaction:
        classified = self.db.get_classified_transaction(transaction_id)
        if classified is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return classified

    def classify_transaction(self, transaction_id: int, preserve_manual: bool = True) -> ClassifiedTransaction:
        """Classify one stored transaction and persist the outcome.

        Args:
            transaction_id: Transaction ID
            preserve_manual: Leave manual overrides untouched

        Returns:
            The transaction with its new classification

        Raises:
            NotFoundError: If transaction doesn't exist
            PeriodLockedError: If the transaction's period is locked
        """
        current = self._require_transaction(transaction_id)
        self._ensure_period_modifiable(current.transaction.period_id)
        if preserve_manual and current.source is ResolutionSource.MANUAL:
            logger.debug("Transaction %s keeps manual account %s", transaction_id, current.account_code)
            return current

        description = current.transaction.description
        rule = self.rule_service.find_matching_rule(current.transaction.company_id, description)
        with self.db.transaction():
            if rule is None:
                self.db.save_classification(transaction_id, None, ResolutionSource.NONE)
            else:
                self.db.save_classification(
                    transaction_id,
                    rule.account_id,
                    ResolutionSource.RULE,
                    matched_rule_id=rule.id,
                    counterparty=extract_counterparty(description, rule),
                )
                self.rule_service.record_usage(rule.id)
        logger.debug(
            "Transaction %s -> %s (rule %s)",
            transaction_id,
            rule.account_code if rule else "unclassified",
            rule.id if rule else None,
        )
        return self._require_transaction(transaction_id)

    def classify_all(
        self, company_id: int, period_id: Optional[int] = None, strict: bool = False
    ) -> ClassificationBatchResult:
        """Classify every transaction of a company (or one period).

        Transactions are processed in ascending (date, id) order. Each one is
        its own unit of work: a failure is recorded and the batch continues,
        unless ``strict`` is set, in which case it propagates. Storage failures
        always propagate. Use ``strict`` when an enclosing unit of work must
        roll back as a whole.

        Locked periods are never reclassified: naming one refuses the run,
        and a company-wide run leaves their transactions out.

        Args:
            company_id: Company ID
            period_id: Restrict to one period
            strict: Re-raise the first failure instead of recording it

        Returns:
            Batch counts and per-failure reasons

        Raises:
            PeriodLockedError: If ``period_id`` names a locked period
        """
        if period_id is not None:
            self._ensure_period_modifiable(period_id)
            transactions = self.db.list_classified_transactions(company_id, period_id=period_id)
        else:
            locked = self._locked_periods(company_id)
            transactions = [
                t
                for t in self.db.list_classified_transactions(company_id)
                if t.transaction.period_id not in locked
            ]
            if locked:
                logger.info("Skipping locked periods %s of company %s", sorted(locked), company_id)
        classified = unclassified = 0
        failures: list[BatchFailure] = []

        for current in transactions:
            transaction_id = current.transaction.id
            try:
                result = self.classify_transaction(transaction_id)
            except StorageFailure:
                raise
            except DomainError as e:
                if strict:
                    raise
                logger.warning("Classification failed for transaction %s: %s", transaction_id, e)
                failures.append(BatchFailure(transaction_id, str(e)))
                continue
            if result.is_classified:
                classified += 1
            else:
                unclassified += 1

        batch = ClassificationBatchResult(
            processed=len(transactions),
            classified=classified,
            unclassified=unclassified,
            failures=tuple(failures),
        )
        logger.info(
            "Classified company %s period %s: %d classified, %d unclassified, %d failed",
            company_id,
            period_id,
            batch.classified,
            batch.unclassified,
            batch.failed,
        )
        return batch

    def classify_manually(self, transaction_id: int, account_code: str) -> ClassifiedTransaction:
        """Assign an account by hand. Manual overrides survive reclassification.

        Raises:
            NotFoundError: If transaction or account doesn't exist
            ValidationError: If the account is inactive
            PeriodLockedError: If the transaction's period is locked
        """
        current = self._require_transaction(transaction_id)
        self._ensure_period_modifiable(current.transaction.period_id)
        company_id = current.transaction.company_id
        account = self.account_service.require_account(company_id, account_code)
        if not account.is_active:
            raise ValidationError(f"Account {account.code} is inactive")
        self.db.save_classification(
            transaction_id,
            account.id,
            ResolutionSource.MANUAL,
            counterparty=extract_counterparty(current.transaction.description, None),
        )
        logger.info("Transaction %s manually classified to %s", transaction_id, account.code)
        return self._require_transaction(transaction_id)

    def learn_from_correction(
        self,
        description: str,
        account_code: str,
        company_id: int,
        apply_to_similar: bool = False,
        transaction_id: Optional[int] = None,
    ) -> LearningResult:
        """Turn a manual correction into a rule.

        A pattern is derived from the description. If an active rule already
        uses it for the same account, that rule's priority is raised;
        identical rules pointing elsewhere are deactivated and replaced by a
        new rule. The learned rule always outranks the rule that matched the
        description before the correction.

        When ``apply_to_similar`` is set, every transaction whose description
        matches the derived pattern and is either unclassified or was
        classified by a replaced rule is reclassified in the same unit of work.
        Transactions in locked periods are left alone.

        Args:
            description: Description that was corrected
            account_code: Account the user chose
            company_id: Company ID
            apply_to_similar: Reclassify matching transactions too
            transaction_id: Corrected transaction, stored as a manual override

        Returns:
            LearningResult with the rule and the reclassified transaction IDs

        Raises:
            NotFoundError: If the account (or transaction) doesn't exist
            ValidationError: If the account is inactive or description empty
            PeriodLockedError: If the corrected transaction's period is locked
        """
        account = self.account_service.require_account(company_id, account_code)
        if not account.is_active:
            raise ValidationError(f"Account {account.code} is inactive")
        if transaction_id is not None:
            self._ensure_period_modifiable(self._require_transaction(transaction_id).transaction.period_id)
        pattern, match_kind = derive_pattern(description)
        previous = self.rule_service.find_matching_rule(company_id, description)
        outrank = previous.priority + 1 if previous is not None and previous.account_id != account.id else 0

        try:
            with self.db.transaction():
                identical = self.db.find_rules_by_pattern(company_id, pattern, match_kind)
                same = [r for r in identical if r.account_id == account.id]
                replaced = [r for r in identical if r.account_id != account.id]
                for rule in replaced:
                    self.rule_service.deactivate_rule(rule.id)

                if same:
                    rule = self.rule_service.update_priority(
                        same[0].id, max(same[0].priority + 1, outrank)
                    )
                else:
                    priority = max([LEARNED_RULE_PRIORITY, outrank] + [r.priority + 1 for r in replaced])
                    rule = self.rule_service.create_rule(
                        company_id,
                        pattern,
                        account.code,
                        priority=priority,
                        match_kind=match_kind,
                        name=f"Learned: {pattern}",
                    )

                replaced_ids = {r.id for r in replaced}
                if previous is not None and previous.account_id != account.id:
                    replaced_ids.add(previous.id)

                reclassified: list[int] = []
                if apply_to_similar:
                    reclassified = self._apply_rule_to_similar(company_id, rule, replaced_ids)
                if transaction_id is not None:
                    self.classify_manually(transaction_id, account.code)
        except Exception:
            self.rule_service.cache.invalidate(company_id)
            raise

        replaced_rule_id = replaced[0].id if replaced else (previous.id if outrank else None)
        logger.info(
            "Learned rule %s ('%s' -> %s), %d transactions reclassified",
            rule.id,
            pattern,
            account.code,
            len(reclassified),
        )
        return LearningResult(
            rule=rule,
            replaced_rule_id=replaced_rule_id,
            reclassified_transaction_ids=tuple(reclassified),
        )

    def _apply_rule_to_similar(
        self, company_id: int, rule: ClassificationRule, replaced_ids: set[int]
    ) -> list[int]:
        """Reclassify matching transactions that are unclassified or used a replaced rule."""
        reclassified = []
        locked = self._locked_periods(company_id)
        for current in self.db.list_classified_transactions(company_id):
            if current.transaction.period_id in locked:
                continue
            if current.source is ResolutionSource.MANUAL:
                continue
            if current.is_classified and current.matched_rule_id not in replaced_ids:
                continue
            description = current.transaction.description
            if not matches(rule.pattern, rule.match_kind, description):
                continue
            self.db.save_classification(
                current.transaction.id,
                rule.account_id,
                ResolutionSource.RULE,
                matched_rule_id=rule.id,
                counterparty=extract_counterparty(description, rule),
            )
            self.rule_service.record_usage(rule.id)
            reclassified.append(current.transaction.id)
        return reclassified

    def get_classification_summary(self, company_id: int, period_id: Optional[int] = None) -> ClassificationSummary:
        """Count classified and unclassified transactions."""
        transactions = self.db.list_classified_transactions(company_id, period_id=period_id)
        classified = sum(1 for t in transactions if t.is_classified)
        return ClassificationSummary(
            total=len(transactions),
            classified=classified,
            unclassified=len(transactions) - classified,
        )

    def find_similar_unclassified(
        self,
        company_id: int,
        pattern: str,
        period_id: Optional[int] = None,
        limit: int = MAX_SIMILAR_TRANSACTIONS,
    ) -> list[ClassifiedTransaction]:
        """Unclassified transactions whose description contains the pattern."""
        similar = [
            t
            for t in self.db.list_classified_transactions(company_id, period_id=period_id, unclassified_only=True)
            if matches(pattern, MatchKind.CONTAINS, t.transaction.description)
        ]
        return similar[:limit]
