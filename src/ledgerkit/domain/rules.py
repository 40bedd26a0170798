"""Rule store: classification rules, their ordering and matching."""

import logging
import re
from functools import lru_cache
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.chart import STANDARD_RULES
from ledgerkit.domain.entities import (
    ClassificationRule,
    MatchKind,
    StandardRule,
)
from ledgerkit.domain.errors import NotFoundError, ValidationError, rule_not_found

logger = logging.getLogger(__name__)

# Higher rank is more specific.
SPECIFICITY_RANK = {
    MatchKind.EQUALS: 4,
    MatchKind.STARTS_WITH: 3,
    MatchKind.ENDS_WITH: 3,
    MatchKind.CONTAINS: 2,
    MatchKind.REGEX: 1,
}

STOPWORDS = frozenset(
    {
        "THE", "AND", "FOR", "WITH", "FROM", "BUT",
        "PAYMENT", "TRANSFER", "DEBIT", "CREDIT", "ORDER", "REF", "POS", "PURCHASE",
    }
)
MAX_PATTERN_WORDS = 3
SIGNIFICANT_WORD = re.compile(r"[A-Z&']+")


def normalize_description(description: Optional[str]) -> str:
    """Uppercase and collapse whitespace."""
    return " ".join((description or "").upper().split())


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def validate_pattern(pattern: str, match_kind: MatchKind) -> str:
    """Return the stored form of a pattern.

    Raises:
        ValidationError: If the pattern is empty or not a valid regex
    """
    if match_kind is MatchKind.REGEX:
        if not pattern:
            raise ValidationError("Rule pattern cannot be empty")
        try:
            _compile(pattern)
        except re.error as e:
            raise ValidationError(f"Invalid regular expression '{pattern}': {e}") from e
        return pattern
    normalized = normalize_description(pattern)
    if not normalized:
        raise ValidationError("Rule pattern cannot be empty")
    return normalized


def matches(pattern: str, match_kind: MatchKind, description: Optional[str]) -> bool:
    """Check whether a description satisfies a pattern (case-insensitive)."""
    if match_kind is MatchKind.REGEX:
        return _compile(pattern).search(description or "") is not None
    text = normalize_description(description)
    needle = normalize_description(pattern)
    if match_kind is MatchKind.EQUALS:
        return text == needle
    if match_kind is MatchKind.STARTS_WITH:
        return text.startswith(needle)
    if match_kind is MatchKind.ENDS_WITH:
        return text.endswith(needle)
    return needle in text


def specificity(rule: ClassificationRule) -> tuple[int, int]:
    """Rank of a rule's match kind, then its pattern length."""
    return SPECIFICITY_RANK[rule.match_kind], len(rule.pattern)


def rule_order(rule: ClassificationRule) -> tuple[int, int, int, int]:
    """Sort key: priority desc, specificity desc, rule id asc."""
    rank, length = specificity(rule)
    return -rule.priority, -rank, -length, rule.id


def derive_pattern(description: str) -> tuple[str, MatchKind]:
    """Derive a reusable pattern from a corrected description.

    Picks the longest run of consecutive significant words (alphabetic,
    longer than two letters, not a stopword), capped at three words, and
    matches it as a substring. Descriptions without significant words are
    matched exactly.

    Example:
        "PAYMENT TO ABC INSURANCE 0042" -> ("ABC INSURANCE", CONTAINS)
    """
    text = normalize_description(description)
    if not text:
        raise ValidationError("Cannot derive a rule from an empty description")

    best: list[str] = []
    run: list[str] = []
    for word in text.split() + [""]:
        if len(word) > 2 and word not in STOPWORDS and SIGNIFICANT_WORD.fullmatch(word):
            run.append(word)
            continue
        if len(run[:MAX_PATTERN_WORDS]) > len(best):
            best = run[:MAX_PATTERN_WORDS]
        run = []

    if not best:
        return text, MatchKind.EQUALS
    return " ".join(best), MatchKind.CONTAINS


class RuleCache:
    """Ordered active rules per company.

    Must be invalidated whenever a company's rules change. Usage counters
    do not affect ordering, so incrementing them leaves the cache valid.
    """

    def __init__(self):
        self._rules: dict[int, tuple[ClassificationRule, ...]] = {}

    def get(self, company_id: int) -> Optional[tuple[ClassificationRule, ...]]:
        return self._rules.get(company_id)

    def put(self, company_id: int, rules: Iterable[ClassificationRule]) -> None:
        self._rules[company_id] = tuple(rules)

    def invalidate(self, company_id: Optional[int] = None) -> None:
        if company_id is None:
            self._rules.clear()
        else:
            self._rules.pop(company_id, None)


class RuleService:
    """Service for managing classification rules."""

    def __init__(
        self,
        db: Database,
        cache: Optional[RuleCache] = None,
        account_service: Optional[AccountService] = None,
    ):
        """Initialize rule service.

        Args:
            db: Database instance
            cache: Rule cache shared with other services; a private one if None
            account_service: Account registry; created from db if None
        """
        self.db = db
        self.cache = cache if cache is not None else RuleCache()
        self.account_service = account_service or AccountService(db)

    def load_rules(self, company_id: int) -> list[ClassificationRule]:
        """Return active rules ordered by (priority desc, specificity desc, id asc).

        Args:
            company_id: Company ID

        Returns:
            Ordered list of active rules
        """
        rules = self.cache.get(company_id)
        if rules is None:
            rules = tuple(sorted(self.db.list_rules(company_id, active_only=True), key=rule_order))
            self.cache.put(company_id, rules)
            logger.debug("Loaded %d rules for company %s", len(rules), company_id)
        return list(rules)

    def find_matching_rule(self, company_id: int, description: Optional[str]) -> Optional[ClassificationRule]:
        """Return the first rule in precedence order matching the description."""
        for rule in self.load_rules(company_id):
            if matches(rule.pattern, rule.match_kind, description):
                return rule
        return None

    def get_rule(self, rule_id: int) -> ClassificationRule:
        """Get rule by ID.

        Raises:
            NotFoundError: If rule doesn't exist
        """
        rule = self.db.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    def list_rules(self, company_id: int, include_inactive: bool = False) -> list[ClassificationRule]:
        """List rules in precedence order (inactive ones last when included)."""
        rules = self.db.list_rules(company_id, active_only=not include_inactive)
        return sorted(rules, key=lambda r: (not r.is_active, rule_order(r)))

    def create_rule(
        self,
        company_id: int,
        pattern: str,
        account_code: str,
        priority: int = 0,
        match_kind: MatchKind = MatchKind.CONTAINS,
        name: Optional[str] = None,
    ) -> ClassificationRule:
        """Create a classification rule.

        Args:
            company_id: Company ID
            pattern: Pattern text (regex source for REGEX rules)
            account_code: Target account code
            priority: Higher priority rules are checked first
            match_kind: How the pattern is compared with descriptions
            name: Display name; defaults to the pattern

        Returns:
            The created rule

        Raises:
            ValidationError: If the pattern is invalid or the account is inactive
            NotFoundError: If the target account doesn't exist
        """
        stored = validate_pattern(pattern, match_kind)
        account = self.account_service.require_account(company_id, account_code)
        if not account.is_active:
            raise ValidationError(f"Account {account.code} is inactive and cannot be a rule target")

        rule_id = self.db.create_rule(
            company_id=company_id,
            name=(name or stored).strip(),
            pattern=stored,
            match_kind=match_kind,
            priority=priority,
            account_id=account.id,
        )
        self.cache.invalidate(company_id)
        logger.info("Created rule %s: %s '%s' -> %s", rule_id, match_kind.value, stored, account.code)
        return self.get_rule(rule_id)

    def deactivate_rule(self, rule_id: int) -> ClassificationRule:
        """Deactivate a rule so it no longer matches."""
        rule = self.get_rule(rule_id)
        self.db.set_rule_active(rule_id, False)
        self.cache.invalidate(rule.company_id)
        logger.info("Deactivated rule %s", rule_id)
        return self.get_rule(rule_id)

    def update_priority(self, rule_id: int, priority: int) -> ClassificationRule:
        """Change a rule's priority."""
        rule = self.get_rule(rule_id)
        self.db.update_rule_priority(rule_id, priority)
        self.cache.invalidate(rule.company_id)
        return self.get_rule(rule_id)

    def record_usage(self, rule_id: int) -> None:
        """Count one more match for a rule."""
        self.db.increment_rule_usage(rule_id)

    def initialize_standard_rules(
        self, company_id: int, rules: Iterable[StandardRule] = STANDARD_RULES
    ) -> list[ClassificationRule]:
        """Seed the standard rule set for a company.

        Rules whose pattern already exists are skipped, so this can be re-run.
        The chart of accounts must already be initialized.

        Returns:
            Newly created rules
        """
        created: list[ClassificationRule] = []
        with self.db.transaction():
            for template in rules:
                pattern = validate_pattern(template.pattern, template.match_kind)
                if self.db.find_rules_by_pattern(company_id, pattern, template.match_kind):
                    continue
                created.append(
                    self.create_rule(
                        company_id,
                        pattern,
                        template.account_code,
                        priority=template.priority,
                        match_kind=template.match_kind,
                        name=template.name,
                    )
                )
        self.cache.invalidate(company_id)
        logger.info("Seeded %d standard rules for company %s", len(created), company_id)
        return created
