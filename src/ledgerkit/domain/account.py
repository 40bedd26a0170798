"""Account registry domain service."""

import logging
import re
from typing import Iterable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.chart import (
    ChartTaxonomy,
    STANDARD_ACCOUNTS,
    parent_code,
)
from ledgerkit.domain.entities import (
    Account as AccountEntity,
    AccountLookup,
    AccountSuggestion,
    CodeRange,
    Found,
    NotFound,
    StandardAccount,
)
from ledgerkit.domain.errors import NotFoundError, ValidationError, account_not_found

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 3
MAX_SUGGESTIONS = 5
DEFAULT_SUGGESTION_CODES = ("9900", "6100", "8100")

WORD_PATTERN = re.compile(r"[A-Z]+")


class AccountService:
    """Service for the chart of accounts of each company."""

    def __init__(self, db: Database, taxonomy: Optional[ChartTaxonomy] = None):
        """Initialize account service.

        Args:
            db: Database instance
            taxonomy: Code-range table; defaults to the standard ranges
        """
        self.db = db
        self.taxonomy = taxonomy or ChartTaxonomy()

    def resolve_category(self, code: str) -> CodeRange:
        """Map an account code to its category and normal-balance side.

        Args:
            code: Account code such as ``8800`` or ``8800-001``

        Returns:
            The code range covering the code

        Raises:
            ValidationError: If the code is malformed or outside every range
        """
        return self.taxonomy.resolve(code)

    def initialize_chart_of_accounts(
        self, company_id: int, accounts: Iterable[StandardAccount] = STANDARD_ACCOUNTS
    ) -> list[AccountEntity]:
        """Create the standard chart for a company.

        Safe to call repeatedly: existing codes are left untouched.

        Args:
            company_id: Company ID
            accounts: Account templates to create

        Returns:
            The stored accounts, in template order
        """
        # Validate every code before writing any of them.
        templates = list(accounts)
        for template in templates:
            self.resolve_category(template.code)

        with self.db.transaction():
            created = [
                self.get_or_create_account(company_id, template.code, template.name)
                for template in templates
            ]
        logger.info("Chart of accounts ready for company %s (%d accounts)", company_id, len(created))
        return created

    def get_or_create_account(self, company_id: int, code: str, name: str) -> AccountEntity:
        """Return the account with this code, creating it if needed.

        Category and normal balance come from the taxonomy. A sub-account
        (``NNNN-NNN``) is linked to its parent when the parent exists.
        Concurrent callers requesting the same new code receive the same row.

        Args:
            company_id: Company ID
            code: Account code
            name: Name used when the account has to be created

        Returns:
            The stored account

        Raises:
            ValidationError: If the code is outside every range or name is empty
            ConcurrencyConflict: If the insert race could not be resolved
        """
        code = code.strip()
        code_range = self.resolve_category(code)
        if not name or not name.strip():
            raise ValidationError("Account name cannot be empty")

        parent_id = None
        parent = parent_code(code)
        if parent is not None:
            parent_account = self.db.get_account_by_code(company_id, parent)
            parent_id = parent_account.id if parent_account is not None else None

        account = self.db.get_or_create_account(
            company_id=company_id,
            code=code,
            name=name.strip(),
            category=code_range.category,
            normal_balance=code_range.normal_balance,
            parent_id=parent_id,
        )
        logger.debug("Account %s ready for company %s (id=%s)", code, company_id, account.id)
        return account

    def find_account(self, company_id: int, code: str) -> AccountLookup:
        """Look up an account by code.

        Returns:
            Found(account) or NotFound(code)
        """
        account = self.db.get_account_by_code(company_id, code.strip())
        if account is None:
            return NotFound(code=code)
        return Found(account=account)

    def require_account(self, company_id: int, code: str) -> AccountEntity:
        """Get account by code, raising when it does not exist.

        Raises:
            NotFoundError: If no account has this code
        """
        lookup = self.find_account(company_id, code)
        if isinstance(lookup, NotFound):
            raise NotFoundError(account_not_found(code, company_id))
        return lookup.account

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID."""
        return self.db.get_account(account_id)

    def list_accounts(self, company_id: int, include_inactive: bool = True) -> list[AccountEntity]:
        """List a company's accounts ordered by code."""
        return self.db.list_accounts(company_id, include_inactive=include_inactive)

    def deactivate_account(self, company_id: int, code: str) -> AccountEntity:
        """Deactivate an account. Accounts are never deleted.

        Historical entries and balances keep referencing the account; it only
        stops being offered as a rule target.

        Raises:
            NotFoundError: If no account has this code
        """
        account = self.require_account(company_id, code)
        self.db.set_account_active(account.id, False)
        logger.info("Deactivated account %s for company %s", code, company_id)
        return self.db.get_account(account.id)

    def suggest_accounts(self, company_id: int, description: str) -> list[AccountSuggestion]:
        """Suggest active accounts for an unclassified description.

        Words of the description are matched against words of account names.
        When nothing matches, a short default list is offered instead.

        Args:
            company_id: Company ID
            description: Transaction description

        Returns:
            At most MAX_SUGGESTIONS suggestions
        """
        keywords = [
            word
            for word in WORD_PATTERN.findall((description or "").upper())
            if len(word) >= MIN_KEYWORD_LENGTH
        ]
        accounts = self.db.list_accounts(company_id, include_inactive=False)

        suggestions: list[AccountSuggestion] = []
        for account in accounts:
            name_words = {w for w in WORD_PATTERN.findall(account.name.upper()) if len(w) >= MIN_KEYWORD_LENGTH}
            matched = next(
                (kw for kw in keywords if any(w.startswith(kw) or kw.startswith(w) for w in name_words)),
                None,
            )
            if matched is not None:
                suggestions.append(AccountSuggestion(account.code, account.name, f"matches '{matched}'"))
            if len(suggestions) >= MAX_SUGGESTIONS:
                return suggestions

        if suggestions:
            return suggestions

        by_code = {account.code: account for account in accounts}
        return [
            AccountSuggestion(code, by_code[code].name, "default")
            for code in DEFAULT_SUGGESTION_CODES
            if code in by_code
        ]
