"""Chart-of-accounts taxonomy and the standard account and rule sets.

The code-range table is configuration: it is loaded once into a
``ChartTaxonomy`` and injected into the account registry. Codes are four
digits, optionally followed by a three-digit sub-account suffix
(``8800`` or ``8800-001``); the leading four digits pick the range.
"""

import re
from typing import Iterable, Optional

from ledgerkit.domain.entities import (
    AccountCategory,
    CodeRange,
    MatchKind,
    NormalBalance,
    StandardAccount,
    StandardRule,
)
from ledgerkit.domain.errors import ValidationError, invalid_account_code


BANK_ACCOUNT_CODE = "1100"
OPENING_BALANCE_EQUITY_CODE = "3100"
OPENING_BALANCE_MARKER = "BALANCE BROUGHT FORWARD"

ACCOUNT_CODE_PATTERN = re.compile(r"^(\d{4})(?:-(\d{3}))?$")

DEFAULT_CODE_RANGES: tuple[CodeRange, ...] = (
    CodeRange(1000, 1999, AccountCategory.ASSET, NormalBalance.DEBIT, "Assets"),
    CodeRange(2000, 2999, AccountCategory.LIABILITY, NormalBalance.CREDIT, "Liabilities"),
    CodeRange(3000, 3999, AccountCategory.EQUITY, NormalBalance.CREDIT, "Equity"),
    CodeRange(4000, 6999, AccountCategory.REVENUE, NormalBalance.CREDIT, "Revenue"),
    CodeRange(7000, 9999, AccountCategory.EXPENSE, NormalBalance.DEBIT, "Expenses"),
)

# (code, name, description)
STANDARD_ACCOUNTS: tuple[StandardAccount, ...] = (
    # Assets
    StandardAccount("1000", "Petty Cash", "Cash on hand for small expenses"),
    StandardAccount("1100", "Bank - Current Account", "Primary business current account"),
    StandardAccount("1101", "Bank - Savings Account", "Business savings account"),
    StandardAccount("1200", "Accounts Receivable", "Money owed by customers"),
    StandardAccount("1300", "Inventory", "Stock and inventory items"),
    StandardAccount("1400", "Prepaid Expenses", "Expenses paid in advance"),
    StandardAccount("1500", "VAT Input", "VAT paid on purchases"),
    StandardAccount("1600", "Loans to Directors", "Money lent to directors"),
    # Liabilities
    StandardAccount("2000", "Accounts Payable", "Money owed to suppliers"),
    StandardAccount("2100", "VAT Output", "VAT collected on sales"),
    StandardAccount("2200", "PAYE Payable", "Employee tax withheld"),
    StandardAccount("2300", "Accrued Expenses", "Expenses incurred but not yet paid"),
    StandardAccount("2500", "Long-term Loans", "Long-term debt obligations"),
    StandardAccount("2600", "Loans from Directors", "Money lent to the company by directors"),
    # Equity
    StandardAccount("3000", "Share Capital", "Issued share capital"),
    StandardAccount("3100", "Opening Balance Equity", "Balances brought forward from prior periods"),
    StandardAccount("3200", "Retained Earnings", "Accumulated profits"),
    StandardAccount("3300", "Director's Drawings", "Personal withdrawals by directors"),
    # Revenue
    StandardAccount("4000", "Sales Revenue", "Revenue from sales"),
    StandardAccount("4100", "Service Revenue", "Revenue from services"),
    StandardAccount("4200", "Other Operating Revenue", "Other operating income"),
    StandardAccount("6000", "Interest Income", "Interest earned on deposits"),
    StandardAccount("6100", "Other Income", "Non-operating income"),
    # Expenses
    StandardAccount("7000", "Cost of Goods Sold", "Direct costs of products sold"),
    StandardAccount("8100", "Employee Costs", "Salaries, wages and benefits"),
    StandardAccount("8200", "Rent Expense", "Office and facility rent"),
    StandardAccount("8300", "Utilities", "Electricity, water, gas"),
    StandardAccount("8400", "Communication", "Telephone, internet, postage"),
    StandardAccount("8500", "Motor Vehicle Expenses", "Vehicle running costs"),
    StandardAccount("8600", "Travel & Entertainment", "Business travel and fuel"),
    StandardAccount("8700", "Professional Services", "Legal, accounting, consulting"),
    StandardAccount("8800", "Insurance", "Business insurance premiums"),
    StandardAccount("8900", "Repairs & Maintenance", "Equipment and facility maintenance"),
    StandardAccount("9000", "Office Supplies", "Stationery and office materials"),
    StandardAccount("9100", "Computer Expenses", "Software licenses and IT costs"),
    StandardAccount("9500", "Interest Expense", "Interest on loans and overdrafts"),
    StandardAccount("9600", "Bank Charges", "Bank fees and transaction costs"),
    StandardAccount("9900", "Other Expenses", "Expenses that fit no other account"),
)

# Higher priority is checked first.
STANDARD_RULES: tuple[StandardRule, ...] = (
    StandardRule("Balance Brought Forward", OPENING_BALANCE_MARKER, OPENING_BALANCE_EQUITY_CODE, 100),
    StandardRule("Excess Interest", "EXCESS INTEREST", "9500", 9),
    StandardRule("Salaries", "SALARIES", "8100", 9),
    StandardRule("Wages", "WAGES", "8100", 9),
    StandardRule("Insurance", "INSURANCE", "8800", 8),
    StandardRule("Rent", r"\bRENT(AL)?\b", "8200", 8, MatchKind.REGEX),
    StandardRule("Electricity", "ELECTRICITY", "8300", 8),
    StandardRule("Municipal", "MUNICIPAL", "8300", 8),
    StandardRule("Telephone", "TELEPHONE", "8400", 8),
    StandardRule("Internet", "INTERNET", "8400", 8),
    StandardRule("Fuel", "FUEL", "8600", 8),
    StandardRule("Interest Earned", "INTEREST EARNED", "6000", 8),
    StandardRule("Service Fee", r"\bFEES?\b", "9600", 5, MatchKind.REGEX),
    StandardRule("Bank Charge", "CHARGE", "9600", 5),
)


class ChartTaxonomy:
    """Code-range lookup for categories and normal-balance sides."""

    def __init__(self, ranges: Iterable[CodeRange] = DEFAULT_CODE_RANGES):
        self.ranges = tuple(sorted(ranges, key=lambda r: r.start))
        for previous, current in zip(self.ranges, self.ranges[1:]):
            if current.start <= previous.end:
                raise ValidationError(
                    f"Code ranges {previous.start}-{previous.end} and "
                    f"{current.start}-{current.end} overlap"
                )

    def find_range(self, code: str) -> Optional[CodeRange]:
        """Return the range covering ``code`` or None."""
        match = ACCOUNT_CODE_PATTERN.match(code.strip()) if code else None
        if match is None:
            return None
        number = int(match.group(1))
        for code_range in self.ranges:
            if code_range.covers(number):
                return code_range
        return None

    def resolve(self, code: str) -> CodeRange:
        """Return the range covering ``code``.

        Raises:
            ValidationError: If the code is malformed or outside every range
        """
        code_range = self.find_range(code)
        if code_range is None:
            raise ValidationError(invalid_account_code(code))
        return code_range


def parent_code(code: str) -> Optional[str]:
    """Return the parent code of a sub-account (``8800-001`` -> ``8800``)."""
    match = ACCOUNT_CODE_PATTERN.match(code)
    if match is None or match.group(2) is None:
        return None
    return match.group(1)


def is_opening_balance_description(description: Optional[str]) -> bool:
    """Check whether a description carries the brought-forward marker."""
    return bool(description) and OPENING_BALANCE_MARKER in description.upper()
