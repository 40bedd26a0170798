"""Date parsing utilities."""

import calendar
from datetime import date, timedelta
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

YEAR_PATTERN = re.compile(r"^(?:FY)?(\d{4})$", re.IGNORECASE)
MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_date(date_str: str, dayfirst: bool = True) -> date:
    """Parse a date string into a date object.

    Accepts ISO dates ("2024-03-01"), statement formats ("01/03/2024",
    "1 March 2024") and "today" / "yesterday". Slash dates are read day
    first, as bank statements print them.

    Args:
        date_str: Date string
        dayfirst: Read ambiguous numeric dates as day/month

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()
    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)

    try:
        # ISO strings are unambiguous; don't let dayfirst swap them
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date_parser.parse(text, dayfirst=dayfirst).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_period_range(period_str: str, fiscal_start_month: int = 1) -> tuple[date, date]:
    """Get start and end dates for a period label.

    Supported forms:
    - "2024" or "FY2024": twelve months starting in ``fiscal_start_month``
      of that year
    - "2024-03": one calendar month
    - "2024-03-01..2024-05-31": explicit range

    Args:
        period_str: Period label
        fiscal_start_month: First month of a fiscal year (1-12)

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If the label is not recognized
    """
    text = period_str.strip()

    if ".." in text:
        start_str, end_str = text.split("..", 1)
        return parse_date(start_str), parse_date(end_str)

    year_match = YEAR_PATTERN.match(text)
    if year_match:
        start = date(int(year_match.group(1)), fiscal_start_month, 1)
        return start, start + relativedelta(years=1) - timedelta(days=1)

    month_match = MONTH_PATTERN.match(text)
    if month_match:
        year, month = int(month_match.group(1)), int(month_match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month in '{period_str}'")
        return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])

    raise ValueError(
        f"Unknown period: '{period_str}'. Use YYYY, FY<year>, YYYY-MM or START..END"
    )
