"""Utility for resolving period names to IDs."""

from ledgerkit.domain.period import PeriodService


def resolve_period(period_service: PeriodService, company_id: int, period: str | int) -> int:
    """Resolve a period name or ID to a period ID.

    Args:
        period_service: PeriodService instance
        company_id: Company owning the period
        period: Period name (str) or ID (int or string representation of int)

    Returns:
        Period ID

    Raises:
        ValueError: If the period is not found for the company
    """
    try:
        period_id = int(period)
    except (ValueError, TypeError):
        period_id = None

    if period_id is not None:
        found = period_service.get_period(period_id)
        if found is None or found.company_id != company_id:
            raise ValueError(f"Period ID {period_id} not found for company {company_id}")
        return period_id

    for candidate in period_service.list_periods(company_id):
        if candidate.name == period:
            return candidate.id

    raise ValueError(f"Period '{period}' not found for company {company_id}")
