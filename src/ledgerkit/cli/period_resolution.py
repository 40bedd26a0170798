"""CLI helper for period resolution."""

from __future__ import annotations

import click

from ledgerkit.domain.period import PeriodService
from ledgerkit.utils.period_resolver import resolve_period


def resolve_period_or_exit(
    ctx: click.Context, period_service: PeriodService, company_id: int, period: str | int
) -> int:
    """Resolve period name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_period(period_service, company_id, period)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
