"""Accounting period commands."""

import click

from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.period import PeriodService
from ledgerkit.utils.date_parser import parse_period_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.cli.period_resolution import resolve_period_or_exit


@click.group()
def period_group():
    """Manage accounting periods."""
    pass


@period_group.command("create")
@click.argument("company_id", type=int)
@click.argument("name")
@click.argument("date_range")
@click.option("--fiscal-start", type=click.IntRange(1, 12), default=1, show_default=True, help="First month of a fiscal year")
@click.pass_context
def create_period(ctx, company_id: int, name: str, date_range: str, fiscal_start: int):
    """Create a period from a label or an explicit range.

    DATE_RANGE may be a year (2024, FY2024), a month (2024-03) or
    START..END.

    Examples:
        ledgerkit period create 1 FY2024 FY2024 --fiscal-start 3
        ledgerkit period create 1 "March 2024" 2024-03
        ledgerkit period create 1 Q1 2024-01-01..2024-03-31
    """
    db = ctx.obj["db"]
    service = PeriodService(db)

    try:
        start_date, end_date = parse_period_range(date_range, fiscal_start_month=fiscal_start)
        period = service.create_period(company_id, name, start_date, end_date)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created period {period.id} '{period.name}' ({period.start_date} to {period.end_date})")


@period_group.command("list")
@click.argument("company_id", type=int)
@click.pass_context
def list_periods(ctx, company_id: int):
    """List a company's periods."""
    db = ctx.obj["db"]
    service = PeriodService(db)

    periods = service.list_periods(company_id)
    if not periods:
        click.echo("No periods found.")
        return

    for period in periods:
        click.echo(
            f"ID: {period.id:4d} | {period.name:16s} | {period.start_date} to {period.end_date} | {period.status.value}"
        )


@period_group.command("approve")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def approve_period(ctx, company_id: int, period: str):
    """Approve a processed period. Its entries are locked until unlocked."""
    db = ctx.obj["db"]
    service = PeriodService(db)
    period_id = resolve_period_or_exit(ctx, service, company_id, period)

    try:
        approved = service.approve(period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Period '{approved.name}' approved")


@period_group.command("unlock")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def unlock_period(ctx, company_id: int, period: str):
    """Unlock an approved period so it can be reprocessed."""
    db = ctx.obj["db"]
    service = PeriodService(db)
    period_id = resolve_period_or_exit(ctx, service, company_id, period)

    try:
        unlocked = service.unlock(period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Period '{unlocked.name}' unlocked ({unlocked.status.value})")


def register_commands(cli):
    """Register period commands with main CLI."""
    cli.add_command(period_group, name="period")
