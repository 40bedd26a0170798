"""Journal entry commands: generation, reprocessing and manual entries."""

from decimal import Decimal

import click

from ledgerkit.domain.entities import EntryOrigin, LineDraft
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.journal import JournalService
from ledgerkit.domain.reprocess import ReprocessingService
from ledgerkit.utils.amount_parser import parse_positive_amount
from ledgerkit.utils.date_parser import parse_date
from ledgerkit.cli.error_handling import format_amount, handle_domain_error
from ledgerkit.cli.period_resolution import resolve_period_or_exit


def _parse_posting(value: str) -> tuple[str, Decimal]:
    """Split a CODE=AMOUNT option value."""
    code, sep, amount = value.partition("=")
    if not sep or not code.strip():
        raise ValueError(f"Expected CODE=AMOUNT, got '{value}'")
    return code.strip(), parse_positive_amount(amount)


@click.command("generate")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def generate_entries(ctx, company_id: int, period: str):
    """Generate journal entries for a period's classified transactions.

    Already posted transactions are skipped, so running it again is safe.

    Examples:
        ledgerkit generate 1 FY2024
    """
    db = ctx.obj["db"]
    service = JournalService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        batch = service.generate_journal_entries(company_id, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"Generated {batch.generated} entries "
        f"({batch.skipped_existing} already posted, {batch.skipped_unclassified} unclassified, {batch.failed} failed)"
    )
    for failure in batch.failures:
        click.echo(f"  ✗ Transaction {failure.transaction_id}: {failure.reason}")
    status = service.period_service.require_period(period_id).status
    click.echo(f"Period status: {status.value}")
    if batch.failed:
        ctx.exit(1)


@click.command("reprocess")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def reprocess_period(ctx, company_id: int, period: str):
    """Clear and regenerate a period's system entries in one step.

    Manual entries and manual classifications are kept. On any failure
    nothing changes.
    """
    db = ctx.obj["db"]
    service = ReprocessingService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        result = service.reprocess_period(company_id, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Deleted {result.deleted_entries} system entries, kept {result.preserved_manual_entries} manual entries")
    click.echo(
        f"Classified {result.classification.classified}/{result.classification.processed}, "
        f"generated {result.generation.generated} entries"
    )


@click.group()
def entry_group():
    """List and add journal entries."""
    pass


@entry_group.command("list")
@click.argument("company_id", type=int)
@click.option("--period", help="Period name or ID")
@click.option(
    "--origin",
    type=click.Choice([origin.value for origin in EntryOrigin], case_sensitive=False),
    help="Only entries of this origin",
)
@click.option("--lines", "show_lines", is_flag=True, help="Show entry lines")
@click.pass_context
def list_entries(ctx, company_id: int, period: str | None, origin: str | None, show_lines: bool):
    """List journal entries by date."""
    db = ctx.obj["db"]
    service = JournalService(db)

    period_id = None
    if period is not None:
        period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    entries = service.list_entries(
        company_id, period_id=period_id, origin=EntryOrigin(origin.upper()) if origin else None
    )
    if not entries:
        click.echo("No journal entries found.")
        return

    codes = {account.id: account.code for account in service.account_service.list_accounts(company_id)}
    for entry in entries:
        click.echo(
            f"{entry.reference:16s} | {entry.entry_date} | {entry.origin.value:6s} | "
            f"{format_amount(entry.total_debits):>14s} | {entry.description}"
        )
        if show_lines:
            for line in entry.lines:
                debit = format_amount(line.debit) if line.debit else ""
                credit = format_amount(line.credit) if line.credit else ""
                click.echo(f"    {codes.get(line.account_id, '?'):9s} {debit:>14s} {credit:>14s}")


@entry_group.command("add")
@click.argument("company_id", type=int)
@click.argument("period")
@click.argument("date")
@click.argument("description")
@click.option("--debit", "debits", multiple=True, help="Debit line as CODE=AMOUNT (repeatable)")
@click.option("--credit", "credits", multiple=True, help="Credit line as CODE=AMOUNT (repeatable)")
@click.option("--reference", help="Entry reference (generated if omitted)")
@click.pass_context
def add_entry(
    ctx,
    company_id: int,
    period: str,
    date: str,
    description: str,
    debits: tuple[str, ...],
    credits: tuple[str, ...],
    reference: str | None,
):
    """Record a manual adjustment entry.

    Examples:
        ledgerkit entry add 1 FY2024 2024-03-31 "Accrual" --debit 9900=500 --credit 4500=500
    """
    db = ctx.obj["db"]
    service = JournalService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        lines = []
        for value in debits:
            code, amount = _parse_posting(value)
            account = service.account_service.require_account(company_id, code)
            lines.append(LineDraft(account_id=account.id, debit_amount=amount))
        for value in credits:
            code, amount = _parse_posting(value)
            account = service.account_service.require_account(company_id, code)
            lines.append(LineDraft(account_id=account.id, credit_amount=amount))

        entry = service.create_manual_entry(
            company_id, period_id, parse_date(date), description, lines, reference=reference
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Recorded entry {entry.reference} ({format_amount(entry.total_debits)})")


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(generate_entries)
    cli.add_command(reprocess_period)
    cli.add_command(entry_group, name="entry")
