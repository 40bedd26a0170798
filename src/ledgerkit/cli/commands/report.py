"""Ledger report commands: balances, trial balance and account statements."""

import click

from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.cli.error_handling import format_amount, format_balance, handle_domain_error, side_label
from ledgerkit.cli.period_resolution import resolve_period_or_exit


@click.command("balance")
@click.argument("account_code")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def show_balance(ctx, account_code: str, company_id: int, period: str):
    """Show opening, movements and closing balance of an account.

    Examples:
        ledgerkit balance 1100 1 FY2024
    """
    db = ctx.obj["db"]
    service = LedgerService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        account = service.account_service.require_account(company_id, account_code)
        balance = service.compute_balance(account.id, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"{balance.account_code} {balance.account_name} ({balance.normal_balance.value})")
    click.echo(f"  Opening:  {format_amount(balance.opening):>16s}")
    click.echo(f"  Debits:   {format_amount(balance.total_debits):>16s}")
    click.echo(f"  Credits:  {format_amount(balance.total_credits):>16s}")
    click.echo(f"  Closing:  {format_balance(balance):>19s}")


@click.command("trial-balance")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def show_trial_balance(ctx, company_id: int, period: str):
    """Show the trial balance of a period."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        trial_balance = service.get_trial_balance(company_id, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not trial_balance.balances:
        click.echo("No posted activity.")
        return

    click.echo(f"\n{'Code':9s} | {'Account':32s} | {'Debit':>14s} | {'Credit':>14s}")
    click.echo("-" * 79)
    for balance in trial_balance.balances:
        debit = format_amount(balance.debit_balance) if balance.debit_balance else ""
        credit = format_amount(balance.credit_balance) if balance.credit_balance else ""
        click.echo(f"{balance.account_code:9s} | {balance.account_name:32s} | {debit:>14s} | {credit:>14s}")
    click.echo("-" * 79)
    click.echo(
        f"{'Total':9s} | {'':32s} | {format_amount(trial_balance.total_debits):>14s} | "
        f"{format_amount(trial_balance.total_credits):>14s}"
    )
    click.echo(
        f"Posted this period: {format_amount(trial_balance.posted_debits)} DR / "
        f"{format_amount(trial_balance.posted_credits)} CR"
    )
    if trial_balance.is_balanced():
        click.echo("Trial balance is balanced.")
    else:
        click.echo("Error: trial balance does not balance", err=True)
        ctx.exit(1)


@click.command("statement")
@click.argument("account_code")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def show_statement(ctx, account_code: str, company_id: int, period: str):
    """Show an account's ledger lines with a running balance."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    try:
        lines = service.get_account_statement(company_id, account_code, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not lines:
        click.echo("No entries for this account in the period.")
        return

    for line in lines:
        debit = format_amount(line.debit) if line.debit else ""
        credit = format_amount(line.credit) if line.credit else ""
        click.echo(
            f"{line.entry_date} | {line.reference:16s} | {debit:>14s} | {credit:>14s} | "
            f"{format_amount(line.balance):>14s} {side_label(line.side)} | {line.description or ''}"
        )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(show_balance)
    cli.add_command(show_trial_balance)
    cli.add_command(show_statement)
