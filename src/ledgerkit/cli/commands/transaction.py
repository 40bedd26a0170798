"""Bank transaction commands."""

import click

from ledgerkit.domain.chart import BANK_ACCOUNT_CODE
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.period import PeriodService
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount, parse_positive_amount
from ledgerkit.utils.date_parser import parse_date
from ledgerkit.cli.error_handling import format_amount, handle_domain_error
from ledgerkit.cli.period_resolution import resolve_period_or_exit


@click.group()
def txn_group():
    """Record and list bank transactions."""
    pass


@txn_group.command("add")
@click.argument("company_id", type=int)
@click.argument("date")
@click.argument("description")
@click.option("--debit", "debit", help="Money out of the bank account")
@click.option("--credit", "credit", help="Money into the bank account")
@click.option("--balance", help="Statement running balance")
@click.option("--period", help="Period name or ID (default: period containing the date)")
@click.option("--bank", default=BANK_ACCOUNT_CODE, show_default=True, help="Bank account code")
@click.pass_context
def add_transaction(
    ctx,
    company_id: int,
    date: str,
    description: str,
    debit: str | None,
    credit: str | None,
    balance: str | None,
    period: str | None,
    bank: str,
):
    """Record one bank statement line.

    Examples:
        ledgerkit txn add 1 2024-03-25 "SALARIES MARCH" --debit 120000
        ledgerkit txn add 1 31/03/2024 "INTEREST RECEIVED" --credit 1,250.00
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    if (debit is None) == (credit is None):
        click.echo("Error: Give exactly one of --debit or --credit", err=True)
        ctx.exit(1)

    period_id = None
    if period is not None:
        period_id = resolve_period_or_exit(ctx, PeriodService(db), company_id, period)

    try:
        txn = service.record_transaction(
            company_id=company_id,
            date=parse_date(date),
            description=description,
            debit_amount=parse_positive_amount(debit) if debit is not None else None,
            credit_amount=parse_positive_amount(credit) if credit is not None else None,
            running_balance=parse_amount(balance) if balance is not None else None,
            period_id=period_id,
            bank_account_code=bank,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Recorded transaction {txn.id}")


@txn_group.command("list")
@click.argument("company_id", type=int)
@click.option("--period", help="Period name or ID")
@click.option("--unclassified", is_flag=True, help="Only show transactions without an account")
@click.pass_context
def list_transactions(ctx, company_id: int, period: str | None, unclassified: bool):
    """List transactions with their classification."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    period_id = None
    if period is not None:
        period_id = resolve_period_or_exit(ctx, service.period_service, company_id, period)

    transactions = service.list_transactions(company_id, period_id=period_id, unclassified_only=unclassified)
    if not transactions:
        click.echo("No transactions found.")
        return

    for classified in transactions:
        txn = classified.transaction
        direction = "IN " if txn.is_money_in else "OUT"
        account = classified.account_code or "-"
        click.echo(
            f"ID: {txn.id:5d} | {txn.date} | {direction} {format_amount(txn.amount):>14s} | "
            f"{account:9s} | {classified.source.value:6s} | {txn.description}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(txn_group, name="txn")
