"""CLI error handling and display helpers."""

from decimal import Decimal

import click

from ledgerkit.domain.entities import AccountBalance, NormalBalance
from ledgerkit.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def format_amount(amount: Decimal) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f}"


def side_label(side: NormalBalance) -> str:
    return "DR" if side is NormalBalance.DEBIT else "CR"


def format_balance(balance: AccountBalance) -> str:
    """Closing balance as magnitude plus side, e.g. '453,307.94 DR'."""
    return f"{format_amount(balance.amount)} {side_label(balance.side)}"
