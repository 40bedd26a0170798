"""Chart-of-accounts commands."""

import click

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError
from ledgerkit.cli.error_handling import handle_domain_error


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@click.argument("company_id", type=int)
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, company_id: int, show_all: bool):
    """List a company's accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(company_id, include_inactive=show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.code:9s} | {acc.name:32s} | {acc.category.value:9s} | {acc.normal_balance.value}{status}"
        )


@account_group.command("add")
@click.argument("company_id", type=int)
@click.argument("code")
@click.argument("name")
@click.pass_context
def add_account(ctx, company_id: int, code: str, name: str):
    """Add an account; category and side follow from the code.

    Examples:
        ledgerkit account add 1 8800-001 "Vehicle Insurance"
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        acc = service.get_or_create_account(company_id, code, name)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Account {acc.code} '{acc.name}' ({acc.category.value}, {acc.normal_balance.value}) ready")


@account_group.command("deactivate")
@click.argument("company_id", type=int)
@click.argument("code")
@click.pass_context
def deactivate_account(ctx, company_id: int, code: str):
    """Deactivate an account. Its history is kept."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        service.deactivate_account(company_id, code)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Account {code} deactivated")


@account_group.command("suggest")
@click.argument("company_id", type=int)
@click.argument("description")
@click.pass_context
def suggest_accounts(ctx, company_id: int, description: str):
    """Suggest accounts for a transaction description."""
    db = ctx.obj["db"]
    service = AccountService(db)

    suggestions = service.suggest_accounts(company_id, description)
    if not suggestions:
        click.echo("No suggestions.")
        return
    for suggestion in suggestions:
        click.echo(f"{suggestion.code:9s} | {suggestion.name:32s} | {suggestion.reason}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
