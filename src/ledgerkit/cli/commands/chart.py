"""Initialize the standard chart of accounts and rules."""

import click

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.rules import RuleService
from ledgerkit.cli.error_handling import handle_domain_error


@click.command("init-chart")
@click.argument("company_id", type=int)
@click.option("--no-rules", is_flag=True, help="Only create accounts, skip the standard rules")
@click.pass_context
def init_chart(ctx, company_id: int, no_rules: bool):
    """Create the standard chart of accounts (and rules) for a company.

    Safe to run more than once: existing accounts and rules are kept.

    Examples:
        ledgerkit init-chart 1
        ledgerkit init-chart 1 --no-rules
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    rule_service = RuleService(db, account_service=account_service)

    try:
        accounts = account_service.initialize_chart_of_accounts(company_id)
        click.echo(f"Chart of accounts ready: {len(accounts)} accounts.")
        if not no_rules:
            created = rule_service.initialize_standard_rules(company_id)
            click.echo(f"Standard rules: {len(created)} created.")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register init-chart command with main CLI."""
    cli.add_command(init_chart)
