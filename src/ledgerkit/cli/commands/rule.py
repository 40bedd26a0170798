"""Classification rule commands."""

import click

from ledgerkit.domain.entities import MatchKind
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.rules import RuleService
from ledgerkit.cli.error_handling import handle_domain_error


@click.group()
def rule_group():
    """Manage classification rules."""
    pass


@rule_group.command("list")
@click.argument("company_id", type=int)
@click.option("--all", "show_all", is_flag=True, help="Include inactive rules")
@click.pass_context
def list_rules(ctx, company_id: int, show_all: bool):
    """List rules in the order they are applied."""
    db = ctx.obj["db"]
    service = RuleService(db)

    rules = service.list_rules(company_id, include_inactive=show_all)
    if not rules:
        click.echo("No rules found.")
        return

    click.echo("\nRules (first match wins):")
    click.echo("-" * 80)
    for rule in rules:
        status = "" if rule.is_active else " (inactive)"
        click.echo(
            f"ID: {rule.id:4d} | P{rule.priority:<4d} | {rule.match_kind.value:11s} | "
            f"{rule.pattern:28s} -> {rule.account_code:9s} | used {rule.usage_count}{status}"
        )


@rule_group.command("add")
@click.argument("company_id", type=int)
@click.argument("pattern")
@click.argument("account_code")
@click.option("--priority", type=int, default=0, show_default=True, help="Higher is checked first")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in MatchKind], case_sensitive=False),
    default=MatchKind.CONTAINS.value,
    show_default=True,
    help="How the pattern is matched",
)
@click.option("--name", help="Rule name (defaults to the pattern)")
@click.pass_context
def add_rule(ctx, company_id: int, pattern: str, account_code: str, priority: int, kind: str, name: str | None):
    """Add a classification rule.

    Examples:
        ledgerkit rule add 1 INSURANCE 8800 --priority 8
        ledgerkit rule add 1 "^SALARY .*" 8100 --kind REGEX
    """
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        rule = service.create_rule(
            company_id, pattern, account_code, priority=priority, match_kind=MatchKind(kind.upper()), name=name
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created rule {rule.id}: '{rule.pattern}' -> {rule.account_code}")


@rule_group.command("deactivate")
@click.argument("rule_id", type=int)
@click.pass_context
def deactivate_rule(ctx, rule_id: int):
    """Deactivate a rule."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        service.deactivate_rule(rule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Rule {rule_id} deactivated")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
