"""Classification commands."""

import click

from ledgerkit.domain.classification import ClassificationService
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.period import PeriodService
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.cli.period_resolution import resolve_period_or_exit


@click.command("classify")
@click.argument("company_id", type=int)
@click.argument("period")
@click.pass_context
def classify_period(ctx, company_id: int, period: str):
    """Classify a period's transactions with the active rules.

    Manual classifications are kept.

    Examples:
        ledgerkit classify 1 FY2024
    """
    db = ctx.obj["db"]
    service = ClassificationService(db)
    period_id = resolve_period_or_exit(ctx, PeriodService(db), company_id, period)

    try:
        batch = service.classify_all(company_id, period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    summary = service.get_classification_summary(company_id, period_id)
    click.echo(f"Processed {batch.processed} transactions: {batch.classified} classified, {batch.unclassified} unclassified")
    for failure in batch.failures:
        click.echo(f"  ✗ Transaction {failure.transaction_id}: {failure.reason}")
    click.echo(f"Period classification: {summary.classified}/{summary.total} ({summary.percentage:.1f}%)")

    if summary.unclassified:
        click.echo("\nStill unclassified (use 'ledgerkit correct'):")
        pending = TransactionService(db, account_service=service.account_service).list_transactions(
            company_id, period_id=period_id, unclassified_only=True
        )
        for classified in pending:
            txn = classified.transaction
            click.echo(f"  ID: {txn.id:5d} | {txn.date} | {txn.description}")
    if batch.failed:
        ctx.exit(1)


@click.command("correct")
@click.argument("transaction_id", type=int)
@click.argument("account_code")
@click.option("--apply-to-similar", is_flag=True, help="Reclassify other matching transactions too")
@click.option("--no-learn", is_flag=True, help="Only override this transaction, don't create a rule")
@click.pass_context
def correct_transaction(ctx, transaction_id: int, account_code: str, apply_to_similar: bool, no_learn: bool):
    """Correct a transaction's account and learn a rule from it.

    Examples:
        ledgerkit correct 42 8800
        ledgerkit correct 42 8800 --apply-to-similar
    """
    db = ctx.obj["db"]
    service = ClassificationService(db)

    try:
        txn = TransactionService(db, account_service=service.account_service).get_transaction(transaction_id)
        if no_learn:
            service.classify_manually(transaction_id, account_code)
            click.echo(f"Transaction {transaction_id} classified as {account_code}")
            return
        result = service.learn_from_correction(
            txn.description,
            account_code,
            txn.company_id,
            apply_to_similar=apply_to_similar,
            transaction_id=transaction_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Transaction {transaction_id} classified as {account_code}")
    click.echo(f"Rule {result.rule.id}: '{result.rule.pattern}' -> {result.rule.account_code} (priority {result.rule.priority})")
    if result.replaced_rule_id is not None:
        click.echo(f"Outranks rule {result.replaced_rule_id}")
    if apply_to_similar:
        click.echo(f"Reclassified {len(result.reclassified_transaction_ids)} similar transactions")


@click.command("similar")
@click.argument("company_id", type=int)
@click.argument("pattern")
@click.option("--period", help="Period name or ID")
@click.pass_context
def similar_transactions(ctx, company_id: int, pattern: str, period: str | None):
    """Show unclassified transactions containing PATTERN."""
    db = ctx.obj["db"]
    service = ClassificationService(db)

    period_id = None
    if period is not None:
        period_id = resolve_period_or_exit(ctx, PeriodService(db), company_id, period)

    similar = service.find_similar_unclassified(company_id, pattern, period_id=period_id)
    if not similar:
        click.echo("No similar unclassified transactions.")
        return
    for classified in similar:
        txn = classified.transaction
        click.echo(f"ID: {txn.id:5d} | {txn.date} | {txn.description}")


def register_commands(cli):
    """Register classification commands with main CLI."""
    cli.add_command(classify_period)
    cli.add_command(correct_transaction)
    cli.add_command(similar_transactions)
