"""Main CLI entry point."""

import click

from ledgerkit.database.factories import create_database, create_sqlite_database
from ledgerkit.utils.logging import LOG_LEVEL_ENV, setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    chart,
    classify,
    journal,
    period,
    report,
    rule,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="LEDGERKIT_DB_URL",
)
@click.option(
    "--log-level",
    help="Log level (DEBUG, INFO, WARNING, ERROR)",
    envvar=LOG_LEVEL_ENV,
)
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, log_level: str | None):
    """Ledgerkit - Bank transaction classification and double-entry ledger.

    Classify bank statement lines into a chart of accounts with learnable
    rules, post them as balanced journal entries and report balances per
    accounting period.
    """
    ctx.ensure_object(dict)

    # Initialize logging and the database only when actually running a
    # command (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            setup_logging(log_level)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--log-level")
        db = create_database(db_url) if db_url else create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
chart.register_commands(cli)
account.register_commands(cli)
rule.register_commands(cli)
period.register_commands(cli)
transaction.register_commands(cli)
classify.register_commands(cli)
journal.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
