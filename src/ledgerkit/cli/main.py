"""Main CLI entry point."""

import click
from ledgerkit.config import LedgerConfig
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.events import EventBus
from ledgerkit.logging_config import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import account, balance, entry


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="LEDGERKIT_LOG_LEVEL",
    help="Logging level (defaults to LEDGERKIT_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerkit - journal entries, installments and bank balances.

    Record revenues, expenses and transfers, split them into installments,
    pay them and keep account balances consistent.
    """
    ctx.ensure_object(dict)

    config = LedgerConfig.from_env()
    if db_path is not None:
        config.database_path = db_path
    if log_level is not None:
        config.log_level = log_level.upper()
    setup_logging(level=config.log_level, format_type=config.log_format)
    ctx.obj["config"] = config

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=config.resolved_database_path())
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["bus"] = EventBus()


# Register all commands
account.register_commands(cli)
entry.register_commands(cli)
balance.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
