"""Main CLI entry point."""

import click

from ledgerkit.database.factories import DB_PATH_ENV_VAR, create_sqlite_database
from ledgerkit.logging_config import LOG_LEVEL_ENV_VAR, configure_logging

from ledgerkit.cli.commands import (
    account,
    balances,
    company,
    import_wallet,
    initial_balance,
    transaction,
    wallet,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV_VAR} environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help=f"Log level (overrides {LOG_LEVEL_ENV_VAR}, default WARNING)",
    envvar=LOG_LEVEL_ENV_VAR,
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerkit - Company account balances.

    Track bank accounts and crypto wallets per company, import on-chain
    transactions and report balances for any period.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Only connect when a command runs, not for --help
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


company.register_commands(cli)
account.register_commands(cli)
wallet.register_commands(cli)
initial_balance.register_commands(cli)
transaction.register_commands(cli)
balances.register_commands(cli)
import_wallet.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
