"""Blockchain wallet import command."""

from datetime import datetime, time

import click

from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.blockchain_import import BlockchainImportService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.reconciliation import BalanceOracle
from ledgerkit.integrations.etherscan import API_KEY_ENV_VAR, EtherscanClient
from ledgerkit.utils.date_parser import parse_date


@click.command("import-wallet")
@click.argument("wallet", metavar="WALLET")
@click.option("--start-date", help="Only import from this date (YYYY-MM-DD or relative)")
@click.option("--end-date", help="Only import up to this date (YYYY-MM-DD or relative)")
@click.option(
    "--currency",
    "currencies",
    multiple=True,
    help="Currency to import; repeat for several (defaults to the wallet's currencies)",
)
@click.option("--limit", type=int, default=5000, show_default=True, help="Maximum transactions per currency")
@click.option("--overwrite", is_flag=True, help="Replace transactions that were already imported")
@click.option("--api-key", envvar=API_KEY_ENV_VAR, help=f"Etherscan API key (defaults to {API_KEY_ENV_VAR})")
@click.pass_context
def import_wallet(
    ctx,
    wallet: str,
    start_date: str | None,
    end_date: str | None,
    currencies: tuple[str, ...],
    limit: int,
    overwrite: bool,
    api_key: str | None,
):
    """Import on-chain transactions of a wallet.

    WALLET can be a wallet name or ID. Nothing is written when any fetch fails.

    Examples:
        ledgerkit import-wallet "Treasury"
        ledgerkit import-wallet 2 --currency ETH --currency USDT --start-date 2024-01-01
    """
    db = ctx.obj["db"]
    wallet_id = resolve_account_or_exit(ctx, AccountService(db), wallet, AccountType.WALLET.value)

    try:
        start = datetime.combine(parse_date(start_date), time()) if start_date else None
        end = datetime.combine(parse_date(end_date), time.max) if end_date else None
    except DomainError as e:
        handle_domain_error(ctx, e)

    with EtherscanClient(api_key=api_key) as client:
        # The fallback retries the same endpoint once
        service = BlockchainImportService(db, client, oracle=BalanceOracle(client, fallback=client))
        result = service.import_wallet(
            wallet_id,
            start_date=start,
            end_date=end,
            currencies=list(currencies) or None,
            limit=limit,
            overwrite_duplicates=overwrite,
        )

    for warning in result["warnings"]:
        click.echo(f"Warning: {warning['message']}", err=True)
    for error in result["errors"]:
        click.echo(f"Error: {error}", err=True)
    if not result["success"]:
        click.echo("Import failed; no transactions were written.", err=True)
        ctx.exit(1)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported_transactions']} transactions")
    click.echo(f"  Skipped: {result['duplicate_transactions']} duplicates")


def register_commands(cli):
    """Register import-wallet command with main CLI."""
    cli.add_command(import_wallet)
