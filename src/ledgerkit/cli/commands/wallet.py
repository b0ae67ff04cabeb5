"""Digital wallet commands."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError


@click.group()
def wallet_group():
    """Manage digital wallets."""
    pass


@wallet_group.command("create")
@click.argument("name", metavar="WALLET_NAME")
@click.option("--company", "company_id", type=int, required=True, help="Owning company ID")
@click.option("--currency", required=True, help="Primary currency (e.g. ETH)")
@click.option("--address", help="On-chain wallet address")
@click.option("--blockchain", help="Chain name (ethereum, bsc)")
@click.option(
    "--currencies",
    help="Comma separated currencies held (e.g. ETH,USDT); more than one splits balances per currency",
)
@click.pass_context
def create_wallet(
    ctx,
    name: str,
    company_id: int,
    currency: str,
    address: str | None,
    blockchain: str | None,
    currencies: str | None,
):
    """Create a digital wallet.

    Examples:
        ledgerkit wallet create "Treasury" --company 1 --currency ETH
        ledgerkit wallet create "Treasury" --company 1 --currency ETH \\
            --address 0xabc... --blockchain ethereum --currencies ETH,USDT
    """
    service = AccountService(ctx.obj["db"])
    codes = [c for c in (currencies or "").split(",") if c.strip()]
    try:
        wallet_id = service.create_wallet(
            company_id=company_id,
            wallet_name=name,
            currency=currency,
            wallet_address=address,
            blockchain=blockchain,
            currencies=codes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created wallet '{name}' (ID: {wallet_id})")


@wallet_group.command("list")
@click.option("--company", "company_id", type=int, help="Only wallets of this company")
@click.pass_context
def list_wallets(ctx, company_id: int | None):
    """List digital wallets."""
    service = AccountService(ctx.obj["db"])
    wallets = service.list_accounts(company_id=company_id, account_type=AccountType.WALLET)
    if not wallets:
        click.echo("No wallets found.")
        return

    click.echo("\nWallets:")
    click.echo("-" * 60)
    for wallet in wallets:
        chain = f" | {wallet.blockchain}:{wallet.wallet_address}" if wallet.wallet_address else ""
        click.echo(f"ID: {wallet.id:3d} | {wallet.display_name:20s} | {','.join(wallet.currency_list())}{chain}")


def register_commands(cli):
    """Register wallet commands with main CLI."""
    cli.add_command(wallet_group, name="wallet")
