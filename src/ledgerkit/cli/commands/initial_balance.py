"""Initial balance commands."""

import click

from ledgerkit.cli.account_resolution import account_type_option, resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.initial_balance import InitialBalanceService
from ledgerkit.utils.amount_parser import parse_amount


@click.group()
def initial_balance_group():
    """Manage opening balances of accounts and wallets."""
    pass


@initial_balance_group.command("set")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", metavar="AMOUNT")
@account_type_option
@click.option("--currency", help="Currency of the amount (defaults to the account currency)")
@click.option("--notes", help="Notes")
@click.option("--overwrite", is_flag=True, help="Replace an existing initial balance")
@click.pass_context
def set_initial_balance(
    ctx,
    account: str,
    amount: str,
    account_type: str,
    currency: str | None,
    notes: str | None,
    overwrite: bool,
):
    """Set the initial balance of an account.

    ACCOUNT can be an account name or ID. Negative amounts are allowed.

    Examples:
        ledgerkit initial-balance set "Chase" 1000.00
        ledgerkit initial-balance set 3 2.5 --type wallet --currency ETH --overwrite
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account, account_type)
    try:
        balance = InitialBalanceService(db).set_initial_balance(
            account_id,
            AccountType(account_type),
            parse_amount(amount),
            currency=currency,
            notes=notes,
            overwrite=overwrite,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Initial balance for {account_type} {account_id}: {balance.amount:,.2f} {balance.currency}")


@initial_balance_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@account_type_option
@click.pass_context
def show_initial_balance(ctx, account: str, account_type: str):
    """Show the initial balance of an account."""
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account, account_type)
    balance = InitialBalanceService(db).get_initial_balance(account_id, AccountType(account_type))
    if balance is None:
        click.echo(f"No initial balance for {account_type} {account_id}.")
        return
    click.echo(f"Amount: {balance.amount:,.2f} {balance.currency}")
    if balance.notes:
        click.echo(f"Notes: {balance.notes}")
    if balance.updated_at:
        click.echo(f"Updated: {balance.updated_at:%Y-%m-%d %H:%M}")


@initial_balance_group.command("list")
@click.option("--company", "company_id", type=int, help="Only balances of this company")
@click.pass_context
def list_initial_balances(ctx, company_id: int | None):
    """List all initial balances."""
    balances = InitialBalanceService(ctx.obj["db"]).list_initial_balances(company_id)
    if not balances:
        click.echo("No initial balances found.")
        return

    click.echo("\nInitial balances:")
    click.echo("-" * 60)
    for balance in balances:
        click.echo(
            f"{balance.account_type.value:6s} {balance.account_id:3d} | "
            f"{balance.amount:>15,.2f} {balance.currency}"
        )


@initial_balance_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@account_type_option
@click.pass_context
def delete_initial_balance(ctx, account: str, account_type: str):
    """Delete the initial balance of an account."""
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account, account_type)
    try:
        InitialBalanceService(db).delete_initial_balance(account_id, AccountType(account_type))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted initial balance for {account_type} {account_id}")


def register_commands(cli):
    """Register initial balance commands with main CLI."""
    cli.add_command(initial_balance_group, name="initial-balance")
