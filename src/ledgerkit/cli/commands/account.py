"""Bank account commands."""

import click

from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("bank_name", metavar="BANK_NAME")
@click.option("--company", "company_id", type=int, required=True, help="Owning company ID")
@click.option("--currency", required=True, help="Account currency (e.g. USD)")
@click.option("--name", "account_name", help="Account name (defaults to the bank name)")
@click.option("--number", "account_number", help="Account number")
@click.pass_context
def create_account(
    ctx,
    bank_name: str,
    company_id: int,
    currency: str,
    account_name: str | None,
    account_number: str | None,
):
    """Create a bank account.

    Examples:
        ledgerkit account create "Chase" --company 1 --currency USD
        ledgerkit account create "Chase" --company 1 --currency USD --name "Operating"
    """
    service = AccountService(ctx.obj["db"])
    try:
        account_id = service.create_bank_account(
            company_id=company_id,
            bank_name=bank_name,
            currency=currency,
            account_name=account_name,
            account_number=account_number,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created bank account '{account_name or bank_name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--company", "company_id", type=int, help="Only accounts of this company")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, company_id: int | None, include_inactive: bool):
    """List bank accounts."""
    service = AccountService(ctx.obj["db"])
    accounts = service.list_accounts(
        company_id=company_id, account_type=AccountType.BANK, include_inactive=include_inactive
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nBank accounts:")
    click.echo("-" * 60)
    for acc in accounts:
        status = "" if acc.is_active else " | inactive"
        click.echo(
            f"ID: {acc.id:3d} | {acc.display_name:20s} | Bank: {acc.bank_name} | {acc.currency}{status}"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename a bank account.

    ACCOUNT can be an account name or ID.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account, AccountType.BANK.value)
    try:
        service.rename_account(account_id, AccountType.BANK, new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{new_name}'")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str) -> None:
    """Hide a bank account from balance reports. Its transactions are kept."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account, AccountType.BANK.value)
    service.set_active(account_id, AccountType.BANK, False)
    click.echo(f"Deactivated account {account_id}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
