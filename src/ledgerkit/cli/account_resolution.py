"""CLI helpers for account resolution."""

from __future__ import annotations

import click

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.account_resolver import resolve_account

account_type_option = click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.BANK.value,
    show_default=True,
    help="Whether ACCOUNT is a bank account or a wallet",
)


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int, account_type: str
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account, AccountType(account_type))
    except DomainError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
