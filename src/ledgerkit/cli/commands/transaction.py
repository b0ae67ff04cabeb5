"""Transaction commands."""

from datetime import datetime, time

import click

from ledgerkit.cli.account_resolution import account_type_option, resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType, TransactionStatus
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date, parse_datetime


def _parse_when(value: str) -> datetime:
    """Dates without a time of day start at midnight."""
    if ":" in value:
        return parse_datetime(value)
    return datetime.combine(parse_date(value), time())


@click.group()
def transaction_group():
    """Manage ledger transactions."""
    pass


@transaction_group.command("add")
@click.argument("account", metavar="ACCOUNT")
@account_type_option
@click.option(
    "--date",
    "when",
    required=True,
    help="Transaction date (YYYY-MM-DD, 'YYYY-MM-DD HH:MM' or relative like 'today')",
)
@click.option("--amount", help="Signed net amount (e.g., 123.45 or -123.45)")
@click.option("--in", "incoming", help="Money in")
@click.option("--out", "outgoing", help="Money out")
@click.option("--currency", help="Currency (defaults to the account currency)")
@click.option("--description", help="Transaction description")
@click.option("--reference", help="Reference")
@click.option("--category", help="Category")
@click.option("--pending", is_flag=True, help="Record as pending instead of cleared")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    account_type: str,
    when: str,
    amount: str | None,
    incoming: str | None,
    outgoing: str | None,
    currency: str | None,
    description: str | None,
    reference: str | None,
    category: str | None,
    pending: bool,
):
    """Record a transaction manually.

    Give either --amount or --in/--out.

    Examples:
        ledgerkit transaction add "Chase" --date 2024-01-15 --amount -50.00 --description "Rent"
        ledgerkit transaction add 2 --type wallet --date today --in 0.5 --currency ETH
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account, account_type)
    try:
        transaction_id = TransactionService(db).record_transaction(
            account_id,
            AccountType(account_type),
            _parse_when(when),
            net_amount=parse_amount(amount) if amount is not None else None,
            incoming_amount=parse_amount(incoming) if incoming is not None else None,
            outgoing_amount=parse_amount(outgoing) if outgoing is not None else None,
            currency=currency,
            status=TransactionStatus.PENDING if pending else TransactionStatus.CLEARED,
            category=category,
            description=description,
            reference=reference,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    txn = TransactionService(db).get_transaction(transaction_id)
    click.echo(f"Created transaction {transaction_id}")
    click.echo(f"  Date: {txn.date:%Y-%m-%d %H:%M}")
    click.echo(f"  Amount: {txn.net_amount:,.2f} {txn.currency}")
    if description:
        click.echo(f"  Description: {description}")


@transaction_group.command("list")
@click.option("--account", help="Account name or ID")
@account_type_option
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'this month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--include-deleted", is_flag=True, help="Show deleted transactions too")
@click.pass_context
def list_transactions(
    ctx,
    account: str | None,
    account_type: str,
    start_date: str | None,
    end_date: str | None,
    include_deleted: bool,
):
    """List transactions, oldest first."""
    db = ctx.obj["db"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account, account_type)

    try:
        start = datetime.combine(parse_date(start_date), time()) if start_date else None
        end = datetime.combine(parse_date(end_date), time.max) if end_date else None
    except DomainError as e:
        handle_domain_error(ctx, e)

    transactions = TransactionService(db).list_transactions(
        account_id=account_id,
        account_type=AccountType(account_type) if account_id is not None else None,
        start=start,
        end=end,
        include_deleted=include_deleted,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        flag = " [deleted]" if txn.is_deleted else ""
        click.echo(
            f"{txn.id:5d} | {txn.date:%Y-%m-%d} | {txn.account_type.value:6s} {txn.account_id:3d} | "
            f"{txn.net_amount:>15,.2f} {txn.currency:5s} | {txn.status.value:9s} | "
            f"{txn.description or ''}{flag}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool):
    """Delete a transaction. The row is kept but no longer counted."""
    service = TransactionService(ctx.obj["db"])
    if not yes and not click.confirm(f"Delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
