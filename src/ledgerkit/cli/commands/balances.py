"""Balance report command."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.balance import (
    AccountTypeFilter,
    BalanceFilters,
    GroupBy,
    SortDirection,
    SortField,
    ViewFilter,
    group_balances,
    validate_balance_data,
)
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.export import export_csv, to_json
from ledgerkit.domain.report import BalanceReportService
from ledgerkit.utils.cache import TTLCache
from ledgerkit.utils.date_parser import parse_date
from ledgerkit.utils.periods import Period


def _choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


def _display_table(result) -> None:
    click.echo(f"{'Account':30s} {'Company':15s} {'Cur':5s} {'Initial':>15s} {'Movement':>15s} {'Balance':>15s}")
    click.echo("-" * 100)
    for item in result:
        company = item.company.trading_name if item.company else "-"
        click.echo(
            f"{item.display_name[:30]:30s} {company[:15]:15s} {item.currency:5s} "
            f"{item.initial_balance:>15,.2f} {item.transaction_balance:>15,.2f} {item.final_balance:>15,.2f}"
        )


@click.command("balances")
@click.option(
    "--period",
    default=Period.ALL_TIME.value,
    show_default=True,
    help="Reporting period (all-time, this-month, last-month, this-year, last-year, today, "
    "yesterday, last-7-days, last-30-days, last-3-months, last-6-months, custom)",
)
@click.option("--start-date", help="Custom period start (YYYY-MM-DD); implies --period custom")
@click.option("--end-date", help="Custom period end (YYYY-MM-DD); implies --period custom")
@click.option("--company", "company_id", type=int, help="Only accounts of this company")
@click.option("--account-type", type=_choice(AccountTypeFilter), default="all", show_default=True)
@click.option("--search", default="", help="Match account, bank, number, currency or company")
@click.option("--hide-zero", is_flag=True, help="Hide balances within 0.01 of zero")
@click.option("--view", type=_choice(ViewFilter), default="all", show_default=True)
@click.option("--sort", "sort_field", type=_choice(SortField), default="final_balance", show_default=True)
@click.option("--direction", type=_choice(SortDirection), default="desc", show_default=True)
@click.option("--group-by", type=_choice(GroupBy), default="none", show_default=True)
@click.option(
    "--format", "output_format", type=click.Choice(["table", "json", "csv"]), default="table", show_default=True
)
@click.option("--validate", is_flag=True, help="Report missing data and stale accounts")
@click.pass_context
def balances(
    ctx,
    period: str,
    start_date: str | None,
    end_date: str | None,
    company_id: int | None,
    account_type: str,
    search: str,
    hide_zero: bool,
    view: str,
    sort_field: str,
    direction: str,
    group_by: str,
    output_format: str,
    validate: bool,
):
    """Show account balances for a period.

    Examples:
        ledgerkit balances
        ledgerkit balances --period last-month --account-type wallets
        ledgerkit balances --start-date 2024-01-01 --end-date 2024-03-31 --format csv
    """
    service = BalanceReportService(ctx.obj["db"], cache=TTLCache())
    filters = BalanceFilters(
        company_id=company_id,
        account_type=AccountTypeFilter(account_type),
        search=search,
        show_zero_balances=not hide_zero,
        view_filter=ViewFilter(view),
        sort_field=SortField(sort_field),
        sort_direction=SortDirection(direction),
    )

    try:
        custom_start = parse_date(start_date) if start_date else None
        custom_end = parse_date(end_date) if end_date else None
        selected = Period.CUSTOM if (custom_start or custom_end) else Period.parse(period)
        if output_format == "json":
            click.echo(to_json(service.get_report(selected, custom_start, custom_end, filters)))
            return
        result = service.compute(selected, custom_start, custom_end, filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if output_format == "csv":
        click.echo(export_csv(result.items), nl=False)
        return

    if not result.items:
        click.echo("No balances found.")
    else:
        for group in group_balances(result.items, GroupBy(group_by)):
            if group_by != GroupBy.NONE.value:
                click.echo(f"\n{group.name} ({group.count}): {group.total:,.2f}")
            _display_table(group.items)

        summary = result.summary
        click.echo("-" * 100)
        click.echo(f"Total assets:      {summary.total_assets:>15,.2f}")
        click.echo(f"Total liabilities: {summary.total_liabilities:>15,.2f}")
        click.echo(f"Net worth:         {summary.net_worth:>15,.2f}")
        click.echo(
            f"Accounts: {summary.account_count} "
            f"({summary.bank_account_count} bank, {summary.wallet_count} wallet)"
        )

    for warning in result.warnings:
        click.echo(f"Warning: {warning.message}", err=True)

    if validate:
        validation = validate_balance_data(result.items, service.clock())
        for error in validation.errors:
            click.echo(f"Invalid: {error.message}", err=True)
        for warning in validation.warnings:
            click.echo(f"Warning: {warning.message}", err=True)
        if validation.valid and not validation.warnings:
            click.echo("Balance data looks complete.")


def register_commands(cli):
    """Register balances command with main CLI."""
    cli.add_command(balances)
