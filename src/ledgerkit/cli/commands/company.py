"""Company commands."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError


@click.group()
def company_group():
    """Manage companies."""
    pass


@company_group.command("create")
@click.argument("trading_name", metavar="TRADING_NAME")
@click.option("--legal-name", help="Registered legal name")
@click.option("--logo", help="Logo URL or path")
@click.pass_context
def create_company(ctx, trading_name: str, legal_name: str | None, logo: str | None):
    """Create a company.

    Examples:
        ledgerkit company create "Acme"
        ledgerkit company create "Acme" --legal-name "Acme Holdings Ltd"
    """
    service = AccountService(ctx.obj["db"])
    try:
        company_id = service.create_company(trading_name, legal_name=legal_name, logo=logo)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created company '{trading_name.strip()}' (ID: {company_id})")


@company_group.command("list")
@click.pass_context
def list_companies(ctx):
    """List all companies."""
    companies = AccountService(ctx.obj["db"]).list_companies()
    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\nCompanies:")
    click.echo("-" * 60)
    for company in companies:
        legal = f" | Legal: {company.legal_name}" if company.legal_name else ""
        click.echo(f"ID: {company.id:3d} | {company.trading_name:20s}{legal}")


def register_commands(cli):
    """Register company commands with main CLI."""
    cli.add_command(company_group, name="company")
