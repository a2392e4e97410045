"""Account management commands."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--currency", default=None, help="ISO currency code (defaults to LEDGERKIT_DEFAULT_CURRENCY or BRL)")
@click.option("--opening-balance", default="0", help="Opening balance (e.g., 1500.00 or 1.500,00)")
@click.option("--opening-date", help="Date of the opening balance")
@click.option("--credit-limit", help="Credit/overdraft limit; alerts fire below its negative")
@click.option("--category", help="Account category (e.g., checking, savings)")
@click.option("--threshold", help="Low balance alert threshold")
@click.pass_context
def create_account(
    ctx,
    name: str,
    currency: str | None,
    opening_balance: str,
    opening_date: str | None,
    credit_limit: str | None,
    category: str | None,
    threshold: str | None,
):
    """Create a new account.

    Examples:
        ledgerkit account create "Itau Checking" --opening-balance 1.500,00
        ledgerkit account create "Credit Card" --credit-limit 5000 --category card
    """
    db = ctx.obj["db"]
    service = AccountService(db, bus=ctx.obj.get("bus"))
    currency = currency or ctx.obj["config"].default_currency

    try:
        account_id = service.create_account(
            name=name,
            currency=currency,
            opening_balance=parse_amount(opening_balance),
            opening_balance_date=parse_date(opening_date) if opening_date else None,
            credit_limit=parse_amount(credit_limit) if credit_limit else None,
            category=category,
            low_balance_threshold=parse_amount(threshold) if threshold else None,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--category", help="Only accounts of this category")
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_accounts(ctx, category: str | None, active_only: bool):
    """List accounts with their current balances."""
    db = ctx.obj["db"]
    service = AccountService(db, bus=ctx.obj.get("bus"))

    accounts = service.list_accounts(category=category, include_inactive=not active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.currency} {acc.current_balance:>14,.2f}"
            f" | {acc.category or '-'}{status}"
        )


@account_group.command("correct")
@click.argument("account", metavar="ACCOUNT")
@click.argument("balance", metavar="BALANCE")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def correct_balance(ctx, account: str, balance: str, yes: bool):
    """Overwrite an account's current balance.

    ACCOUNT can be an account name or ID. Use only to fix balances that
    drifted from reality; entries never move money this way.

    Examples:
        ledgerkit account correct "Itau Checking" 1.234,56
    """
    db = ctx.obj["db"]
    service = AccountService(db, bus=ctx.obj.get("bus"))
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        new_balance = parse_amount(balance)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    account_obj = service.get_account(account_id)
    if not yes and not click.confirm(
        f"Set balance of '{account_obj.name}' from {account_obj.current_balance:,.2f} to {new_balance:,.2f}?"
    ):
        click.echo("Correction cancelled.")
        return

    try:
        updated = service.correct_balance(account_id, new_balance)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Balance of '{updated.name}' is now {updated.currency} {updated.current_balance:,.2f}")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Hide an account from balance summaries."""
    db = ctx.obj["db"]
    service = AccountService(db, bus=ctx.obj.get("bus"))
    account_id = resolve_account_or_exit(ctx, service, account)
    updated = service.set_active(account_id, False)
    click.echo(f"Deactivated account '{updated.name}'")


@account_group.command("activate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def activate_account(ctx, account: str):
    """Show an account in balance summaries again."""
    db = ctx.obj["db"]
    service = AccountService(db, bus=ctx.obj.get("bus"))
    account_id = resolve_account_or_exit(ctx, service, account)
    updated = service.set_active(account_id, True)
    click.echo(f"Activated account '{updated.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
