"""Account balance summary command."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.account_balance import AccountBalanceService
from ledgerkit.domain.entities import BalanceFilters, BalanceSummary


def _echo_summary(summary: BalanceSummary) -> None:
    filters = summary.applied_filters
    if filters.category or filters.cost_center_id or filters.account_id:
        applied = ", ".join(f"{k}={v}" for k, v in filters.as_dict().items() if v not in (None, False))
        click.echo(f"Filters: {applied}")

    if not summary.accounts:
        click.echo("No accounts match the filters.")
        return

    click.echo(f"\n{'Account':20s} | {'Current':>14} | {'Pending':>12} | {'Projected':>14} | Last movement")
    click.echo("-" * 90)
    for balance in summary.accounts:
        flag = " !" if balance.alert_active else ""
        click.echo(
            f"{balance.name[:20]:20s} | {balance.current_balance:>14,.2f} | {balance.pending_delta:>12,.2f} | "
            f"{balance.projected_balance:>14,.2f} | {balance.last_movement_date or '-'}{flag}"
        )
    click.echo("-" * 90)
    click.echo(
        f"{'Total':20s} | {summary.total_current:>14,.2f} | {summary.pending_delta:>12,.2f} | "
        f"{summary.total_projected:>14,.2f} | {summary.status}"
    )

    if summary.history.points:
        click.echo("\nHistory:")
        for point in summary.history.points:
            click.echo(f"  {point.date}  {point.balance:>14,.2f}")

    if summary.alerts:
        click.echo("\nAlerts:")
        for alert in summary.alerts:
            click.echo(f"  ! {alert.message}")

    if summary.available_categories:
        click.echo(f"\nCategories: {', '.join(summary.available_categories)}")


@click.group()
def balance_group():
    """Account balances and projections."""
    pass


@balance_group.command("summary")
@click.option("--category", help="Only accounts of this category")
@click.option("--cost-center", type=int, help="Only movements of this cost center")
@click.option("--account", help="Only this account (name or ID)")
@click.option("--include-inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def balance_summary(ctx, category: str | None, cost_center: int | None, account: str | None, include_inactive: bool):
    """Show current and projected balances with recent history and alerts.

    Examples:
        ledgerkit balance summary
        ledgerkit balance summary --category checking
        ledgerkit balance summary --account "Itau Checking"
    """
    db = ctx.obj["db"]
    config = ctx.obj["config"]
    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    service = AccountBalanceService(
        db,
        ttl_seconds=config.balance_cache_ttl_seconds,
        history_days=config.balance_history_days,
    )
    service.subscribe(ctx.obj["bus"])

    filters = BalanceFilters.normalize(
        category=category,
        cost_center_id=cost_center,
        account_id=account_id,
        include_inactive=include_inactive,
    )
    _echo_summary(service.get_summary(filters=filters))


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(balance_group, name="balance")
