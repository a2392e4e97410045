"""Journal entry commands."""

from dataclasses import replace
from datetime import date

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.description import DescriptionResolver
from ledgerkit.domain.entities import (
    CloneOverrides,
    EntryData,
    EntryStatus,
    EntryType,
    JournalEntry,
)
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.installment_plan import InstallmentPlanService
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


def _parse_date_or_exit(ctx: click.Context, value: str, label: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _ledger(ctx: click.Context) -> LedgerService:
    return LedgerService(ctx.obj["db"], bus=ctx.obj.get("bus"))


def _describe(entry: JournalEntry) -> str:
    return entry.description_text or "-"


def _echo_entry(entry: JournalEntry, accounts: AccountService) -> None:
    account = accounts.get_account(entry.bank_account_id)
    click.echo(f"Entry {entry.id} ({entry.entry_type.value}, {entry.status.value})")
    click.echo(f"  Account: {account.name if account else entry.bank_account_id}")
    if entry.counter_bank_account_id is not None:
        counter = accounts.get_account(entry.counter_bank_account_id)
        click.echo(f"  Counter account: {counter.name if counter else entry.counter_bank_account_id}")
    click.echo(f"  Date: {entry.movement_date}")
    click.echo(f"  Amount: {entry.currency} {entry.amount:,.2f}")
    click.echo(f"  Description: {_describe(entry)}")
    if entry.notes:
        click.echo(f"  Notes: {entry.notes}")
    if entry.clone_of_id is not None:
        click.echo(f"  Clone of: {entry.clone_of_id} ({entry.origin.value})")
    click.echo(f"  Installments: {entry.paid_installments}/{entry.installments_count} paid")
    for inst in entry.installments:
        paid = f" paid {inst.payment_date}" if inst.payment_date else ""
        link = f" -> entry {inst.linked_clone_entry_id}" if inst.linked_clone_entry_id else ""
        click.echo(
            f"    #{inst.id:<4d} {inst.sequence:2d}. due {inst.due_date} "
            f"{inst.total:>12,.2f} {inst.status.value}{paid}{link}"
        )


@click.group()
def entry_group():
    """Manage journal entries."""
    pass


@entry_group.command("add")
@click.option(
    "--type",
    "entry_type",
    type=click.Choice([t.value for t in EntryType]),
    required=True,
    help="Entry type",
)
@click.option("--account", required=True, help="Account name or ID")
@click.option("--to-account", help="Counter account name or ID (transfers)")
@click.option("--amount", required=True, help="Entry amount (e.g., 1234.56 or 1.234,56)")
@click.option("--date", "movement_date", default="today", help="Movement date (YYYY-MM-DD or relative like 'today')")
@click.option("--due", help="First due date (defaults to the movement date)")
@click.option("--installments", default=1, type=int, help="Number of monthly installments")
@click.option("--paid", is_flag=True, help="Record the entry as already paid on its due date")
@click.option("--description", help="Description (reused from the catalog when known)")
@click.option("--notes", help="Notes")
@click.option("--reference", help="Reference code")
@click.option("--cost-center", type=int, help="Cost center ID")
@click.option("--currency", default=None, help="ISO currency code (defaults to the account's)")
@click.pass_context
def add_entry(
    ctx,
    entry_type: str,
    account: str,
    to_account: str | None,
    amount: str,
    movement_date: str,
    due: str | None,
    installments: int,
    paid: bool,
    description: str | None,
    notes: str | None,
    reference: str | None,
    cost_center: int | None,
    currency: str | None,
):
    """Record a revenue, expense or transfer.

    Examples:
        ledgerkit entry add --type expense --account 1 --amount 89,90 --description "Internet"
        ledgerkit entry add --type expense --account Itau --amount 3000 --installments 3
        ledgerkit entry add --type transfer --account Itau --to-account Savings --amount 500 --paid
    """
    db = ctx.obj["db"]
    accounts = AccountService(db, bus=ctx.obj.get("bus"))

    account_id = resolve_account_or_exit(ctx, accounts, account)
    counter_id = resolve_account_or_exit(ctx, accounts, to_account) if to_account else None
    moved_on = _parse_date_or_exit(ctx, movement_date, "date")
    first_due = _parse_date_or_exit(ctx, due, "due date") if due else moved_on

    try:
        entry_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        plan = InstallmentPlanService().generate(entry_amount, installments, first_due)
        if paid:
            plan = tuple(
                replace(inst, status=EntryStatus.PAID, payment_date=inst.due_date)
                for inst in plan
            )
        catalog = DescriptionResolver(db).resolve(description)
        data = EntryData(
            entry_type=EntryType(entry_type),
            bank_account_id=account_id,
            counter_bank_account_id=counter_id,
            cost_center_id=cost_center,
            description_id=catalog.id if catalog else None,
            description_text=description.strip() if description else None,
            notes=notes,
            reference_code=reference,
            movement_date=moved_on,
            due_date=first_due,
            amount=entry_amount,
            currency=(currency or accounts.get_account(account_id).currency).upper(),
            installments=plan,
        )
        entry = _ledger(ctx).record_entry(data)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created entry {entry.id} ({entry.status.value})")
    if entry.is_plan_parent:
        click.echo(f"  Split into {entry.installments_count} installments")


@entry_group.command("list")
@click.option("--account", help="Only entries touching this account (name or ID)")
@click.option("--status", help="Status filter: planned, pending, overdue, paid, cancelled, open or settled")
@click.option("--from", "start", help="Start movement date")
@click.option("--to", "end", help="End movement date")
@click.option("--with-plans", is_flag=True, help="Also show installment plan parents")
@click.pass_context
def list_entries(ctx, account: str | None, status: str | None, start: str | None, end: str | None, with_plans: bool):
    """List journal entries, newest first."""
    db = ctx.obj["db"]
    accounts = AccountService(db, bus=ctx.obj.get("bus"))

    account_id = resolve_account_or_exit(ctx, accounts, account) if account else None
    start_date = _parse_date_or_exit(ctx, start, "start date") if start else None
    end_date = _parse_date_or_exit(ctx, end, "end date") if end else None

    try:
        statuses = EntryStatus.filter_values(status) if status else None
    except ValueError as e:
        handle_domain_error(ctx, e)

    entries = _ledger(ctx).list_entries(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        statuses=statuses,
        include_plan_parents=with_plans,
    )
    if not entries:
        click.echo("No entries found.")
        return

    click.echo(f"{'ID':>5} | {'Date':10} | {'Type':8} | {'Status':9} | {'Amount':>12} | Description")
    click.echo("-" * 80)
    for entry in entries:
        click.echo(
            f"{entry.id:>5} | {entry.movement_date} | {entry.entry_type.value:8} | "
            f"{entry.status.value:9} | {entry.amount:>12,.2f} | {_describe(entry)}"
        )


@entry_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show an entry with its installments."""
    try:
        entry = _ledger(ctx).get_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_entry(entry, AccountService(ctx.obj["db"]))


@entry_group.command("pay")
@click.argument("installment_id", type=int)
@click.option("--date", "payment_date", default="today", help="Payment date")
@click.option("--penalty", help="Penalty charged")
@click.option("--interest", help="Interest charged")
@click.option("--discount", help="Discount granted")
@click.pass_context
def pay_installment(
    ctx,
    installment_id: int,
    payment_date: str,
    penalty: str | None,
    interest: str | None,
    discount: str | None,
):
    """Pay an installment (see 'entry show' for installment IDs)."""
    paid_on = _parse_date_or_exit(ctx, payment_date, "payment date")
    try:
        installment = _ledger(ctx).pay_installment(
            installment_id,
            paid_on,
            penalty=parse_amount(penalty) if penalty else None,
            interest=parse_amount(interest) if interest else None,
            discount=parse_amount(discount) if discount else None,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Paid installment {installment.id} of entry {installment.entry_id} on {installment.payment_date}")


@entry_group.command("cancel")
@click.argument("entry_id", type=int)
@click.pass_context
def cancel_entry(ctx, entry_id: int):
    """Cancel an entry that is not paid."""
    try:
        entry = _ledger(ctx).cancel_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled entry {entry.id}")


@entry_group.command("clone")
@click.argument("entry_id", type=int)
@click.option("--date", "movement_date", help="Movement date of the copy")
@click.option("--due", help="Due date of the copy")
@click.option("--account", help="Account of the copy (name or ID)")
@click.option("--reference", help="Reference code of the copy")
@click.pass_context
def clone_entry(ctx, entry_id: int, movement_date: str | None, due: str | None, account: str | None, reference: str | None):
    """Copy a paid or pending entry into a new planned entry."""
    accounts = AccountService(ctx.obj["db"], bus=ctx.obj.get("bus"))
    overrides = CloneOverrides(
        movement_date=_parse_date_or_exit(ctx, movement_date, "date") if movement_date else None,
        due_date=_parse_date_or_exit(ctx, due, "due date") if due else None,
        bank_account_id=resolve_account_or_exit(ctx, accounts, account) if account else None,
        reference_code=reference,
    )
    try:
        copy = _ledger(ctx).clone_entry(entry_id, overrides)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cloned entry {entry_id} into entry {copy.id}")


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool):
    """Delete an entry, reversing any balance it moved."""
    ledger = _ledger(ctx)
    try:
        entry = ledger.get_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete entry {entry.id} ({_describe(entry)})?"):
        click.echo("Deletion cancelled.")
        return

    ledger.delete_entry(entry_id)
    click.echo(f"Deleted entry {entry_id}")


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
