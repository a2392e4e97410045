"""Pure status derivation and balance transition rules.

Nothing here touches the database: the entry state service feeds stored
values in and applies what comes out.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ledgerkit.domain.entities import (
    EntrySnapshot,
    EntryStatus,
    EntryType,
    JournalEntryInstallment,
    OPEN_STATUSES,
)


class Derivation(Enum):
    """How an entry's installment statuses were classified."""

    KEPT_CANCELLED = "kept_cancelled"
    NO_INSTALLMENTS = "no_installments"
    ALL_CANCELLED = "all_cancelled"
    ALL_PAID = "all_paid"
    HAS_OVERDUE = "has_overdue"
    # Installments remain open (planned/pending), possibly mixed with paid or
    # cancelled ones, and none is overdue.
    PARTIALLY_OPEN = "partially_open"


DERIVED_STATUS: dict[Derivation, EntryStatus] = {
    Derivation.KEPT_CANCELLED: EntryStatus.CANCELLED,
    Derivation.NO_INSTALLMENTS: EntryStatus.PLANNED,
    Derivation.ALL_CANCELLED: EntryStatus.CANCELLED,
    Derivation.ALL_PAID: EntryStatus.PAID,
    Derivation.HAS_OVERDUE: EntryStatus.OVERDUE,
    Derivation.PARTIALLY_OPEN: EntryStatus.PENDING,
}


def classify_installments(
    stored_status: EntryStatus, installment_statuses: Iterable[EntryStatus]
) -> Derivation:
    """Classify an entry by its stored status and installment statuses.

    Order of the installments is irrelevant.
    """
    if stored_status is EntryStatus.CANCELLED:
        return Derivation.KEPT_CANCELLED

    statuses = list(installment_statuses)
    if not statuses:
        return Derivation.NO_INSTALLMENTS
    if all(s is EntryStatus.CANCELLED for s in statuses):
        return Derivation.ALL_CANCELLED
    if all(s is EntryStatus.PAID for s in statuses):
        return Derivation.ALL_PAID
    if any(s is EntryStatus.OVERDUE for s in statuses):
        return Derivation.HAS_OVERDUE
    return Derivation.PARTIALLY_OPEN


def derive_entry_status(
    stored_status: EntryStatus, installment_statuses: Iterable[EntryStatus]
) -> EntryStatus:
    """Derive an entry's status from its installments."""
    return DERIVED_STATUS[classify_installments(stored_status, installment_statuses)]


def is_past_due(installment: JournalEntryInstallment, today: date) -> bool:
    """True when an open installment's due date has passed."""
    return installment.status in OPEN_STATUSES and installment.due_date < today


def latest_payment_date(installments: Iterable[JournalEntryInstallment]) -> Optional[date]:
    """Latest payment date among paid installments."""
    dates = [
        i.payment_date
        for i in installments
        if i.status is EntryStatus.PAID and i.payment_date is not None
    ]
    return max(dates) if dates else None


class BalanceTransition(Enum):
    """Effect of a status change on account balances."""

    NONE = "none"
    SETTLE = "settle"
    UNSETTLE = "unsettle"
    CORRECT = "correct"


def classify_transition(
    previous_status: EntryStatus,
    new_status: EntryStatus,
    original_amount: Decimal,
    current_amount: Decimal,
) -> BalanceTransition:
    """Decide which balance effect a status change has."""
    if previous_status is new_status:
        if new_status is EntryStatus.PAID and current_amount != original_amount:
            return BalanceTransition.CORRECT
        return BalanceTransition.NONE
    if new_status is EntryStatus.PAID:
        return BalanceTransition.SETTLE
    if previous_status is EntryStatus.PAID:
        return BalanceTransition.UNSETTLE
    return BalanceTransition.NONE


def transition_amount(
    transition: BalanceTransition, original_amount: Decimal, current_amount: Decimal
) -> Decimal:
    """Signed amount moved in the entry's natural direction.

    Reversals use the original amount so a request that changes both the
    status and the amount undoes exactly what was applied before.
    """
    if transition is BalanceTransition.SETTLE:
        return current_amount
    if transition is BalanceTransition.UNSETTLE:
        return -original_amount
    if transition is BalanceTransition.CORRECT:
        return current_amount - original_amount
    return Decimal("0")


def type_multiplier(entry_type: EntryType) -> int:
    """Sign of a revenue/expense entry on its account."""
    if entry_type is EntryType.REVENUE:
        return 1
    if entry_type is EntryType.EXPENSE:
        return -1
    raise ValueError("Transfers move money between two accounts and have no single multiplier")


def balance_deltas(
    entry_type: EntryType,
    bank_account_id: int,
    counter_bank_account_id: Optional[int],
    transition: BalanceTransition,
    original_amount: Decimal,
    current_amount: Decimal,
) -> dict[int, Decimal]:
    """Per-account balance changes for a transition.

    Transfers debit the origin and credit the counter account, so the sum of
    the deltas is always zero for them.
    """
    amount = transition_amount(transition, original_amount, current_amount)
    if amount == 0:
        return {}

    if entry_type.is_transfer:
        deltas = {bank_account_id: -amount}
        if counter_bank_account_id is not None:
            deltas[counter_bank_account_id] = amount
        return deltas

    return {bank_account_id: amount * type_multiplier(entry_type)}


def reroute_deltas(previous: EntrySnapshot, current: EntrySnapshot) -> dict[int, Decimal]:
    """Per-account balance changes when a write changes type or accounts.

    Money a paid entry held is taken back from its previous accounts at the
    original amount, then settled on the current accounts if still paid.
    """
    deltas: dict[int, Decimal] = {}
    moves = []
    if previous.status is EntryStatus.PAID:
        moves.append((previous, BalanceTransition.UNSETTLE))
    if current.status is EntryStatus.PAID:
        moves.append((current, BalanceTransition.SETTLE))

    for snapshot, transition in moves:
        changes = balance_deltas(
            snapshot.entry_type,
            snapshot.bank_account_id,
            snapshot.counter_bank_account_id,
            transition,
            previous.amount,
            current.amount,
        )
        for account_id, delta in changes.items():
            deltas[account_id] = deltas.get(account_id, Decimal("0")) + delta

    return {account_id: delta for account_id, delta in deltas.items() if delta != 0}
