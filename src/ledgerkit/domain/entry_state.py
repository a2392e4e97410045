"""Entry state engine.

Derives an entry's status from its installments, persists the derived
counters and moves account balances when the entry crosses into or out of
``paid``. Balance changes are idempotent with respect to the snapshot the
caller passes in: running ``sync`` twice with the snapshot returned by the
first run applies nothing the second time.
"""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import EntrySnapshot, EntryStatus, JournalEntry
from ledgerkit.domain.errors import NotFoundError, entry_not_found
from ledgerkit.domain.events import AccountBalancesShouldRefresh, EventBus, default_bus
from ledgerkit.domain.status import (
    BalanceTransition,
    balance_deltas,
    classify_transition,
    derive_entry_status,
    is_past_due,
    latest_payment_date,
    reroute_deltas,
)
from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)


class EntryStateService:
    """Service that keeps entry status and account balances consistent."""

    def __init__(
        self,
        db: Database,
        bus: Optional[EventBus] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize entry state service.

        Args:
            db: Database instance
            bus: Event bus receiving AccountBalancesShouldRefresh
            today: Clock used for overdue escalation (defaults to date.today)
        """
        self.db = db
        self.bus = bus or default_bus
        self.today = today or date.today

    def sync(self, entry_id: int, previous: EntrySnapshot) -> JournalEntry:
        """Recompute an entry's state and apply its balance transition.

        Args:
            entry_id: Entry to synchronize
            previous: Balance-effective status and amount before the caller's write

        Returns:
            The refreshed entry

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        with self.db.transaction():
            entry = self._load(entry_id)
            self._escalate_overdue(entry)
            entry = self._load(entry_id)

            new_status = derive_entry_status(entry.status, [i.status for i in entry.installments])
            paid = [i for i in entry.installments if i.status is EntryStatus.PAID]
            self.db.update_entry_state(
                entry_id,
                status=new_status,
                installments_count=len(entry.installments),
                paid_installments=len(paid),
                payment_date=latest_payment_date(entry.installments),
            )
            entry = self._load(entry_id)

            current = EntrySnapshot.of(entry)
            if previous.is_rerouted(current):
                self._apply(entry.id, "reroute", reroute_deltas(previous, current))
            else:
                transition = classify_transition(previous.status, current.status, previous.amount, current.amount)
                deltas = self._deltas(entry, transition, previous.amount, current.amount)
                self._apply(entry.id, transition.value, deltas)

        self.bus.publish(AccountBalancesShouldRefresh.for_accounts(*entry.account_ids, *previous.account_ids))
        return entry

    def release(self, entry_id: int) -> JournalEntry:
        """Reverse whatever balance effect an entry currently holds.

        Used before soft deletion; the entry's stored status is left untouched.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        with self.db.transaction():
            entry = self._load(entry_id)
            held = EntrySnapshot.of(entry)
            if held.status is EntryStatus.PAID:
                deltas = self._deltas(entry, BalanceTransition.UNSETTLE, held.amount, held.amount)
                self._apply(entry.id, "release", deltas)

        self.bus.publish(AccountBalancesShouldRefresh.for_accounts(*entry.account_ids))
        return entry

    def _load(self, entry_id: int) -> JournalEntry:
        entry = self.db.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def _escalate_overdue(self, entry: JournalEntry) -> None:
        today = self.today()
        for installment in entry.installments:
            if is_past_due(installment, today):
                self.db.update_installment_status(installment.id, EntryStatus.OVERDUE)
                logger.debug("Installment %d of entry %d is overdue", installment.id, entry.id)

    @staticmethod
    def _deltas(
        entry: JournalEntry,
        transition: BalanceTransition,
        original_amount: Decimal,
        current_amount: Decimal,
    ) -> dict[int, Decimal]:
        return balance_deltas(
            entry.entry_type,
            entry.bank_account_id,
            entry.counter_bank_account_id,
            transition,
            original_amount,
            current_amount,
        )

    def _apply(self, entry_id: int, label: str, deltas: dict[int, Decimal]) -> None:
        if not deltas:
            return

        locked = self.db.lock_accounts(deltas.keys())
        for account_id in sorted(deltas):
            if account_id not in locked:
                logger.warning("Account %d vanished; skipping balance change for entry %d", account_id, entry_id)
                continue
            new_balance = self.db.apply_balance_delta(account_id, deltas[account_id])
            logger.info(
                "Entry %d %s: account %d %+.2f -> %.2f",
                entry_id,
                label,
                account_id,
                deltas[account_id],
                new_balance,
            )
