"""Ledger façade: the top-level journal entry operations.

Each operation runs inside one database transaction, so a failure anywhere
leaves entries, clones and balances exactly as they were.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    CloneOverrides,
    EntryData,
    EntrySnapshot,
    EntryStatus,
    InstallmentData,
    JournalEntry,
    JournalEntryInstallment,
)
from ledgerkit.domain.entry_cloner import CloneEntryService
from ledgerkit.domain.entry_state import EntryStateService
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    entry_cancelled,
    entry_not_found,
    installment_account_mismatch,
    installment_already_paid,
    installment_not_found,
    paid_entry_cannot_be_cancelled,
)
from ledgerkit.domain.events import AccountBalancesShouldRefresh, EventBus, default_bus
from ledgerkit.domain.installment_clones import InstallmentCloneService
from ledgerkit.domain.journal_entry import JournalEntryService
from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)


class LedgerService:
    """Service exposing the ledger's top-level operations."""

    def __init__(
        self,
        db: Database,
        bus: Optional[EventBus] = None,
        state_service: Optional[EntryStateService] = None,
    ):
        """Initialize ledger service.

        Args:
            db: Database instance
            bus: Event bus receiving AccountBalancesShouldRefresh
            state_service: State engine shared by every collaborator. Built
                from db and bus when omitted.
        """
        self.db = db
        self.bus = bus or default_bus
        self.state_service = state_service or EntryStateService(db, bus=self.bus)
        self.entry_service = JournalEntryService(db, self.state_service)
        self.clone_service = InstallmentCloneService(db, self.entry_service, self.state_service)
        self.cloner = CloneEntryService(db, self.entry_service)

    def get_entry(self, entry_id: int) -> JournalEntry:
        """Get a live entry.

        Raises:
            NotFoundError: If the entry doesn't exist or was deleted
        """
        entry = self.db.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        statuses: Optional[list[EntryStatus]] = None,
        include_plan_parents: bool = False,
    ) -> list[JournalEntry]:
        """List live entries, newest first. Plan parents are hidden by default."""
        return self.db.list_entries(
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            statuses=statuses,
            include_plan_parents=include_plan_parents,
        )

    def record_entry(self, data: EntryData) -> JournalEntry:
        """Create an entry and its installment clones."""
        with self.db.transaction():
            entry = self.entry_service.create_entry(data)
            return self.clone_service.sync(entry.id)

    def revise_entry(self, entry_id: int, data: EntryData) -> JournalEntry:
        """Overwrite an entry and resynchronize its installment clones."""
        with self.db.transaction():
            entry = self.entry_service.update_entry(entry_id, data)
            return self.clone_service.sync(entry.id)

    def pay_installment(
        self,
        installment_id: int,
        payment_date: date,
        penalty: Optional[Decimal] = None,
        interest: Optional[Decimal] = None,
        discount: Optional[Decimal] = None,
    ) -> JournalEntryInstallment:
        """Mark an installment paid and propagate the payment.

        The installment total is left as stored. Paying a plan parent's
        installment pays its linked clone instead; paying an installment clone
        mirrors the payment onto the parent's installment.

        Args:
            installment_id: Installment to pay
            payment_date: Date of payment
            penalty: Penalty charged, if it differs from the stored value
            interest: Interest charged, if it differs from the stored value
            discount: Discount granted, if it differs from the stored value

        Returns:
            The paid installment

        Raises:
            NotFoundError: If the installment or its entry doesn't exist
            ValidationError: If the installment is already paid or the entry is cancelled
        """
        installment = self.db.get_installment(installment_id)
        if installment is None:
            raise NotFoundError(installment_not_found(installment_id))
        entry = self.get_entry(installment.entry_id)

        if installment.status is EntryStatus.PAID:
            raise ValidationError(installment_already_paid(installment_id))
        if entry.status is EntryStatus.CANCELLED:
            raise ValidationError(entry_cancelled(entry.id))

        with self.db.transaction():
            if entry.is_plan_parent:
                clone_installment = self._linked_clone_installment(installment)
                if clone_installment is not None and clone_installment.status is not EntryStatus.PAID:
                    self.pay_installment(clone_installment.id, payment_date, penalty, interest, discount)
                    return self.db.get_installment(installment_id)

            previous = EntrySnapshot.of(entry)
            self.db.record_installment_payment(installment_id, payment_date, penalty, interest, discount)
            entry = self.state_service.sync(entry.id, previous)
            logger.info("Paid installment %d of entry %d on %s", installment_id, entry.id, payment_date)

            if entry.is_plan_parent:
                # No clone to carry the money yet; let the synchronizer build it
                self.clone_service.sync(entry.id)
            elif entry.is_installment_clone:
                self._mirror_onto_parent(entry, installment, payment_date, penalty, interest, discount)

            return self.db.get_installment(installment_id)

    def cancel_entry(self, entry_id: int) -> JournalEntry:
        """Cancel an entry and every installment, then resynchronize clones.

        Raises:
            NotFoundError: If the entry doesn't exist
            ValidationError: If the entry is paid
        """
        entry = self.get_entry(entry_id)
        if entry.status is EntryStatus.PAID:
            raise ValidationError(paid_entry_cannot_be_cancelled(entry_id))

        data = EntryData.from_entry(
            entry,
            status=EntryStatus.CANCELLED,
            installments=tuple(
                InstallmentData.from_installment(i, status=EntryStatus.CANCELLED) for i in entry.installments
            ),
        )
        with self.db.transaction():
            self.entry_service.update_entry(entry_id, data)
            cancelled = self.clone_service.sync(entry_id)
        logger.info("Cancelled entry %d", entry_id)
        return cancelled

    def clone_entry(self, entry_id: int, overrides: Optional[CloneOverrides] = None) -> JournalEntry:
        """Copy a paid or pending entry into a new planned entry."""
        with self.db.transaction():
            return self.cloner.clone_entry(entry_id, overrides)

    def delete_entry(self, entry_id: int) -> None:
        """Soft delete an entry after reversing its balance effect.

        Installment clones of a plan parent are retired along with it.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        entry = self.get_entry(entry_id)
        with self.db.transaction():
            if entry.is_plan_parent:
                self.clone_service.retire_all(entry.id)
            self.state_service.release(entry.id)
            self.db.soft_delete_entry(entry.id, datetime.now(UTC))
        logger.info("Deleted entry %d", entry_id)
        self.bus.publish(AccountBalancesShouldRefresh.for_accounts(*entry.account_ids))

    def confirm_statement_match(
        self, installment_id: int, account_id: int, payment_date: date
    ) -> JournalEntryInstallment:
        """Confirm that a bank statement line settles an installment.

        Args:
            installment_id: Matched installment
            account_id: Account of the bank statement
            payment_date: Date of the statement line

        Returns:
            The installment, paid

        Raises:
            NotFoundError: If the installment or its entry doesn't exist
            ValidationError: If the installment's entry belongs to another account
        """
        installment = self.db.get_installment(installment_id)
        if installment is None:
            raise NotFoundError(installment_not_found(installment_id))
        entry = self.get_entry(installment.entry_id)
        if entry.bank_account_id != account_id:
            raise ValidationError(installment_account_mismatch(installment_id, account_id))

        if installment.status is EntryStatus.PAID:
            return installment
        return self.pay_installment(installment_id, payment_date)

    def _linked_clone_installment(self, installment: JournalEntryInstallment) -> Optional[JournalEntryInstallment]:
        if installment.linked_clone_entry_id is None:
            return None
        clone = self.db.get_entry(installment.linked_clone_entry_id)
        if clone is None or not clone.installments:
            return None
        return clone.installments[0]

    def _mirror_onto_parent(
        self,
        clone: JournalEntry,
        installment: JournalEntryInstallment,
        payment_date: date,
        penalty: Optional[Decimal],
        interest: Optional[Decimal],
        discount: Optional[Decimal],
    ) -> None:
        parent = self.db.get_entry(clone.clone_of_id)
        if parent is None:
            return

        mirrored = next(
            (i for i in parent.installments if i.linked_clone_entry_id == clone.id),
            None,
        )
        if mirrored is None:
            mirrored = next(
                (i for i in parent.installments if i.id == installment.source_installment_id),
                None,
            )
        if mirrored is None or mirrored.status is EntryStatus.PAID:
            return

        previous = EntrySnapshot.of(parent)
        self.db.record_installment_payment(mirrored.id, payment_date, penalty, interest, discount)
        self.state_service.sync(parent.id, previous)
