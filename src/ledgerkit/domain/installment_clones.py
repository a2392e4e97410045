"""Installment clone synchronization.

A plan parent (a top-level entry with more than one installment) never holds
money itself. Each of its installments is mirrored by a child entry, the
installment clone, which carries that installment's amount, dates and status
and is the one that moves account balances.
"""

import re
from datetime import datetime, UTC
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    AllocationData,
    EntryData,
    EntryOrigin,
    EntrySnapshot,
    InstallmentData,
    JournalEntry,
    JournalEntryInstallment,
)
from ledgerkit.domain.entry_state import EntryStateService
from ledgerkit.domain.errors import NotFoundError, entry_not_found
from ledgerkit.domain.journal_entry import JournalEntryService
from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)

_PARCEL_LINE = re.compile(r"^Parcela\s+\d+/\d+", re.IGNORECASE)


def parcel_label(number: int, total: int) -> str:
    """Human label of a parcel, e.g. "Parcela 2/3"."""
    return f"Parcela {number}/{total}"


def compose_notes(notes: Optional[str], label: str) -> str:
    """Parent notes with earlier parcel labels stripped and this label appended."""
    lines = [line.strip() for line in (notes or "").splitlines()]
    kept = [line for line in lines if line and not _PARCEL_LINE.match(line)]
    kept.append(label)
    return "\n".join(kept).strip()


class InstallmentCloneService:
    """Service that keeps installment clones in lockstep with their plan parent."""

    def __init__(
        self,
        db: Database,
        entry_service: Optional[JournalEntryService] = None,
        state_service: Optional[EntryStateService] = None,
    ):
        """Initialize installment clone service.

        Args:
            db: Database instance
            entry_service: Writer used for clone creation and updates
            state_service: State engine used for the parent and retired clones
        """
        self.db = db
        self.state_service = state_service or EntryStateService(db)
        self.entry_service = entry_service or JournalEntryService(db, self.state_service)

    def sync(self, entry_id: int) -> Optional[JournalEntry]:
        """Create, update or retire the clones of an entry.

        Entries that are themselves clones are left alone.

        Args:
            entry_id: Entry whose clones should be synchronized

        Returns:
            The refreshed entry

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        entry = self.db.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        if entry.clone_of_id is not None:
            return entry

        with self.db.transaction():
            if len(entry.installments) <= 1:
                return self._collapse(entry)
            return self._expand(entry)

    def retire(self, clone: JournalEntry) -> None:
        """Reverse a clone's balance effect and soft delete it."""
        with self.db.transaction():
            self.state_service.release(clone.id)
            self.db.soft_delete_entry(clone.id, datetime.now(UTC))
        logger.info("Retired clone %d of entry %s", clone.id, clone.clone_of_id)

    def retire_all(self, parent_id: int, keep: frozenset[int] = frozenset()) -> int:
        """Retire every installment clone of a parent except those in keep."""
        retired = 0
        for clone in self.db.list_installment_clones(parent_id):
            if clone.id not in keep:
                self.retire(clone)
                retired += 1
        return retired

    def _collapse(self, entry: JournalEntry) -> JournalEntry:
        previous = EntrySnapshot.of(entry)
        self.retire_all(entry.id)

        for installment in entry.installments:
            if installment.linked_clone_entry_id is not None or installment.parcel_label is not None:
                self.db.update_installment_link(installment.id, None, None, None)

        if entry.origin is EntryOrigin.INSTALLMENT_PLAN:
            self.db.update_entry_origin(entry.id, EntryOrigin.MANUAL)

        return self.state_service.sync(entry.id, previous)

    def _expand(self, entry: JournalEntry) -> JournalEntry:
        previous = EntrySnapshot.of(entry)
        if entry.origin is not EntryOrigin.INSTALLMENT_PLAN:
            self.db.update_entry_origin(entry.id, EntryOrigin.INSTALLMENT_PLAN)

        existing = {clone.id: clone for clone in self.db.list_installment_clones(entry.id)}
        by_parcel = {}
        for clone in existing.values():
            for installment in clone.installments:
                if installment.parcel_number is not None:
                    by_parcel.setdefault(installment.parcel_number, clone)

        allocations = tuple(AllocationData.from_allocation(a) for a in entry.allocations)
        total = len(entry.installments)
        active: set[int] = set()

        for installment in sorted(entry.installments, key=lambda i: i.sequence):
            label = parcel_label(installment.sequence, total)
            data = self._clone_data(entry, installment, label, total, allocations)
            clone = self._resolve_clone(installment, existing, by_parcel, active)

            if clone is None:
                clone = self.entry_service.create_entry(data)
                logger.info("Created clone %d for %s of entry %d", clone.id, label, entry.id)
            else:
                clone = self.entry_service.update_entry(clone.id, data)

            active.add(clone.id)
            self.db.update_installment_link(installment.id, clone.id, label, total)

        for clone_id in existing:
            if clone_id not in active:
                self.retire(existing[clone_id])

        return self.state_service.sync(entry.id, previous)

    @staticmethod
    def _resolve_clone(
        installment: JournalEntryInstallment,
        existing: dict[int, JournalEntry],
        by_parcel: dict[int, JournalEntry],
        claimed: set[int],
    ) -> Optional[JournalEntry]:
        linked = existing.get(installment.linked_clone_entry_id)
        if linked is not None and linked.id not in claimed:
            return linked

        # Link lost (e.g. installments replaced); fall back to the parcel number
        candidate = by_parcel.get(installment.sequence)
        if candidate is not None and candidate.id not in claimed:
            return candidate
        return None

    @staticmethod
    def _clone_data(
        entry: JournalEntry,
        installment: JournalEntryInstallment,
        label: str,
        total: int,
        allocations: tuple[AllocationData, ...],
    ) -> EntryData:
        movement_date = installment.movement_date or entry.movement_date
        return EntryData(
            entry_type=entry.entry_type,
            bank_account_id=entry.bank_account_id,
            counter_bank_account_id=entry.counter_bank_account_id,
            cost_center_id=entry.cost_center_id,
            property_id=entry.property_id,
            person_id=entry.person_id,
            description_id=entry.description_id,
            description_text=entry.description_text,
            notes=compose_notes(entry.notes, label),
            reference_code=entry.reference_code,
            origin=EntryOrigin.INSTALLMENT_PLAN,
            clone_of_id=entry.id,
            movement_date=movement_date,
            due_date=installment.due_date,
            payment_date=installment.payment_date,
            amount=installment.total,
            currency=entry.currency,
            status=installment.status,
            installments=(
                InstallmentData(
                    sequence=1,
                    movement_date=movement_date,
                    due_date=installment.due_date or movement_date,
                    payment_date=installment.payment_date,
                    principal=installment.principal,
                    interest=installment.interest,
                    penalty=installment.penalty,
                    discount=installment.discount,
                    total=installment.total,
                    status=installment.status,
                    parcel_label=label,
                    parcel_total=total,
                    source_parent_id=entry.id,
                    source_installment_id=installment.id,
                    parcel_number=installment.sequence,
                ),
            ),
            allocations=allocations,
            created_by=entry.created_by,
            updated_by=entry.updated_by,
        )
