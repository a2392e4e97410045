"""Entry cloning: copy a settled or pending entry into a fresh planned one."""

from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    AllocationData,
    CloneOverrides,
    EntryData,
    EntryOrigin,
    EntryStatus,
    InstallmentData,
    JournalEntry,
)
from ledgerkit.domain.errors import (
    InvalidCloneError,
    NotFoundError,
    clone_not_allowed,
    entry_not_found,
)
from ledgerkit.domain.journal_entry import JournalEntryService

CLONEABLE_STATUSES = frozenset({EntryStatus.PAID, EntryStatus.PENDING})


def _pick(override, fallback):
    return fallback if override is None else override


class CloneEntryService:
    """Service for cloning journal entries."""

    def __init__(self, db: Database, entry_service: Optional[JournalEntryService] = None):
        self.db = db
        self.entry_service = entry_service or JournalEntryService(db)

    def clone_entry(self, entry_id: int, overrides: Optional[CloneOverrides] = None) -> JournalEntry:
        """Create a planned copy of an entry.

        The copy has a single planned installment for the full amount and keeps
        the source's allocations. It is never treated as an installment clone.

        Args:
            entry_id: Entry to copy
            overrides: Values taking precedence over the source

        Returns:
            The new entry

        Raises:
            NotFoundError: If the entry doesn't exist
            InvalidCloneError: If the entry is neither paid nor pending
        """
        source = self.db.get_entry(entry_id)
        if source is None:
            raise NotFoundError(entry_not_found(entry_id))
        if source.status not in CLONEABLE_STATUSES:
            raise InvalidCloneError(clone_not_allowed(entry_id, source.status.value))

        overrides = overrides or CloneOverrides()
        movement_date = _pick(overrides.movement_date, source.movement_date)
        due_date = _pick(overrides.due_date, source.due_date)

        data = EntryData(
            entry_type=source.entry_type,
            bank_account_id=_pick(overrides.bank_account_id, source.bank_account_id),
            counter_bank_account_id=_pick(overrides.counter_bank_account_id, source.counter_bank_account_id),
            cost_center_id=_pick(overrides.cost_center_id, source.cost_center_id),
            property_id=_pick(overrides.property_id, source.property_id),
            person_id=_pick(overrides.person_id, source.person_id),
            description_id=source.description_id,
            description_text=source.description_text,
            notes=source.notes,
            reference_code=_pick(overrides.reference_code, source.reference_code),
            origin=EntryOrigin.CLONE,
            clone_of_id=source.id,
            movement_date=movement_date,
            due_date=due_date,
            payment_date=None,
            amount=source.amount,
            currency=source.currency,
            status=EntryStatus.PLANNED,
            installments=(
                InstallmentData(
                    sequence=1,
                    movement_date=movement_date,
                    due_date=due_date or movement_date,
                    principal=source.amount,
                    total=source.amount,
                ),
            ),
            allocations=tuple(AllocationData.from_allocation(a) for a in source.allocations),
            created_by=_pick(overrides.created_by, source.created_by),
            updated_by=_pick(overrides.created_by, source.updated_by),
        )
        return self.entry_service.create_entry(data)
