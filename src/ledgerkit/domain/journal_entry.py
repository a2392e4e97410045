"""Journal entry writer: validates and persists entries with their installments."""

import re
from dataclasses import replace
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    EntryData,
    EntryOrigin,
    EntrySnapshot,
    EntryStatus,
    JournalEntry,
)
from ledgerkit.domain.entry_state import EntryStateService
from ledgerkit.domain.errors import (
    CurrencyMismatchError,
    InvalidTransferError,
    NotFoundError,
    ValidationError,
    account_not_found,
    currency_mismatch,
    entry_not_found,
    non_positive_amount,
    transfer_missing_counter_account,
    transfer_same_account,
)
from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


class JournalEntryService:
    """Service that creates and updates journal entries."""

    def __init__(self, db: Database, state_service: Optional[EntryStateService] = None):
        """Initialize journal entry service.

        Args:
            db: Database instance
            state_service: State engine run after every write. Defaults to one
                bound to the same database.
        """
        self.db = db
        self.state_service = state_service or EntryStateService(db)

    def create_entry(self, data: EntryData) -> JournalEntry:
        """Create an entry with its installments and allocations.

        Args:
            data: Fully-populated entry description

        Returns:
            The stored entry, with derived status and counters

        Raises:
            ValidationError: If the installments, amount, currency or allocations are invalid
            NotFoundError: If the origin or counter account doesn't exist
            CurrencyMismatchError: If the origin account uses another currency
            InvalidTransferError: If a transfer lacks a distinct counter account
        """
        self._validate(data)
        data = self._normalize_origin(data)

        with self.db.transaction():
            entry_id = self.db.create_entry(data)
            self.db.replace_installments(entry_id, data.installments)
            self.db.replace_allocations(entry_id, data.allocations)
            logger.info(
                "Created %s entry %d on account %d (%d installment(s))",
                data.entry_type.value,
                entry_id,
                data.bank_account_id,
                len(data.installments),
            )
            previous = EntrySnapshot(status=EntryStatus.PLANNED, amount=data.amount)
            return self.state_service.sync(entry_id, previous)

    def update_entry(self, entry_id: int, data: EntryData) -> JournalEntry:
        """Overwrite an entry, replacing its installments and allocations wholesale.

        The entry keeps its stored origin and clone_of_id.

        Args:
            entry_id: Entry to update
            data: Fully-populated entry description

        Returns:
            The stored entry, with derived status and counters

        Raises:
            NotFoundError: If the entry or one of its accounts doesn't exist
            ValidationError: If the installments, amount, currency or allocations are invalid
            CurrencyMismatchError: If the origin account uses another currency
            InvalidTransferError: If a transfer lacks a distinct counter account
        """
        existing = self.db.get_entry(entry_id)
        if existing is None:
            raise NotFoundError(entry_not_found(entry_id))

        self._validate(data)
        data = self._normalize_origin(
            replace(data, origin=existing.origin, clone_of_id=existing.clone_of_id)
        )

        with self.db.transaction():
            previous = EntrySnapshot.of(existing)
            self.db.update_entry(entry_id, data)
            self.db.replace_installments(entry_id, data.installments)
            self.db.replace_allocations(entry_id, data.allocations)
            logger.info("Updated entry %d (previous status %s)", entry_id, previous.status.value)
            return self.state_service.sync(entry_id, previous)

    @staticmethod
    def _normalize_origin(data: EntryData) -> EntryData:
        # Top-level multi-installment entries are plan parents from their first write
        if data.clone_of_id is None and len(data.installments) > 1:
            return replace(data, origin=EntryOrigin.INSTALLMENT_PLAN)
        return data

    def _validate(self, data: EntryData) -> None:
        if data.amount <= 0:
            raise ValidationError(non_positive_amount(data.amount))

        if not _CURRENCY_PATTERN.match(data.currency or ""):
            raise ValidationError(f"Invalid currency code '{data.currency}'")

        self._validate_installments(data)
        self._validate_allocations(data)

        account = self.db.get_account(data.bank_account_id)
        if account is None:
            raise NotFoundError(account_not_found(data.bank_account_id))
        if account.currency != data.currency:
            raise CurrencyMismatchError(currency_mismatch(account.id, account.currency, data.currency))

        if data.entry_type.is_transfer:
            if data.counter_bank_account_id is None:
                raise InvalidTransferError(transfer_missing_counter_account())
            if data.counter_bank_account_id == data.bank_account_id:
                raise InvalidTransferError(transfer_same_account(data.bank_account_id))

        if data.counter_bank_account_id is not None:
            if self.db.get_account(data.counter_bank_account_id) is None:
                raise NotFoundError(account_not_found(data.counter_bank_account_id))

    @staticmethod
    def _validate_installments(data: EntryData) -> None:
        if not data.installments:
            raise ValidationError("An entry needs at least one installment")

        sequences = [installment.sequence for installment in data.installments]
        if any(sequence < 1 for sequence in sequences):
            raise ValidationError("Installment sequence numbers must be positive")
        if len(set(sequences)) != len(sequences):
            raise ValidationError("Installment sequence numbers must be unique")

    @staticmethod
    def _validate_allocations(data: EntryData) -> None:
        for allocation in data.allocations:
            if allocation.cost_center_id is None and allocation.property_id is None:
                raise ValidationError("Allocation needs a cost center or a property")
            if allocation.percentage is None and allocation.amount is None:
                raise ValidationError("Allocation needs a percentage or an amount")
            if allocation.percentage is not None and not (0 < allocation.percentage <= 100):
                raise ValidationError(
                    f"Allocation percentage must be in (0, 100], got {allocation.percentage}"
                )
