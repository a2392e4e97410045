"""Tests for JournalEntryService (the entry writer)."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import (
    AllocationData,
    EntryOrigin,
    EntryStatus,
    EntryType,
    InstallmentData,
)
from ledgerkit.domain.errors import (
    CurrencyMismatchError,
    InvalidTransferError,
    NotFoundError,
    ValidationError,
)


def _balance(temp_db, account):
    return temp_db.get_account(account.id).current_balance


class TestCreateEntry:
    """Tests for creating entries."""

    def test_create_planned_expense(self, entry_service, temp_db, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, description_text="Internet"))

        assert entry.status is EntryStatus.PENDING
        assert entry.origin is EntryOrigin.MANUAL
        assert entry.installments_count == 1
        assert entry.paid_installments == 0
        assert entry.installments[0].total == Decimal("100.00")
        assert _balance(temp_db, checking) == Decimal("1000.00")

    def test_create_paid_expense_debits(self, entry_service, temp_db, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, paid=True))

        assert entry.status is EntryStatus.PAID
        assert entry.paid_installments == 1
        assert entry.payment_date == date(2024, 7, 10)
        assert _balance(temp_db, checking) == Decimal("900.00")

    def test_create_paid_revenue_credits(self, entry_service, temp_db, checking, make_entry):
        entry_service.create_entry(make_entry(checking.id, amount="250.00", entry_type=EntryType.REVENUE, paid=True))
        assert _balance(temp_db, checking) == Decimal("1250.00")

    def test_multi_installment_becomes_plan(self, entry_service, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, amount="300.00", installments=3))

        assert entry.origin is EntryOrigin.INSTALLMENT_PLAN
        assert entry.is_plan_parent
        assert entry.installments_count == 3

    def test_past_due_installment_is_overdue(self, entry_service, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, due=date(2024, 6, 1)))

        assert entry.status is EntryStatus.OVERDUE
        assert entry.installments[0].status is EntryStatus.OVERDUE

    def test_allocations_are_stored(self, entry_service, checking, make_entry):
        data = make_entry(
            checking.id,
            allocations=(AllocationData(cost_center_id=3, percentage=Decimal("60")),
                         AllocationData(property_id=9, amount=Decimal("40"))),
        )
        entry = entry_service.create_entry(data)

        assert [(a.cost_center_id, a.property_id) for a in entry.allocations] == [(3, None), (None, 9)]
        assert entry.allocations[0].percentage == Decimal("60")


class TestCreateEntryValidation:
    """Tests for the writer's preconditions."""

    def test_non_positive_amount(self, entry_service, checking, make_entry):
        data = replace(make_entry(checking.id), amount=Decimal("0"))
        with pytest.raises(ValidationError, match="positive"):
            entry_service.create_entry(data)

    def test_unknown_account(self, entry_service, checking, make_entry):
        with pytest.raises(NotFoundError):
            entry_service.create_entry(make_entry(999))

    def test_currency_mismatch(self, entry_service, checking, make_entry):
        with pytest.raises(CurrencyMismatchError, match="BRL"):
            entry_service.create_entry(make_entry(checking.id, currency="USD"))

    def test_malformed_currency(self, entry_service, checking, make_entry):
        with pytest.raises(ValidationError):
            entry_service.create_entry(make_entry(checking.id, currency="brl"))

    def test_no_installments(self, entry_service, checking, make_entry):
        with pytest.raises(ValidationError, match="at least one installment"):
            entry_service.create_entry(replace(make_entry(checking.id), installments=()))

    def test_duplicate_sequences(self, entry_service, checking, make_entry):
        one = InstallmentData(
            sequence=1,
            movement_date=date(2024, 7, 1),
            due_date=date(2024, 7, 1),
            principal=Decimal("50"),
            total=Decimal("50"),
        )
        with pytest.raises(ValidationError, match="unique"):
            entry_service.create_entry(replace(make_entry(checking.id), installments=(one, one)))

    def test_transfer_without_counter_account(self, entry_service, checking, make_entry):
        with pytest.raises(InvalidTransferError):
            entry_service.create_entry(make_entry(checking.id, entry_type=EntryType.TRANSFER))

    def test_transfer_to_same_account(self, entry_service, checking, make_entry):
        data = make_entry(checking.id, entry_type=EntryType.TRANSFER, counter_bank_account_id=checking.id)
        with pytest.raises(InvalidTransferError):
            entry_service.create_entry(data)

    def test_unknown_counter_account(self, entry_service, checking, make_entry):
        data = make_entry(checking.id, entry_type=EntryType.TRANSFER, counter_bank_account_id=999)
        with pytest.raises(NotFoundError):
            entry_service.create_entry(data)

    def test_allocation_needs_target(self, entry_service, checking, make_entry):
        data = make_entry(checking.id, allocations=(AllocationData(percentage=Decimal("10")),))
        with pytest.raises(ValidationError, match="cost center or a property"):
            entry_service.create_entry(data)

    def test_failed_validation_writes_nothing(self, entry_service, temp_db, checking, make_entry):
        with pytest.raises(CurrencyMismatchError):
            entry_service.create_entry(make_entry(checking.id, currency="USD"))
        assert temp_db.list_entries(include_plan_parents=True) == []


class TestUpdateEntry:
    """Tests for updating entries."""

    def test_update_missing_entry(self, entry_service, checking, make_entry):
        with pytest.raises(NotFoundError):
            entry_service.update_entry(999, make_entry(checking.id))

    def test_update_keeps_origin(self, entry_service, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id))
        updated = entry_service.update_entry(entry.id, make_entry(checking.id, origin=EntryOrigin.IMPORTED))
        assert updated.origin is EntryOrigin.MANUAL

    def test_paying_through_update_settles(self, entry_service, temp_db, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id))
        updated = entry_service.update_entry(entry.id, make_entry(checking.id, paid=True))

        assert updated.status is EntryStatus.PAID
        assert _balance(temp_db, checking) == Decimal("900.00")

    def test_paid_amount_change_corrects_balance(self, entry_service, temp_db, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, paid=True))
        entry_service.update_entry(entry.id, make_entry(checking.id, amount="130.00", paid=True))

        assert _balance(temp_db, checking) == Decimal("870.00")

    def test_unpaying_reverses(self, entry_service, temp_db, checking, make_entry):
        entry = entry_service.create_entry(make_entry(checking.id, paid=True))
        entry_service.update_entry(entry.id, make_entry(checking.id))

        assert _balance(temp_db, checking) == Decimal("1000.00")
