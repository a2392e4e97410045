"""Tests for cloning entries."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import AllocationData, CloneOverrides, EntryOrigin, EntryStatus
from ledgerkit.domain.errors import InvalidCloneError, NotFoundError


def test_clone_paid_entry(ledger, temp_db, checking, make_entry):
    source = ledger.record_entry(
        make_entry(
            checking.id,
            paid=True,
            description_text="Internet",
            reference_code="NF-1",
            allocations=(AllocationData(cost_center_id=4, percentage=Decimal("100")),),
        )
    )

    copy = ledger.clone_entry(source.id)

    assert copy.id != source.id
    assert copy.origin is EntryOrigin.CLONE
    assert copy.clone_of_id == source.id
    assert not copy.is_installment_clone
    assert copy.status is EntryStatus.PENDING
    assert copy.payment_date is None
    assert copy.amount == source.amount
    assert copy.description_text == "Internet"
    assert copy.reference_code == "NF-1"
    assert len(copy.installments) == 1
    assert copy.installments[0].total == Decimal("100.00")
    assert [a.cost_center_id for a in copy.allocations] == [4]
    # Only the source moved money
    assert temp_db.get_account(checking.id).current_balance == Decimal("900.00")


def test_clone_with_overrides(ledger, checking, savings, make_entry):
    source = ledger.record_entry(make_entry(checking.id))

    overrides = CloneOverrides(
        movement_date=date(2024, 8, 1),
        due_date=date(2024, 8, 10),
        bank_account_id=savings.id,
        reference_code="NEW",
    )
    copy = ledger.clone_entry(source.id, overrides)

    assert copy.bank_account_id == savings.id
    assert copy.movement_date == date(2024, 8, 1)
    assert copy.due_date == date(2024, 8, 10)
    assert copy.installments[0].due_date == date(2024, 8, 10)
    assert copy.reference_code == "NEW"


def test_clone_of_multi_installment_source_is_single(ledger, checking, make_entry):
    source = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))
    clone_of_parcel = ledger.list_entries()[0]

    copy = ledger.clone_entry(clone_of_parcel.id)

    assert copy.installments_count == 1
    assert copy.amount == Decimal("100.00")
    assert copy.clone_of_id == clone_of_parcel.id
    assert source.id != copy.clone_of_id


def test_clone_refuses_cancelled(ledger, checking, make_entry):
    source = ledger.record_entry(make_entry(checking.id))
    ledger.cancel_entry(source.id)

    with pytest.raises(InvalidCloneError, match="cancelled"):
        ledger.clone_entry(source.id)


def test_clone_refuses_overdue(ledger, checking, make_entry):
    source = ledger.record_entry(make_entry(checking.id, due=date(2024, 6, 1)))
    assert source.status is EntryStatus.OVERDUE

    with pytest.raises(InvalidCloneError):
        ledger.clone_entry(source.id)


def test_clone_missing_entry(ledger):
    with pytest.raises(NotFoundError):
        ledger.clone_entry(999)
