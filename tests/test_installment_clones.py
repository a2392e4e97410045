"""Tests for installment clone synchronization."""

from decimal import Decimal

from ledgerkit.domain.entities import EntryOrigin, EntryStatus
from ledgerkit.domain.installment_clones import compose_notes, parcel_label


def _clones(temp_db, parent_id):
    return temp_db.list_installment_clones(parent_id)


def _balance(temp_db, account):
    return temp_db.get_account(account.id).current_balance


def test_parcel_label():
    assert parcel_label(2, 3) == "Parcela 2/3"


def test_compose_notes_replaces_previous_label():
    assert compose_notes("Sofa\nParcela 1/4", "Parcela 1/3") == "Sofa\nParcela 1/3"
    assert compose_notes(None, "Parcela 1/2") == "Parcela 1/2"
    assert compose_notes("  ", "Parcela 2/2") == "Parcela 2/2"


class TestExpand:
    """Tests for building clones of a plan parent."""

    def test_one_clone_per_installment(self, ledger, temp_db, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3, notes="Sofa"))

        clones = _clones(temp_db, parent.id)
        assert len(clones) == 3
        assert [c.amount for c in clones] == [Decimal("100.00")] * 3
        assert [c.notes for c in clones] == ["Sofa\nParcela 1/3", "Sofa\nParcela 2/3", "Sofa\nParcela 3/3"]
        assert all(c.origin is EntryOrigin.INSTALLMENT_PLAN and c.clone_of_id == parent.id for c in clones)

        links = {i.sequence: (i.linked_clone_entry_id, i.parcel_label, i.parcel_total) for i in parent.installments}
        assert links == {
            1: (clones[0].id, "Parcela 1/3", 3),
            2: (clones[1].id, "Parcela 2/3", 3),
            3: (clones[2].id, "Parcela 3/3", 3),
        }

    def test_clone_installment_points_back(self, ledger, temp_db, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="200.00", installments=2))
        clone = _clones(temp_db, parent.id)[1]

        installment = clone.installments[0]
        assert installment.source_parent_id == parent.id
        assert installment.source_installment_id == parent.installments[1].id
        assert installment.parcel_number == 2
        assert installment.due_date == parent.installments[1].due_date

    def test_paid_plan_moves_money_once(self, ledger, temp_db, checking, make_entry):
        """The parent never moves balances; its clones do."""
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3, paid=True))

        assert parent.status is EntryStatus.PAID
        assert all(c.status is EntryStatus.PAID for c in _clones(temp_db, parent.id))
        assert _balance(temp_db, checking) == Decimal("700.00")

    def test_listing_hides_plan_parent(self, ledger, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))

        listed = ledger.list_entries()
        assert parent.id not in [e.id for e in listed]
        assert len(listed) == 3
        assert parent.id in [e.id for e in ledger.list_entries(include_plan_parents=True)]


class TestResync:
    """Tests for revising a plan parent."""

    def test_relinks_by_parcel_number(self, ledger, temp_db, checking, make_entry):
        """Replacing installments drops links; clones are found again by parcel."""
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))
        before = [c.id for c in _clones(temp_db, parent.id)]

        revised = ledger.revise_entry(parent.id, make_entry(checking.id, amount="360.00", installments=3))

        clones = _clones(temp_db, parent.id)
        assert [c.id for c in clones] == before
        assert [c.amount for c in clones] == [Decimal("120.00")] * 3
        assert [i.linked_clone_entry_id for i in revised.installments] == before

    def test_shrinking_retires_extra_clones(self, ledger, temp_db, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3, paid=True))
        retired_id = _clones(temp_db, parent.id)[2].id

        ledger.revise_entry(parent.id, make_entry(checking.id, amount="200.00", installments=2, paid=True))

        clones = _clones(temp_db, parent.id)
        assert len(clones) == 2
        assert [c.notes for c in clones] == ["Parcela 1/2", "Parcela 2/2"]
        assert temp_db.get_entry(retired_id) is None
        assert temp_db.get_entry(retired_id, include_deleted=True).deleted_at is not None
        assert _balance(temp_db, checking) == Decimal("800.00")

    def test_collapse_to_single_installment(self, ledger, temp_db, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))

        collapsed = ledger.revise_entry(parent.id, make_entry(checking.id, amount="300.00"))

        assert _clones(temp_db, parent.id) == []
        assert collapsed.origin is EntryOrigin.MANUAL
        assert not collapsed.is_plan_parent
        assert collapsed.installments[0].linked_clone_entry_id is None
        assert collapsed.installments[0].parcel_label is None

    def test_collapse_of_paid_plan_keeps_balance(self, ledger, temp_db, checking, make_entry):
        """Money moves from the clones back onto the now single-installment entry."""
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3, paid=True))

        ledger.revise_entry(parent.id, make_entry(checking.id, amount="300.00", paid=True))

        assert _clones(temp_db, parent.id) == []
        assert _balance(temp_db, checking) == Decimal("700.00")

    def test_sync_of_clone_is_noop(self, ledger, temp_db, checking, make_entry):
        parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))
        clone = _clones(temp_db, parent.id)[0]

        assert ledger.clone_service.sync(clone.id) == clone


def test_retire_releases_paid_clone(ledger, temp_db, checking, make_entry):
    parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3, paid=True))
    clone = _clones(temp_db, parent.id)[0]

    ledger.clone_service.retire(clone)

    assert temp_db.get_entry(clone.id) is None
    assert _balance(temp_db, checking) == Decimal("800.00")


def test_retire_all_keeps_requested(ledger, temp_db, checking, make_entry):
    parent = ledger.record_entry(make_entry(checking.id, amount="300.00", installments=3))
    keep = _clones(temp_db, parent.id)[0].id

    retired = ledger.clone_service.retire_all(parent.id, keep=frozenset({keep}))

    assert retired == 2
    assert [c.id for c in _clones(temp_db, parent.id)] == [keep]
