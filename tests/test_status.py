"""Tests for status derivation and balance transition rules."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import EntrySnapshot, EntryStatus, EntryType, JournalEntryInstallment
from ledgerkit.domain.status import (
    BalanceTransition,
    Derivation,
    balance_deltas,
    classify_installments,
    classify_transition,
    derive_entry_status,
    is_past_due,
    latest_payment_date,
    reroute_deltas,
    type_multiplier,
)

P = EntryStatus.PLANNED
PE = EntryStatus.PENDING
O = EntryStatus.OVERDUE
PA = EntryStatus.PAID
C = EntryStatus.CANCELLED


def _installment(status, due=date(2024, 6, 10), paid_on=None):
    return JournalEntryInstallment(
        id=1,
        entry_id=1,
        sequence=1,
        movement_date=due,
        due_date=due,
        payment_date=paid_on,
        principal=Decimal("10"),
        interest=Decimal("0"),
        penalty=Decimal("0"),
        discount=Decimal("0"),
        total=Decimal("10"),
        status=status,
    )


class TestDeriveEntryStatus:
    """Tests for deriving an entry's status from its installments."""

    def test_stored_cancelled_is_kept(self):
        assert derive_entry_status(C, [PA, PA]) is C
        assert classify_installments(C, [P]) is Derivation.KEPT_CANCELLED

    def test_no_installments_is_planned(self):
        assert derive_entry_status(PE, []) is P

    def test_all_cancelled(self):
        assert derive_entry_status(P, [C, C]) is C

    def test_all_paid(self):
        assert derive_entry_status(P, [PA, PA, PA]) is PA

    def test_any_overdue_wins_over_paid(self):
        assert derive_entry_status(P, [PA, O, P]) is O

    @pytest.mark.parametrize("statuses", [[P], [PA, P], [PA, C, PE], [C, P]])
    def test_partially_open_is_pending(self, statuses):
        """Open installments without overdue ones make the entry pending."""
        assert derive_entry_status(P, statuses) is PE

    def test_order_does_not_matter(self):
        assert derive_entry_status(P, [O, PA]) is derive_entry_status(P, [PA, O])


class TestClassifyTransition:
    """Tests for the balance transition matrix."""

    def test_entering_paid_settles(self):
        assert classify_transition(PE, PA, Decimal("10"), Decimal("10")) is BalanceTransition.SETTLE

    def test_leaving_paid_unsettles(self):
        assert classify_transition(PA, C, Decimal("10"), Decimal("10")) is BalanceTransition.UNSETTLE

    def test_paid_amount_change_corrects(self):
        assert classify_transition(PA, PA, Decimal("10"), Decimal("12")) is BalanceTransition.CORRECT

    def test_unchanged_paid_is_none(self):
        assert classify_transition(PA, PA, Decimal("10"), Decimal("10")) is BalanceTransition.NONE

    def test_open_to_open_is_none(self):
        assert classify_transition(P, O, Decimal("10"), Decimal("99")) is BalanceTransition.NONE


class TestBalanceDeltas:
    """Tests for per-account deltas."""

    def test_expense_settle_debits(self):
        deltas = balance_deltas(EntryType.EXPENSE, 1, None, BalanceTransition.SETTLE, Decimal("10"), Decimal("10"))
        assert deltas == {1: Decimal("-10")}

    def test_revenue_unsettle_uses_original_amount(self):
        deltas = balance_deltas(EntryType.REVENUE, 1, None, BalanceTransition.UNSETTLE, Decimal("10"), Decimal("25"))
        assert deltas == {1: Decimal("-10")}

    def test_correct_moves_the_difference(self):
        deltas = balance_deltas(EntryType.EXPENSE, 1, None, BalanceTransition.CORRECT, Decimal("10"), Decimal("15"))
        assert deltas == {1: Decimal("-5")}

    def test_transfer_conserves_money(self):
        deltas = balance_deltas(EntryType.TRANSFER, 1, 2, BalanceTransition.SETTLE, Decimal("40"), Decimal("40"))
        assert deltas == {1: Decimal("-40"), 2: Decimal("40")}
        assert sum(deltas.values()) == 0

    def test_none_transition_is_empty(self):
        assert balance_deltas(EntryType.EXPENSE, 1, None, BalanceTransition.NONE, Decimal("1"), Decimal("1")) == {}

    def test_transfer_has_no_multiplier(self):
        with pytest.raises(ValueError):
            type_multiplier(EntryType.TRANSFER)


def test_is_past_due_only_for_open_installments():
    today = date(2024, 6, 15)
    assert is_past_due(_installment(P, due=date(2024, 6, 14)), today)
    assert not is_past_due(_installment(P, due=date(2024, 6, 15)), today)
    assert not is_past_due(_installment(PA, due=date(2024, 6, 1)), today)
    assert not is_past_due(_installment(O, due=date(2024, 6, 1)), today)


def test_latest_payment_date_ignores_unpaid():
    installments = [
        _installment(PA, paid_on=date(2024, 6, 1)),
        _installment(PA, paid_on=date(2024, 6, 9)),
        _installment(C, paid_on=date(2024, 6, 12)),
    ]
    assert latest_payment_date(installments) == date(2024, 6, 9)
    assert latest_payment_date([_installment(P)]) is None


class TestRerouteDeltas:
    """Tests for balance changes when type or accounts change."""

    def test_paid_revenue_moved_between_accounts(self):
        before = EntrySnapshot(PA, Decimal("100"), EntryType.REVENUE, 1, None)
        after = EntrySnapshot(PA, Decimal("100"), EntryType.REVENUE, 2, None)
        assert reroute_deltas(before, after) == {1: Decimal("-100"), 2: Decimal("100")}

    def test_paid_revenue_turned_expense(self):
        before = EntrySnapshot(PA, Decimal("100"), EntryType.REVENUE, 1, None)
        after = EntrySnapshot(PA, Decimal("100"), EntryType.EXPENSE, 1, None)
        assert reroute_deltas(before, after) == {1: Decimal("-200")}

    def test_reversal_uses_original_amount(self):
        before = EntrySnapshot(PA, Decimal("100"), EntryType.EXPENSE, 1, None)
        after = EntrySnapshot(PE, Decimal("40"), EntryType.EXPENSE, 2, None)
        assert reroute_deltas(before, after) == {1: Decimal("100")}

    def test_unpaid_on_both_sides_moves_nothing(self):
        before = EntrySnapshot(PE, Decimal("100"), EntryType.EXPENSE, 1, None)
        after = EntrySnapshot(P, Decimal("100"), EntryType.REVENUE, 2, None)
        assert reroute_deltas(before, after) == {}

    def test_transfer_redirect_conserves_money(self):
        before = EntrySnapshot(PA, Decimal("50"), EntryType.TRANSFER, 1, 2)
        after = EntrySnapshot(PA, Decimal("50"), EntryType.TRANSFER, 1, 3)
        deltas = reroute_deltas(before, after)
        assert deltas == {2: Decimal("-50"), 3: Decimal("50")}
        assert sum(deltas.values()) == 0
