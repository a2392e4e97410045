"""Abstract database interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Alert,
    AllocationData,
    EntryData,
    EntryOrigin,
    EntryStatus,
    FinancialAccount,
    InstallmentData,
    JournalEntry,
    JournalEntryDescription,
    JournalEntryInstallment,
)


class Database(ABC):
    """Abstract database interface for ledgerkit.

    Write methods commit immediately when called outside ``transaction()``;
    inside it they only flush, and the outermost scope commits or rolls back.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open a (nestable) transaction scope."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        currency: str = "BRL",
        opening_balance: Decimal = Decimal("0"),
        opening_balance_date: Optional[date] = None,
        credit_limit: Optional[Decimal] = None,
        category: Optional[str] = None,
        low_balance_threshold: Optional[Decimal] = None,
        is_active: bool = True,
    ) -> int:
        """Create a new account with current balance = opening balance. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[FinancialAccount]:
        """Get account by exact name."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        category: Optional[str] = None,
        account_ids: Optional[Iterable[int]] = None,
        include_inactive: bool = True,
    ) -> list[FinancialAccount]:
        """List accounts ordered by name, with optional filters."""
        pass

    @abstractmethod
    def list_account_categories(self) -> list[str]:
        """Distinct non-empty account categories, sorted."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def lock_accounts(self, account_ids: Iterable[int]) -> dict[int, FinancialAccount]:
        """Acquire row locks on accounts in ascending id order.

        Missing accounts are absent from the result.
        """
        pass

    @abstractmethod
    def apply_balance_delta(self, account_id: int, delta: Decimal) -> Decimal:
        """Add delta to an account's current balance. Returns the new balance."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite an account's current balance (administrative correction)."""
        pass

    # Journal entry operations
    @abstractmethod
    def create_entry(self, data: EntryData) -> int:
        """Insert an entry row (without installments). Returns entry ID."""
        pass

    @abstractmethod
    def update_entry(self, entry_id: int, data: EntryData) -> None:
        """Overwrite an entry row's fields from data (origin/clone_of included)."""
        pass

    @abstractmethod
    def replace_installments(self, entry_id: int, installments: Sequence[InstallmentData]) -> None:
        """Delete all installments of an entry and insert the given ones."""
        pass

    @abstractmethod
    def replace_allocations(self, entry_id: int, allocations: Sequence[AllocationData]) -> None:
        """Delete all allocations of an entry and insert the given ones."""
        pass

    @abstractmethod
    def get_entry(self, entry_id: int, include_deleted: bool = False) -> Optional[JournalEntry]:
        """Get entry by ID, with installments and allocations."""
        pass

    @abstractmethod
    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        statuses: Optional[Iterable[EntryStatus]] = None,
        include_plan_parents: bool = False,
    ) -> list[JournalEntry]:
        """List live entries; plan parents are excluded unless requested."""
        pass

    @abstractmethod
    def list_installment_clones(self, parent_id: int) -> list[JournalEntry]:
        """Live installment clones (origin installment_plan) of a plan parent."""
        pass

    @abstractmethod
    def update_entry_state(
        self,
        entry_id: int,
        status: EntryStatus,
        installments_count: int,
        paid_installments: int,
        payment_date: Optional[date],
    ) -> None:
        """Persist derived status and counters onto an entry."""
        pass

    @abstractmethod
    def update_entry_origin(self, entry_id: int, origin: EntryOrigin) -> None:
        """Change an entry's origin tag."""
        pass

    @abstractmethod
    def soft_delete_entry(self, entry_id: int, deleted_at: datetime) -> None:
        """Mark an entry as deleted."""
        pass

    # Installment operations
    @abstractmethod
    def get_installment(self, installment_id: int) -> Optional[JournalEntryInstallment]:
        """Get installment by ID."""
        pass

    @abstractmethod
    def update_installment_status(self, installment_id: int, status: EntryStatus) -> None:
        """Set an installment's status."""
        pass

    @abstractmethod
    def record_installment_payment(
        self,
        installment_id: int,
        payment_date: date,
        penalty: Optional[Decimal] = None,
        interest: Optional[Decimal] = None,
        discount: Optional[Decimal] = None,
    ) -> None:
        """Mark an installment paid; None amounts keep their stored values."""
        pass

    @abstractmethod
    def update_installment_link(
        self,
        installment_id: int,
        linked_clone_entry_id: Optional[int],
        parcel_label: Optional[str],
        parcel_total: Optional[int],
    ) -> None:
        """Set the clone linkage columns of a plan parent's installment."""
        pass

    # Balance aggregation queries
    @abstractmethod
    def get_scheduled_totals(
        self, account_ids: Sequence[int], cost_center_id: Optional[int] = None
    ) -> dict[int, dict[str, Decimal]]:
        """Unsettled installment totals per account, as {"incoming", "outgoing"}."""
        pass

    @abstractmethod
    def get_last_movement_dates(
        self, account_ids: Sequence[int], cost_center_id: Optional[int] = None
    ) -> dict[int, date]:
        """Latest payment/due/movement date per account across its entries."""
        pass

    @abstractmethod
    def get_settled_changes(
        self,
        account_ids: Sequence[int],
        start_date: date,
        end_date: date,
        cost_center_id: Optional[int] = None,
    ) -> dict[date, Decimal]:
        """Net settled revenue minus expense per payment date."""
        pass

    @abstractmethod
    def get_account_ids_for_cost_center(self, cost_center_id: int) -> list[int]:
        """Accounts touched by live, non-cancelled entries of a cost center."""
        pass

    # Alert operations
    @abstractmethod
    def get_alerts_by_keys(self, keys: Iterable[str]) -> dict[str, Alert]:
        """Get alerts by key."""
        pass

    @abstractmethod
    def upsert_alert(self, key: str, values: dict[str, Any]) -> int:
        """Create or overwrite the alert with this key. Returns alert ID."""
        pass

    @abstractmethod
    def resolve_alerts(
        self,
        category: str,
        resource_ids: Iterable[int],
        keep_keys: Iterable[str],
        resolved_at: datetime,
    ) -> int:
        """Resolve open alerts of a category for resources, except keep_keys.

        Returns the number of alerts resolved.
        """
        pass

    @abstractmethod
    def list_alerts(self, category: Optional[str] = None, active_only: bool = False) -> list[Alert]:
        """List alerts, optionally only unresolved ones."""
        pass

    # Description catalog operations
    @abstractmethod
    def get_description_by_text(self, text: str) -> Optional[JournalEntryDescription]:
        """Get catalog description by normalized text."""
        pass

    @abstractmethod
    def create_description(self, text: str, used_at: datetime) -> int:
        """Create a catalog description with usage 1. Returns ID."""
        pass

    @abstractmethod
    def touch_description(self, description_id: int, used_at: datetime) -> None:
        """Increment usage of a catalog description."""
        pass
