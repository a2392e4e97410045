"""Domain model entities for ledgerkit.

These are pure data classes representing ledger concepts, independent of
database schema. Services receive and return these; only the database layer
knows about ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class EntryType(str, Enum):
    """Kind of money movement recorded by a journal entry."""

    REVENUE = "revenue"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    @property
    def is_transfer(self) -> bool:
        return self is EntryType.TRANSFER


class EntryStatus(str, Enum):
    """Lifecycle status shared by entries and installments."""

    PLANNED = "planned"
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"

    @property
    def category(self) -> str:
        """Coarse bucket used by listings: open, overdue, settled or cancelled."""
        if self is EntryStatus.PAID:
            return "settled"
        if self is EntryStatus.CANCELLED:
            return "cancelled"
        if self is EntryStatus.OVERDUE:
            return "overdue"
        return "open"

    @classmethod
    def filter_values(cls, value: str) -> list["EntryStatus"]:
        """Expand a user-supplied status filter into concrete statuses.

        Accepts the enum values plus the aliases "open", "settled" and
        "canceled".
        """
        normalized = value.strip().lower()
        if normalized == "open":
            return [cls.PLANNED, cls.PENDING, cls.OVERDUE]
        if normalized in ("settled", "paid"):
            return [cls.PAID]
        if normalized in ("cancelled", "canceled"):
            return [cls.CANCELLED]
        try:
            return [cls(normalized)]
        except ValueError:
            raise ValueError(f"Unknown status filter '{value}'") from None


OPEN_STATUSES = frozenset({EntryStatus.PLANNED, EntryStatus.PENDING})
UNSETTLED_STATUSES = frozenset(
    {EntryStatus.PLANNED, EntryStatus.PENDING, EntryStatus.OVERDUE}
)


class EntryOrigin(str, Enum):
    """Where a journal entry came from."""

    MANUAL = "manual"
    IMPORTED = "imported"
    RECURRING = "recurring"
    INSTALLMENT_PLAN = "installment_plan"
    CLONE = "clone"
    INTEGRATION = "integration"
    LEGACY = "legacy"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class FinancialAccount:
    """Bank account domain entity."""

    id: int
    name: str
    currency: str
    opening_balance: Decimal
    opening_balance_date: Optional[date]
    current_balance: Decimal
    credit_limit: Optional[Decimal]
    category: Optional[str]
    low_balance_threshold: Optional[Decimal]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class JournalEntryInstallment:
    """A single scheduled or settled payment of an entry."""

    id: int
    entry_id: int
    sequence: int
    movement_date: date
    due_date: date
    payment_date: Optional[date]
    principal: Decimal
    interest: Decimal
    penalty: Decimal
    discount: Decimal
    total: Decimal
    status: EntryStatus
    # Set on a plan parent's installments
    linked_clone_entry_id: Optional[int] = None
    parcel_label: Optional[str] = None
    parcel_total: Optional[int] = None
    # Set on the single installment of an installment clone
    source_parent_id: Optional[int] = None
    source_installment_id: Optional[int] = None
    parcel_number: Optional[int] = None
    meta: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class JournalEntryAllocation:
    """Cost-center/property split of an entry, for reporting only."""

    id: int
    entry_id: int
    cost_center_id: Optional[int]
    property_id: Optional[int]
    percentage: Optional[Decimal]
    amount: Optional[Decimal]


@dataclass(frozen=True)
class JournalEntry:
    """Journal entry domain entity with its installments and allocations."""

    id: int
    entry_type: EntryType
    bank_account_id: int
    counter_bank_account_id: Optional[int]
    cost_center_id: Optional[int]
    property_id: Optional[int]
    person_id: Optional[int]
    description_id: Optional[int]
    description_text: Optional[str]
    notes: Optional[str]
    reference_code: Optional[str]
    origin: EntryOrigin
    clone_of_id: Optional[int]
    movement_date: date
    due_date: Optional[date]
    payment_date: Optional[date]
    amount: Decimal
    currency: str
    status: EntryStatus
    installments_count: int
    paid_installments: int
    created_by: Optional[int]
    updated_by: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    installments: tuple[JournalEntryInstallment, ...] = ()
    allocations: tuple[JournalEntryAllocation, ...] = ()

    @property
    def is_plan_parent(self) -> bool:
        """True for multi-installment entries that only drive clone generation."""
        return (
            self.origin is EntryOrigin.INSTALLMENT_PLAN
            and self.clone_of_id is None
            and self.installments_count > 1
        )

    @property
    def is_installment_clone(self) -> bool:
        return self.origin is EntryOrigin.INSTALLMENT_PLAN and self.clone_of_id is not None

    @property
    def account_ids(self) -> tuple[int, ...]:
        """Accounts whose balance this entry can move."""
        if self.counter_bank_account_id is None:
            return (self.bank_account_id,)
        return (self.bank_account_id, self.counter_bank_account_id)


@dataclass(frozen=True)
class JournalEntryDescription:
    """Reusable description catalog item."""

    id: int
    text: str
    usage_count: int
    last_used_at: Optional[datetime]


@dataclass(frozen=True)
class Alert:
    """Standing dashboard alert, keyed by a stable string."""

    id: int
    key: str
    category: str
    severity: str
    title: str
    message: str
    resource_type: Optional[str]
    resource_id: Optional[int]
    payload: Optional[dict[str, Any]]
    occurred_at: datetime
    resolved_at: Optional[datetime] = None


# Input descriptions consumed by the entry writer. Field-level validation
# (dates, numeric ranges) is the caller's job; the writer only checks the
# ledger preconditions.


@dataclass(frozen=True)
class InstallmentData:
    """Description of one installment to be written."""

    sequence: int
    movement_date: date
    due_date: date
    principal: Decimal
    total: Decimal
    status: EntryStatus = EntryStatus.PLANNED
    payment_date: Optional[date] = None
    interest: Decimal = Decimal("0")
    penalty: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    linked_clone_entry_id: Optional[int] = None
    parcel_label: Optional[str] = None
    parcel_total: Optional[int] = None
    source_parent_id: Optional[int] = None
    source_installment_id: Optional[int] = None
    parcel_number: Optional[int] = None
    meta: Optional[dict[str, Any]] = None

    @classmethod
    def from_installment(cls, installment: JournalEntryInstallment, **changes: Any) -> "InstallmentData":
        """Rebuild the write description of a stored installment."""
        values = dict(
            sequence=installment.sequence,
            movement_date=installment.movement_date,
            due_date=installment.due_date,
            payment_date=installment.payment_date,
            principal=installment.principal,
            interest=installment.interest,
            penalty=installment.penalty,
            discount=installment.discount,
            total=installment.total,
            status=installment.status,
            linked_clone_entry_id=installment.linked_clone_entry_id,
            parcel_label=installment.parcel_label,
            parcel_total=installment.parcel_total,
            source_parent_id=installment.source_parent_id,
            source_installment_id=installment.source_installment_id,
            parcel_number=installment.parcel_number,
            meta=installment.meta,
        )
        values.update(changes)
        return cls(**values)


@dataclass(frozen=True)
class AllocationData:
    """Description of one allocation to be written."""

    cost_center_id: Optional[int] = None
    property_id: Optional[int] = None
    percentage: Optional[Decimal] = None
    amount: Optional[Decimal] = None

    @classmethod
    def from_allocation(cls, allocation: JournalEntryAllocation) -> "AllocationData":
        return cls(
            cost_center_id=allocation.cost_center_id,
            property_id=allocation.property_id,
            percentage=allocation.percentage,
            amount=allocation.amount,
        )


@dataclass(frozen=True)
class EntryData:
    """Fully-populated entry description accepted by the entry writer."""

    entry_type: EntryType
    bank_account_id: int
    movement_date: date
    amount: Decimal
    installments: tuple[InstallmentData, ...]
    currency: str = "BRL"
    counter_bank_account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    property_id: Optional[int] = None
    person_id: Optional[int] = None
    description_id: Optional[int] = None
    description_text: Optional[str] = None
    notes: Optional[str] = None
    reference_code: Optional[str] = None
    origin: EntryOrigin = EntryOrigin.MANUAL
    clone_of_id: Optional[int] = None
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    status: EntryStatus = EntryStatus.PLANNED
    allocations: tuple[AllocationData, ...] = ()
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: JournalEntry, **changes: Any) -> "EntryData":
        """Rebuild the write description of a stored entry, applying changes."""
        values = dict(
            entry_type=entry.entry_type,
            bank_account_id=entry.bank_account_id,
            counter_bank_account_id=entry.counter_bank_account_id,
            cost_center_id=entry.cost_center_id,
            property_id=entry.property_id,
            person_id=entry.person_id,
            description_id=entry.description_id,
            description_text=entry.description_text,
            notes=entry.notes,
            reference_code=entry.reference_code,
            origin=entry.origin,
            clone_of_id=entry.clone_of_id,
            movement_date=entry.movement_date,
            due_date=entry.due_date,
            payment_date=entry.payment_date,
            amount=entry.amount,
            currency=entry.currency,
            status=entry.status,
            installments=tuple(InstallmentData.from_installment(i) for i in entry.installments),
            allocations=tuple(AllocationData.from_allocation(a) for a in entry.allocations),
            created_by=entry.created_by,
            updated_by=entry.updated_by,
        )
        values.update(changes)
        return cls(**values)


@dataclass(frozen=True)
class EntrySnapshot:
    """Balance-relevant state of an entry before a write.

    ``status`` is the balance-effective status: a plan parent never holds
    money, so its snapshot is always planned. The routing fields record where
    a paid entry's money sits; they are None for an entry not yet written.
    """

    status: EntryStatus
    amount: Decimal
    entry_type: Optional[EntryType] = None
    bank_account_id: Optional[int] = None
    counter_bank_account_id: Optional[int] = None

    @classmethod
    def of(cls, entry: JournalEntry) -> "EntrySnapshot":
        status = EntryStatus.PLANNED if entry.is_plan_parent else entry.status
        return cls(
            status=status,
            amount=entry.amount,
            entry_type=entry.entry_type,
            bank_account_id=entry.bank_account_id,
            counter_bank_account_id=entry.counter_bank_account_id,
        )

    @property
    def routing(self) -> tuple[Optional[EntryType], Optional[int], Optional[int]]:
        return (self.entry_type, self.bank_account_id, self.counter_bank_account_id)

    def is_rerouted(self, other: "EntrySnapshot") -> bool:
        """True when both snapshots are routed and type or accounts differ."""
        if self.entry_type is None or other.entry_type is None:
            return False
        return self.routing != other.routing

    @property
    def account_ids(self) -> tuple[int, ...]:
        return tuple(a for a in (self.bank_account_id, self.counter_bank_account_id) if a is not None)


@dataclass(frozen=True)
class CloneOverrides:
    """Values that take precedence over the source when cloning an entry."""

    movement_date: Optional[date] = None
    due_date: Optional[date] = None
    bank_account_id: Optional[int] = None
    counter_bank_account_id: Optional[int] = None
    reference_code: Optional[str] = None
    cost_center_id: Optional[int] = None
    property_id: Optional[int] = None
    person_id: Optional[int] = None
    created_by: Optional[int] = None


# Read-side aggregation results


@dataclass(frozen=True)
class BalanceFilters:
    """Normalized filter set for the account balance summary."""

    category: Optional[str] = None
    cost_center_id: Optional[int] = None
    account_id: Optional[int] = None
    include_inactive: bool = False

    @classmethod
    def normalize(
        cls,
        category: Optional[str] = None,
        cost_center_id: Optional[int] = None,
        account_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> "BalanceFilters":
        """Trim/lowercase the category and drop non-positive ids."""
        normalized_category = category.strip().lower() if category else None
        return cls(
            category=normalized_category or None,
            cost_center_id=cost_center_id if cost_center_id and cost_center_id > 0 else None,
            account_id=account_id if account_id and account_id > 0 else None,
            include_inactive=bool(include_inactive),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "cost_center_id": self.cost_center_id,
            "account_id": self.account_id,
            "include_inactive": self.include_inactive,
        }


@dataclass(frozen=True)
class AccountBalance:
    """Balance figures of one account in a summary."""

    account_id: int
    name: str
    category: Optional[str]
    currency: str
    opening_balance: Decimal
    current_balance: Decimal
    projected_balance: Decimal
    pending_delta: Decimal
    pending_incoming: Decimal
    pending_outgoing: Decimal
    last_movement_date: Optional[date]
    alert_active: bool
    alert_threshold: Optional[Decimal]


@dataclass(frozen=True)
class BalanceHistoryPoint:
    date: date
    balance: Decimal


@dataclass(frozen=True)
class BalanceHistory:
    points: tuple[BalanceHistoryPoint, ...] = ()
    minimum: Decimal = Decimal("0.00")
    maximum: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class BalanceAlert:
    """Active low-balance alert reported with a summary."""

    account_id: int
    account_name: str
    current_balance: Decimal
    threshold: Decimal
    message: str


@dataclass(frozen=True)
class BalanceSummary:
    """Cached read model combining balances, projections, history and alerts."""

    total_current: Decimal
    total_projected: Decimal
    pending_delta: Decimal
    status: str
    applied_filters: BalanceFilters
    accounts: tuple[AccountBalance, ...] = ()
    top_positive: tuple[AccountBalance, ...] = ()
    top_negative: tuple[AccountBalance, ...] = ()
    history: BalanceHistory = field(default_factory=BalanceHistory)
    alerts: tuple[BalanceAlert, ...] = ()
    available_categories: tuple[str, ...] = ()
