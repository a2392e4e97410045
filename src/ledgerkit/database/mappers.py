"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so services never see ORM rows
and schema changes stay local to the database package.
"""

from decimal import Decimal
from typing import Optional

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Alert as ORMAlert,
    FinancialAccount as ORMFinancialAccount,
    JournalEntry as ORMJournalEntry,
    JournalEntryAllocation as ORMJournalEntryAllocation,
    JournalEntryDescription as ORMJournalEntryDescription,
    JournalEntryInstallment as ORMJournalEntryInstallment,
)


def to_decimal(value) -> Decimal:
    """Normalize a numeric column value to a Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _optional_decimal(value) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def account_to_domain(orm_account: ORMFinancialAccount) -> domain.FinancialAccount:
    """Convert SQLAlchemy FinancialAccount model to domain entity."""
    return domain.FinancialAccount(
        id=orm_account.id,
        name=orm_account.name,
        currency=orm_account.currency,
        opening_balance=to_decimal(orm_account.opening_balance),
        opening_balance_date=orm_account.opening_balance_date,
        current_balance=to_decimal(orm_account.current_balance),
        credit_limit=_optional_decimal(orm_account.credit_limit),
        category=orm_account.category,
        low_balance_threshold=_optional_decimal(orm_account.low_balance_threshold),
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def installment_to_domain(
    orm_installment: ORMJournalEntryInstallment,
) -> domain.JournalEntryInstallment:
    """Convert SQLAlchemy JournalEntryInstallment model to domain entity."""
    return domain.JournalEntryInstallment(
        id=orm_installment.id,
        entry_id=orm_installment.entry_id,
        sequence=orm_installment.sequence,
        movement_date=orm_installment.movement_date,
        due_date=orm_installment.due_date,
        payment_date=orm_installment.payment_date,
        principal=to_decimal(orm_installment.principal),
        interest=to_decimal(orm_installment.interest),
        penalty=to_decimal(orm_installment.penalty),
        discount=to_decimal(orm_installment.discount),
        total=to_decimal(orm_installment.total),
        status=domain.EntryStatus(orm_installment.status),
        linked_clone_entry_id=orm_installment.linked_clone_entry_id,
        parcel_label=orm_installment.parcel_label,
        parcel_total=orm_installment.parcel_total,
        source_parent_id=orm_installment.source_parent_id,
        source_installment_id=orm_installment.source_installment_id,
        parcel_number=orm_installment.parcel_number,
        meta=orm_installment.meta,
    )


def allocation_to_domain(
    orm_allocation: ORMJournalEntryAllocation,
) -> domain.JournalEntryAllocation:
    """Convert SQLAlchemy JournalEntryAllocation model to domain entity."""
    return domain.JournalEntryAllocation(
        id=orm_allocation.id,
        entry_id=orm_allocation.entry_id,
        cost_center_id=orm_allocation.cost_center_id,
        property_id=orm_allocation.property_id,
        percentage=_optional_decimal(orm_allocation.percentage),
        amount=_optional_decimal(orm_allocation.amount),
    )


def entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with relations) to domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_type=domain.EntryType(orm_entry.entry_type),
        bank_account_id=orm_entry.bank_account_id,
        counter_bank_account_id=orm_entry.counter_bank_account_id,
        cost_center_id=orm_entry.cost_center_id,
        property_id=orm_entry.property_id,
        person_id=orm_entry.person_id,
        description_id=orm_entry.description_id,
        description_text=orm_entry.description_text,
        notes=orm_entry.notes,
        reference_code=orm_entry.reference_code,
        origin=domain.EntryOrigin(orm_entry.origin),
        clone_of_id=orm_entry.clone_of_id,
        movement_date=orm_entry.movement_date,
        due_date=orm_entry.due_date,
        payment_date=orm_entry.payment_date,
        amount=to_decimal(orm_entry.amount),
        currency=orm_entry.currency,
        status=domain.EntryStatus(orm_entry.status),
        installments_count=orm_entry.installments_count or 0,
        paid_installments=orm_entry.paid_installments or 0,
        created_by=orm_entry.created_by,
        updated_by=orm_entry.updated_by,
        created_at=orm_entry.created_at,
        updated_at=orm_entry.updated_at,
        deleted_at=orm_entry.deleted_at,
        installments=tuple(installment_to_domain(i) for i in orm_entry.installments),
        allocations=tuple(allocation_to_domain(a) for a in orm_entry.allocations),
    )


def description_to_domain(
    orm_description: ORMJournalEntryDescription,
) -> domain.JournalEntryDescription:
    """Convert SQLAlchemy JournalEntryDescription model to domain entity."""
    return domain.JournalEntryDescription(
        id=orm_description.id,
        text=orm_description.text,
        usage_count=orm_description.usage_count or 0,
        last_used_at=orm_description.last_used_at,
    )


def alert_to_domain(orm_alert: ORMAlert) -> domain.Alert:
    """Convert SQLAlchemy Alert model to domain entity."""
    return domain.Alert(
        id=orm_alert.id,
        key=orm_alert.key,
        category=orm_alert.category,
        severity=orm_alert.severity,
        title=orm_alert.title,
        message=orm_alert.message,
        resource_type=orm_alert.resource_type,
        resource_id=orm_alert.resource_id,
        payload=orm_alert.payload,
        occurred_at=orm_alert.occurred_at,
        resolved_at=orm_alert.resolved_at,
    )
