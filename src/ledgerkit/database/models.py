"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FinancialAccount(Base):
    """Bank account model."""

    __tablename__ = "financial_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    currency = Column(String(3), nullable=False, default="BRL")
    opening_balance = Column(Numeric(14, 2), nullable=False, default=0)
    opening_balance_date = Column(Date, nullable=True)
    # Maintained by the entry state service; never recomputed on read
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    credit_limit = Column(Numeric(14, 2), nullable=True)
    category = Column(String, nullable=True)
    low_balance_threshold = Column(Numeric(14, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=True)


class JournalEntryDescription(Base):
    """Reusable description catalog."""

    __tablename__ = "journal_entry_descriptions"

    id = Column(Integer, primary_key=True)
    text = Column(String, unique=True, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    last_used_at = Column(DateTime, nullable=True)


class JournalEntry(Base):
    """Journal entry model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_type = Column(String(16), nullable=False)
    bank_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    counter_bank_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=True)
    cost_center_id = Column(Integer, nullable=True)
    property_id = Column(Integer, nullable=True)
    person_id = Column(Integer, nullable=True)
    description_id = Column(Integer, ForeignKey("journal_entry_descriptions.id"), nullable=True)
    description_text = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    reference_code = Column(String(40), nullable=True)
    origin = Column(String(32), nullable=False, default="manual")
    clone_of_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    movement_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    payment_date = Column(Date, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="BRL")
    status = Column(String(16), nullable=False, default="planned")
    installments_count = Column(Integer, default=0, nullable=False)
    paid_installments = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_journal_entries_account_movement", "bank_account_id", "movement_date"),
        Index("ix_journal_entries_status_movement", "status", "movement_date"),
    )

    # Relationships
    bank_account = relationship("FinancialAccount", foreign_keys=[bank_account_id])
    counter_bank_account = relationship("FinancialAccount", foreign_keys=[counter_bank_account_id])
    installments = relationship(
        "JournalEntryInstallment",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryInstallment.sequence",
        foreign_keys="JournalEntryInstallment.entry_id",
    )
    allocations = relationship(
        "JournalEntryAllocation",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryAllocation.id",
    )


class JournalEntryInstallment(Base):
    """Installment model."""

    __tablename__ = "journal_entry_installments"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    movement_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_date = Column(Date, nullable=True)
    principal = Column(Numeric(14, 2), nullable=False, default=0)
    interest = Column(Numeric(14, 2), nullable=False, default=0)
    penalty = Column(Numeric(14, 2), nullable=False, default=0)
    discount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(String(16), nullable=False, default="planned")
    # Plan parent side of the clone linkage
    linked_clone_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    parcel_label = Column(String(32), nullable=True)
    parcel_total = Column(Integer, nullable=True)
    # Clone side; parent installment rows are replaced on update, so no FK
    source_parent_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    source_installment_id = Column(Integer, nullable=True)
    parcel_number = Column(Integer, nullable=True)
    meta = Column(JSON, nullable=True)

    __table_args__ = (UniqueConstraint("entry_id", "sequence", name="uq_entry_installment_sequence"),)

    entry = relationship("JournalEntry", back_populates="installments", foreign_keys=[entry_id])


class JournalEntryAllocation(Base):
    """Allocation model."""

    __tablename__ = "journal_entry_allocations"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    cost_center_id = Column(Integer, nullable=True)
    property_id = Column(Integer, nullable=True)
    percentage = Column(Numeric(7, 4), nullable=True)
    amount = Column(Numeric(14, 2), nullable=True)

    entry = relationship("JournalEntry", back_populates="allocations")


class Alert(Base):
    """Standing dashboard alert model."""

    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=False)
    severity = Column(String(16), nullable=False, default="warning")
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    resource_type = Column(String, nullable=True)
    resource_id = Column(Integer, nullable=True)
    payload = Column(JSON, nullable=True)
    occurred_at = Column(DateTime, nullable=False)
    resolved_at = Column(DateTime, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
