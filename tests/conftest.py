"""Shared pytest fixtures for ledgerkit tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import EntryData, EntryStatus, EntryType, InstallmentData
from ledgerkit.domain.entry_state import EntryStateService
from ledgerkit.domain.events import EventBus
from ledgerkit.domain.installment_plan import InstallmentPlanService
from ledgerkit.domain.journal_entry import JournalEntryService
from ledgerkit.domain.ledger import LedgerService

TODAY = date(2024, 6, 15)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def bus():
    """Event bus private to one test."""
    return EventBus()


@pytest.fixture
def state_service(temp_db, bus):
    """Entry state engine with the clock pinned to TODAY."""
    return EntryStateService(temp_db, bus=bus, today=lambda: TODAY)


@pytest.fixture
def account_service(temp_db, bus):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, bus=bus)


@pytest.fixture
def entry_service(temp_db, state_service):
    """Create a JournalEntryService with a temporary database."""
    return JournalEntryService(temp_db, state_service)


@pytest.fixture
def ledger(temp_db, bus, state_service):
    """Create a LedgerService sharing the pinned state engine."""
    return LedgerService(temp_db, bus=bus, state_service=state_service)


@pytest.fixture
def checking(account_service):
    """Checking account opened with 1000.00."""
    account_id = account_service.create_account(
        name="Checking", opening_balance=Decimal("1000.00"), category="checking"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def savings(account_service):
    """Savings account opened with 500.00."""
    account_id = account_service.create_account(
        name="Savings", opening_balance=Decimal("500.00"), category="savings"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def make_entry():
    """Build EntryData for tests; installments are split monthly from the due date."""

    def _make(
        account_id,
        amount="100.00",
        entry_type=EntryType.EXPENSE,
        installments=1,
        due=date(2024, 7, 10),
        paid=False,
        **changes,
    ):
        amount = Decimal(amount)
        plan = InstallmentPlanService().generate(amount, installments, due)
        if paid:
            plan = tuple(
                InstallmentData(
                    sequence=i.sequence,
                    movement_date=i.movement_date,
                    due_date=i.due_date,
                    principal=i.principal,
                    total=i.total,
                    status=EntryStatus.PAID,
                    payment_date=i.due_date,
                )
                for i in plan
            )
        values = dict(
            entry_type=entry_type,
            bank_account_id=account_id,
            movement_date=due,
            due_date=due,
            amount=amount,
            installments=plan,
        )
        values.update(changes)
        return EntryData(**values)

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
