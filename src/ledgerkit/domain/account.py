"""Account domain service."""

import re
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import FinancialAccount
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_name,
)
from ledgerkit.domain.events import AccountBalancesShouldRefresh, EventBus, default_bus
from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database, bus: Optional[EventBus] = None):
        """Initialize account service.

        Args:
            db: Database instance
            bus: Event bus receiving AccountBalancesShouldRefresh
        """
        self.db = db
        self.bus = bus or default_bus

    def create_account(
        self,
        name: str,
        currency: str = "BRL",
        opening_balance: Decimal = Decimal("0"),
        opening_balance_date: Optional[date] = None,
        credit_limit: Optional[Decimal] = None,
        category: Optional[str] = None,
        low_balance_threshold: Optional[Decimal] = None,
    ) -> int:
        """Create a new account.

        The current balance starts at the opening balance.

        Args:
            name: Account name (unique)
            currency: ISO 4217 currency code
            opening_balance: Balance on the opening date
            opening_balance_date: Date the opening balance refers to
            credit_limit: Optional overdraft/credit limit
            category: Optional free-form category (stored lowercased)
            low_balance_threshold: Balance below which an alert is raised

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is blank or the currency is malformed
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty")

        currency = currency.strip().upper()
        if not re.fullmatch(r"[A-Z]{3}", currency):
            raise ValidationError(f"Invalid currency code '{currency}'")

        if self.db.get_account_by_name(name) is not None:
            raise ConflictError(duplicate_account_name(name))

        category = category.strip().lower() if category else None
        account_id = self.db.create_account(
            name=name,
            currency=currency,
            opening_balance=opening_balance,
            opening_balance_date=opening_balance_date,
            credit_limit=credit_limit,
            category=category or None,
            low_balance_threshold=low_balance_threshold,
        )
        logger.info("Created account %d (%s, %s)", account_id, name, currency)
        return account_id

    def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Get account by ID."""
        return self.db.get_account(account_id)

    def list_accounts(self, category: Optional[str] = None, include_inactive: bool = True) -> list[FinancialAccount]:
        """List accounts ordered by name."""
        category = category.strip().lower() if category else None
        return self.db.list_accounts(category=category or None, include_inactive=include_inactive)

    def correct_balance(self, account_id: int, balance: Decimal) -> FinancialAccount:
        """Overwrite an account's current balance.

        This is the only balance write outside the entry state engine and is
        meant for administrative corrections.

        Args:
            account_id: Account to correct
            balance: New current balance

        Returns:
            The updated account

        Raises:
            NotFoundError: If account not found
        """
        with self.db.transaction():
            locked = self.db.lock_accounts([account_id])
            if account_id not in locked:
                raise NotFoundError(account_not_found(account_id))
            previous = locked[account_id].current_balance
            self.db.set_account_balance(account_id, balance)

        logger.warning("Balance of account %d corrected from %s to %s", account_id, previous, balance)
        self.bus.publish(AccountBalancesShouldRefresh.for_accounts(account_id))
        return self.db.get_account(account_id)

    def set_active(self, account_id: int, is_active: bool) -> FinancialAccount:
        """Activate or deactivate an account.

        Raises:
            NotFoundError: If account not found
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.set_account_active(account_id, is_active)
        self.bus.publish(AccountBalancesShouldRefresh.for_accounts(account_id))
        return self.db.get_account(account_id)
