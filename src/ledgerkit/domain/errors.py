"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class CurrencyMismatchError(DomainError):
    """Entry currency differs from the currency of its account."""


class InvalidTransferError(DomainError):
    """Transfer without a counter account, or with origin == counter."""


class InvalidCloneError(DomainError):
    """Only paid or pending entries can be cloned."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def installment_not_found(installment_id: int) -> str:
    """Return message for missing installment."""
    return f"Installment {installment_id} not found"


def duplicate_account_name(name: str) -> str:
    return f"Account with name '{name}' already exists"


def currency_mismatch(account_id: int, account_currency: str, currency: str) -> str:
    """Return message when an entry currency is not supported by its account."""
    return f"Account {account_id} operates in {account_currency} and does not support {currency}"


def transfer_missing_counter_account() -> str:
    return "Transfer requires a counter account"


def transfer_same_account(account_id: int) -> str:
    return f"Transfer cannot use account {account_id} as both origin and counter account"


def clone_not_allowed(entry_id: int, status: str) -> str:
    return f"Journal entry {entry_id} is {status}; only paid or pending entries can be cloned"


def installment_already_paid(installment_id: int) -> str:
    return f"Installment {installment_id} is already paid"


def entry_cancelled(entry_id: int) -> str:
    return f"Journal entry {entry_id} is cancelled"


def paid_entry_cannot_be_cancelled(entry_id: int) -> str:
    return f"Journal entry {entry_id} is paid and cannot be cancelled"


def installment_account_mismatch(installment_id: int, account_id: int) -> str:
    return f"Installment {installment_id} does not belong to account {account_id}"


def non_positive_amount(amount: Decimal) -> str:
    return f"Amount must be positive, got {amount}"
