"""Domain layer for ledgerkit.

Services are imported lazily: the database layer imports
``ledgerkit.domain.entities`` and must not pull the services in with it.
"""

from importlib import import_module

_SERVICES = {
    "AccountService": "ledgerkit.domain.account",
    "AccountBalanceService": "ledgerkit.domain.account_balance",
    "CloneEntryService": "ledgerkit.domain.entry_cloner",
    "DescriptionResolver": "ledgerkit.domain.description",
    "EntryStateService": "ledgerkit.domain.entry_state",
    "InstallmentCloneService": "ledgerkit.domain.installment_clones",
    "InstallmentPlanService": "ledgerkit.domain.installment_plan",
    "JournalEntryService": "ledgerkit.domain.journal_entry",
    "LedgerService": "ledgerkit.domain.ledger",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
