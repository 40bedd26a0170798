"""Domain layer for ledgerkit application."""

from importlib import import_module

# Services import the database layer, which imports domain.entities; load them lazily.
_SERVICES = {
    "AccountService": "ledgerkit.domain.account",
    "RuleService": "ledgerkit.domain.rules",
    "RuleCache": "ledgerkit.domain.rules",
    "ClassificationService": "ledgerkit.domain.classification",
    "JournalService": "ledgerkit.domain.journal",
    "LedgerService": "ledgerkit.domain.ledger",
    "PeriodService": "ledgerkit.domain.period",
    "PeriodPolicy": "ledgerkit.domain.period",
    "ReprocessingService": "ledgerkit.domain.reprocess",
    "TransactionService": "ledgerkit.domain.transaction",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
