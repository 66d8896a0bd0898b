"""
ledger_services -- imperative shell.

Composes kernel selectors, the audit trail, and the pure engines into
user-facing operations.  Services flush and never commit.
"""

from ledger_services.bootstrap import bootstrap
from ledger_services.reconciliation_service import (
    ReconciliationOutcome,
    ReconciliationService,
)

__all__ = [
    "ReconciliationOutcome",
    "ReconciliationService",
    "bootstrap",
]
