"""ORM models for the ledger kernel."""

from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.models.reconciliation import ReconciliationRecord
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.models.transaction import LedgerTransaction

__all__ = [
    "AuditAction",
    "AuditEvent",
    "LedgerTransaction",
    "ReconciliationRecord",
    "SequenceCounter",
]
