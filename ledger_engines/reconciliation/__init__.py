"""
Reconciliation - Pure balance reconciliation engine and its domain types.

The stateful persistence and audit side lives in
ledger_services.reconciliation_service.
"""

from ledger_engines.reconciliation.types import (
    MatchStatus,
    ReconciliationRequest,
    ReconciliationResult,
    ResultVerification,
    StatusAction,
    Transaction,
    TransactionStatus,
    TransactionType,
)

from ledger_engines.reconciliation.engine import (
    DEFAULT_MATCH_TOLERANCE,
    classify,
    effective_status,
    normalize_name,
    parse_balance,
    parse_calendar_date,
    reconcile,
    select_transactions,
    sum_by_type,
    toggle_status,
    validate_request,
    verify_result,
)

__all__ = [
    # Domain types
    "MatchStatus",
    "ReconciliationRequest",
    "ReconciliationResult",
    "ResultVerification",
    "StatusAction",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    # Engine
    "DEFAULT_MATCH_TOLERANCE",
    "reconcile",
    "toggle_status",
    "effective_status",
    "verify_result",
    # Helpers
    "classify",
    "normalize_name",
    "parse_balance",
    "parse_calendar_date",
    "select_transactions",
    "sum_by_type",
    "validate_request",
]
