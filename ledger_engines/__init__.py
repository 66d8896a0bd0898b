"""
Module: ledger_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    service layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel exceptions / logging and sibling engine
    modules.  MUST NOT import ledger_services, ledger_config, ORM models,
    or selectors.

Invariants enforced:
    - Purity: engines never read the clock or the database.  Dates and
      transaction lists are passed in by the caller.
    - Decimal-only arithmetic: monetary amounts are ``Decimal``; float
      balances are converted through ``str()`` at the boundary.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidDateRangeError / InvalidBalanceError for malformed requests.
    - InvalidStatusTransitionError for disallowed manual actions.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``ledger_engines.tracer``), emitting LEDGER_ENGINE_TRACE log records
    with engine name, version, input fingerprint, and duration.

Usage:
    from ledger_engines.reconciliation import reconcile, ReconciliationRequest
    from ledger_engines.summary import summarize
"""

from ledger_engines.reconciliation import (
    DEFAULT_MATCH_TOLERANCE,
    MatchStatus,
    ReconciliationRequest,
    ReconciliationResult,
    ResultVerification,
    StatusAction,
    Transaction,
    TransactionStatus,
    TransactionType,
    effective_status,
    reconcile,
    toggle_status,
    verify_result,
)
from ledger_engines.summary import (
    ClientTotals,
    LedgerSummary,
    summarize,
)
from ledger_engines.tracer import traced_engine

__all__ = [
    # Reconciliation
    "DEFAULT_MATCH_TOLERANCE",
    "MatchStatus",
    "ReconciliationRequest",
    "ReconciliationResult",
    "ResultVerification",
    "StatusAction",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "effective_status",
    "reconcile",
    "toggle_status",
    "verify_result",
    # Summary
    "ClientTotals",
    "LedgerSummary",
    "summarize",
    # Tracing
    "traced_engine",
]
