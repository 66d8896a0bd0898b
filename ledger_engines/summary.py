"""
Module: ledger_engines.summary
Responsibility:
    Aggregate a transaction list into dashboard totals: money in, money
    out, net flow, pending exposure, and a per-client breakdown.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only COMPLETED (or status-less) transactions contribute to
      total_credit / total_debit / net_flow, consistent with reconcile().
    - net_flow == total_credit - total_debit (exact Decimal).
    - Per-client totals sum to the overall totals.

Failure modes:
    - None beyond those raised by Transaction construction.

Usage:
    from ledger_engines.summary import summarize

    summary = summarize(transactions)
    summary.net_flow
    summary.for_client("Acme Corp")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger_kernel.logging_config import get_logger
from ledger_engines.reconciliation.engine import normalize_name
from ledger_engines.reconciliation.types import Transaction, TransactionType
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.summary")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ClientTotals:
    """
    Completed-transaction totals for one client.

    ``client_name=None`` is the house group (manual entries with no client).
    """

    client_name: str | None
    total_credit: Decimal
    total_debit: Decimal
    transaction_count: int

    @property
    def net_flow(self) -> Decimal:
        return self.total_credit - self.total_debit


@dataclass(frozen=True)
class LedgerSummary:
    """
    Dashboard snapshot of a ledger.

    Contract:
        Frozen dataclass; recomputed on every call.
    Guarantees:
        - ``net_flow`` equals ``total_credit - total_debit``.
        - ``date_range`` is None exactly when ``completed_count`` is 0.
        - ``clients`` is ordered by name with the house group last.
    """

    total_credit: Decimal
    total_debit: Decimal
    completed_count: int
    pending_count: int
    pending_amount: Decimal
    date_range: tuple[date, date] | None
    clients: tuple[ClientTotals, ...] = ()

    @property
    def net_flow(self) -> Decimal:
        return self.total_credit - self.total_debit

    @property
    def transaction_count(self) -> int:
        return self.completed_count + self.pending_count

    def for_client(self, client_name: str | None) -> ClientTotals | None:
        """Totals for one client, or None when it has no completed entries."""
        wanted = normalize_name(client_name)
        for totals in self.clients:
            if totals.client_name == wanted:
                return totals
        return None


@traced_engine("ledger_summary", "1.0")
def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Aggregate ``transactions`` into a LedgerSummary."""
    total_credit = _ZERO
    total_debit = _ZERO
    completed_count = 0
    pending_count = 0
    pending_amount = _ZERO
    earliest: date | None = None
    latest: date | None = None

    # client -> [credit, debit, count]
    per_client: dict[str | None, list] = {}

    for txn in transactions:
        if not txn.is_completed:
            pending_count += 1
            pending_amount += txn.amount
            continue

        completed_count += 1
        if earliest is None or txn.date < earliest:
            earliest = txn.date
        if latest is None or txn.date > latest:
            latest = txn.date

        bucket = per_client.setdefault(
            normalize_name(txn.client_name), [_ZERO, _ZERO, 0],
        )
        if txn.type == TransactionType.CREDIT:
            total_credit += txn.amount
            bucket[0] += txn.amount
        else:
            total_debit += txn.amount
            bucket[1] += txn.amount
        bucket[2] += 1

    clients = tuple(
        ClientTotals(
            client_name=name,
            total_credit=values[0],
            total_debit=values[1],
            transaction_count=values[2],
        )
        for name, values in sorted(
            per_client.items(),
            key=lambda kv: (kv[0] is None, kv[0] or ""),
        )
    )

    date_range = (earliest, latest) if earliest is not None else None

    return LedgerSummary(
        total_credit=total_credit,
        total_debit=total_debit,
        completed_count=completed_count,
        pending_count=pending_count,
        pending_amount=pending_amount,
        date_range=date_range,
        clients=clients,
    )
