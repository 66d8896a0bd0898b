"""
Reconciliation domain types.

Pure frozen dataclasses and enums for the bank / client reconciliation
calculation.  Populated by the service layer (or any caller holding a
transaction list), consumed by the pure engine in
``ledger_engines.reconciliation.engine``.

Architecture: ledger_engines/reconciliation -- pure domain, zero I/O.

Invariants supported:
    - Transaction amounts are non-negative Decimals; the sign of the
      balance effect comes from ``type``, never from the amount.
    - A missing transaction ``status`` means COMPLETED.
    - ``ReconciliationResult`` is a value object, recomputed on every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from ledger_kernel.exceptions import InvalidTransactionError


# =============================================================================
# Enums
# =============================================================================


class TransactionType(str, Enum):
    """Direction of a transaction's effect on the balance."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class TransactionStatus(str, Enum):
    """Lifecycle status of a ledger transaction."""

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"


class MatchStatus(str, Enum):
    """Verdict of a reconciliation."""

    MATCHED = "MATCHED"
    UNMATCHED = "UNMATCHED"
    PENDING_CONFIRM = "PENDING_CONFIRM"   # Nothing in scope to reconcile


class StatusAction(str, Enum):
    """Manual override actions an accountant may take on a verdict."""

    CONFIRM = "CONFIRM"       # Force-mark a discrepancy as resolved
    UNCONFIRM = "UNCONFIRM"   # Withdraw a confirmation


# =============================================================================
# Input types
# =============================================================================


@dataclass(frozen=True)
class Transaction:
    """One ledger transaction as seen by the reconciliation engine.

    ``client_name=None`` marks a manual / house entry.  ``status=None``
    means the source did not record a status; it is treated as COMPLETED.
    """

    id: str
    date: date
    type: TransactionType
    amount: Decimal
    client_name: str | None = None
    bank_name: str | None = None
    status: TransactionStatus | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise InvalidTransactionError(
                "amount", str(self.id),
                f"expected Decimal, got {type(self.amount).__name__}",
            )
        if not self.amount.is_finite():
            raise InvalidTransactionError("amount", str(self.id), "not finite")
        if self.amount < 0:
            raise InvalidTransactionError(
                "amount", str(self.id), f"negative amount {self.amount}",
            )
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())
        elif not isinstance(self.date, date):
            raise InvalidTransactionError(
                "date", str(self.id), f"expected date, got {self.date!r}",
            )
        # Accept raw enum values ("CREDIT", "PENDING") from callers
        if not isinstance(self.type, TransactionType):
            try:
                object.__setattr__(self, "type", TransactionType(self.type))
            except ValueError:
                raise InvalidTransactionError(
                    "type", str(self.id), f"unknown type {self.type!r}",
                ) from None
        if self.status is not None and not isinstance(self.status, TransactionStatus):
            try:
                object.__setattr__(self, "status", TransactionStatus(self.status))
            except ValueError:
                raise InvalidTransactionError(
                    "status", str(self.id), f"unknown status {self.status!r}",
                ) from None

    @property
    def effective_status(self) -> TransactionStatus:
        """Status with absence defaulted to COMPLETED."""
        return self.status or TransactionStatus.COMPLETED

    @property
    def is_completed(self) -> bool:
        return self.effective_status == TransactionStatus.COMPLETED


@dataclass(frozen=True)
class ReconciliationRequest:
    """Caller-supplied reconciliation parameters.

    Values are held as received (``date`` or ISO string, ``Decimal`` or
    numeric string) and validated by ``reconcile`` so that every failure
    is reported with the offending field name.
    """

    from_date: date | str | None
    to_date: date | str | None
    opening_balance: Decimal | int | float | str | None
    bank_balance: Decimal | int | float | str | None
    client_filter: str | None = None
    bank_filter: str | None = None


# =============================================================================
# Output types
# =============================================================================


@dataclass(frozen=True)
class ReconciliationResult:
    """Deterministic reconciliation verdict.

    ``system_balance == opening_balance + total_credit - total_debit`` and
    ``difference == system_balance - bank_balance`` hold exactly.
    """

    from_date: date
    to_date: date
    opening_balance: Decimal
    total_credit: Decimal
    total_debit: Decimal
    system_balance: Decimal
    bank_balance: Decimal
    difference: Decimal
    match_status: MatchStatus
    transaction_count: int
    client_filter: str | None = None
    bank_filter: str | None = None
    filter_no_match: bool = False


@dataclass(frozen=True)
class ResultVerification:
    """Outcome of independently recomputing a ReconciliationResult."""

    mismatched_fields: tuple[str, ...] = field(default_factory=tuple)
    recomputed_credit: Decimal = Decimal("0")
    recomputed_debit: Decimal = Decimal("0")
    recomputed_count: int = 0

    @property
    def passed(self) -> bool:
        return not self.mismatched_fields
