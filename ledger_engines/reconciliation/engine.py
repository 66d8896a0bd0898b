"""
ReconciliationEngine -- Pure engine for balance reconciliation.

Given an opening balance, a ledger slice, and a bank-reported closing
balance, derives the system balance and classifies the account as
MATCHED, UNMATCHED, or PENDING_CONFIRM.  Every presentation surface and
service calls ``reconcile``; none re-derives the balance arithmetic.

Architecture: ledger_engines -- pure calculation, zero I/O, zero DB access.
All inputs are frozen dataclasses or plain values supplied by the caller.

Invariants enforced:
    - system_balance == opening_balance + total_credit - total_debit (exact)
    - difference == system_balance - bank_balance (exact)
    - MATCHED iff the selected set is non-empty and abs(difference) < tolerance
    - PENDING_CONFIRM iff the selected set is empty
    - Decimal-only arithmetic; totals are never rounded
    - Manual status overrides follow a closed transition table

Filter policy:
    Client and bank names are compared after stripping surrounding
    whitespace, case-sensitively and by exact equality.  A blank filter
    means "no filter".
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from ledger_kernel.exceptions import (
    InvalidBalanceError,
    InvalidDateRangeError,
    InvalidStatusTransitionError,
)
from ledger_kernel.logging_config import get_logger
from ledger_engines.tracer import traced_engine

from ledger_engines.reconciliation.types import (
    MatchStatus,
    ReconciliationRequest,
    ReconciliationResult,
    ResultVerification,
    StatusAction,
    Transaction,
    TransactionType,
)

logger = get_logger("engines.reconciliation.engine")

DEFAULT_MATCH_TOLERANCE = Decimal("0.01")

_ZERO = Decimal("0")

# Manual override transitions.  PENDING_CONFIRM has no entry: it is left
# only by recomputation once transactions exist in range.
_STATUS_TRANSITIONS: dict[tuple[MatchStatus, StatusAction], MatchStatus] = {
    (MatchStatus.UNMATCHED, StatusAction.CONFIRM): MatchStatus.MATCHED,
    (MatchStatus.MATCHED, StatusAction.UNCONFIRM): MatchStatus.UNMATCHED,
}


# =============================================================================
# Input parsing
# =============================================================================


def parse_calendar_date(field: str, value: object) -> date:
    """Parse a request date (``date`` or ISO ``YYYY-MM-DD`` string).

    Raises:
        InvalidDateRangeError: value is missing or not a calendar date.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidDateRangeError(field, value, "date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateRangeError(
                field, value, "not a calendar date (expected YYYY-MM-DD)"
            ) from None
    raise InvalidDateRangeError(field, value, f"unsupported type {type(value).__name__}")


def parse_balance(field: str, value: object) -> Decimal:
    """Parse a balance into a finite Decimal.

    Floats are converted through ``str()`` so that ``0.1`` becomes
    ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        InvalidBalanceError: value is missing, boolean, or not finite.
    """
    if value is None or isinstance(value, bool):
        raise InvalidBalanceError(field, value)

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, (float, str)):
        text = str(value).strip()
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise InvalidBalanceError(field, value) from None
    else:
        raise InvalidBalanceError(field, value)

    if not parsed.is_finite():
        raise InvalidBalanceError(field, value)
    return parsed


def normalize_name(value: str | None) -> str | None:
    """Strip a client/bank name; blank names become None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def validate_request(request: ReconciliationRequest) -> ReconciliationRequest:
    """Check every precondition and return the request in parsed form.

    The returned request holds ``date`` and ``Decimal`` values and
    normalized filters.  Dates are checked before balances, so a request
    that is wrong on both counts reports the date error.

    Raises:
        InvalidDateRangeError: a date is missing, unparseable, or
            ``from_date`` is after ``to_date``.
        InvalidBalanceError: a balance is not a finite decimal.
    """
    from_date = parse_calendar_date("from_date", request.from_date)
    to_date = parse_calendar_date("to_date", request.to_date)
    if from_date > to_date:
        raise InvalidDateRangeError(
            "from_date", request.from_date,
            f"from_date {from_date} is after to_date {to_date}",
        )

    return ReconciliationRequest(
        from_date=from_date,
        to_date=to_date,
        opening_balance=parse_balance("opening_balance", request.opening_balance),
        bank_balance=parse_balance("bank_balance", request.bank_balance),
        client_filter=normalize_name(request.client_filter),
        bank_filter=normalize_name(request.bank_filter),
    )


# =============================================================================
# Calculation helpers
# =============================================================================


def select_transactions(
    transactions: Iterable[Transaction],
    from_date: date,
    to_date: date,
    client_filter: str | None = None,
    bank_filter: str | None = None,
) -> tuple[Transaction, ...]:
    """Transactions that participate in a reconciliation.

    COMPLETED (or status-less) transactions dated within
    ``[from_date, to_date]`` inclusive whose client / bank names equal the
    normalized filters, when set.
    """
    client = normalize_name(client_filter)
    bank = normalize_name(bank_filter)

    selected: list[Transaction] = []
    for txn in transactions:
        if not txn.is_completed:
            continue
        if txn.date < from_date or txn.date > to_date:
            continue
        if client is not None and normalize_name(txn.client_name) != client:
            continue
        if bank is not None and normalize_name(txn.bank_name) != bank:
            continue
        selected.append(txn)
    return tuple(selected)


def sum_by_type(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    """Exact (total_credit, total_debit) over the given transactions."""
    total_credit = _ZERO
    total_debit = _ZERO
    for txn in transactions:
        if txn.type == TransactionType.CREDIT:
            total_credit += txn.amount
        else:
            total_debit += txn.amount
    return total_credit, total_debit


def classify(
    transaction_count: int,
    difference: Decimal,
    tolerance: Decimal = DEFAULT_MATCH_TOLERANCE,
) -> MatchStatus:
    """Derive the verdict.  The empty-set rule takes precedence."""
    if transaction_count == 0:
        return MatchStatus.PENDING_CONFIRM
    if abs(difference) < tolerance:
        return MatchStatus.MATCHED
    return MatchStatus.UNMATCHED


# =============================================================================
# Entry points
# =============================================================================


@traced_engine(
    "reconciliation", "1.0",
    fingerprint_fields=("request", "tolerance"),
)
def reconcile(
    transactions: Iterable[Transaction],
    request: ReconciliationRequest,
    tolerance: Decimal = DEFAULT_MATCH_TOLERANCE,
) -> ReconciliationResult:
    """Compute a deterministic reconciliation verdict.

    Preconditions are checked before any arithmetic; an invalid request
    never yields a partial or zero-defaulted result.

    Raises:
        InvalidDateRangeError: a date is missing, unparseable, or
            ``from_date`` is after ``to_date``.
        InvalidBalanceError: a balance is not a finite decimal.
    """
    parsed = validate_request(request)
    from_date = parsed.from_date
    to_date = parsed.to_date
    opening_balance = parsed.opening_balance
    bank_balance = parsed.bank_balance
    client_filter = parsed.client_filter
    bank_filter = parsed.bank_filter

    selected = select_transactions(
        transactions, from_date, to_date, client_filter, bank_filter,
    )
    total_credit, total_debit = sum_by_type(selected)

    system_balance = opening_balance + total_credit - total_debit
    difference = system_balance - bank_balance
    match_status = classify(len(selected), difference, tolerance)

    filter_no_match = not selected and (
        client_filter is not None or bank_filter is not None
    )
    if filter_no_match:
        logger.info(
            "reconciliation_filter_no_match",
            extra={
                "client_filter": client_filter,
                "bank_filter": bank_filter,
                "from_date": str(from_date),
                "to_date": str(to_date),
            },
        )

    return ReconciliationResult(
        from_date=from_date,
        to_date=to_date,
        opening_balance=opening_balance,
        total_credit=total_credit,
        total_debit=total_debit,
        system_balance=system_balance,
        bank_balance=bank_balance,
        difference=difference,
        match_status=match_status,
        transaction_count=len(selected),
        client_filter=client_filter,
        bank_filter=bank_filter,
        filter_no_match=filter_no_match,
    )


def toggle_status(
    current: MatchStatus | str,
    action: StatusAction | str,
) -> MatchStatus:
    """Apply a manual override action to a verdict.

    UNMATCHED --CONFIRM--> MATCHED and MATCHED --UNCONFIRM--> UNMATCHED are
    the only manual transitions.  The numbers behind the verdict are not
    touched; callers record the result as an override next to the computed
    status.

    Raises:
        InvalidStatusTransitionError: the action is not allowed from
            ``current`` (always the case for PENDING_CONFIRM).
    """
    try:
        current_status = MatchStatus(current)
        requested = StatusAction(action)
    except ValueError:
        raise InvalidStatusTransitionError(str(current), str(action)) from None

    new_status = _STATUS_TRANSITIONS.get((current_status, requested))
    if new_status is None:
        raise InvalidStatusTransitionError(current_status.value, requested.value)
    return new_status


def effective_status(
    computed: MatchStatus,
    override: MatchStatus | None,
) -> MatchStatus:
    """Displayed status: the manual override if present, else the computed one."""
    return override if override is not None else computed


@traced_engine(
    "reconciliation_verification", "1.0",
    fingerprint_fields=("result",),
)
def verify_result(
    transactions: Iterable[Transaction],
    result: ReconciliationResult,
    tolerance: Decimal = DEFAULT_MATCH_TOLERANCE,
) -> ResultVerification:
    """Independently recompute ``result`` from a transaction list.

    Used as a cross-check when totals come from a different path (for
    example SQL-side filtering) than the list held by the caller.
    """
    selected = select_transactions(
        transactions,
        result.from_date,
        result.to_date,
        result.client_filter,
        result.bank_filter,
    )
    credit, debit = sum_by_type(selected)
    system_balance = result.opening_balance + credit - debit
    difference = system_balance - result.bank_balance

    mismatches: list[str] = []
    if credit != result.total_credit:
        mismatches.append("total_credit")
    if debit != result.total_debit:
        mismatches.append("total_debit")
    if len(selected) != result.transaction_count:
        mismatches.append("transaction_count")
    if system_balance != result.system_balance:
        mismatches.append("system_balance")
    if difference != result.difference:
        mismatches.append("difference")
    if classify(len(selected), difference, tolerance) != result.match_status:
        mismatches.append("match_status")

    return ResultVerification(
        mismatched_fields=tuple(mismatches),
        recomputed_credit=credit,
        recomputed_debit=debit,
        recomputed_count=len(selected),
    )
