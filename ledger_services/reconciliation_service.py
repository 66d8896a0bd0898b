"""
ReconciliationService -- imperative shell around the reconciliation engine.

Composes TransactionSelector (read), the pure ReconciliationEngine,
ReconciliationRecord persistence, and the AuditorService into the
operations an accountant performs: run a reconciliation, confirm or
un-confirm its verdict, and browse history.

Architecture: ledger_services -- imperative shell.
    Flushes within the caller's session and never commits it.  Use
    ``ledger_kernel.db.session_scope()`` (or commit yourself) to make the
    work durable.  The one exception is the audit event for a rejected
    request, committed through ``audit_session_factory`` because the
    caller rolls back on the validation error that follows.

Invariants enforced:
    - Figures come only from ``reconcile``; this layer does no arithmetic.
    - Each run reads the date range once; ``reconcile`` applies the name
      filters and ``verify_result`` recomputes the figures from the same
      read before anything is saved.
    - Manual actions never change figures or computed_status; they set or
      clear override_status and are audited.
    - A store failure surfaces as TransactionSourceUnavailableError, never
      as a zero-valued result.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    InvalidStatusTransitionError,
    ReconciliationNotFoundError,
    ReconciliationVerificationError,
    TransactionSourceUnavailableError,
    ValidationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.reconciliation import ReconciliationRecord
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.selectors.transaction_selector import TransactionSelector
from ledger_kernel.services.auditor_service import AuditorService
from ledger_config import get_active_config

from ledger_engines.reconciliation import (
    ReconciliationRequest,
    ReconciliationResult,
    ResultVerification,
    StatusAction,
    Transaction,
    normalize_name,
    reconcile,
    toggle_status,
    validate_request,
    verify_result,
)
from ledger_engines.summary import LedgerSummary, summarize

logger = get_logger("services.reconciliation")


@dataclass(frozen=True)
class ReconciliationOutcome:
    """What ``calculate`` returns: the saved record and the engine output."""

    record: ReconciliationRecord
    result: ReconciliationResult
    verification: ResultVerification


class ReconciliationService:
    """Run, override, and query reconciliations.

    Contract:
        - ``calculate()`` computes, verifies, persists, and audits one run.
        - ``apply_action()`` applies CONFIRM / UNCONFIRM to a saved run.
        - ``get()`` / ``history()`` / ``summary()`` are read-only.

    Non-goals:
        - Does NOT commit the caller's session; the caller owns the
          transaction.
        - Does NOT edit or delete transactions.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
        selector: TransactionSelector | None = None,
        tolerance: Decimal | None = None,
        audit_session_factory: Callable[[], Session] | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)
        self._selector = selector or TransactionSelector(session)
        self._audit_session_factory = audit_session_factory or sessionmaker(
            bind=session.get_bind(), expire_on_commit=False,
        )
        self._tolerance = (
            tolerance if tolerance is not None
            else get_active_config().match_tolerance
        )

    @property
    def tolerance(self) -> Decimal:
        return self._tolerance

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def calculate(
        self,
        request: ReconciliationRequest,
        actor_id: UUID,
    ) -> ReconciliationOutcome:
        """Compute, verify, persist, and audit a reconciliation.

        Raises:
            InvalidDateRangeError / InvalidBalanceError: bad request.  A
                RECONCILIATION_REJECTED event is committed in its own unit
                of work first, so it outlives the caller's rollback.
            TransactionSourceUnavailableError: the store could not be read.
            ReconciliationVerificationError: the independent recomputation
                disagrees; nothing is saved.
        """
        request_id = uuid4()
        with LogContext.bind(actor_id=str(actor_id), correlation_id=str(request_id)):
            try:
                parsed = validate_request(request)
            except ValidationError as exc:
                logger.warning(
                    "reconciliation_rejected",
                    extra={"error_code": exc.code, "field": exc.field},
                )
                self._record_rejection(request_id, actor_id, exc)
                raise

            # One read of the date range; name filters are the engine's job
            transactions = self._fetch(
                "find_for_reconciliation", parsed.from_date, parsed.to_date,
            )
            result = reconcile(transactions, parsed, tolerance=self._tolerance)

            verification = verify_result(transactions, result, tolerance=self._tolerance)
            if not verification.passed:
                logger.warning(
                    "reconciliation_verification_failed",
                    extra={"mismatched_fields": list(verification.mismatched_fields)},
                )
                raise ReconciliationVerificationError(verification.mismatched_fields)

            record = self._persist(result, actor_id)

            with LogContext.bind(reconciliation_id=str(record.id)):
                self._auditor.record_reconciliation_computed(
                    record_id=record.id,
                    actor_id=actor_id,
                    figures=_figures(result),
                )
                logger.info(
                    "reconciliation_computed",
                    extra={
                        "match_status": result.match_status.value,
                        "difference": result.difference,
                        "transaction_count": result.transaction_count,
                        "client_filter": result.client_filter,
                        "bank_filter": result.bank_filter,
                    },
                )

        return ReconciliationOutcome(
            record=record, result=result, verification=verification,
        )

    def apply_action(
        self,
        record_id: UUID | str,
        action: StatusAction | str,
        actor_id: UUID,
        reason: str | None = None,
    ) -> ReconciliationRecord:
        """Apply a manual CONFIRM / UNCONFIRM to a saved reconciliation.

        The transition is taken from the record's effective status.  When
        the result equals the computed status the override is cleared,
        otherwise it is stored.

        Raises:
            ReconciliationNotFoundError: unknown record.
            InvalidStatusTransitionError: action not allowed from the
                effective status.
        """
        record = self.get(record_id)
        from_status = record.effective_status

        with LogContext.bind(actor_id=str(actor_id), reconciliation_id=str(record.id)):
            try:
                to_status = toggle_status(from_status, action)
            except InvalidStatusTransitionError:
                logger.warning(
                    "status_override_rejected",
                    extra={"from_status": from_status.value, "action": str(action)},
                )
                raise

            computed = record.computed
            if to_status == computed:
                record.override_status = None
                record.overridden_by_id = None
                record.overridden_at = None
                record.override_reason = None
            else:
                record.override_status = to_status.value
                record.overridden_by_id = actor_id
                record.overridden_at = self._clock.now()
                record.override_reason = reason
            self._session.flush()

            self._auditor.record_status_override(
                record_id=record.id,
                actor_id=actor_id,
                from_status=from_status.value,
                to_status=to_status.value,
                computed_status=computed.value,
                reason=reason,
            )
            logger.info(
                "status_override_applied",
                extra={
                    "from_status": from_status.value,
                    "to_status": to_status.value,
                    "computed_status": computed.value,
                    "cleared": record.override_status is None,
                },
            )

        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, record_id: UUID | str) -> ReconciliationRecord:
        """Load a saved reconciliation.

        Raises:
            ReconciliationNotFoundError: no record with that id.
        """
        try:
            key = record_id if isinstance(record_id, UUID) else UUID(str(record_id))
        except ValueError:
            raise ReconciliationNotFoundError(str(record_id)) from None

        record = self._session.get(ReconciliationRecord, key)
        if record is None:
            raise ReconciliationNotFoundError(str(record_id))
        return record

    def history(
        self,
        client_name: str | None = None,
        bank_name: str | None = None,
        limit: int | None = None,
    ) -> list[ReconciliationRecord]:
        """Saved reconciliations, newest first.

        ``client_name`` / ``bank_name`` match the run's stored filters after
        normalization.  ``limit`` defaults to the configured history limit.
        """
        if limit is None:
            limit = get_active_config().history_limit

        stmt = select(ReconciliationRecord)
        client = normalize_name(client_name)
        bank = normalize_name(bank_name)
        if client is not None:
            stmt = stmt.where(ReconciliationRecord.client_filter == client)
        if bank is not None:
            stmt = stmt.where(ReconciliationRecord.bank_filter == bank)
        stmt = stmt.order_by(ReconciliationRecord.created_at.desc()).limit(limit)

        return list(self._session.execute(stmt).scalars().all())

    def summary(self) -> LedgerSummary:
        """Dashboard totals over every stored transaction."""
        return summarize(self._fetch("find_all"))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(self, operation: str, *args) -> tuple[Transaction, ...]:
        try:
            return getattr(self._selector, operation)(*args)
        except OperationalError as exc:
            logger.error(
                "transaction_source_unavailable",
                extra={"operation": operation},
                exc_info=True,
            )
            raise TransactionSourceUnavailableError(operation, str(exc.orig)) from exc

    def _record_rejection(
        self,
        request_id: UUID,
        actor_id: UUID,
        exc: ValidationError,
    ) -> None:
        """Audit a rejected request so that it survives the caller's rollback.

        The event is written in its own session and committed.  If the
        caller's transaction already holds the audit sequence lock, a second
        connection would wait on it, so the event joins the caller's
        transaction instead.  A store failure here is logged and swallowed:
        the caller must still see the validation error.
        """
        kwargs = dict(
            request_id=request_id,
            actor_id=actor_id,
            error_code=exc.code,
            field=exc.field,
            reason=str(exc),
        )
        try:
            if self._holds_audit_sequence():
                self._auditor.record_reconciliation_rejected(**kwargs)
                return
            with self._audit_session_factory() as audit_session:
                AuditorService(audit_session, self._clock).record_reconciliation_rejected(
                    **kwargs,
                )
                audit_session.commit()
        except OperationalError:
            logger.error(
                "rejection_audit_failed",
                extra={"error_code": exc.code, "field": exc.field},
                exc_info=True,
            )

    def _holds_audit_sequence(self) -> bool:
        return any(
            isinstance(obj, SequenceCounter)
            for obj in self._session.identity_map.values()
        )

    def _persist(
        self,
        result: ReconciliationResult,
        actor_id: UUID,
    ) -> ReconciliationRecord:
        record = ReconciliationRecord(
            from_date=result.from_date,
            to_date=result.to_date,
            client_filter=result.client_filter,
            bank_filter=result.bank_filter,
            opening_balance=result.opening_balance,
            total_credit=result.total_credit,
            total_debit=result.total_debit,
            system_balance=result.system_balance,
            bank_balance=result.bank_balance,
            difference=result.difference,
            transaction_count=result.transaction_count,
            computed_status=result.match_status.value,
            override_status=None,
            created_by_id=actor_id,
            created_at=self._clock.now(),
        )
        self._session.add(record)
        self._session.flush()
        return record


def _figures(result: ReconciliationResult) -> dict:
    """Audit payload for a computed reconciliation."""
    return {
        "from_date": result.from_date,
        "to_date": result.to_date,
        "client_filter": result.client_filter,
        "bank_filter": result.bank_filter,
        "opening_balance": result.opening_balance,
        "total_credit": result.total_credit,
        "total_debit": result.total_debit,
        "system_balance": result.system_balance,
        "bank_balance": result.bank_balance,
        "difference": result.difference,
        "match_status": result.match_status.value,
        "transaction_count": result.transaction_count,
        "filter_no_match": result.filter_no_match,
    }
