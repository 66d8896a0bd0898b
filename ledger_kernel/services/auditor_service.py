"""
AuditorService -- tamper-evident audit trail and hash chain maintenance.

Responsibility:
    Creates append-only, hash-chained audit events for reconciliation
    runs, rejected requests, and manual status overrides.  Provides chain
    validation for tamper detection and per-entity trace queries.

Architecture position:
    Kernel > Services -- imperative shell, called by ReconciliationService.

Invariants enforced:
    - Sequence monotonicity via SequenceService (never max+1).
    - Chain integrity: hash = H(entity_type | entity_id | action |
      payload_hash | prev_hash).  Every event links to its predecessor.
    - The stored payload is exactly the JSON that was hashed.

Failure modes:
    - AuditChainBrokenError: a stored hash, payload hash, or prev_hash
      link does not match its recomputed value.

Audit relevance:
    This IS the audit service.  Every audit event flows through
    ``_create_audit_event()``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import AuditChainBrokenError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.utils.hashing import hash_audit_event, hash_payload, to_json_safe

logger = get_logger("services.auditor")

RECORD_ENTITY = "ReconciliationRecord"
REQUEST_ENTITY = "ReconciliationRequest"


@dataclass(frozen=True)
class AuditTraceEntry:
    """A single entry in an audit trace."""

    seq: int
    action: AuditAction
    occurred_at: datetime
    actor_id: UUID
    payload: dict[str, Any]
    hash: str


@dataclass(frozen=True)
class AuditTrace:
    """All audit events for one entity, in sequence order."""

    entity_type: str
    entity_id: UUID
    entries: tuple[AuditTraceEntry, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.entries) == 0

    @property
    def actions(self) -> tuple[AuditAction, ...]:
        return tuple(entry.action for entry in self.entries)

    @property
    def last_action(self) -> AuditAction | None:
        return self.entries[-1].action if self.entries else None


class AuditorService:
    """
    Service for creating and validating tamper-evident audit events.

    Contract:
        Domain-specific ``record_*`` methods build the payload; the
        private ``_create_audit_event`` allocates the sequence, links the
        hash chain, and flushes.

    Non-goals:
        - Does NOT call ``session.commit()``; the caller controls boundaries.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        """Hash of the most recent audit event, or None for an empty chain."""
        return self._session.execute(
            select(AuditEvent.hash)
            .order_by(AuditEvent.seq.desc())
            .limit(1)
        ).scalar_one_or_none()

    def _create_audit_event(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """
        Create a new audit event with hash chain linkage.

        Postconditions:
            - A new AuditEvent is flushed with the next ``seq``.
            - ``event.hash == H(entity_type, entity_id, action,
              payload_hash, prev_hash)``.
        """
        seq = self._sequence_service.next_value(SequenceService.AUDIT_EVENT)
        prev_hash = self._get_last_hash()

        payload_data = to_json_safe(payload or {})
        computed_payload_hash = hash_payload(payload_data)

        event_hash = hash_audit_event(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action.value,
            payload_hash=computed_payload_hash,
            prev_hash=prev_hash,
        )

        audit_event = AuditEvent(
            seq=seq,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=payload_data,
            payload_hash=computed_payload_hash,
            prev_hash=prev_hash,
            hash=event_hash,
        )

        self._session.add(audit_event)
        self._session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
                "seq": seq,
            },
        )

        return audit_event

    # Domain-specific recording methods

    def record_reconciliation_computed(
        self,
        record_id: UUID,
        actor_id: UUID,
        figures: dict[str, Any],
    ) -> AuditEvent:
        """Record a persisted reconciliation run and its figures."""
        return self._create_audit_event(
            entity_type=RECORD_ENTITY,
            entity_id=record_id,
            action=AuditAction.RECONCILIATION_COMPUTED,
            actor_id=actor_id,
            payload=figures,
        )

    def record_reconciliation_rejected(
        self,
        request_id: UUID,
        actor_id: UUID,
        error_code: str,
        field: str | None,
        reason: str,
    ) -> AuditEvent:
        """Record a request that failed validation.  No record exists for it."""
        return self._create_audit_event(
            entity_type=REQUEST_ENTITY,
            entity_id=request_id,
            action=AuditAction.RECONCILIATION_REJECTED,
            actor_id=actor_id,
            payload={
                "error_code": error_code,
                "field": field,
                "reason": reason,
            },
        )

    def record_status_override(
        self,
        record_id: UUID,
        actor_id: UUID,
        from_status: str,
        to_status: str,
        computed_status: str,
        reason: str | None = None,
    ) -> AuditEvent:
        """
        Record a manual status action.

        Logged as STATUS_OVERRIDE_CLEARED when the action lands back on the
        computed status, else STATUS_OVERRIDDEN.
        """
        action = (
            AuditAction.STATUS_OVERRIDE_CLEARED
            if to_status == computed_status
            else AuditAction.STATUS_OVERRIDDEN
        )
        return self._create_audit_event(
            entity_type=RECORD_ENTITY,
            entity_id=record_id,
            action=action,
            actor_id=actor_id,
            payload={
                "from_status": from_status,
                "to_status": to_status,
                "computed_status": computed_status,
                "reason": reason,
            },
        )

    # Chain validation

    def validate_chain(self) -> bool:
        """
        Validate the entire audit chain.

        Returns True when every event's payload hash, event hash, and
        prev_hash link match their recomputed values.

        Raises:
            AuditChainBrokenError: at the first event that does not.
        """
        events = self._session.execute(
            select(AuditEvent).order_by(AuditEvent.seq)
        ).scalars().all()

        if not events:
            return True

        if events[0].prev_hash is not None:
            logger.critical(
                "audit_chain_broken", extra={"audit_event_id": str(events[0].id)},
            )
            raise AuditChainBrokenError(
                str(events[0].id), "None", events[0].prev_hash,
            )

        for i, event in enumerate(events):
            expected_payload_hash = hash_payload(event.payload or {})
            if event.payload_hash != expected_payload_hash:
                logger.critical(
                    "audit_chain_broken", extra={"audit_event_id": str(event.id)},
                )
                raise AuditChainBrokenError(
                    str(event.id), expected_payload_hash, event.payload_hash,
                )

            expected_hash = hash_audit_event(
                entity_type=event.entity_type,
                entity_id=str(event.entity_id),
                action=event.action,
                payload_hash=event.payload_hash,
                prev_hash=event.prev_hash,
            )
            if event.hash != expected_hash:
                logger.critical(
                    "audit_chain_broken", extra={"audit_event_id": str(event.id)},
                )
                raise AuditChainBrokenError(str(event.id), expected_hash, event.hash)

            if i > 0:
                expected_prev = events[i - 1].hash
                if event.prev_hash != expected_prev:
                    logger.critical(
                        "audit_chain_broken", extra={"audit_event_id": str(event.id)},
                    )
                    raise AuditChainBrokenError(
                        str(event.id), expected_prev, event.prev_hash or "None",
                    )

        logger.info("audit_chain_valid", extra={"event_count": len(events)})
        return True

    # Trace and query methods

    def get_trace(self, entity_type: str, entity_id: UUID) -> AuditTrace:
        """All audit events for an entity in sequence order."""
        events = self._session.execute(
            select(AuditEvent)
            .where(
                AuditEvent.entity_type == entity_type,
                AuditEvent.entity_id == entity_id,
            )
            .order_by(AuditEvent.seq)
        ).scalars().all()

        entries = tuple(
            AuditTraceEntry(
                seq=event.seq,
                action=AuditAction(event.action),
                occurred_at=event.occurred_at,
                actor_id=event.actor_id,
                payload=event.payload or {},
                hash=event.hash,
            )
            for event in events
        )

        return AuditTrace(
            entity_type=entity_type,
            entity_id=entity_id,
            entries=entries,
        )

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent audit events first."""
        result = self._session.execute(
            select(AuditEvent)
            .order_by(AuditEvent.seq.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
