"""
Audit chain validation tests.

Verifies:
- Every event links to its predecessor; the first is the genesis event
- Sequence numbers are allocated monotonically
- Tampering with a payload, a hash, or a link is detected
"""

from uuid import uuid4

import pytest
from sqlalchemy import select, update

from ledger_kernel.exceptions import AuditChainBrokenError
from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.services.auditor_service import RECORD_ENTITY, AuditorService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.utils.hashing import hash_audit_event, hash_payload


@pytest.fixture
def auditor(db_session, clock):
    return AuditorService(db_session, clock)


@pytest.fixture
def chain(auditor, actor_id):
    """Three events across two entities."""
    record_id = uuid4()
    auditor.record_reconciliation_computed(
        record_id, actor_id, {"match_status": "UNMATCHED", "difference": "-20.00"},
    )
    auditor.record_status_override(
        record_id, actor_id, "UNMATCHED", "MATCHED", "UNMATCHED", reason="timing",
    )
    auditor.record_reconciliation_rejected(
        uuid4(), actor_id, "INVALID_BALANCE", "bank_balance", "not a number",
    )
    return record_id


def _events(session):
    return session.execute(select(AuditEvent).order_by(AuditEvent.seq)).scalars().all()


def _tamper(session, seq, **values):
    session.execute(
        update(AuditEvent)
        .where(AuditEvent.seq == seq)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    session.expire_all()


class TestChainStructure:
    def test_empty_chain_is_valid(self, auditor):
        assert auditor.validate_chain() is True

    def test_chain_links(self, db_session, auditor, chain):
        events = _events(db_session)

        assert [e.seq for e in events] == [1, 2, 3]
        assert events[0].is_genesis
        assert events[1].prev_hash == events[0].hash
        assert events[2].prev_hash == events[1].hash
        assert auditor.validate_chain() is True

    def test_hash_formula(self, db_session, chain):
        first = _events(db_session)[0]

        assert first.payload_hash == hash_payload(first.payload)
        assert first.hash == hash_audit_event(
            entity_type=RECORD_ENTITY,
            entity_id=str(chain),
            action=AuditAction.RECONCILIATION_COMPUTED.value,
            payload_hash=first.payload_hash,
            prev_hash=None,
        )

    def test_status_override_action_chosen_from_target(self, auditor, actor_id):
        record_id = uuid4()

        overridden = auditor.record_status_override(
            record_id, actor_id, "UNMATCHED", "MATCHED", "UNMATCHED",
        )
        cleared = auditor.record_status_override(
            record_id, actor_id, "MATCHED", "UNMATCHED", "UNMATCHED",
        )

        assert overridden.action == AuditAction.STATUS_OVERRIDDEN.value
        assert cleared.action == AuditAction.STATUS_OVERRIDE_CLEARED.value

    def test_trace_for_entity(self, auditor, chain):
        trace = auditor.get_trace(RECORD_ENTITY, chain)

        assert trace.actions == (
            AuditAction.RECONCILIATION_COMPUTED,
            AuditAction.STATUS_OVERRIDDEN,
        )
        assert trace.last_action is AuditAction.STATUS_OVERRIDDEN
        assert trace.entries[1].payload["reason"] == "timing"

    def test_trace_unknown_entity(self, auditor):
        assert auditor.get_trace(RECORD_ENTITY, uuid4()).is_empty

    def test_recent_events_newest_first(self, auditor, chain):
        assert [e.seq for e in auditor.get_recent_events(limit=2)] == [3, 2]


class TestTamperDetection:
    def test_modified_payload(self, db_session, auditor, chain):
        _tamper(db_session, 1, payload={"match_status": "MATCHED", "difference": "0"})

        with pytest.raises(AuditChainBrokenError) as exc_info:
            auditor.validate_chain()

        assert exc_info.value.code == "AUDIT_CHAIN_BROKEN"

    def test_modified_hash(self, db_session, auditor, chain):
        _tamper(db_session, 2, hash="0" * 64)

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

    def test_broken_link(self, db_session, auditor, chain):
        events = _events(db_session)
        # Re-hash event 3 so only the link is wrong
        third = events[2]
        forged_hash = hash_audit_event(
            entity_type=third.entity_type,
            entity_id=str(third.entity_id),
            action=third.action,
            payload_hash=third.payload_hash,
            prev_hash=events[0].hash,
        )
        _tamper(db_session, 3, prev_hash=events[0].hash, hash=forged_hash)

        with pytest.raises(AuditChainBrokenError) as exc_info:
            auditor.validate_chain()

        assert exc_info.value.expected_hash == events[1].hash

    def test_forged_genesis_link(self, db_session, auditor, chain):
        _tamper(db_session, 1, prev_hash="f" * 64)

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

    def test_tamper_is_logged(self, db_session, auditor, chain, captured_logs):
        _tamper(db_session, 2, hash="0" * 64)

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

        broken = [r for r in captured_logs() if r["message"] == "audit_chain_broken"]
        assert broken[0]["level"] == "CRITICAL"


class TestSequenceService:
    def test_first_use(self, db_session):
        sequences = SequenceService(db_session)

        assert sequences.current_value("reports") is None
        assert sequences.next_value("reports") == 1
        assert sequences.current_value("reports") == 1

    def test_monotonic(self, db_session):
        sequences = SequenceService(db_session)

        values = [sequences.next_value(SequenceService.AUDIT_EVENT) for _ in range(5)]

        assert values == [1, 2, 3, 4, 5]

    def test_independent_names(self, db_session):
        sequences = SequenceService(db_session)
        sequences.next_value("a")
        sequences.next_value("a")

        assert sequences.next_value("b") == 1
