"""Tests for the ReconciliationRecord status properties."""

from ledger_engines.reconciliation import MatchStatus
from ledger_kernel.models import reconciliation as record_module
from ledger_kernel.models.reconciliation import ReconciliationRecord


def test_override_wins():
    record = ReconciliationRecord(computed_status="UNMATCHED", override_status="MATCHED")

    assert record.computed is MatchStatus.UNMATCHED
    assert record.override is MatchStatus.MATCHED
    assert record.effective_status is MatchStatus.MATCHED
    assert record.is_overridden


def test_computed_status_without_override():
    record = ReconciliationRecord(computed_status="PENDING_CONFIRM", override_status=None)

    assert record.override is None
    assert record.effective_status is MatchStatus.PENDING_CONFIRM
    assert not record.is_overridden


def test_effective_status_uses_engine_rule(monkeypatch):
    calls = []

    def fake_resolve(computed, override):
        calls.append((computed, override))
        return MatchStatus.UNMATCHED

    monkeypatch.setattr(record_module, "resolve_status", fake_resolve)
    record = ReconciliationRecord(computed_status="MATCHED", override_status=None)

    assert record.effective_status is MatchStatus.UNMATCHED
    assert calls == [(MatchStatus.MATCHED, None)]
