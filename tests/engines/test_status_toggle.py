"""
Tests for the manual status override state machine (toggle_status,
effective_status).
"""

import pytest

from ledger_kernel.exceptions import InvalidStatusTransitionError
from ledger_engines.reconciliation import (
    MatchStatus,
    StatusAction,
    effective_status,
    toggle_status,
)


class TestToggleStatus:
    def test_confirm_unmatched(self):
        assert toggle_status(MatchStatus.UNMATCHED, StatusAction.CONFIRM) == MatchStatus.MATCHED

    def test_unconfirm_matched(self):
        assert toggle_status(MatchStatus.MATCHED, StatusAction.UNCONFIRM) == MatchStatus.UNMATCHED

    def test_round_trip_returns_to_start(self):
        confirmed = toggle_status(MatchStatus.UNMATCHED, StatusAction.CONFIRM)

        assert toggle_status(confirmed, StatusAction.UNCONFIRM) == MatchStatus.UNMATCHED

    @pytest.mark.parametrize(
        "current, action",
        [
            (MatchStatus.MATCHED, StatusAction.CONFIRM),
            (MatchStatus.UNMATCHED, StatusAction.UNCONFIRM),
            (MatchStatus.PENDING_CONFIRM, StatusAction.CONFIRM),
            (MatchStatus.PENDING_CONFIRM, StatusAction.UNCONFIRM),
        ],
    )
    def test_disallowed_transitions(self, current, action):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            toggle_status(current, action)

        assert exc_info.value.current == current.value
        assert exc_info.value.action == action.value
        assert exc_info.value.code == "INVALID_STATUS_TRANSITION"

    def test_accepts_raw_values(self):
        assert toggle_status("UNMATCHED", "CONFIRM") == MatchStatus.MATCHED

    def test_unknown_action_rejected(self):
        with pytest.raises(InvalidStatusTransitionError):
            toggle_status(MatchStatus.UNMATCHED, "APPROVE")

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidStatusTransitionError):
            toggle_status("RECONCILED", StatusAction.CONFIRM)


class TestEffectiveStatus:
    def test_computed_when_no_override(self):
        assert effective_status(MatchStatus.UNMATCHED, None) == MatchStatus.UNMATCHED

    def test_override_wins(self):
        assert effective_status(MatchStatus.UNMATCHED, MatchStatus.MATCHED) == MatchStatus.MATCHED
