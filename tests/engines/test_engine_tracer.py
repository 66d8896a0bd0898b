"""
Tests for the LEDGER_ENGINE_TRACE decorator.

Verifies:
- Fingerprints are deterministic and depend only on the selected fields.
- Positional and keyword arguments fingerprint identically.
- The decorator does not alter the wrapped function's result.
"""

import logging
from decimal import Decimal

from ledger_engines.tracer import compute_input_fingerprint, traced_engine


@traced_engine("sample", "2.1", fingerprint_fields=("a", "b"))
def _sample(a, b, c=None):
    return (a, b, c)


class TestFingerprint:
    def test_deterministic(self):
        args = {"a": Decimal("1.50"), "b": ["x", "y"]}

        assert compute_input_fingerprint(("a", "b"), args) == (
            compute_input_fingerprint(("a", "b"), dict(args))
        )

    def test_length(self):
        assert len(compute_input_fingerprint(("a",), {"a": 1})) == 16

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("a",), {}) == (
            compute_input_fingerprint(("a",), {"a": None})
        )

    def test_dict_key_order_irrelevant(self):
        first = compute_input_fingerprint(("a",), {"a": {"x": 1, "y": 2}})
        second = compute_input_fingerprint(("a",), {"a": {"y": 2, "x": 1}})

        assert first == second

    def test_different_values_differ(self):
        assert compute_input_fingerprint(("a",), {"a": 1}) != (
            compute_input_fingerprint(("a",), {"a": 2})
        )


class TestTracedEngine:
    def test_result_passthrough(self):
        assert _sample(1, 2, c=3) == (1, 2, 3)

    def test_emits_trace(self, caplog):
        caplog.set_level(logging.INFO, logger="ledger_kernel")

        _sample(1, 2)

        traces = [r for r in caplog.records if r.getMessage() == "LEDGER_ENGINE_TRACE"]
        assert len(traces) == 1
        record = traces[0]
        assert record.engine_name == "sample"
        assert record.engine_version == "2.1"
        assert record.function == "_sample"
        assert len(record.input_fingerprint) == 16
        assert record.duration_ms >= 0

    def test_positional_and_keyword_match(self, caplog):
        caplog.set_level(logging.INFO, logger="ledger_kernel")

        _sample(1, 2)
        _sample(a=1, b=2)

        fps = [
            r.input_fingerprint for r in caplog.records
            if r.getMessage() == "LEDGER_ENGINE_TRACE"
        ]
        assert fps[0] == fps[1]

    def test_unselected_argument_ignored(self, caplog):
        caplog.set_level(logging.INFO, logger="ledger_kernel")

        _sample(1, 2, c="first")
        _sample(1, 2, c="second")

        fps = [
            r.input_fingerprint for r in caplog.records
            if r.getMessage() == "LEDGER_ENGINE_TRACE"
        ]
        assert fps[0] == fps[1]
