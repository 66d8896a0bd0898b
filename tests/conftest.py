"""
Pytest fixtures for the ledger reconciliation test suite.

Provides:
- File-backed SQLite engine and session per test (``engine``, ``db_session``)
- Deterministic clock and actor id
- A factory for inserting ledger transactions
- Captured structured logs as parsed JSON dicts
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import ledger_kernel.models  # noqa: F401  (registers tables)
from ledger_config import reset_active_config
from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import LogContext, StructuredFormatter, reset_logging
from ledger_kernel.models.transaction import LedgerTransaction

_LEDGER_ENV_VARS = (
    "LEDGER_CONFIG_PATH",
    "LEDGER_MATCH_TOLERANCE",
    "LEDGER_DATABASE_URL",
    "LEDGER_LOG_LEVEL",
)


# =============================================================================
# Isolation fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logger config and LogContext between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Every test starts from the packaged defaults with no LEDGER_* overrides."""
    for name in _LEDGER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_active_config()
    yield
    reset_active_config()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "reconciliation_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    # A file, not :memory:, so a second session gets its own connection
    eng = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return DeterministicClock(
        fixed_time=datetime(2024, 4, 1, 9, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def actor_id():
    return uuid4()


@pytest.fixture
def add_transaction(db_session):
    """Factory inserting a LedgerTransaction row and flushing it."""

    def _add(
        txn_date: date,
        transaction_type: str,
        amount: str | Decimal,
        client_name: str | None = None,
        bank_name: str | None = None,
        status: str | None = "COMPLETED",
        description: str | None = None,
    ) -> LedgerTransaction:
        row = LedgerTransaction(
            transaction_date=txn_date,
            transaction_type=transaction_type,
            amount=Decimal(amount),
            client_name=client_name,
            bank_name=bank_name,
            status=status,
            description=description,
        )
        db_session.add(row)
        db_session.flush()
        return row

    return _add
