"""Tests for TransactionSelector against an in-memory SQLite store."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_engines.reconciliation import Transaction, TransactionStatus, TransactionType
from ledger_kernel.selectors.transaction_selector import TransactionSelector


@pytest.fixture
def selector(db_session):
    return TransactionSelector(db_session)


@pytest.fixture
def seeded(add_transaction):
    add_transaction(date(2024, 2, 29), "CREDIT", "999.00", client_name="Acme")
    add_transaction(date(2024, 3, 1), "CREDIT", "500.00", client_name="Acme", bank_name="First Bank")
    add_transaction(date(2024, 3, 15), "DEBIT", "120.00", client_name=" Acme ", bank_name="Second Bank")
    add_transaction(date(2024, 3, 20), "CREDIT", "75.00", client_name="Beta", status=None)
    add_transaction(date(2024, 3, 25), "DEBIT", "40.00", client_name="Acme", status="PENDING")
    add_transaction(date(2024, 3, 31), "DEBIT", "10.00")
    add_transaction(date(2024, 4, 1), "CREDIT", "999.00", client_name="Acme")


class TestFindForReconciliation:
    def test_inclusive_range_and_completed_only(self, selector, seeded):
        rows = selector.find_for_reconciliation(date(2024, 3, 1), date(2024, 3, 31))

        assert [r.date for r in rows] == [
            date(2024, 3, 1), date(2024, 3, 15), date(2024, 3, 20), date(2024, 3, 31),
        ]
        assert all(r.is_completed for r in rows)

    def test_returns_engine_dtos(self, selector, seeded):
        rows = selector.find_for_reconciliation(date(2024, 3, 1), date(2024, 3, 1))

        assert len(rows) == 1
        txn = rows[0]
        assert isinstance(txn, Transaction)
        assert txn.type is TransactionType.CREDIT
        assert txn.amount == Decimal("500")
        assert txn.status is TransactionStatus.COMPLETED

    def test_status_null_included(self, selector, seeded):
        rows = selector.find_for_reconciliation(date(2024, 3, 20), date(2024, 3, 20))

        assert len(rows) == 1
        assert rows[0].status is None
        assert rows[0].is_completed

    def test_client_filter_trims_stored_names(self, selector, seeded):
        rows = selector.find_for_reconciliation(
            date(2024, 3, 1), date(2024, 3, 31), client_name="  Acme",
        )

        assert [r.amount for r in rows] == [Decimal("500"), Decimal("120")]

    def test_client_filter_strips_tabs_and_newlines(self, selector, add_transaction):
        add_transaction(date(2024, 3, 3), "CREDIT", "60.00", client_name="Acme\t")
        add_transaction(date(2024, 3, 4), "CREDIT", "70.00", client_name="\nAcme ")

        rows = selector.find_for_reconciliation(
            date(2024, 3, 1), date(2024, 3, 31), client_name="Acme",
        )

        assert [r.amount for r in rows] == [Decimal("60"), Decimal("70")]

    def test_client_filter_is_case_sensitive(self, selector, seeded):
        rows = selector.find_for_reconciliation(
            date(2024, 3, 1), date(2024, 3, 31), client_name="acme",
        )

        assert rows == ()

    def test_bank_filter(self, selector, seeded):
        rows = selector.find_for_reconciliation(
            date(2024, 3, 1), date(2024, 3, 31), bank_name="Second Bank",
        )

        assert len(rows) == 1
        assert rows[0].type is TransactionType.DEBIT

    def test_blank_filter_ignored(self, selector, seeded):
        unfiltered = selector.find_for_reconciliation(date(2024, 3, 1), date(2024, 3, 31))
        blank = selector.find_for_reconciliation(
            date(2024, 3, 1), date(2024, 3, 31), client_name="   ", bank_name="",
        )

        assert blank == unfiltered

    def test_repeated_reads_identical(self, selector, seeded):
        first = selector.find_for_reconciliation(date(2024, 1, 1), date(2024, 12, 31))
        second = selector.find_for_reconciliation(date(2024, 1, 1), date(2024, 12, 31))

        assert first == second


class TestOtherQueries:
    def test_find_all_includes_pending(self, selector, seeded):
        rows = selector.find_all()

        assert len(rows) == 7
        assert any(r.status is TransactionStatus.PENDING for r in rows)

    def test_distinct_names(self, selector, seeded):
        assert selector.distinct_client_names() == ("Acme", "Beta")
        assert selector.distinct_bank_names() == ("First Bank", "Second Bank")

    def test_empty_store(self, selector):
        assert selector.find_all() == ()
        assert selector.distinct_client_names() == ()
