"""Tests for ledger_engines.summary."""

from datetime import date
from decimal import Decimal

from ledger_engines.reconciliation import Transaction
from ledger_engines.summary import summarize


def _txn(tid, day, ttype, amount, client=None, status=None):
    return Transaction(
        id=tid,
        date=date(2024, 3, day),
        type=ttype,
        amount=Decimal(amount),
        client_name=client,
        status=status,
    )


class TestSummarize:
    def test_empty_ledger(self):
        summary = summarize([])

        assert summary.total_credit == Decimal("0")
        assert summary.total_debit == Decimal("0")
        assert summary.net_flow == Decimal("0")
        assert summary.transaction_count == 0
        assert summary.date_range is None
        assert summary.clients == ()

    def test_totals_and_net_flow(self):
        summary = summarize([
            _txn("1", 1, "CREDIT", "500.00", client="Acme"),
            _txn("2", 5, "DEBIT", "120.50", client="Acme"),
            _txn("3", 9, "CREDIT", "80.25", client="Beta"),
        ])

        assert summary.total_credit == Decimal("580.25")
        assert summary.total_debit == Decimal("120.50")
        assert summary.net_flow == Decimal("459.75")
        assert summary.completed_count == 3
        assert summary.date_range == (date(2024, 3, 1), date(2024, 3, 9))

    def test_pending_excluded_from_totals(self):
        summary = summarize([
            _txn("1", 1, "CREDIT", "100", status="COMPLETED"),
            _txn("2", 2, "CREDIT", "40", status="PENDING"),
            _txn("3", 3, "DEBIT", "15", status="PENDING"),
        ])

        assert summary.total_credit == Decimal("100")
        assert summary.total_debit == Decimal("0")
        assert summary.pending_count == 2
        assert summary.pending_amount == Decimal("55")
        assert summary.transaction_count == 3
        assert summary.date_range == (date(2024, 3, 1), date(2024, 3, 1))

    def test_client_breakdown_sums_to_totals(self):
        summary = summarize([
            _txn("1", 1, "CREDIT", "10", client="Zeta"),
            _txn("2", 2, "DEBIT", "3", client=None),
            _txn("3", 3, "CREDIT", "7", client=" Acme "),
            _txn("4", 4, "DEBIT", "2", client="Acme"),
        ])

        names = [c.client_name for c in summary.clients]
        assert names == ["Acme", "Zeta", None]
        assert sum(c.total_credit for c in summary.clients) == summary.total_credit
        assert sum(c.total_debit for c in summary.clients) == summary.total_debit

        acme = summary.for_client("  Acme")
        assert acme.net_flow == Decimal("5")
        assert acme.transaction_count == 2

    def test_for_client_unknown(self):
        summary = summarize([_txn("1", 1, "CREDIT", "10", client="Acme")])

        assert summary.for_client("acme") is None
