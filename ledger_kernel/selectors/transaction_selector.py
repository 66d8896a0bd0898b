"""
Module: ledger_kernel.selectors.transaction_selector
Responsibility: Read-only queries over the transaction store, returning
    the engine's Transaction DTOs.
Architecture position: Kernel > Selectors.  Imports models/ and the
    engine's pure domain types.

Invariants enforced:
    - find_for_reconciliation() applies the same scope rules as the engine:
      inclusive date range and status COMPLETED or NULL in SQL; client and
      bank names through normalize_name(), so stored names padded with any
      whitespace match exactly as they do in select_transactions().
      Blank filters are ignored.
    - Results are ordered by date then id, so repeated reads of the same
      data produce the same sequence.

Failure modes:
    - OperationalError propagates to the caller; ReconciliationService
      converts it to TransactionSourceUnavailableError.
"""

from datetime import date

from sqlalchemy import or_, select

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.transaction import LedgerTransaction
from ledger_kernel.selectors.base import BaseSelector
from ledger_engines.reconciliation.engine import normalize_name
from ledger_engines.reconciliation.types import Transaction, TransactionStatus

logger = get_logger("selectors.transaction")


def _name_matches(stored: str | None, wanted: str | None) -> bool:
    return wanted is None or normalize_name(stored) == wanted


class TransactionSelector(BaseSelector[LedgerTransaction]):
    """
    Selector for ledger transactions.

    Contract:
        Returns ``Transaction`` DTOs; ORM rows never leave this class.

    Non-goals:
        - Does not compute totals; that is the reconciliation engine's job.
    """

    def find_for_reconciliation(
        self,
        from_date: date,
        to_date: date,
        client_name: str | None = None,
        bank_name: str | None = None,
    ) -> tuple[Transaction, ...]:
        """Transactions in scope for a reconciliation run."""
        client = normalize_name(client_name)
        bank = normalize_name(bank_name)

        stmt = select(LedgerTransaction).where(
            LedgerTransaction.transaction_date >= from_date,
            LedgerTransaction.transaction_date <= to_date,
            or_(
                LedgerTransaction.status.is_(None),
                LedgerTransaction.status == TransactionStatus.COMPLETED.value,
            ),
        )
        stmt = stmt.order_by(
            LedgerTransaction.transaction_date, LedgerTransaction.id,
        )

        rows = [
            row for row in self.session.execute(stmt).scalars().all()
            if _name_matches(row.client_name, client)
            and _name_matches(row.bank_name, bank)
        ]
        logger.debug(
            "transactions_selected",
            extra={
                "from_date": str(from_date),
                "to_date": str(to_date),
                "client_name": client,
                "bank_name": bank,
                "count": len(rows),
            },
        )
        return tuple(self._to_dto(row) for row in rows)

    def find_all(self) -> tuple[Transaction, ...]:
        """Every stored transaction, any status."""
        rows = self.session.execute(
            select(LedgerTransaction).order_by(
                LedgerTransaction.transaction_date, LedgerTransaction.id,
            )
        ).scalars().all()
        return tuple(self._to_dto(row) for row in rows)

    def distinct_client_names(self) -> tuple[str, ...]:
        """Sorted, non-blank client names."""
        return self._distinct_names(LedgerTransaction.client_name)

    def distinct_bank_names(self) -> tuple[str, ...]:
        """Sorted, non-blank bank names."""
        return self._distinct_names(LedgerTransaction.bank_name)

    def _distinct_names(self, column) -> tuple[str, ...]:
        values = self.session.execute(
            select(column).where(column.is_not(None)).distinct()
        ).scalars().all()
        names = {normalize_name(v) for v in values}
        names.discard(None)
        return tuple(sorted(names))

    @staticmethod
    def _to_dto(row: LedgerTransaction) -> Transaction:
        return Transaction(
            id=str(row.id),
            date=row.transaction_date,
            type=row.transaction_type,
            amount=row.amount,
            client_name=row.client_name,
            bank_name=row.bank_name,
            status=row.status,
        )
