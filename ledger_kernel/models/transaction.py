"""
Module: ledger_kernel.models.transaction
Responsibility: ORM persistence for the transaction store that
    reconciliation reads from.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - amount >= 0; the balance effect comes from transaction_type (DB check).
    - transaction_type is CREDIT or DEBIT; status is COMPLETED, PENDING,
      or NULL (NULL is read as COMPLETED).
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class LedgerTransaction(Base):
    """
    One money movement in the ledger.

    ``client_name=None`` is a manual / house entry.  Rows are converted to
    engine ``Transaction`` DTOs by TransactionSelector; the engine never
    sees ORM objects.
    """

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_ledger_transactions_amount_nonneg"),
        CheckConstraint(
            "transaction_type IN ('CREDIT', 'DEBIT')",
            name="ck_ledger_transactions_valid_type",
        ),
        CheckConstraint(
            "status IS NULL OR status IN ('COMPLETED', 'PENDING')",
            name="ck_ledger_transactions_valid_status",
        ),
        Index("idx_ledger_txn_date", "transaction_date"),
        Index("idx_ledger_txn_client", "client_name"),
        Index("idx_ledger_txn_bank", "bank_name"),
    )

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerTransaction {self.transaction_date} "
            f"{self.transaction_type} {self.amount}>"
        )
