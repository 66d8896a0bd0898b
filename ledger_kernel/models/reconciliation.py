"""
Module: ledger_kernel.models.reconciliation
Responsibility: ORM persistence for reconciliation snapshots.
Architecture position: Kernel > Models.  Imports db/ and the engine's
    MatchStatus enum (a pure value type).

Invariants enforced:
    - computed_status is written once, from reconcile(), and never edited.
    - override_status is the only mutable verdict field; it is NULL unless
      a manual action moved the verdict away from computed_status.
    - effective_status = override_status ?? computed_status is derived at
      read time and never stored.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString

from ledger_engines.reconciliation.engine import effective_status as resolve_status
from ledger_engines.reconciliation.types import MatchStatus

_STATUS_VALUES = "('MATCHED', 'UNMATCHED', 'PENDING_CONFIRM')"


class ReconciliationRecord(TrackedBase):
    """
    Persisted result of one reconciliation run.

    Contract:
        Figures mirror the engine's ReconciliationResult exactly, unrounded.
        Overrides change only ``override_status`` and its metadata.
    """

    __tablename__ = "reconciliation_records"

    __table_args__ = (
        CheckConstraint(
            f"computed_status IN {_STATUS_VALUES}",
            name="ck_reconciliation_records_computed_status",
        ),
        CheckConstraint(
            f"override_status IS NULL OR override_status IN {_STATUS_VALUES}",
            name="ck_reconciliation_records_override_status",
        ),
        CheckConstraint(
            "from_date <= to_date",
            name="ck_reconciliation_records_date_range",
        ),
        Index("idx_recon_created", "created_at"),
        Index("idx_recon_client", "client_filter"),
        Index("idx_recon_bank", "bank_filter"),
    )

    # Request scope
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    client_filter: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_filter: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Figures
    opening_balance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    total_debit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    system_balance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    bank_balance: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    difference: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    transaction_count: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Verdict
    computed_status: Mapped[str] = mapped_column(String(20), nullable=False)
    override_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    overridden_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    overridden_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    override_reason: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    @property
    def computed(self) -> MatchStatus:
        return MatchStatus(self.computed_status)

    @property
    def override(self) -> MatchStatus | None:
        if self.override_status is None:
            return None
        return MatchStatus(self.override_status)

    @property
    def effective_status(self) -> MatchStatus:
        """Displayed verdict: the manual override if any, else the computed one."""
        return resolve_status(self.computed, self.override)

    @property
    def is_overridden(self) -> bool:
        return self.override_status is not None

    def __repr__(self) -> str:
        return (
            f"<ReconciliationRecord {self.from_date}..{self.to_date} "
            f"{self.effective_status.value}>"
        )
