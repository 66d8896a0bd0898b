"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.transaction_selector import TransactionSelector

__all__ = [
    "TransactionSelector",
]
