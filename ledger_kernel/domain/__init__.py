"""Domain primitives shared across the ledger kernel."""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = ["Clock", "SystemClock", "DeterministicClock"]
