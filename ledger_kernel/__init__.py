"""
Ledger Kernel

Shared infrastructure for the reconciliation system:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- SQLAlchemy persistence for transactions and reconciliation records
- Append-only, hash-chained audit trail
"""

__version__ = "0.1.0"
