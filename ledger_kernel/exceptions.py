"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (API layers, batch jobs, tests) must be able to tell a bad date
range from a bad balance without parsing message strings.  Every exception
here therefore carries:
  1. A TYPED class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA as attributes (field name, offending value, ids)

Example:
    try:
        result = reconcile(transactions, request)
    except InvalidDateRangeError as e:
        api_response(code=e.code, field=e.field)
    except InvalidBalanceError as e:
        api_response(code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidDateRangeError
    |   +-- InvalidBalanceError
    |   +-- InvalidTransactionError
    |
    +-- ReconciliationError
    |   +-- InvalidStatusTransitionError
    |   +-- ReconciliationNotFoundError
    |   +-- ReconciliationVerificationError
    |
    +-- TransactionSourceError
    |   +-- TransactionSourceUnavailableError
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                               | When Raised
----------------|------------------------------------|------------------------------------
Validation      | VALIDATION_ERROR                   | Generic field-level input failure
                | INVALID_DATE_RANGE                 | Date missing, unparseable, or from > to
                | INVALID_BALANCE                    | Balance missing or not a finite decimal
                | INVALID_TRANSACTION                | Negative / non-decimal amount, bad date
----------------|------------------------------------|------------------------------------
Reconciliation  | INVALID_STATUS_TRANSITION          | Manual action not allowed from status
                | RECONCILIATION_NOT_FOUND           | Record id does not exist
                | RECONCILIATION_VERIFICATION_FAILED | Totals disagree with transaction list
----------------|------------------------------------|------------------------------------
Source          | TRANSACTION_SOURCE_UNAVAILABLE     | Transaction store could not be queried
----------------|------------------------------------|------------------------------------
Audit           | AUDIT_CHAIN_BROKEN                 | Hash chain validation failed
----------------|------------------------------------|------------------------------------
Config          | INVALID_CONFIGURATION              | Bad or unknown configuration key

===============================================================================
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Validation exceptions


class ValidationError(LedgerKernelError):
    """Input failed validation.  ``field`` names the offending input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid value for field '{field}'")


class InvalidDateRangeError(ValidationError):
    """A date is missing or unparseable, or from_date is after to_date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, field: str, value: object, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(field, f"Invalid date range ({field}={value!r}): {reason}")


class InvalidBalanceError(ValidationError):
    """A balance is missing or does not parse as a finite decimal."""

    code: str = "INVALID_BALANCE"

    def __init__(self, field: str, value: object):
        self.value = value
        super().__init__(
            field, f"Balance '{field}' must be a finite decimal, got {value!r}"
        )


class InvalidTransactionError(ValidationError):
    """A transaction violates the ledger invariants (e.g. negative amount)."""

    code: str = "INVALID_TRANSACTION"

    def __init__(self, field: str, transaction_id: str, reason: str):
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(
            field, f"Transaction {transaction_id} has invalid {field}: {reason}"
        )


# Reconciliation exceptions


class ReconciliationError(LedgerKernelError):
    """Base exception for reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


class InvalidStatusTransitionError(ReconciliationError):
    """A manual status action is not permitted from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Action '{action}' is not allowed from status '{current}'")


class ReconciliationNotFoundError(ReconciliationError):
    """Reconciliation record does not exist."""

    code: str = "RECONCILIATION_NOT_FOUND"

    def __init__(self, reconciliation_id: str):
        self.reconciliation_id = reconciliation_id
        super().__init__(f"Reconciliation not found: {reconciliation_id}")


class ReconciliationVerificationError(ReconciliationError):
    """Computed figures disagree with an independent recomputation."""

    code: str = "RECONCILIATION_VERIFICATION_FAILED"

    def __init__(self, mismatches: tuple[str, ...]):
        self.mismatches = mismatches
        super().__init__(
            f"Reconciliation verification failed for: {', '.join(mismatches)}"
        )


# Transaction source exceptions


class TransactionSourceError(LedgerKernelError):
    """Base exception for transaction store errors."""

    code: str = "TRANSACTION_SOURCE_ERROR"


class TransactionSourceUnavailableError(TransactionSourceError):
    """The transaction store could not be queried.

    Raised instead of returning an empty or zero-valued result, which
    would be indistinguishable from a genuine computation.
    """

    code: str = "TRANSACTION_SOURCE_UNAVAILABLE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Transaction source unavailable during {operation}: {detail}")


# Audit exceptions


class AuditError(LedgerKernelError):
    """Base exception for audit-related errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_event_id: str, expected_hash: str, actual_hash: str):
        self.audit_event_id = audit_event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_event_id}: "
            f"expected {expected_hash}, got {actual_hash}"
        )


# Configuration exceptions


class ConfigurationError(LedgerKernelError):
    """A configuration value is invalid or unknown."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
