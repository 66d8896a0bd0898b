"""
Configuration schema (``ledger_config.schema``).

Frozen dataclass describing the effective runtime settings.  Instances
are produced by ``ledger_config.loader``; nothing else constructs them
outside tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_MATCH_TOLERANCE = Decimal("0.01")
DEFAULT_DATABASE_URL = "sqlite:///ledger.db"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HISTORY_LIMIT = 100

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class LedgerSettings:
    """Effective ledger settings.

    ``match_tolerance`` is the strict bound of the MATCHED test:
    ``abs(difference) < match_tolerance``.
    """

    match_tolerance: Decimal = DEFAULT_MATCH_TOLERANCE
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = DEFAULT_LOG_LEVEL
    history_limit: int = DEFAULT_HISTORY_LIMIT

    def to_dict(self) -> dict[str, str | int]:
        return {
            "match_tolerance": str(self.match_tolerance),
            "database_url": self.database_url,
            "log_level": self.log_level,
            "history_limit": self.history_limit,
        }
