"""
ledger_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains settings.
    It loads the YAML file (``LEDGER_CONFIG_PATH`` or the packaged
    ``defaults.yaml``), applies ``LEDGER_*`` environment overrides, and
    caches the result.

Architecture position:
    Configuration sits above ``ledger_kernel`` and below
    ``ledger_services``.  The kernel and engines never import it; services
    read the tolerance and history limit from it and pass them down.

Audit relevance:
    Every load emits a ``LEDGER_CONFIG_TRACE`` log record with the
    checksum of the effective settings, tying each reconciliation run to
    the tolerance that governed it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from ledger_config.loader import compute_checksum, load_settings
from ledger_config.schema import LedgerSettings

_logger = logging.getLogger("ledger_kernel.config")

_active: LedgerSettings | None = None
_lock = threading.Lock()


def get_active_config(path: Path | str | None = None) -> LedgerSettings:
    """The single runtime configuration entrypoint.

    The first call loads and caches; later calls return the cached
    settings.  Passing ``path`` forces a reload from that file.

    Raises:
        ConfigurationError: a value is invalid or a key is unknown.
        FileNotFoundError: the configured file does not exist.
    """
    global _active
    with _lock:
        if _active is not None and path is None:
            return _active

        settings = load_settings(path)
        _active = settings

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "checksum": compute_checksum(settings.to_dict()),
            "match_tolerance": str(settings.match_tolerance),
            "log_level": settings.log_level,
            "history_limit": settings.history_limit,
        },
    )
    return settings


def reset_active_config() -> None:
    """Drop the cached settings. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "LedgerSettings",
    "get_active_config",
    "load_settings",
    "reset_active_config",
]
