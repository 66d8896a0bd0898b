"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Reads a YAML settings file, applies environment overrides, and parses
the result into a frozen ``LedgerSettings``.  Runtime code reaches
settings through ``ledger_config.get_active_config()``; the loader is
public for tests and tooling.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never silently falls back to a default.
* ``match_tolerance`` is a positive finite Decimal.  Float YAML scalars
  are converted through ``str()``.
* ``compute_checksum`` is deterministic over the effective settings.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad or unknown values  -> ``ConfigurationError`` naming the key.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_kernel.exceptions import ConfigurationError
from ledger_config.schema import (
    DEFAULT_DATABASE_URL,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MATCH_TOLERANCE,
    VALID_LOG_LEVELS,
    LedgerSettings,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"

# Environment variable -> settings key
ENV_OVERRIDES: dict[str, str] = {
    "LEDGER_MATCH_TOLERANCE": "match_tolerance",
    "LEDGER_DATABASE_URL": "database_url",
    "LEDGER_LOG_LEVEL": "log_level",
}

_KNOWN_KEYS = frozenset({"match_tolerance", "database_url", "log_level", "history_limit"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML file and return its top-level mapping (empty file -> {}).

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top-level YAML document must be a mapping")
    return data


def _parse_tolerance(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ConfigurationError("match_tolerance", f"expected a decimal, got {value!r}")
    try:
        tolerance = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigurationError(
            "match_tolerance", f"expected a decimal, got {value!r}",
        ) from None
    if not tolerance.is_finite() or tolerance <= 0:
        raise ConfigurationError("match_tolerance", f"must be positive and finite, got {value!r}")
    return tolerance


def _parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            "log_level", f"must be one of {sorted(VALID_LOG_LEVELS)}, got {value!r}",
        )
    return level


def _parse_history_limit(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError("history_limit", f"expected an integer, got {value!r}")
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            "history_limit", f"expected an integer, got {value!r}",
        ) from None
    if limit <= 0:
        raise ConfigurationError("history_limit", f"must be positive, got {value!r}")
    return limit


def _parse_database_url(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError("database_url", "must be a non-empty string")
    return value.strip()


def parse_settings(data: Mapping[str, Any]) -> LedgerSettings:
    """Parse a raw mapping into LedgerSettings.  Missing keys take defaults."""
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(unknown[0], "unknown configuration key")

    return LedgerSettings(
        match_tolerance=_parse_tolerance(data.get("match_tolerance", DEFAULT_MATCH_TOLERANCE)),
        database_url=_parse_database_url(data.get("database_url", DEFAULT_DATABASE_URL)),
        log_level=_parse_log_level(data.get("log_level", DEFAULT_LOG_LEVEL)),
        history_limit=_parse_history_limit(data.get("history_limit", DEFAULT_HISTORY_LIMIT)),
    )


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return a copy of ``data`` with LEDGER_* environment overrides applied."""
    env = os.environ if environ is None else environ
    merged = dict(data)
    for env_name, key in ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value is not None and value.strip():
            merged[key] = value
    return merged


def resolve_config_path(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Explicit path, else LEDGER_CONFIG_PATH, else the packaged defaults."""
    if path is not None:
        return Path(path)
    env = os.environ if environ is None else environ
    env_path = env.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Load effective settings: YAML file first, then environment overrides.

    Args:
        path: Settings file.  Defaults per ``resolve_config_path``.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    config_path = resolve_config_path(path, environ)
    data = load_yaml_file(config_path)
    return parse_settings(apply_env_overrides(data, environ))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
