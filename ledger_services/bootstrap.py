"""
Process start-up: configuration, then logging, then the database engine.

    settings = bootstrap("/etc/ledger/ledger.yaml")
    with session_scope() as session:
        ReconciliationService(session).calculate(request, actor_id)

Logging is configured before the engine so that ``engine_initialized``
and everything after it is written at the configured level.
"""

from pathlib import Path

from ledger_config import LedgerSettings, get_active_config
from ledger_kernel.db import create_tables, init_engine_from_url
from ledger_kernel.logging_config import configure_logging, get_logger

logger = get_logger("services.bootstrap")


def bootstrap(
    config_path: Path | str | None = None,
    create_schema: bool = False,
) -> LedgerSettings:
    """
    Load settings and initialise logging and the engine from them.

    Args:
        config_path: YAML file to load; None uses LEDGER_CONFIG_PATH or the
            packaged defaults.
        create_schema: Create missing tables (development and tests).

    Returns:
        The active LedgerSettings.

    Raises:
        ConfigurationError: a setting is invalid.
    """
    settings = get_active_config(config_path)

    configure_logging(level=settings.log_level)
    engine = init_engine_from_url(settings.database_url)
    if create_schema:
        create_tables()

    logger.info(
        "ledger_bootstrapped",
        extra={
            "dialect": engine.dialect.name,
            "log_level": settings.log_level,
            "schema_created": create_schema,
        },
    )
    return settings
