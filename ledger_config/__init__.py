"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component may read configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and below
    ``ledger_services``.  The kernel MUST NEVER import from
    ``ledger_config``; ``bridges`` translates configuration into
    kernel-compatible inputs.

Environment:
    DATABASE_URL    overrides ``database.url`` of the loaded set.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration set does not exist.
    - ``ValueError`` / ``KeyError`` -- schema or value validation failures.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from ledger_config.loader import load_configuration
from ledger_config.schema import LedgerConfiguration

_logger = logging.getLogger("ledger_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_SET = "default"

DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(
    config_set: str = DEFAULT_CONFIG_SET,
    config_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> LedgerConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        config_set: Name of the YAML set under ``config_dir`` (without suffix).
        config_dir: Override path to the configuration sets directory.
            Defaults to ledger_config/sets/.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The parsed LedgerConfiguration, with environment overrides applied.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ValueError, KeyError: If the configuration fails validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{config_set}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration set not found: {path}")

    config = load_configuration(path)

    env = os.environ if environ is None else environ
    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        config = dataclasses.replace(
            config, database=dataclasses.replace(config.database, url=database_url)
        )

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "chart_size": len(config.chart),
            "database_url_overridden": bool(database_url),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_SET", "LedgerConfiguration", "get_active_config"]
