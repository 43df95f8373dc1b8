"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into typed
``ledger_config.schema`` dataclass instances.  The single public entry point
for runtime config is ``ledger_config.get_active_config()``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Out-of-range values or invalid account codes -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    AccountDefaultDef,
    ChartAccountDef,
    DatabaseDef,
    LedgerConfiguration,
    PostingDef,
    ResolverDef,
)
from ledger_kernel.domain.account_code import is_valid_code


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_database(data: dict[str, Any]) -> DatabaseDef:
    return DatabaseDef(
        url=data["url"],
        busy_timeout_seconds=float(data.get("busy_timeout_seconds", 30.0)),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
    )


def parse_posting(data: dict[str, Any]) -> PostingDef:
    max_attempts = int(data.get("max_attempts", 3))
    if max_attempts < 1:
        raise ValueError(f"posting.max_attempts must be at least 1, got {max_attempts}")
    timeout = data.get("timeout_seconds", 10.0)
    if timeout is not None:
        timeout = float(timeout)
        if timeout <= 0:
            raise ValueError(f"posting.timeout_seconds must be positive, got {timeout}")
    return PostingDef(max_attempts=max_attempts, timeout_seconds=timeout)


def parse_account_default(data: dict[str, Any], key: str) -> AccountDefaultDef:
    code = str(data["code"])
    if not is_valid_code(code):
        raise ValueError(f"resolver.{key}.code is not a valid account code: {code!r}")
    return AccountDefaultDef(name=str(data["name"]), code=code)


def parse_resolver(data: dict[str, Any]) -> ResolverDef:
    return ResolverDef(
        **{
            key: parse_account_default(data[key], key)
            for key in (
                "miscellaneous_expense",
                "miscellaneous_income",
                "default_payment_method",
                "default_income_destination",
            )
        }
    )


def parse_chart_account(data: dict[str, Any]) -> ChartAccountDef:
    code = str(data["code"])
    if not is_valid_code(code):
        raise ValueError(f"chart account code is not valid: {code!r}")
    movable = data.get("can_receive_movement")
    return ChartAccountDef(
        code=code,
        name=str(data["name"]),
        can_receive_movement=None if movable is None else bool(movable),
    )


def parse_configuration(data: dict[str, Any]) -> LedgerConfiguration:
    """
    Parse a whole configuration document.

    Raises:
        KeyError: A required section or key is missing.
        ValueError: A value is out of range, or a chart code repeats.
    """
    chart = tuple(parse_chart_account(item) for item in data.get("chart") or ())
    codes = [account.code for account in chart]
    duplicates = sorted({code for code in codes if codes.count(code) > 1})
    if duplicates:
        raise ValueError(f"chart declares duplicate codes: {duplicates}")

    return LedgerConfiguration(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        database=parse_database(data["database"]),
        posting=parse_posting(data.get("posting") or {}),
        resolver=parse_resolver(data["resolver"]),
        chart=chart,
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> LedgerConfiguration:
    """Load and parse one YAML configuration file."""
    return parse_configuration(load_yaml_file(path))
