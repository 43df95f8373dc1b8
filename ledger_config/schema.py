"""
LedgerConfiguration schema.

The human-authored configuration of one deployment: database connection,
posting bounds, the resolver's fallback accounts and the chart of accounts
seeded for every new user.  YAML is parsed into these frozen types by the
loader; the kernel never sees them directly (see ``bridges``).
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseDef:
    """Database connection settings."""

    url: str
    busy_timeout_seconds: float = 30.0
    echo: bool = False
    pool_size: int = 20


@dataclass(frozen=True)
class PostingDef:
    """Bounds of every write unit of work."""

    max_attempts: int = 3
    timeout_seconds: float | None = 10.0


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountDefaultDef:
    """A fallback account: the name to give it and the code to create it under."""

    name: str
    code: str


@dataclass(frozen=True)
class ResolverDef:
    """Fallback accounts of the Account Resolver."""

    miscellaneous_expense: AccountDefaultDef
    miscellaneous_income: AccountDefaultDef
    default_payment_method: AccountDefaultDef
    default_income_destination: AccountDefaultDef


@dataclass(frozen=True)
class ChartAccountDef:
    """One seeded account.  ``can_receive_movement`` None means level 4 only."""

    code: str
    name: str
    can_receive_movement: bool | None = None


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfiguration:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    database: DatabaseDef
    posting: PostingDef
    resolver: ResolverDef
    chart: tuple[ChartAccountDef, ...] = ()
    checksum: str = ""
