"""Database layer - engine, base classes, and column types."""

from ledger_kernel.db.base import UUID, Base, TimestampedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    statement_timeout,
)
from ledger_kernel.db.types import money_from_value

__all__ = [
    "get_engine",
    "get_session_factory",
    "statement_timeout",
    "create_tables",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "UUID",
    "money_from_value",
]
