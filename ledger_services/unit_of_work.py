"""
ledger_services.unit_of_work -- bounded, retrying transactional scope.

Responsibility:
    Runs one request-scoped operation in its own session and database
    transaction, commits on success and rolls back on any failure.  Races
    that the store's unique constraints settle (NumberingConflictError, the
    conflict form of DuplicateAccountCodeError) are retried from scratch in
    a fresh transaction, up to ``max_attempts``.  A caller-supplied timeout
    bounds the whole operation.

Architecture position:
    Services -- sits above the kernel and owns the commit.  Kernel services
    only flush.

Invariants enforced:
    - Every attempt ends in exactly one commit or one rollback; no partial
      writes are ever visible.
    - Retries are bounded; exhaustion raises RetryExhaustedError chained to
      the last conflict.
    - Deadline: PostgreSQL receives SET LOCAL statement/lock timeouts for the
      remaining budget, SQLite waits for the write lock no longer than the
      remaining budget (capped by the engine busy_timeout).
      Either expiry, or running past the deadline before commit, raises
      OperationTimeoutError after rollback.

Failure modes:
    - RetryExhaustedError, OperationTimeoutError (ConcurrencyError family).
    - Anything else raised by the operation propagates unchanged after
      rollback.
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.db.engine import statement_timeout
from ledger_kernel.exceptions import (
    DuplicateAccountCodeError,
    NumberingConflictError,
    OperationTimeoutError,
    RetryExhaustedError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.unit_of_work")

T = TypeVar("T")

RETRYABLE_CONFLICTS: tuple[type[Exception], ...] = (
    NumberingConflictError,
    DuplicateAccountCodeError,
)

# query_canceled, lock_not_available
_PG_TIMEOUT_CODES = frozenset({"57014", "55P03"})


def is_timeout_error(exc: OperationalError) -> bool:
    """True when the driver reports a statement/lock timeout or a busy SQLite lock."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in _PG_TIMEOUT_CODES:
        return True
    return "database is locked" in str(orig)


class UnitOfWork:
    """
    Factory of bounded transactional scopes.

    Args:
        session_factory: Produces one new Session per attempt.
        max_attempts: Attempts per operation (>= 1).
        timeout_seconds: Budget for the whole operation across attempts;
            None disables the deadline.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        max_attempts: int = 3,
        timeout_seconds: float | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        operation: str,
        work: Callable[[Session], T],
        retry_on: tuple[type[Exception], ...] = RETRYABLE_CONFLICTS,
        timeout_seconds: float | None = None,
    ) -> T:
        """
        Run ``work(session)`` and commit its result.

        ``work`` must return plain values or DTOs: the session is closed
        before ``run`` returns.
        """
        budget = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        deadline = time.monotonic() + budget if budget else None
        last_conflict: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise OperationTimeoutError(operation, budget) from last_conflict

            session = self._session_factory()
            try:
                with statement_timeout(session, remaining):
                    result = work(session)
                    if deadline is not None and time.monotonic() > deadline:
                        raise OperationTimeoutError(operation, budget)
                    session.commit()
                return result
            except retry_on as exc:
                session.rollback()
                last_conflict = exc
                logger.warning(
                    "unit_of_work_retry",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "conflict": getattr(exc, "code", type(exc).__name__),
                    },
                )
            except OperationalError as exc:
                session.rollback()
                if is_timeout_error(exc):
                    raise OperationTimeoutError(operation, budget or 0.0) from exc
                raise
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

        logger.error(
            "unit_of_work_exhausted",
            extra={"operation": operation, "attempts": self.max_attempts},
        )
        raise RetryExhaustedError(operation, self.max_attempts) from last_conflict
