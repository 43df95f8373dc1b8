"""
SequenceService / NumberingService -- per-user, per-year transaction numbering.

Responsibility:
    Produces the next human-readable transaction numbering ``"{year}-{n}"``
    for a user.  Each ``(user, year)`` pair is its own stream backed by a
    locked counter row in ``sequence_counters``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by PostingService inside the posting unit of work.

Invariants enforced:
    - The counter row is read with ``SELECT ... FOR UPDATE``, so concurrent
      allocations for one stream are serialized on PostgreSQL; on SQLite the
      BEGIN IMMEDIATE transaction already serializes writers.
    - A stream's first allocation continues after the highest numbering the
      user already has for that year, so data written before the counter
      existed is never collided with.
    - The unique constraint on (user_id, numbering) remains the final
      arbiter; PostingService turns a violation into NumberingConflictError
      and the unit of work retries.
    - Numbering is monotonically increasing per stream but not gap-free: a
      rolled-back attempt may leave a gap on retry.

Failure modes:
    - IntegrityError: concurrent first use of a stream (handled via savepoint
      rollback and re-read of the winner's row).
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.models.transaction import Transaction

logger = get_logger("services.sequence")

NUMBERING_SEPARATOR = "-"


class SequenceService:
    """
    Monotonic values for named sequences via locked counter rows.

    Usage:
        seq = SequenceService(session).next_value("transaction:u1:2026")
        # The increment is only visible once the caller's transaction commits.
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str, start_after: int = 0) -> int:
        """
        Get the next value for a named sequence.

        Args:
            sequence_name: Name of the sequence.
            start_after: Value the sequence continues from when its counter
                row does not exist yet.

        Returns:
            The next sequence value (always > 0).
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use of this stream; another session may be creating it too.
            # The savepoint keeps the rest of the unit of work intact.
            first = max(start_after, 0) + 1
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=first)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": first},
                )
                return first
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        assert counter.current_value > 0, "sequence value must be strictly positive"
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None


def format_numbering(year: int, n: int) -> str:
    return f"{year}{NUMBERING_SEPARATOR}{n}"


def numbering_suffix(numbering: str, year: int) -> int | None:
    """Trailing integer of a ``{year}-{n}`` numbering, or None if it is not one."""
    prefix = f"{year}{NUMBERING_SEPARATOR}"
    if not numbering.startswith(prefix):
        return None
    tail = numbering[len(prefix):]
    return int(tail) if tail.isascii() and tail.isdigit() else None


class NumberingService:
    """
    Numbering sequencer: ``next_numbering(user_id) -> "2026-14"``.

    The calendar year comes from the injected Clock, never from the
    transaction's own date.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    @staticmethod
    def stream_name(user_id: str, year: int) -> str:
        return f"transaction:{user_id}:{year}"

    def last_number(self, user_id: str, year: int) -> int:
        """Highest ``n`` among the user's existing ``{year}-{n}`` numberings."""
        numberings = self._session.execute(
            select(Transaction.numbering).where(
                Transaction.user_id == user_id,
                Transaction.numbering.like(f"{year}{NUMBERING_SEPARATOR}%"),
            )
        ).scalars()
        suffixes = [numbering_suffix(n, year) for n in numberings]
        return max((s for s in suffixes if s is not None), default=0)

    def next_numbering(self, user_id: str) -> str:
        year = self._clock.year
        name = self.stream_name(user_id, year)

        start_after = 0
        if self._sequences.current_value(name) is None:
            start_after = self.last_number(user_id, year)

        n = self._sequences.next_value(name, start_after=start_after)
        numbering = format_numbering(year, n)
        logger.info(
            "numbering_allocated",
            extra={"user_id": user_id, "year": year, "numbering": numbering},
        )
        return numbering
