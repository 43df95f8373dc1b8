"""
Module: ledger_kernel.models.sequence
Responsibility: Locked counter rows backing the numbering sequencer.
Architecture position: Kernel > Models.  May import from db/ only.

One row per named stream, e.g. ``transaction:<user_id>:2026``.  Rows are read
with SELECT ... FOR UPDATE by SequenceService; name is unique so concurrent
first use of a stream collapses onto one row.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class SequenceCounter(Base):
    """Current value of one named sequence."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
