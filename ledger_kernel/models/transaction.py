"""
Module: ledger_kernel.models.transaction
Responsibility: ORM persistence for transactions and their ledger entries.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (user_id, numbering) is unique (uq_transaction_user_numbering); the
      final arbiter of the numbering race.
    - Ledger entries are owned by their transaction: ORM delete-orphan
      cascade plus ON DELETE CASCADE on the foreign key.  An entry is never
      orphaned.
    - debit >= 0 and credit >= 0 (check constraints).
    - Balance (sum debit == sum credit) is checked by PostingService before
      flush; ``is_balanced`` is the read-side assertion.

Failure modes:
    - IntegrityError on a duplicate numbering or a negative amount.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TimestampedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class Transaction(TimestampedBase):
    """A dated, numbered movement made of two or more ledger entries."""

    __tablename__ = "transactions"

    __table_args__ = (
        UniqueConstraint("user_id", "numbering", name="uq_transaction_user_numbering"),
        Index("idx_transaction_user_date", "user_id", "date"),
    )

    user_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # "{year}-{n}", allocated by NumberingService
    numbering: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    date: Mapped[date] = mapped_column(Date, nullable=False)

    # Originating chat message, owned by the conversation collaborator
    message_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.numbering} {self.date}>"

    @property
    def total_debit(self) -> Decimal:
        return sum((entry.debit for entry in self.entries), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((entry.credit for entry in self.entries), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class LedgerEntry(TimestampedBase):
    """One pure-debit or pure-credit row against a movable account."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_ledger_entry_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_ledger_entry_credit_non_negative"),
        Index("idx_ledger_entry_transaction", "transaction_id"),
        Index("idx_ledger_entry_account", "account_id"),
    )

    transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=Decimal("0"))

    credit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=Decimal("0"))

    # Relationships
    transaction: Mapped["Transaction"] = relationship(back_populates="entries")

    account: Mapped["Account"] = relationship(
        back_populates="ledger_entries",
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry D={self.debit} C={self.credit}>"
