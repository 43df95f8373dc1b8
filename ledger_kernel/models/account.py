"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for one user's chart of accounts.
Architecture position: Kernel > Models.  May import from db/ and the enums of
    domain/account_code.py only.

Invariants enforced:
    - (user_id, code) is unique (uq_account_user_code); the final arbiter of
      the resolve-or-create race in AccountService.
    - level is never stored: the ``level`` property derives it from code.
    - parent_id is written only by AccountService, from the derived parent
      code, and is informational.  Reads re-derive the parent from the code.
    - nature and account_type are stored for querying but always equal the
      values the code implies (checked by AccountService on create).

Failure modes:
    - IntegrityError on a duplicate (user_id, code).
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TimestampedBase, UUIDString
from ledger_kernel.domain.account_code import AccountType, Nature, code_level

if TYPE_CHECKING:
    from ledger_kernel.models.transaction import LedgerEntry


class Account(TimestampedBase):
    """
    Chart of accounts row for one user.

    Guarantees:
        - code is in canonical form when written through AccountService.
        - can_receive_movement marks the accounts ledger entries may target.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("user_id", "code", name="uq_account_user_code"),
        Index("idx_account_user_movable", "user_id", "can_receive_movement"),
    )

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    nature: Mapped[Nature] = mapped_column(String(10), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    can_receive_movement: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    # Relationships
    parent: Mapped["Account | None"] = relationship(
        remote_side="Account.id",
        foreign_keys=[parent_id],
    )

    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def level(self) -> int:
        """Chart level derived from the code; never read from storage."""
        return code_level(self.code)

    @property
    def is_debit_nature(self) -> bool:
        return Nature(self.nature) == Nature.DEBIT
