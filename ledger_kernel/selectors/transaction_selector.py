"""
Module: ledger_kernel.selectors.transaction_selector
Responsibility: Read access to a user's transactions with their entries.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import TransactionRecord
from ledger_kernel.models.transaction import Transaction
from ledger_kernel.selectors.base import BaseSelector


class TransactionSelector(BaseSelector):
    """Read-only transaction queries returning TransactionRecord DTOs."""

    def get(self, user_id: str, transaction_id: UUID | str) -> TransactionRecord | None:
        try:
            key = transaction_id if isinstance(transaction_id, UUID) else UUID(str(transaction_id))
        except ValueError:
            return None
        txn = self.session.execute(
            select(Transaction).where(
                Transaction.id == key, Transaction.user_id == user_id
            )
        ).scalar_one_or_none()
        return TransactionRecord.from_model(txn) if txn is not None else None

    def list_transactions(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Transactions newest first (date, then creation time)."""
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if start is not None:
            stmt = stmt.where(Transaction.date >= start)
        if end is not None:
            stmt = stmt.where(Transaction.date <= end)
        stmt = stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [TransactionRecord.from_model(t) for t in self.session.execute(stmt).scalars()]
