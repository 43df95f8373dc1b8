"""
PostingService -- the double-entry ledger posting engine.

Responsibility:
    Turns a validated TransactionIntent into one Transaction with exactly
    two balanced LedgerEntry rows, creates a transaction from a manually
    entered entry set, replaces the complete entry set of an existing
    transaction, and deletes a transaction with its entries.

Architecture position:
    Kernel > Services -- imperative shell.
    Orchestrates AccountService (category + payment method) and
    NumberingService inside the caller's unit of work.

Posting rules:
    expense  debit category account, credit payment-method account
    income   debit payment-method account, credit category account
    Both rows carry the intent amount, so sum(debit) == sum(credit) ==
    amount by construction.

Invariants enforced:
    - Every entry targets a persisted, movable account of the same user.
    - A manual entry set (create or edit) is validated completely before
      the first mutation: at least two rows, no negative amounts, exactly
      one non-zero side per row, amounts Numeric(38, 9) holds exactly, and
      debits equal credits.
    - Entries are only ever replaced as a complete set.
    - Nothing is committed here; a failure anywhere leaves no partial state
      once the unit of work rolls back.

Failure modes:
    - AccountNotMovableError / AccountNotFoundError /
      SyntheticAccountWriteError for an unusable target account.
    - InvalidEntryError, UnbalancedEntriesError on a manual entry set.
    - TransactionNotFoundError for an unknown id or another user's id.
    - NumberingConflictError when the numbering insert loses a race.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.db.types import check_money_precision
from ledger_kernel.domain.dtos import TransactionUpdate
from ledger_kernel.domain.hierarchy import is_synthetic_id
from ledger_kernel.domain.intent import IntentType, TransactionIntent
from ledger_kernel.exceptions import (
    AccountNotMovableError,
    InvalidEntryError,
    NumberingConflictError,
    SyntheticAccountWriteError,
    TransactionNotFoundError,
    UnbalancedEntriesError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.transaction import LedgerEntry, Transaction
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import NumberingService

logger = get_logger("services.posting")

ZERO = Decimal("0")
MIN_ENTRIES = 2


class PostingService(BaseService):
    """Ledger posting engine over one caller-owned session."""

    def __init__(
        self,
        session: Session,
        accounts: AccountService,
        numbering: NumberingService,
    ):
        super().__init__(session)
        self._accounts = accounts
        self._numbering = numbering

    @staticmethod
    def _require_movable(account: Account) -> Account:
        if not account.can_receive_movement:
            raise AccountNotMovableError(str(account.id), account.code)
        return account

    def get(self, user_id: str, transaction_id: UUID | str, lock: bool = False) -> Transaction:
        """Load one of the user's transactions or raise TransactionNotFoundError."""
        try:
            key = transaction_id if isinstance(transaction_id, UUID) else UUID(str(transaction_id))
        except ValueError:
            raise TransactionNotFoundError(str(transaction_id))

        stmt = select(Transaction).where(
            Transaction.id == key, Transaction.user_id == user_id
        )
        if lock:
            stmt = stmt.with_for_update()
        txn = self.session.execute(stmt).scalar_one_or_none()
        if txn is None:
            raise TransactionNotFoundError(str(transaction_id))
        return txn

    def _flush_new(self, txn: Transaction, numbering: str) -> None:
        self.session.add(txn)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise NumberingConflictError(numbering) from exc

    def post(self, user_id: str, intent: TransactionIntent) -> Transaction:
        """
        Post an intent as a balanced two-entry transaction.

        Postconditions:
            The transaction and both entries are flushed; the caller commits.
        """
        category = self._require_movable(
            self._accounts.resolve_category(user_id, intent.category, intent.type)
        )
        payment = self._require_movable(
            self._accounts.resolve_payment_method(
                user_id, intent.payment_method, intent.type
            )
        )

        numbering = self._numbering.next_numbering(user_id)

        if intent.type == IntentType.EXPENSE:
            debit_account, credit_account = category, payment
        else:
            debit_account, credit_account = payment, category

        txn = Transaction(
            user_id=user_id,
            numbering=numbering,
            description=intent.description,
            date=intent.date,
            message_id=intent.message_id,
            entries=[
                LedgerEntry(account=debit_account, debit=intent.amount, credit=ZERO),
                LedgerEntry(account=credit_account, debit=ZERO, credit=intent.amount),
            ],
        )
        assert txn.total_debit == txn.total_credit == intent.amount, (
            "posted entries must balance to the intent amount"
        )

        self._flush_new(txn, numbering)

        logger.info(
            "transaction_posted",
            extra={
                "user_id": user_id,
                "transaction_id": str(txn.id),
                "numbering": numbering,
                "type": intent.type.value,
                "amount": intent.amount,
                "debit_account": debit_account.code,
                "credit_account": credit_account.code,
            },
        )
        return txn

    def _validate_entries(self, user_id: str, update: TransactionUpdate) -> list[Account]:
        entries = update.entries
        if len(entries) < MIN_ENTRIES:
            raise InvalidEntryError(
                None, f"at least {MIN_ENTRIES} entries are required, got {len(entries)}"
            )

        for index, entry in enumerate(entries):
            if is_synthetic_id(entry.account_id):
                raise SyntheticAccountWriteError(str(entry.account_id))
            if entry.debit < ZERO or entry.credit < ZERO:
                raise InvalidEntryError(index, "amounts must be non-negative")
            if entry.debit > ZERO and entry.credit > ZERO:
                raise InvalidEntryError(index, "an entry cannot carry both a debit and a credit")
            if entry.debit == ZERO and entry.credit == ZERO:
                raise InvalidEntryError(index, "an entry needs a debit or a credit")
            try:
                check_money_precision(entry.debit)
                check_money_precision(entry.credit)
            except ValueError as exc:
                raise InvalidEntryError(index, str(exc)) from exc

        if update.total_debit != update.total_credit:
            raise UnbalancedEntriesError(str(update.total_debit), str(update.total_credit))

        return [self._accounts.require_movable(user_id, e.account_id) for e in entries]

    def create(self, user_id: str, manual: TransactionUpdate) -> Transaction:
        """
        Create a transaction from a manually entered, balanced entry set.

        Validated exactly like ``update``; the numbering comes from the same
        per-user stream as posted intents.
        """
        accounts = self._validate_entries(user_id, manual)
        numbering = self._numbering.next_numbering(user_id)

        txn = Transaction(
            user_id=user_id,
            numbering=numbering,
            description=manual.description,
            date=manual.date,
            entries=[
                LedgerEntry(account=account, debit=spec.debit, credit=spec.credit)
                for account, spec in zip(accounts, manual.entries)
            ],
        )
        self._flush_new(txn, numbering)

        logger.info(
            "transaction_created",
            extra={
                "user_id": user_id,
                "transaction_id": str(txn.id),
                "numbering": numbering,
                "entry_count": len(manual.entries),
                "total": manual.total_debit,
            },
        )
        return txn

    def update(
        self,
        user_id: str,
        transaction_id: UUID | str,
        update: TransactionUpdate,
    ) -> Transaction:
        """
        Replace a transaction's header and complete entry set.

        Validation runs to completion before anything is changed, so a
        rejected edit leaves the original entries untouched.
        """
        txn = self.get(user_id, transaction_id, lock=True)
        accounts = self._validate_entries(user_id, update)

        txn.description = update.description
        txn.date = update.date
        txn.entries.clear()
        self.session.flush()

        for account, spec in zip(accounts, update.entries):
            txn.entries.append(
                LedgerEntry(account=account, debit=spec.debit, credit=spec.credit)
            )
        self.session.flush()

        logger.info(
            "transaction_updated",
            extra={
                "user_id": user_id,
                "transaction_id": str(txn.id),
                "numbering": txn.numbering,
                "entry_count": len(update.entries),
                "total": update.total_debit,
            },
        )
        return txn

    def delete(self, user_id: str, transaction_id: UUID | str) -> None:
        """Delete a transaction; its ledger entries go with it."""
        txn = self.get(user_id, transaction_id, lock=True)
        numbering = txn.numbering
        self.session.delete(txn)
        self.session.flush()

        logger.info(
            "transaction_deleted",
            extra={
                "user_id": user_id,
                "transaction_id": str(transaction_id),
                "numbering": numbering,
            },
        )
