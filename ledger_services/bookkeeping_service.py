"""
ledger_services.bookkeeping_service -- the surface consumed by the API layer.

Responsibility:
    One method per API operation.  Each write runs in its own bounded,
    retrying unit of work and returns DTOs; each read runs in a read-only
    session through the selectors.  Request-scoped log context
    (correlation id, user, operation) is bound for the duration of a call.

Architecture position:
    Services -- composes kernel services, selectors and configuration.
    This is the only place where kernel services are constructed.

Operations:
    list_accounts          hierarchy + rolled-up balances
    create_account         explicit account creation (never retried)
    resolve_account        resolve-or-create by name / suggested code
    post_transaction       intent -> balanced two-entry transaction
    create_transaction     manual balanced entry set -> new transaction
    update_transaction     replace header and complete entry set
    delete_transaction     delete with entries
    get_transaction, list_transactions
    list_categories, list_payment_methods
    seed_chart             configured chart for a new user

Usage:
    config = get_active_config()
    init_engine_from_config(config)
    bookkeeping = BookkeepingService.from_config(config)
    record = bookkeeping.post_transaction(user_id, {"monto": 12000, ...})
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from ledger_config.bridges import build_resolver_defaults
from ledger_config.schema import ChartAccountDef, LedgerConfiguration
from ledger_kernel.db.engine import get_session_factory
from ledger_kernel.domain.aggregation import AccountBalanceView
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import ResolverDefaults, TransactionRecord, TransactionUpdate
from ledger_kernel.domain.hierarchy import AccountRecord
from ledger_kernel.domain.intent import TransactionIntent
from ledger_kernel.exceptions import NumberingConflictError, TransactionNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.transaction_selector import TransactionSelector
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.posting_service import PostingService
from ledger_kernel.services.sequence_service import NumberingService
from ledger_services.chart_seeder import seed_chart
from ledger_services.unit_of_work import UnitOfWork

logger = get_logger("services.bookkeeping")


class BookkeepingService:
    """
    API facade over the ledger kernel.

    Args:
        session_factory: Produces request-scoped sessions.
        resolver_defaults: Fallback accounts for the Account Resolver.
        max_attempts: Attempts per write before RetryExhaustedError.
        timeout_seconds: Budget of one write operation; None for unbounded.
        clock: Source of the numbering year.
        chart: Accounts created by ``seed_chart``.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        resolver_defaults: ResolverDefaults,
        max_attempts: int = 3,
        timeout_seconds: float | None = None,
        clock: Clock | None = None,
        chart: Iterable[ChartAccountDef] = (),
    ):
        self._session_factory = session_factory
        self._defaults = resolver_defaults
        self._clock = clock or SystemClock()
        self._chart = tuple(chart)
        self._uow = UnitOfWork(
            session_factory, max_attempts=max_attempts, timeout_seconds=timeout_seconds
        )

    @classmethod
    def from_config(
        cls,
        config: LedgerConfiguration,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ) -> BookkeepingService:
        return cls(
            session_factory or get_session_factory(),
            build_resolver_defaults(config),
            max_attempts=config.posting.max_attempts,
            timeout_seconds=config.posting.timeout_seconds,
            clock=clock,
            chart=config.chart,
        )

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _posting(self, session: Session) -> PostingService:
        accounts = AccountService(session, self._defaults)
        return PostingService(session, accounts, NumberingService(session, self._clock))

    def _read(self, work):
        session = self._session_factory()
        try:
            return work(session)
        finally:
            session.rollback()
            session.close()

    @staticmethod
    def _context(user_id: str, operation: str):
        return LogContext.bind(
            correlation_id=uuid4().hex, user_id=user_id, operation=operation
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self, user_id: str, movable_only: bool = False) -> list[AccountBalanceView]:
        """All accounts sorted by code, with subtree totals, level and parent."""
        with self._context(user_id, "list_accounts"):
            return self._read(
                lambda s: AccountSelector(s).list_accounts(user_id, movable_only=movable_only)
            )

    def create_account(
        self,
        user_id: str,
        code: str,
        name: str,
        nature: str | None = None,
        account_type: str | None = None,
        can_receive_movement: bool | None = None,
    ) -> AccountRecord:
        """
        Create an account explicitly.

        A duplicate is the caller's mistake here, not a race, so nothing is
        retried.
        """

        def work(session: Session) -> AccountRecord:
            account = AccountService(session).create_account(
                user_id,
                code=code,
                name=name,
                nature=nature,
                account_type=account_type,
                can_receive_movement=can_receive_movement,
            )
            return AccountRecord.from_model(account)

        with self._context(user_id, "create_account"):
            return self._uow.run("create_account", work, retry_on=())

    def resolve_account(self, user_id: str, name: str, code: str | None = None) -> AccountRecord:
        """Resolve-or-create without a fallback code."""

        def work(session: Session) -> AccountRecord:
            account = AccountService(session, self._defaults).resolve(user_id, name, code)
            return AccountRecord.from_model(account)

        with self._context(user_id, "resolve_account"):
            return self._uow.run("resolve_account", work)

    def list_categories(self, user_id: str) -> list[AccountRecord]:
        with self._context(user_id, "list_categories"):
            return self._read(lambda s: AccountSelector(s).list_categories(user_id))

    def list_payment_methods(self, user_id: str) -> list[AccountRecord]:
        with self._context(user_id, "list_payment_methods"):
            return self._read(lambda s: AccountSelector(s).list_payment_methods(user_id))

    def seed_chart(self, user_id: str, chart: Iterable[ChartAccountDef] | None = None) -> int:
        """Create the configured chart accounts the user is missing."""
        accounts = tuple(chart) if chart is not None else self._chart
        with self._context(user_id, "seed_chart"):
            return self._uow.run(
                "seed_chart", lambda s: seed_chart(s, user_id, accounts)
            )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def post_transaction(
        self, user_id: str, intent: TransactionIntent | Mapping[str, Any]
    ) -> TransactionRecord:
        """Post a parsed intent atomically; conflicts are retried."""
        if not isinstance(intent, TransactionIntent):
            intent = TransactionIntent.from_payload(intent)

        def work(session: Session) -> TransactionRecord:
            txn = self._posting(session).post(user_id, intent)
            return TransactionRecord.from_model(txn)

        with self._context(user_id, "post_transaction"):
            record = self._uow.run("post_transaction", work)
        logger.debug(
            "post_transaction_completed",
            extra={"user_id": user_id, "numbering": record.numbering},
        )
        return record

    def create_transaction(
        self, user_id: str, manual: TransactionUpdate | Mapping[str, Any]
    ) -> TransactionRecord:
        """Create a transaction from a balanced ``{description, date, entries}`` set."""
        if not isinstance(manual, TransactionUpdate):
            manual = TransactionUpdate.from_payload(manual)

        def work(session: Session) -> TransactionRecord:
            txn = self._posting(session).create(user_id, manual)
            return TransactionRecord.from_model(txn)

        with self._context(user_id, "create_transaction"):
            return self._uow.run(
                "create_transaction", work, retry_on=(NumberingConflictError,)
            )

    def update_transaction(
        self,
        user_id: str,
        transaction_id: UUID | str,
        update: TransactionUpdate | Mapping[str, Any],
    ) -> TransactionRecord:
        """Replace description, date and the complete entry set."""
        if not isinstance(update, TransactionUpdate):
            update = TransactionUpdate.from_payload(update)

        def work(session: Session) -> TransactionRecord:
            txn = self._posting(session).update(user_id, transaction_id, update)
            return TransactionRecord.from_model(txn)

        with self._context(user_id, "update_transaction"):
            with LogContext.bind(transaction_id=str(transaction_id)):
                return self._uow.run("update_transaction", work, retry_on=())

    def delete_transaction(self, user_id: str, transaction_id: UUID | str) -> None:
        """Delete a transaction and its ledger entries."""
        with self._context(user_id, "delete_transaction"):
            with LogContext.bind(transaction_id=str(transaction_id)):
                self._uow.run(
                    "delete_transaction",
                    lambda s: self._posting(s).delete(user_id, transaction_id),
                    retry_on=(),
                )

    def get_transaction(self, user_id: str, transaction_id: UUID | str) -> TransactionRecord:
        with self._context(user_id, "get_transaction"):
            record = self._read(
                lambda s: TransactionSelector(s).get(user_id, transaction_id)
            )
        if record is None:
            raise TransactionNotFoundError(str(transaction_id))
        return record

    def list_transactions(self, user_id: str, limit: int | None = None) -> list[TransactionRecord]:
        """Transactions newest first."""
        with self._context(user_id, "list_transactions"):
            return self._read(
                lambda s: TransactionSelector(s).list_transactions(user_id, limit=limit)
            )
