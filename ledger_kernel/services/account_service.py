"""
AccountService -- account creation and the resolve-or-create path.

Responsibility:
    Creates accounts explicitly (``create_account``) and maps a free-text
    category or payment-method name, optionally with a suggested code, to a
    persisted account, creating one under a coherent code if none matches
    (``resolve``).

Architecture position:
    Kernel > Services -- imperative shell.
    Called by PostingService (twice per posting) and by the API facade.

Resolution order (``resolve``):
    1. Suggested code, canonicalized, looked up by (user_id, code).
    2. Case-insensitive name match among the user's movable accounts.
    3. Create: under the suggested code if it is valid, otherwise under the
       configured fallback code (reusing that account if it already exists).

Invariants enforced:
    - Nature and account type always come from the code.
    - Level is never stored; parent_id is set from the derived parent code,
      and that parent MUST already be persisted.  Persisted ancestors are
      never synthesized here.
    - Auto-created accounts can always receive movements.
    - Exactly-once creation: lookups happen before the insert, the insert
      runs in a savepoint, and on a unique violation the winner's row is
      re-read and returned.

Failure modes:
    - InvalidAccountCodeError: code outside the scheme (explicit create).
    - AccountClassificationError: supplied nature/type contradict the code.
    - MissingParentAccountError: derived parent code has no persisted row.
    - DuplicateAccountCodeError: explicit create of an existing code, or an
      insert race lost with no winner visible (retried by the unit of work).
    - AccountNotFoundError / AccountNotMovableError /
      SyntheticAccountWriteError: from ``require_movable``.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.account_code import (
    AccountCodeInfo,
    AccountType,
    Nature,
    canonicalize_code,
    parse_code,
)
from ledger_kernel.domain.dtos import AccountDefault, ResolverDefaults
from ledger_kernel.domain.hierarchy import is_synthetic_id
from ledger_kernel.domain.intent import AccountRef, IntentType
from ledger_kernel.exceptions import (
    AccountClassificationError,
    AccountNotFoundError,
    AccountNotMovableError,
    DuplicateAccountCodeError,
    InvalidAccountCodeError,
    MissingParentAccountError,
    SyntheticAccountWriteError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


def _check_classification(info: AccountCodeInfo, nature, account_type) -> None:
    if nature is not None:
        try:
            supplied = Nature(str(getattr(nature, "value", nature)).upper())
        except ValueError:
            supplied = None
        if supplied != info.nature:
            raise AccountClassificationError(
                info.code, "nature", info.nature.value, str(nature)
            )
    if account_type is not None:
        try:
            supplied_type = AccountType(
                str(getattr(account_type, "value", account_type)).upper()
            )
        except ValueError:
            supplied_type = None
        if supplied_type != info.account_type:
            raise AccountClassificationError(
                info.code, "account_type", info.account_type.value, str(account_type)
            )


class AccountService(BaseService):
    """
    Account resolver and auto-creator.

    Args:
        session: Caller-owned session; this service only flushes.
        defaults: Fallback accounts used by ``resolve_category`` and
            ``resolve_payment_method``.  Injected from configuration.
    """

    def __init__(self, session: Session, defaults: ResolverDefaults | None = None):
        super().__init__(session)
        self._defaults = defaults

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_code(self, user_id: str, code: str) -> Account | None:
        """Look up (user_id, code), matching the legacy spelling of a code too."""
        try:
            canonical = canonicalize_code(code)
        except InvalidAccountCodeError:
            return None
        spellings = {canonical, canonical.replace("-", ""), code.strip()}
        rows = self.session.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.code.in_(spellings))
            .order_by(Account.code)
        ).scalars().all()
        for row in rows:
            if row.code == canonical:
                return row
        return rows[0] if rows else None

    def find_movable_by_name(self, user_id: str, name: str) -> Account | None:
        """Case-insensitive name match among the user's movable accounts."""
        if not name or not name.strip():
            return None
        return self.session.execute(
            select(Account)
            .where(
                Account.user_id == user_id,
                Account.can_receive_movement.is_(True),
                func.lower(Account.name) == name.strip().lower(),
            )
            .order_by(Account.code)
            .limit(1)
        ).scalar_one_or_none()

    def require_movable(self, user_id: str, account_id: UUID | str) -> Account:
        """
        Load an account that a ledger entry may target.

        Synthetic placeholder ids are refused before any query.
        """
        if is_synthetic_id(account_id):
            raise SyntheticAccountWriteError(str(account_id))
        try:
            key = account_id if isinstance(account_id, UUID) else UUID(str(account_id))
        except ValueError:
            raise AccountNotFoundError(str(account_id))

        account = self.session.execute(
            select(Account).where(Account.id == key, Account.user_id == user_id)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        if not account.can_receive_movement:
            raise AccountNotMovableError(str(account.id), account.code)
        return account

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _require_parent(self, user_id: str, info: AccountCodeInfo) -> Account | None:
        if info.parent_code is None:
            return None
        parent = self.get_by_code(user_id, info.parent_code)
        if parent is None:
            raise MissingParentAccountError(info.code, info.parent_code)
        return parent

    def _insert(
        self,
        user_id: str,
        info: AccountCodeInfo,
        name: str,
        can_receive_movement: bool,
        parent: Account | None,
    ) -> Account:
        account = Account(
            user_id=user_id,
            code=info.code,
            name=name,
            nature=info.nature.value,
            account_type=info.account_type.value,
            can_receive_movement=can_receive_movement,
            parent_id=parent.id if parent is not None else None,
        )
        savepoint = self.session.begin_nested()
        try:
            self.session.add(account)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            raise DuplicateAccountCodeError(info.code)

        logger.info(
            "account_created",
            extra={
                "user_id": user_id,
                "account_id": str(account.id),
                "code": account.code,
                "level": info.level,
                "can_receive_movement": can_receive_movement,
            },
        )
        return account

    def create_account(
        self,
        user_id: str,
        code: str,
        name: str,
        nature: Nature | str | None = None,
        account_type: AccountType | str | None = None,
        can_receive_movement: bool | None = None,
    ) -> Account:
        """
        Create an account explicitly.

        Preconditions:
            The parent implied by ``code`` is persisted for ``user_id``.
        Postconditions:
            A row exists with the canonical code; ``can_receive_movement``
            defaults to True only for level-4 codes.

        Raises:
            InvalidAccountCodeError, AccountClassificationError,
            DuplicateAccountCodeError, MissingParentAccountError.
        """
        info = parse_code(canonicalize_code(code))
        _check_classification(info, nature, account_type)

        if self.get_by_code(user_id, info.code) is not None:
            raise DuplicateAccountCodeError(info.code)

        parent = self._require_parent(user_id, info)
        if can_receive_movement is None:
            can_receive_movement = info.level == 4
        name = (name or "").strip() or info.default_name
        return self._insert(user_id, info, name, bool(can_receive_movement), parent)

    # ------------------------------------------------------------------
    # Resolve-or-create
    # ------------------------------------------------------------------

    def resolve(
        self,
        user_id: str,
        name: str,
        code: str | None = None,
        fallback: AccountDefault | None = None,
    ) -> Account:
        """
        Map a name (and optional suggested code) to a persisted account.

        Args:
            user_id: Owner.
            name: Free-text account name from the intent.
            code: Suggested code; ignored for creation when invalid.
            fallback: Reserved account used when no valid code is available.

        Returns:
            The existing or newly created account.

        Raises:
            MissingParentAccountError: The code to create under has no
                persisted parent.
            InvalidAccountCodeError: Nothing matched, the suggested code is
                invalid and no fallback was supplied.
        """
        canonical: str | None = None
        if code:
            try:
                canonical = canonicalize_code(code)
            except InvalidAccountCodeError as exc:
                logger.warning(
                    "suggested_code_rejected",
                    extra={"user_id": user_id, "code": code, "reason": exc.reason},
                )
            if canonical is not None:
                found = self.get_by_code(user_id, canonical)
                if found is not None:
                    self._log_resolved(user_id, found, "code")
                    return found

        found = self.find_movable_by_name(user_id, name)
        if found is not None:
            self._log_resolved(user_id, found, "name")
            return found

        if canonical is not None:
            target_code, target_name = canonical, name
        elif fallback is not None:
            target_code, target_name = canonicalize_code(fallback.code), fallback.name
            existing = self.get_by_code(user_id, target_code)
            if existing is not None:
                self._log_resolved(user_id, existing, "fallback")
                return existing
        else:
            raise InvalidAccountCodeError(
                code or "", f"no account named {name!r} and no code to create it under"
            )

        info = parse_code(target_code)
        parent = self._require_parent(user_id, info)
        target_name = (target_name or "").strip() or info.default_name
        try:
            return self._insert(user_id, info, target_name, True, parent)
        except DuplicateAccountCodeError:
            # Lost the insert race; the winner's row is the answer.
            winner = self.get_by_code(user_id, info.code)
            if winner is None:
                raise
            self._log_resolved(user_id, winner, "race")
            return winner

    def _log_resolved(self, user_id: str, account: Account, via: str) -> None:
        logger.debug(
            "account_resolved",
            extra={
                "user_id": user_id,
                "account_id": str(account.id),
                "code": account.code,
                "via": via,
            },
        )

    def _require_defaults(self) -> ResolverDefaults:
        if self._defaults is None:
            raise ValueError("AccountService was built without resolver defaults")
        return self._defaults

    def resolve_category(
        self, user_id: str, ref: AccountRef, intent_type: IntentType
    ) -> Account:
        """Resolve the expense or income account of an intent."""
        defaults = self._require_defaults()
        fallback = (
            defaults.miscellaneous_expense
            if intent_type == IntentType.EXPENSE
            else defaults.miscellaneous_income
        )
        return self.resolve(user_id, ref.name, ref.code, fallback=fallback)

    def resolve_payment_method(
        self, user_id: str, ref: AccountRef | None, intent_type: IntentType
    ) -> Account:
        """
        Resolve the balance-sheet side of an intent.

        With no payment method named, expenses come out of the configured
        default payment method and income lands in the default destination.
        """
        defaults = self._require_defaults()
        fallback = (
            defaults.default_payment_method
            if intent_type == IntentType.EXPENSE
            else defaults.default_income_destination
        )
        if ref is None:
            return self.resolve(user_id, fallback.name, fallback.code, fallback=fallback)
        return self.resolve(user_id, ref.name, ref.code, fallback=fallback)
