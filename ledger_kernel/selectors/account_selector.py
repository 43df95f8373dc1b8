"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Read side of the chart of accounts: the resolved hierarchy
    with rolled-up balances (``listAccounts``) and the account listings handed
    to the language-model collaborator.
Architecture position: Kernel > Selectors.

Data flow:
    accounts rows ----------> AccountRecord[] --> resolve_hierarchy --+
    ledger_entries group-by -> {account_id: DirectBalance} ------------+--> aggregate_balances
"""

from decimal import Decimal

from sqlalchemy import func, select

from ledger_kernel.domain.aggregation import (
    AccountBalanceView,
    DirectBalance,
    aggregate_balances,
)
from ledger_kernel.domain.hierarchy import AccountHierarchy, AccountRecord, resolve_hierarchy
from ledger_kernel.models.account import Account
from ledger_kernel.models.transaction import LedgerEntry
from ledger_kernel.selectors.base import BaseSelector

CATEGORY_CLASSES = ("4", "5")
PAYMENT_CLASSES = ("1", "2", "3")
# Never offered as payment methods, even if marked movable
PAYMENT_EXCLUDED_CODES = frozenset({"1", "11"})


class AccountSelector(BaseSelector):
    """Read-only queries over one user's chart of accounts."""

    def records(self, user_id: str) -> list[AccountRecord]:
        rows = self.session.execute(
            select(Account).where(Account.user_id == user_id).order_by(Account.code)
        ).scalars()
        return [AccountRecord.from_model(row) for row in rows]

    def direct_balances(self, user_id: str) -> dict[str, DirectBalance]:
        """Sum of debits and credits posted directly against each real account."""
        rows = self.session.execute(
            select(
                LedgerEntry.account_id,
                func.coalesce(func.sum(LedgerEntry.debit), 0),
                func.coalesce(func.sum(LedgerEntry.credit), 0),
            )
            .join(Account, Account.id == LedgerEntry.account_id)
            .where(Account.user_id == user_id)
            .group_by(LedgerEntry.account_id)
        ).all()
        return {
            str(account_id): DirectBalance(Decimal(str(debit)), Decimal(str(credit)))
            for account_id, debit, credit in rows
        }

    def hierarchy(self, user_id: str) -> AccountHierarchy:
        return resolve_hierarchy(self.records(user_id), user_id=user_id)

    def list_accounts(self, user_id: str, movable_only: bool = False) -> list[AccountBalanceView]:
        """
        Every account, real or synthetic, with totals rolled up from its subtree.

        Sorted by code ascending.  ``movable_only`` filters after aggregation.
        """
        return aggregate_balances(
            self.hierarchy(user_id),
            self.direct_balances(user_id),
            movable_only=movable_only,
        )

    def _movable_in_classes(self, user_id: str, classes: tuple[str, ...]) -> list[AccountRecord]:
        return [
            record
            for record in self.records(user_id)
            if record.can_receive_movement and record.code[:1] in classes
        ]

    def list_categories(self, user_id: str) -> list[AccountRecord]:
        """Movable income and expense accounts."""
        return self._movable_in_classes(user_id, CATEGORY_CLASSES)

    def list_payment_methods(self, user_id: str) -> list[AccountRecord]:
        """Movable asset, liability and equity accounts."""
        return [
            record
            for record in self._movable_in_classes(user_id, PAYMENT_CLASSES)
            if record.code not in PAYMENT_EXCLUDED_CODES
        ]
