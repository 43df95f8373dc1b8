"""
Balance Aggregator -- prefix rollup of direct sums over a resolved hierarchy.

Responsibility:
    Given an AccountHierarchy and the direct (leaf-level) debit/credit sums
    of each real account, computes the rolled-up totals of every account,
    real or synthetic, and returns display-ready views sorted by code.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The direct sums come
    from a group-by query in AccountSelector.

Invariants enforced:
    - total(A) = direct(A) + sum(direct(B)) for every real B whose
      separator-stripped code starts with A's and B.code != A.code.
    - Synthetic accounts contribute nothing of their own.
    - The movable-only filter runs after totals are computed, so a movable
      account's totals still cover its full subtree.

The scan is all-pairs over one user's chart, which stays at
chart-of-accounts scale.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from ledger_kernel.domain.account_code import AccountType, Nature, is_descendant
from ledger_kernel.domain.hierarchy import AccountHierarchy, HierarchySlot

ZERO = Decimal("0")


@dataclass(frozen=True)
class DirectBalance:
    """Sum of the entries posted directly against one real account."""

    debit: Decimal = ZERO
    credit: Decimal = ZERO

    def __add__(self, other: "DirectBalance") -> "DirectBalance":
        return DirectBalance(self.debit + other.debit, self.credit + other.credit)


@dataclass(frozen=True)
class AccountBalanceView:
    """
    One row of ``listAccounts``.

    ``id`` is the persisted UUID as a string, or ``synthetic-<code>`` for a
    derived ancestor.
    """

    id: str
    user_id: str | None
    code: str
    name: str
    nature: Nature
    account_type: AccountType
    level: int
    parent_id: str | None
    can_receive_movement: bool
    is_synthetic: bool
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance signed by the account's nature."""
        if self.nature == Nature.DEBIT:
            return self.total_debit - self.total_credit
        return self.total_credit - self.total_debit


def _rollup(slot: HierarchySlot, hierarchy: AccountHierarchy, direct: Mapping[str, DirectBalance]) -> DirectBalance:
    total = direct.get(slot.node.id, DirectBalance()) if slot.node.persisted else DirectBalance()
    for other in hierarchy.slots:
        if other.node.persisted and is_descendant(slot.code, other.code):
            total = total + direct.get(other.node.id, DirectBalance())
    return total


def aggregate_balances(
    hierarchy: AccountHierarchy,
    direct: Mapping[object, DirectBalance],
    movable_only: bool = False,
) -> list[AccountBalanceView]:
    """
    Roll direct sums up the hierarchy.

    Args:
        hierarchy: Output of ``resolve_hierarchy``.
        direct: Direct sums keyed by real account id (UUID or its string).
            Accounts absent from the mapping have zero direct sums.
        movable_only: Keep only accounts that can receive movements.

    Returns:
        Views sorted by code ascending.
    """
    by_id = {str(key): value for key, value in direct.items()}

    views: list[AccountBalanceView] = []
    for slot in hierarchy.slots:
        total = _rollup(slot, hierarchy, by_id)
        node = slot.node
        views.append(
            AccountBalanceView(
                id=node.id,
                user_id=node.user_id,
                code=node.code,
                name=node.name,
                nature=node.nature,
                account_type=node.account_type,
                level=slot.level,
                parent_id=slot.parent_id,
                can_receive_movement=node.can_receive_movement,
                is_synthetic=not node.persisted,
                total_debit=total.debit,
                total_credit=total.credit,
            )
        )

    if movable_only:
        views = [view for view in views if view.can_receive_movement]
    return views
