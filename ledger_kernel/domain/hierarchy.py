"""
Hierarchy Resolver -- complete chart-of-accounts tree from persisted rows.

Responsibility:
    Given a snapshot of one user's persisted accounts, derives each account's
    level and parent from its code and synthesizes any missing ancestor so
    the hierarchy is always complete for display and aggregation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Fed by
    AccountSelector, consumed by the balance aggregator.

Representation:
    The tree is an arena: a tuple of ``HierarchySlot`` sorted by code, an
    index ``code -> position`` and parent/children links stored as positions
    into the arena.  No slot holds a reference to another slot, so a cycle
    cannot be built, and the resolver is testable without a database.

    Each slot carries an ``AccountNode``, a tagged variant:
        RealAccount       -- wraps a persisted AccountRecord, persisted=True
        SyntheticAccount  -- derived ancestor, persisted=False, id is
                             ``synthetic-<code>``, never movable
    ``require_persisted()`` is the only way to get a writable record out of a
    node; on a SyntheticAccount it raises SyntheticAccountWriteError.

Invariants enforced:
    - Every non-root code present has its parent code present (real or
      synthetic) after resolution.
    - Idempotent: the same persisted snapshot always yields identical
      synthetic accounts and links.
    - Level and parent come from the code, never from stored columns.

Failure modes:
    - A row whose code the Account Code Model rejects is left out of the tree
      and reported as an ``IntegrityWarning``; resolution of every other row
      continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Iterator, Mapping, Union
from uuid import UUID

from ledger_kernel.domain.account_code import (
    AccountType,
    Nature,
    ancestor_codes,
    code_level,
    parse_code,
)
from ledger_kernel.exceptions import InvalidAccountCodeError, SyntheticAccountWriteError
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.hierarchy")

SYNTHETIC_ID_PREFIX = "synthetic-"


def synthetic_id(code: str) -> str:
    """Placeholder id of the synthetic account for ``code``."""
    return f"{SYNTHETIC_ID_PREFIX}{code}"


def is_synthetic_id(account_id: object) -> bool:
    """True iff ``account_id`` is a synthetic placeholder id."""
    return isinstance(account_id, str) and account_id.startswith(SYNTHETIC_ID_PREFIX)


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of one persisted account row."""

    id: UUID
    user_id: str
    code: str
    name: str
    nature: Nature
    account_type: AccountType
    can_receive_movement: bool
    stored_parent_id: UUID | None = None

    @property
    def level(self) -> int:
        return code_level(self.code)

    @classmethod
    def from_model(cls, account) -> "AccountRecord":
        """Boundary converter from the ORM ``Account`` row."""
        return cls(
            id=account.id,
            user_id=account.user_id,
            code=account.code,
            name=account.name,
            nature=Nature(account.nature),
            account_type=AccountType(account.account_type),
            can_receive_movement=bool(account.can_receive_movement),
            stored_parent_id=account.parent_id,
        )


@dataclass(frozen=True)
class RealAccount:
    """A persisted account inside the hierarchy."""

    record: AccountRecord
    persisted: ClassVar[bool] = True

    @property
    def id(self) -> str:
        return str(self.record.id)

    @property
    def user_id(self) -> str:
        return self.record.user_id

    @property
    def code(self) -> str:
        return self.record.code

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def nature(self) -> Nature:
        return self.record.nature

    @property
    def account_type(self) -> AccountType:
        return self.record.account_type

    @property
    def can_receive_movement(self) -> bool:
        return self.record.can_receive_movement

    def require_persisted(self) -> AccountRecord:
        return self.record


@dataclass(frozen=True)
class SyntheticAccount:
    """A derived ancestor with no row in storage."""

    user_id: str | None
    code: str
    name: str
    nature: Nature
    account_type: AccountType
    persisted: ClassVar[bool] = False
    can_receive_movement: ClassVar[bool] = False

    @property
    def id(self) -> str:
        return synthetic_id(self.code)

    def require_persisted(self) -> AccountRecord:
        raise SyntheticAccountWriteError(self.id)

    @classmethod
    def for_code(cls, code: str, user_id: str | None) -> "SyntheticAccount":
        info = parse_code(code)
        return cls(
            user_id=user_id,
            code=info.code,
            name=info.default_name,
            nature=info.nature,
            account_type=info.account_type,
        )


AccountNode = Union[RealAccount, SyntheticAccount]


@dataclass(frozen=True)
class HierarchySlot:
    """One arena position: a node plus its derived structure."""

    node: AccountNode
    level: int
    parent_code: str | None
    parent_index: int | None
    parent_id: str | None

    @property
    def code(self) -> str:
        return self.node.code

    @property
    def is_root(self) -> bool:
        return self.parent_index is None


@dataclass(frozen=True)
class IntegrityWarning:
    """A persisted row the resolver could not place in the tree."""

    account_id: str
    code: str
    reason: str


@dataclass(frozen=True)
class AccountHierarchy:
    """
    Resolved chart of accounts for one user.

    Guarantees:
        - ``slots`` are sorted by code ascending (lexicographic).
        - ``index[slot.code]`` is the slot's position.
        - ``children[i]`` lists positions whose parent_index is ``i``.
    """

    slots: tuple[HierarchySlot, ...]
    index: Mapping[str, int]
    children: tuple[tuple[int, ...], ...]
    warnings: tuple[IntegrityWarning, ...] = ()

    def __iter__(self) -> Iterator[HierarchySlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, code: object) -> bool:
        return code in self.index

    def get(self, code: str) -> HierarchySlot | None:
        position = self.index.get(code)
        return self.slots[position] if position is not None else None

    def parent_of(self, code: str) -> HierarchySlot | None:
        slot = self.get(code)
        if slot is None or slot.parent_index is None:
            return None
        return self.slots[slot.parent_index]

    def children_of(self, code: str) -> list[HierarchySlot]:
        position = self.index.get(code)
        if position is None:
            return []
        return [self.slots[i] for i in self.children[position]]

    def roots(self) -> list[HierarchySlot]:
        return [slot for slot in self.slots if slot.is_root]

    def real_slots(self) -> list[HierarchySlot]:
        return [slot for slot in self.slots if slot.node.persisted]

    def synthetic_slots(self) -> list[HierarchySlot]:
        return [slot for slot in self.slots if not slot.node.persisted]


def resolve_hierarchy(
    accounts: Iterable[AccountRecord],
    user_id: str | None = None,
) -> AccountHierarchy:
    """
    Build the complete hierarchy for a snapshot of persisted accounts.

    Preconditions:
        ``accounts`` belong to a single user (codes unique among them).
    Postconditions:
        Every placed code's ancestors are present; synthetic ancestors take
        nature, type and advisory name from the Account Code Model.

    Args:
        accounts: Persisted account snapshots.
        user_id: Owner stamped onto synthetic accounts.  Defaults to the
            owner of the first record.

    Returns:
        The resolved AccountHierarchy.
    """
    nodes: dict[str, AccountNode] = {}
    warnings: list[IntegrityWarning] = []

    records = list(accounts)
    if user_id is None and records:
        user_id = records[0].user_id

    for record in records:
        try:
            parse_code(record.code)
        except InvalidAccountCodeError as exc:
            warnings.append(
                IntegrityWarning(str(record.id), str(record.code), exc.reason)
            )
            continue
        if record.code in nodes:
            warnings.append(
                IntegrityWarning(str(record.id), record.code, "duplicate code for user")
            )
            continue
        nodes[record.code] = RealAccount(record)

    for code in list(nodes):
        for ancestor in ancestor_codes(code):
            if ancestor not in nodes:
                nodes[ancestor] = SyntheticAccount.for_code(ancestor, user_id)

    ordered = sorted(nodes)
    index = {code: position for position, code in enumerate(ordered)}

    slots: list[HierarchySlot] = []
    children: list[list[int]] = [[] for _ in ordered]
    for position, code in enumerate(ordered):
        info = parse_code(code)
        parent_index = index.get(info.parent_code) if info.parent_code else None
        parent_id = nodes[info.parent_code].id if parent_index is not None else None
        if parent_index is not None:
            children[parent_index].append(position)
        slots.append(
            HierarchySlot(
                node=nodes[code],
                level=info.level,
                parent_code=info.parent_code,
                parent_index=parent_index,
                parent_id=parent_id,
            )
        )

    for warning in warnings:
        logger.warning(
            "hierarchy_integrity_warning",
            extra={
                "account_id": warning.account_id,
                "code": warning.code,
                "reason": warning.reason,
            },
        )

    return AccountHierarchy(
        slots=tuple(slots),
        index=index,
        children=tuple(tuple(c) for c in children),
        warnings=tuple(warnings),
    )
