"""
Pure domain layer.

Account code model, hierarchy resolver, balance aggregator, transaction
intent and DTOs.  Nothing here touches a session or the database; every
function is deterministic over its inputs.
"""

from ledger_kernel.domain.account_code import (
    DEFAULT_NAMES,
    AccountCodeInfo,
    AccountType,
    Nature,
    ancestor_codes,
    canonicalize_code,
    clean_code,
    code_level,
    is_descendant,
    is_valid_code,
    parent_code,
    parse_code,
)
from ledger_kernel.domain.aggregation import (
    AccountBalanceView,
    DirectBalance,
    aggregate_balances,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountDefault,
    EntryRecord,
    EntrySpec,
    ResolverDefaults,
    TransactionRecord,
    TransactionUpdate,
)
from ledger_kernel.domain.hierarchy import (
    SYNTHETIC_ID_PREFIX,
    AccountHierarchy,
    AccountNode,
    AccountRecord,
    HierarchySlot,
    IntegrityWarning,
    RealAccount,
    SyntheticAccount,
    is_synthetic_id,
    resolve_hierarchy,
    synthetic_id,
)
from ledger_kernel.domain.intent import AccountRef, IntentType, TransactionIntent

__all__ = [
    "DEFAULT_NAMES",
    "SYNTHETIC_ID_PREFIX",
    "AccountBalanceView",
    "AccountCodeInfo",
    "AccountDefault",
    "AccountHierarchy",
    "AccountNode",
    "AccountRecord",
    "AccountRef",
    "AccountType",
    "Clock",
    "DeterministicClock",
    "DirectBalance",
    "EntryRecord",
    "EntrySpec",
    "HierarchySlot",
    "IntegrityWarning",
    "IntentType",
    "Nature",
    "RealAccount",
    "ResolverDefaults",
    "SyntheticAccount",
    "SystemClock",
    "TransactionIntent",
    "TransactionRecord",
    "TransactionUpdate",
    "aggregate_balances",
    "ancestor_codes",
    "canonicalize_code",
    "clean_code",
    "code_level",
    "is_descendant",
    "is_synthetic_id",
    "is_valid_code",
    "parent_code",
    "parse_code",
    "resolve_hierarchy",
    "synthetic_id",
]
