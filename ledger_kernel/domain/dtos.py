"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable values crossing the kernel boundary: entry specifications for
    manual transaction edits, transaction/entry records returned to the API
    layer, and the resolver defaults injected from configuration.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Data flow:
    API payload -> EntrySpec / TransactionUpdate -> PostingService
    Transaction row -> TransactionRecord -> API layer
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping, Sequence
from uuid import UUID

from ledger_kernel.db.types import money_from_value
from ledger_kernel.domain.intent import parse_intent_date
from ledger_kernel.exceptions import InvalidEntryError, InvalidIntentError

if TYPE_CHECKING:
    from ledger_kernel.models.transaction import LedgerEntry as LedgerEntryModel
    from ledger_kernel.models.transaction import Transaction as TransactionModel


ZERO = Decimal("0")


@dataclass(frozen=True)
class EntrySpec:
    """
    One debit or credit row of a manual entry set.

    ``account_id`` is kept as supplied (UUID or string) so a synthetic
    placeholder id can be recognised and refused before any write.
    Sign and one-sidedness are checked by PostingService, which knows the
    row's position for the error.
    """

    account_id: UUID | str
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], index: int | None = None) -> EntrySpec:
        account_id = payload.get("accountId", payload.get("account_id"))
        if account_id in (None, ""):
            raise InvalidEntryError(index, "accountId is required")
        try:
            debit = money_from_value(payload.get("debit") or 0)
            credit = money_from_value(payload.get("credit") or 0)
        except ValueError as exc:
            raise InvalidEntryError(index, str(exc)) from exc
        return cls(account_id=account_id, debit=debit, credit=credit)


@dataclass(frozen=True)
class TransactionUpdate:
    """Header and complete entry set of a manual transaction (create or replace)."""

    description: str
    date: date
    entries: tuple[EntrySpec, ...]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TransactionUpdate:
        raw_entries = payload.get("entries") or payload.get("ledgerEntries") or ()
        if not isinstance(raw_entries, Sequence) or isinstance(raw_entries, str):
            raise InvalidEntryError(None, "entries must be a list")
        entries = tuple(
            EntrySpec.from_payload(raw, index) for index, raw in enumerate(raw_entries)
        )
        description = payload.get("description")
        if description is None:
            raise InvalidIntentError("description", "is required")
        return cls(
            description=str(description),
            date=parse_intent_date(payload.get("date")),
            entries=entries,
        )

    @property
    def total_debit(self) -> Decimal:
        return sum((entry.debit for entry in self.entries), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((entry.credit for entry in self.entries), ZERO)


@dataclass(frozen=True)
class EntryRecord:
    """A persisted ledger entry with its account's code and name."""

    id: UUID
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal

    @classmethod
    def from_model(cls, model: LedgerEntryModel) -> EntryRecord:
        account = model.account
        return cls(
            id=model.id,
            account_id=model.account_id,
            account_code=account.code if account is not None else "",
            account_name=account.name if account is not None else "",
            debit=model.debit,
            credit=model.credit,
        )


@dataclass(frozen=True)
class TransactionRecord:
    """
    A persisted transaction and its complete entry set.

    Guarantees:
        - Immutable (frozen dataclass).
        - entries are ordered debit rows first, then by account code.
    """

    id: UUID
    user_id: str
    numbering: str
    description: str
    date: date
    message_id: str | None
    entries: tuple[EntryRecord, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((entry.debit for entry in self.entries), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((entry.credit for entry in self.entries), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    @classmethod
    def from_model(cls, model: TransactionModel) -> TransactionRecord:
        entries = tuple(
            sorted(
                (EntryRecord.from_model(entry) for entry in model.entries),
                key=lambda e: (e.debit == ZERO, e.account_code),
            )
        )
        return cls(
            id=model.id,
            user_id=model.user_id,
            numbering=model.numbering,
            description=model.description,
            date=model.date,
            message_id=model.message_id,
            entries=entries,
        )


@dataclass(frozen=True)
class AccountDefault:
    """A named account the resolver falls back to, with the code to create it under."""

    name: str
    code: str


@dataclass(frozen=True)
class ResolverDefaults:
    """
    Fallback accounts for the Account Resolver.

    miscellaneous_expense / miscellaneous_income:
        Used when an auto-created category carries no valid code.
    default_payment_method / default_income_destination:
        Used when an intent names no payment method (expense / income).
    """

    miscellaneous_expense: AccountDefault
    miscellaneous_income: AccountDefault
    default_payment_method: AccountDefault
    default_income_destination: AccountDefault
