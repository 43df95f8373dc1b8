"""
TransactionIntent -- the parsed output of the language-model collaborator.

Responsibility:
    Validates the structured intent handed over by the parsing collaborator
    and turns it into an immutable value the posting engine can trust:
    a positive Decimal amount, a known intent type, a parsed date and the
    category / payment-method references.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Accepted payload shapes:
    English keys  amount, type, category, paymentMethod, date, description
    Spanish keys  monto, tipo, categoria, metodo_pago, fecha, descripcion
    ``category`` and ``paymentMethod`` may be ``{"name", "code"}`` objects or
    bare names.  ``type`` accepts expense/income and gasto/ingreso.

Failure modes:
    - InvalidIntentError(field, reason) for a non-positive or non-numeric
      amount, an unknown type, an unparseable date or a missing category.
      Natural-language content is never inspected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from ledger_kernel.db.types import check_money_precision, money_from_value
from ledger_kernel.exceptions import InvalidIntentError


class IntentType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


_TYPE_ALIASES: dict[str, IntentType] = {
    "expense": IntentType.EXPENSE,
    "gasto": IntentType.EXPENSE,
    "income": IntentType.INCOME,
    "ingreso": IntentType.INCOME,
}

_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "amount": ("amount", "monto"),
    "type": ("type", "tipo"),
    "category": ("category", "categoria"),
    "payment_method": ("paymentMethod", "payment_method", "metodo_pago"),
    "date": ("date", "fecha"),
    "description": ("description", "descripcion"),
    "message_id": ("messageId", "message_id"),
}


@dataclass(frozen=True)
class AccountRef:
    """A free-text account name with an optional suggested code."""

    name: str
    code: str | None = None

    @classmethod
    def from_value(cls, value: Any, field: str) -> "AccountRef":
        if isinstance(value, AccountRef):
            return value
        if isinstance(value, str):
            name, code = value, None
        elif isinstance(value, Mapping):
            name = value.get("name") or value.get("nombre") or ""
            code = value.get("code") or value.get("codigo")
        else:
            raise InvalidIntentError(field, "must be a name or a {name, code} object")

        if not isinstance(name, str):
            raise InvalidIntentError(field, "name must be a string")
        name = name.strip()
        if code is not None:
            code = str(code).strip() or None
        if not name and code is None:
            raise InvalidIntentError(field, "a name or a code is required")
        return cls(name=name, code=code)


def parse_intent_type(value: Any) -> IntentType:
    if isinstance(value, IntentType):
        return value
    if isinstance(value, str):
        intent_type = _TYPE_ALIASES.get(value.strip().lower())
        if intent_type is not None:
            return intent_type
    raise InvalidIntentError("type", f"unknown transaction type {value!r}")


def parse_intent_date(value: Any) -> date:
    """Accept a date, a datetime, or an ISO-8601 date/datetime string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise InvalidIntentError("date", f"not an ISO-8601 date: {value!r}")


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    try:
        amount = money_from_value(value)
    except ValueError as exc:
        raise InvalidIntentError(field, str(exc)) from exc
    if amount <= 0:
        raise InvalidIntentError(field, f"must be greater than zero, got {amount}")
    return amount


def _pick(payload: Mapping[str, Any], field: str) -> Any:
    for key in _KEY_ALIASES[field]:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


@dataclass(frozen=True)
class TransactionIntent:
    """
    A validated transaction intent.

    ``payment_method`` is None when the collaborator did not name one; the
    account service then applies the configured default for the intent type.
    """

    amount: Decimal
    type: IntentType
    category: AccountRef
    payment_method: AccountRef | None
    date: date
    description: str = ""
    message_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite() or self.amount <= 0:
            raise InvalidIntentError("amount", f"must be a positive Decimal, got {self.amount!r}")
        try:
            check_money_precision(self.amount)
        except ValueError as exc:
            raise InvalidIntentError("amount", str(exc)) from exc
        if not isinstance(self.type, IntentType):
            raise InvalidIntentError("type", f"unknown transaction type {self.type!r}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TransactionIntent":
        """
        Validate a raw collaborator payload.

        Raises:
            InvalidIntentError: On the first field that fails validation.
        """
        if not isinstance(payload, Mapping):
            raise InvalidIntentError("payload", "intent must be an object")

        amount = parse_amount(_pick(payload, "amount"))
        intent_type = parse_intent_type(_pick(payload, "type"))

        raw_category = _pick(payload, "category")
        if raw_category is None:
            raise InvalidIntentError("category", "is required")
        category = AccountRef.from_value(raw_category, "category")

        raw_payment = _pick(payload, "payment_method")
        payment_method = (
            AccountRef.from_value(raw_payment, "paymentMethod")
            if raw_payment not in (None, "")
            else None
        )

        txn_date = parse_intent_date(_pick(payload, "date"))

        description = _pick(payload, "description")
        if description is None:
            description = category.name
        message_id = _pick(payload, "message_id")

        return cls(
            amount=amount,
            type=intent_type,
            category=category,
            payment_method=payment_method,
            date=txn_date,
            description=str(description),
            message_id=str(message_id) if message_id is not None else None,
        )
