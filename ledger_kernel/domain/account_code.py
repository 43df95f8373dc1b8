"""
Account Code Model -- pure mapping from a chart-of-accounts code to its
structural meaning.

Responsibility:
    Parses a code string into ``(level, parent code, nature, account type,
    default name)``, derives the ancestor chain, decides descendancy by
    separator-stripped prefix, and rewrites legacy pure-digit codes into the
    canonical hyphenated form.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Consumed by every
    other component (models, hierarchy resolver, aggregator, services).

Code scheme (persisted contract):
    class       ``5``           level 1
    group       ``51``          level 2
    account     ``5105``        level 3
    subaccount  ``5105-01``     level 4 (canonical)
                ``510501``      level 4 (legacy spelling, read-only)

    First digit: 1 ASSET/DEBIT, 2 LIABILITY/CREDIT, 3 EQUITY/CREDIT,
    4 INCOME/CREDIT, 5 EXPENSE/DEBIT.

Invariants enforced:
    - Nature and account type are a function of the first digit only.
    - Level and parent code are a function of the code's structure only;
      neither is ever taken from storage.
    - The default-name table is advisory: it names synthetic ancestors and
      never overrides a persisted account's name.

Failure modes:
    - InvalidAccountCodeError for empty codes, non-digits, an unknown class
      digit, lengths 3 or 5, or a malformed ``-`` sub-code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.exceptions import InvalidAccountCodeError

SUBCODE_SEPARATOR = "-"
LEVEL3_LENGTH = 4


class AccountType(str, Enum):
    """Financial statement classification of an account."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Nature(str, Enum):
    """Side on which an account's balance normally increases."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


_CLASS_TABLE: dict[str, tuple[AccountType, Nature, str]] = {
    "1": (AccountType.ASSET, Nature.DEBIT, "Activo"),
    "2": (AccountType.LIABILITY, Nature.CREDIT, "Pasivo"),
    "3": (AccountType.EQUITY, Nature.CREDIT, "Patrimonio"),
    "4": (AccountType.INCOME, Nature.CREDIT, "Ingresos"),
    "5": (AccountType.EXPENSE, Nature.DEBIT, "Gastos"),
}

# Canonical display names for well-known prefixes
DEFAULT_NAMES: dict[str, str] = {
    "11": "Disponible",
    "1105": "Caja",
    "21": "Obligaciones Financieras",
    "41": "Operacionales",
    "51": "Operacionales de Administración",
    "5105": "Gastos de Personal",
}


@dataclass(frozen=True)
class AccountCodeInfo:
    """Structural meaning of one account code."""

    code: str
    level: int
    parent_code: str | None
    nature: Nature
    account_type: AccountType
    default_name: str

    @property
    def is_root(self) -> bool:
        return self.level == 1


def clean_code(code: str) -> str:
    """Strip sub-code separators: ``5105-01`` -> ``510501``."""
    return code.replace(SUBCODE_SEPARATOR, "")


def _is_digits(text: str) -> bool:
    # ASCII only: str.isdigit() also accepts superscripts and other scripts
    return text.isascii() and text.isdigit()


def _validate(code: str) -> str:
    if not isinstance(code, str):
        raise InvalidAccountCodeError(str(code), "code must be a string")
    code = code.strip()
    if not code:
        raise InvalidAccountCodeError(code, "code is empty")

    if SUBCODE_SEPARATOR in code:
        base, _, suffix = code.partition(SUBCODE_SEPARATOR)
        if SUBCODE_SEPARATOR in suffix:
            raise InvalidAccountCodeError(code, "at most one '-' separator is allowed")
        if len(base) != LEVEL3_LENGTH or not _is_digits(base):
            raise InvalidAccountCodeError(code, "sub-codes must extend a 4-digit base")
        if not _is_digits(suffix):
            raise InvalidAccountCodeError(code, "sub-code after '-' must be digits")
    else:
        if not _is_digits(code):
            raise InvalidAccountCodeError(code, "code must contain only digits")
        if len(code) in (3, 5):
            raise InvalidAccountCodeError(
                code, f"length {len(code)} does not map to a chart level"
            )

    if code[0] not in _CLASS_TABLE:
        raise InvalidAccountCodeError(
            code, f"leading digit '{code[0]}' is not an account class (1-5)"
        )
    return code


def code_level(code: str) -> int:
    """Derive the chart level (1-4) from the code's structure."""
    code = _validate(code)
    if SUBCODE_SEPARATOR in code or len(code) >= 6:
        return 4
    if len(code) == LEVEL3_LENGTH:
        return 3
    if len(code) == 2:
        return 2
    return 1


def parent_code(code: str) -> str | None:
    """Derive the structural parent code, or None for a class (level 1)."""
    code = _validate(code)
    level = code_level(code)
    if level == 1:
        return None
    if level == 2:
        return code[:1]
    if level == 3:
        return code[:2]
    if SUBCODE_SEPARATOR in code:
        return code.split(SUBCODE_SEPARATOR)[0]
    return code[:LEVEL3_LENGTH]


def ancestor_codes(code: str) -> list[str]:
    """Return the ancestor chain root-first: ``5105-01`` -> ``[5, 51, 5105]``."""
    chain: list[str] = []
    current = parent_code(code)
    while current is not None:
        chain.append(current)
        current = parent_code(current)
    chain.reverse()
    return chain


def default_name(code: str) -> str:
    """Advisory display name for a code with no persisted row."""
    code = _validate(code)
    return DEFAULT_NAMES.get(code, _CLASS_TABLE[code[0]][2])


def parse_code(code: str) -> AccountCodeInfo:
    """
    Map a code to its full structural meaning.

    Raises:
        InvalidAccountCodeError: If the code does not fit the scheme.
    """
    code = _validate(code)
    account_type, nature, _ = _CLASS_TABLE[code[0]]
    return AccountCodeInfo(
        code=code,
        level=code_level(code),
        parent_code=parent_code(code),
        nature=nature,
        account_type=account_type,
        default_name=default_name(code),
    )


def is_valid_code(code: str) -> bool:
    """Check whether a code fits the scheme."""
    try:
        _validate(code)
        return True
    except InvalidAccountCodeError:
        return False


def canonicalize_code(code: str) -> str:
    """
    Rewrite a code into the canonical hyphenated scheme.

    Pure-digit level-4 codes from the legacy scheme are split after the
    fourth digit (``510501`` -> ``5105-01``).  Everything else is returned
    validated and stripped but otherwise unchanged.  This is the migration
    path for legacy rows and the normalization applied before any write.
    """
    code = _validate(code)
    if SUBCODE_SEPARATOR not in code and len(code) >= 6:
        return f"{code[:LEVEL3_LENGTH]}{SUBCODE_SEPARATOR}{code[LEVEL3_LENGTH:]}"
    return code


def is_descendant(ancestor: str, candidate: str) -> bool:
    """
    True iff ``candidate`` sits strictly below ``ancestor`` in the chart.

    Separator-stripped prefix match, excluding the code itself:
    ``clean(candidate).startswith(clean(ancestor)) and candidate != ancestor``.
    """
    if candidate == ancestor:
        return False
    return clean_code(candidate).startswith(clean_code(ancestor))
