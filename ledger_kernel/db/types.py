"""
Module: ledger_kernel.db.types
Responsibility: Conversion of boundary values into monetary Decimals.
    Centralizes the parsing of amounts so every model, DTO and service uses
    the same rules.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the ledger kernel.  All monetary amounts use
      Decimal and are stored as Numeric(38, 9); money_from_value() is the
      sanctioned way to turn boundary input (LLM JSON numbers, form strings)
      into a Decimal.

Failure modes:
    - ValueError on non-numeric or non-finite input to money_from_value().
    - ValueError when an amount would be rounded by Numeric(38, 9): more
      than 9 decimal places or more than 29 integer digits.
"""

from decimal import Decimal, InvalidOperation, localcontext

MONEY_PRECISION = 38
MONEY_DECIMAL_PLACES = 9

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
_MONEY_LIMIT = Decimal(10) ** (MONEY_PRECISION - MONEY_DECIMAL_PLACES)


def check_money_precision(amount: Decimal) -> Decimal:
    """
    Return ``amount`` if Numeric(38, 9) stores it exactly.

    Raises:
        ValueError: More than 9 decimal places, or more than 29 integer digits.
    """
    if amount.copy_abs() >= _MONEY_LIMIT:
        raise ValueError(f"Monetary amount out of range: {amount}")
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        exact = amount.quantize(_MONEY_QUANTUM) == amount
    if not exact:
        raise ValueError(
            f"Monetary amount has more than {MONEY_DECIMAL_PLACES} decimal places: {amount}"
        )
    return amount


def money_from_value(value: object) -> Decimal:
    """
    Convert a boundary value to a monetary Decimal.

    Floats are converted through their shortest repr, so 12.3 becomes
    Decimal("12.3") and not the binary expansion.  Booleans are rejected even
    though they are ints.

    Raises:
        ValueError: If value is not a finite number, or
            Numeric(38, 9) cannot hold it exactly.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    else:
        raise ValueError(f"Not a monetary amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Not a finite monetary amount: {value!r}")
    return check_money_precision(amount)
