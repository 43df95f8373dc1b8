"""
ledger_services.chart_seeder -- seed a user's chart of accounts.

Creates the configured accounts that the user does not have yet, parents
before children, through AccountService so every row gets the same
validation as an explicit ``createAccount``.  Running it twice creates
nothing the second time.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from ledger_config.schema import ChartAccountDef
from ledger_kernel.domain.account_code import canonicalize_code, code_level
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.account_service import AccountService

logger = get_logger("services.chart_seeder")


def seed_chart(session: Session, user_id: str, chart: Iterable[ChartAccountDef]) -> int:
    """
    Create missing chart accounts for ``user_id``.

    Returns:
        The number of accounts created.

    Raises:
        MissingParentAccountError: The chart skips a level for some code.
    """
    accounts = AccountService(session)
    ordered = sorted(
        chart, key=lambda item: (code_level(item.code), canonicalize_code(item.code))
    )

    created = 0
    for item in ordered:
        if accounts.get_by_code(user_id, item.code) is not None:
            continue
        accounts.create_account(
            user_id,
            code=item.code,
            name=item.name,
            can_receive_movement=item.can_receive_movement,
        )
        created += 1

    logger.info(
        "chart_seeded",
        extra={"user_id": user_id, "accounts_created": created, "chart_size": len(ordered)},
    )
    return created
