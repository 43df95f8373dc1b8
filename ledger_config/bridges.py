"""
Config -> Kernel Bridges.

Functions that convert LedgerConfiguration artifacts into kernel inputs.
They live in ledger_config (the producer) because the kernel must NEVER
import ledger_config.

Usage:
    from ledger_config import get_active_config
    from ledger_config.bridges import build_resolver_defaults, init_engine_from_config

    config = get_active_config()
    init_engine_from_config(config)
    defaults = build_resolver_defaults(config)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from ledger_config.schema import AccountDefaultDef, LedgerConfiguration
from ledger_kernel.db.engine import init_engine_from_url
from ledger_kernel.domain.account_code import canonicalize_code
from ledger_kernel.domain.dtos import AccountDefault, ResolverDefaults


def _account_default(definition: AccountDefaultDef) -> AccountDefault:
    return AccountDefault(name=definition.name, code=canonicalize_code(definition.code))


def build_resolver_defaults(config: LedgerConfiguration) -> ResolverDefaults:
    """Fallback accounts for AccountService, codes in canonical form."""
    resolver = config.resolver
    return ResolverDefaults(
        miscellaneous_expense=_account_default(resolver.miscellaneous_expense),
        miscellaneous_income=_account_default(resolver.miscellaneous_income),
        default_payment_method=_account_default(resolver.default_payment_method),
        default_income_destination=_account_default(resolver.default_income_destination),
    )


def init_engine_from_config(config: LedgerConfiguration) -> Engine:
    """Initialize the kernel's engine from the database section."""
    database = config.database
    return init_engine_from_url(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        busy_timeout=database.busy_timeout_seconds,
    )
