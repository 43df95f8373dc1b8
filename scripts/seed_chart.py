#!/usr/bin/env python3
"""
Create the ledger tables and seed a user's chart of accounts.

Reads the active configuration (DATABASE_URL overrides the configured
database), creates any missing tables, then creates the configured chart
accounts the user does not have yet.  Safe to run repeatedly.

Usage:
    python3 scripts/seed_chart.py --user-id demo-user
    python3 scripts/seed_chart.py --user-id demo-user --config-set default --list
"""

import argparse
import logging
import sys


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a user's chart of accounts.")
    parser.add_argument("--user-id", required=True, help="Owner of the seeded accounts")
    parser.add_argument("--config-set", default="default", help="Configuration set name")
    parser.add_argument("--db-url", default=None, help="Overrides the configured database URL")
    parser.add_argument("--list", action="store_true", help="Print the chart after seeding")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    from ledger_config import get_active_config
    from ledger_config.bridges import init_engine_from_config
    from ledger_kernel.db.engine import create_tables, init_engine_from_url
    from ledger_kernel.logging_config import configure_logging
    from ledger_services import BookkeepingService

    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    config = get_active_config(args.config_set)
    if args.db_url:
        init_engine_from_url(
            args.db_url, busy_timeout=config.database.busy_timeout_seconds
        )
    else:
        init_engine_from_config(config)
    create_tables()

    bookkeeping = BookkeepingService.from_config(config)
    created = bookkeeping.seed_chart(args.user_id)
    print(f"Seeded {created} account(s) for {args.user_id} ({len(config.chart)} in chart)")

    if args.list:
        for view in bookkeeping.list_accounts(args.user_id):
            marker = "*" if view.can_receive_movement else " "
            indent = "  " * (view.level - 1)
            print(f"{marker} {view.code:<10} {indent}{view.name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
