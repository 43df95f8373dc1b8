"""
Balance Aggregator tests.

total(A) = direct(A) + direct sums of every real account whose cleaned code
extends A's.  Synthetic accounts contribute nothing of their own.
"""

from decimal import Decimal
from uuid import uuid4

from ledger_kernel.domain.account_code import AccountType, Nature
from ledger_kernel.domain.aggregation import DirectBalance, aggregate_balances
from ledger_kernel.domain.hierarchy import AccountRecord, resolve_hierarchy

USER = "user-1"

_TYPES = {"1": AccountType.ASSET, "4": AccountType.INCOME, "5": AccountType.EXPENSE}


def make_record(code: str, movable: bool = False) -> AccountRecord:
    debit_nature = code[0] in "15"
    return AccountRecord(
        id=uuid4(),
        user_id=USER,
        code=code,
        name=f"Account {code}",
        nature=Nature.DEBIT if debit_nature else Nature.CREDIT,
        account_type=_TYPES[code[0]],
        can_receive_movement=movable,
    )


def views_by_code(views):
    return {view.code: view for view in views}


class TestPrefixRollup:
    def test_leaf_debit_inherited_by_every_ancestor(self):
        root = make_record("1")
        mid = make_record("1105")
        leaf = make_record("110505", movable=True)
        hierarchy = resolve_hierarchy([root, mid, leaf])

        views = views_by_code(
            aggregate_balances(hierarchy, {leaf.id: DirectBalance(debit=Decimal("100"))})
        )

        assert views["1105"].total_debit == Decimal("100")
        assert views["1"].total_debit == Decimal("100")
        assert views["11"].total_debit == Decimal("100")
        assert views["11"].is_synthetic
        assert views["110505"].total_debit == Decimal("100")

    def test_siblings_do_not_leak(self):
        cash = make_record("1105-05", movable=True)
        bank = make_record("1110-05", movable=True)
        hierarchy = resolve_hierarchy([cash, bank])

        views = views_by_code(
            aggregate_balances(
                hierarchy,
                {
                    cash.id: DirectBalance(debit=Decimal("50")),
                    str(bank.id): DirectBalance(debit=Decimal("70"), credit=Decimal("20")),
                },
            )
        )

        assert views["1105"].total_debit == Decimal("50")
        assert views["1110"].total_debit == Decimal("70")
        assert views["1110"].total_credit == Decimal("20")
        assert views["11"].total_debit == Decimal("120")
        assert views["1"].total_credit == Decimal("20")

    def test_direct_postings_on_parent_are_counted(self):
        parent = make_record("5105", movable=True)
        child = make_record("5105-01", movable=True)
        hierarchy = resolve_hierarchy([parent, child])

        views = views_by_code(
            aggregate_balances(
                hierarchy,
                {
                    parent.id: DirectBalance(debit=Decimal("10")),
                    child.id: DirectBalance(debit=Decimal("5")),
                },
            )
        )

        assert views["5105"].total_debit == Decimal("15")
        assert views["5105-01"].total_debit == Decimal("5")
        assert views["5"].total_debit == Decimal("15")

    def test_accounts_without_entries_total_zero(self):
        hierarchy = resolve_hierarchy([make_record("4135-05", movable=True)])
        for view in aggregate_balances(hierarchy, {}):
            assert view.total_debit == Decimal("0")
            assert view.total_credit == Decimal("0")

    def test_mixed_code_spellings_roll_up_together(self):
        legacy = make_record("510501", movable=True)
        canonical = make_record("5105-02", movable=True)
        hierarchy = resolve_hierarchy([legacy, canonical])

        views = views_by_code(
            aggregate_balances(
                hierarchy,
                {
                    legacy.id: DirectBalance(debit=Decimal("1")),
                    canonical.id: DirectBalance(debit=Decimal("2")),
                },
            )
        )
        assert views["5105"].total_debit == Decimal("3")


class TestViews:
    def test_sorted_by_code_with_level_and_parent(self):
        leaf = make_record("5105-01", movable=True)
        views = aggregate_balances(resolve_hierarchy([leaf]), {})

        assert [view.code for view in views] == ["5", "51", "5105", "5105-01"]
        assert [view.level for view in views] == [1, 2, 3, 4]
        assert views[0].parent_id is None
        assert views[3].parent_id == "synthetic-5105"
        assert views[3].id == str(leaf.id)

    def test_balance_signed_by_nature(self):
        income = make_record("4135-05", movable=True)
        views = views_by_code(
            aggregate_balances(
                resolve_hierarchy([income]),
                {income.id: DirectBalance(debit=Decimal("5"), credit=Decimal("80"))},
            )
        )
        assert views["4135-05"].balance == Decimal("75")

        asset = make_record("1105-05", movable=True)
        views = views_by_code(
            aggregate_balances(
                resolve_hierarchy([asset]),
                {asset.id: DirectBalance(debit=Decimal("80"), credit=Decimal("5"))},
            )
        )
        assert views["1"].balance == Decimal("75")

    def test_movable_filter_keeps_subtree_totals(self):
        parent = make_record("5105", movable=True)
        child = make_record("5105-01", movable=True)
        views = aggregate_balances(
            resolve_hierarchy([parent, child]),
            {child.id: DirectBalance(debit=Decimal("40"))},
            movable_only=True,
        )

        assert [view.code for view in views] == ["5105", "5105-01"]
        assert views[0].total_debit == Decimal("40")


class TestDirectBalance:
    def test_addition(self):
        total = DirectBalance(Decimal("1"), Decimal("2")) + DirectBalance(Decimal("3"), Decimal("4"))
        assert total == DirectBalance(Decimal("4"), Decimal("6"))
