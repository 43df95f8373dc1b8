"""
AccountSelector and TransactionSelector tests.
"""

from datetime import date
from decimal import Decimal

from ledger_kernel.domain.intent import TransactionIntent
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.transaction_selector import TransactionSelector
from ledger_services.chart_seeder import seed_chart


def expense(amount, category_code, day=10) -> TransactionIntent:
    return TransactionIntent.from_payload(
        {
            "amount": amount,
            "type": "expense",
            "category": {"name": "x", "code": category_code},
            "date": date(2026, 1, day),
        }
    )


class TestAccountSelector:
    def test_records_sorted_and_scoped_to_user(self, seeded_session, user_id, chart):
        seed_chart(seeded_session, "someone-else", chart)
        records = AccountSelector(seeded_session).records(user_id)

        assert [r.code for r in records] == sorted(r.code for r in records)
        assert {r.user_id for r in records} == {user_id}
        assert len(records) == len(chart)

    def test_direct_balances_per_account(self, seeded_session, posting_service, account_service, user_id):
        posting_service.post(user_id, expense(100, "5125-01"))
        posting_service.post(user_id, expense(50, "5125-01"))

        direct = AccountSelector(seeded_session).direct_balances(user_id)
        food = account_service.get_by_code(user_id, "5125-01")
        cash = account_service.get_by_code(user_id, "1105-05")

        assert direct[str(food.id)].debit == Decimal("150")
        assert direct[str(cash.id)].credit == Decimal("150")
        assert len(direct) == 2

    def test_balances_do_not_cross_users(self, seeded_session, posting_service, user_id, chart):
        seed_chart(seeded_session, "someone-else", chart)
        posting_service.post("someone-else", expense(999, "5125-01"))

        assert AccountSelector(seeded_session).direct_balances(user_id) == {}
        views = {v.code: v for v in AccountSelector(seeded_session).list_accounts(user_id)}
        assert views["5"].total_debit == Decimal("0")

    def test_hierarchy_has_no_warnings_for_seeded_chart(self, seeded_session, user_id):
        hierarchy = AccountSelector(seeded_session).hierarchy(user_id)
        assert hierarchy.warnings == ()
        assert hierarchy.synthetic_slots() == []

    def test_categories(self, seeded_session, user_id):
        codes = [a.code for a in AccountSelector(seeded_session).list_categories(user_id)]
        assert codes
        assert all(code[0] in "45" for code in codes)
        assert "5195" not in codes

    def test_payment_methods_exclude_disponible(self, seeded_session, account_service, user_id):
        # Even when marked movable, the class and the Disponible group are not offered
        account_service.get_by_code(user_id, "11").can_receive_movement = True
        seeded_session.flush()

        codes = [a.code for a in AccountSelector(seeded_session).list_payment_methods(user_id)]
        assert "11" not in codes
        assert "1105-05" in codes
        assert "3105-05" in codes


class TestTransactionSelector:
    def test_get_and_missing(self, seeded_session, posting_service, user_id):
        txn = posting_service.post(user_id, expense(10, "5125-01"))
        selector = TransactionSelector(seeded_session)

        record = selector.get(user_id, txn.id)
        assert record.numbering == txn.numbering
        assert record.is_balanced
        assert selector.get("someone-else", txn.id) is None
        assert selector.get(user_id, "garbage") is None

    def test_list_filters_and_order(self, seeded_session, posting_service, user_id):
        for day in (3, 20, 11):
            posting_service.post(user_id, expense(10, "5125-01", day=day))
        selector = TransactionSelector(seeded_session)

        assert [t.date.day for t in selector.list_transactions(user_id)] == [20, 11, 3]
        window = selector.list_transactions(user_id, start=date(2026, 1, 5), end=date(2026, 1, 15))
        assert [t.date.day for t in window] == [11]
        assert len(selector.list_transactions(user_id, limit=2)) == 2
