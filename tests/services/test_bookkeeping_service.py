"""
BookkeepingService tests: the API operations end to end, each in its own
committed unit of work.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import TransactionRecord
from ledger_kernel.exceptions import (
    DuplicateAccountCodeError,
    InvalidEntryError,
    InvalidIntentError,
    MissingParentAccountError,
    SyntheticAccountWriteError,
    TransactionNotFoundError,
    UnbalancedEntriesError,
)
from ledger_kernel.models.account import Account

EXPENSE = {
    "amount": 12000,
    "type": "expense",
    "category": {"name": "Alimentación", "code": "5125-01"},
    "paymentMethod": {"name": "Efectivo", "code": "1105-05"},
    "date": "2026-01-10",
    "description": "Almuerzo",
}


def by_code(views):
    return {view.code: view for view in views}


class TestListAccounts:
    def test_empty_user(self, bookkeeping, user_id):
        assert bookkeeping.list_accounts(user_id) == []

    def test_seeded_chart_is_complete_and_sorted(self, seeded_bookkeeping, user_id):
        views = seeded_bookkeeping.list_accounts(user_id)

        codes = [view.code for view in views]
        assert codes == sorted(codes)
        assert not any(view.is_synthetic for view in views)
        for view in views:
            if view.level > 1:
                assert view.parent_id is not None

    def test_synthetic_ancestors_for_orphan_leaf(self, bookkeeping, session_factory, user_id):
        with session_factory() as session:
            session.add(
                Account(
                    user_id=user_id,
                    code="510501",
                    name="Sueldos",
                    nature="DEBIT",
                    account_type="EXPENSE",
                    can_receive_movement=True,
                )
            )
            session.commit()

        views = by_code(bookkeeping.list_accounts(user_id))
        assert set(views) == {"5", "51", "5105", "510501"}
        assert [views[c].is_synthetic for c in ("5", "51", "5105", "510501")] == [True, True, True, False]
        assert views["5105"].id == "synthetic-5105"
        assert views["510501"].parent_id == "synthetic-5105"

    def test_totals_roll_up(self, seeded_bookkeeping, user_id):
        seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        seeded_bookkeeping.post_transaction(
            user_id, {**EXPENSE, "amount": 3000, "category": {"name": "Gasolina", "code": "5135-03"}}
        )

        views = by_code(seeded_bookkeeping.list_accounts(user_id))
        assert views["5125-01"].total_debit == Decimal("12000")
        assert views["5135"].total_debit == Decimal("3000")
        assert views["5"].total_debit == Decimal("15000")
        assert views["1105-05"].total_credit == Decimal("15000")
        assert views["1"].balance == Decimal("-15000")

    def test_movable_only(self, seeded_bookkeeping, user_id):
        views = seeded_bookkeeping.list_accounts(user_id, movable_only=True)
        assert views
        assert all(view.can_receive_movement for view in views)
        assert all(view.level == 4 for view in views)


class TestCreateAccount:
    def test_create_and_list(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.create_account(user_id, "5135-04", "Internet")

        assert record.code == "5135-04"
        assert record.level == 4
        assert record.can_receive_movement
        assert "5135-04" in by_code(seeded_bookkeeping.list_accounts(user_id))

    def test_missing_parent(self, bookkeeping, user_id):
        with pytest.raises(MissingParentAccountError):
            bookkeeping.create_account(user_id, "5105-01", "Sueldos")

    def test_duplicate_not_retried(self, seeded_bookkeeping, user_id, captured_logs):
        with pytest.raises(DuplicateAccountCodeError):
            seeded_bookkeeping.create_account(user_id, "5105-01", "Sueldos")
        assert not [r for r in captured_logs() if r["message"] == "unit_of_work_retry"]

    def test_resolve_account(self, seeded_bookkeeping, user_id):
        first = seeded_bookkeeping.resolve_account(user_id, "Mascotas", "5195-10")
        second = seeded_bookkeeping.resolve_account(user_id, "mascotas")
        assert first.id == second.id


class TestPostTransaction:
    def test_returns_balanced_record(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.post_transaction(user_id, EXPENSE)

        assert isinstance(record, TransactionRecord)
        assert record.numbering == "2026-1"
        assert record.is_balanced
        assert record.total_debit == Decimal("12000")
        assert [e.account_code for e in record.entries] == ["5125-01", "1105-05"]

    def test_numbering_sequence(self, seeded_bookkeeping, user_id):
        numberings = [
            seeded_bookkeeping.post_transaction(user_id, EXPENSE).numbering for _ in range(3)
        ]
        assert numberings == ["2026-1", "2026-2", "2026-3"]

    def test_invalid_intent_writes_nothing(self, seeded_bookkeeping, user_id):
        with pytest.raises(InvalidIntentError):
            seeded_bookkeeping.post_transaction(user_id, {**EXPENSE, "amount": 0})
        assert seeded_bookkeeping.list_transactions(user_id) == []

    def test_sub_storage_precision_writes_nothing(self, seeded_bookkeeping, user_id):
        with pytest.raises(InvalidIntentError) as exc_info:
            seeded_bookkeeping.post_transaction(user_id, {**EXPENSE, "amount": "0.0000000001"})
        assert exc_info.value.field == "amount"
        assert seeded_bookkeeping.list_transactions(user_id) == []
        assert by_code(seeded_bookkeeping.list_accounts(user_id))["5125-01"].total_debit == Decimal("0")

    def test_failed_posting_leaves_no_partial_state(self, seeded_bookkeeping, user_id):
        before = by_code(seeded_bookkeeping.list_accounts(user_id))
        with pytest.raises(MissingParentAccountError):
            seeded_bookkeeping.post_transaction(
                user_id,
                {
                    **EXPENSE,
                    "category": "Mascotas",
                    "paymentMethod": {"name": "Nequi", "code": "1120-01"},
                },
            )
        after = by_code(seeded_bookkeeping.list_accounts(user_id))
        # 5195-95 was created inside the failed unit of work and rolled back
        assert set(after) == set(before)
        assert seeded_bookkeeping.list_transactions(user_id) == []

    def test_request_context_logged(self, seeded_bookkeeping, user_id, captured_logs):
        seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        posted = [r for r in captured_logs() if r["message"] == "transaction_posted"]
        assert posted[0]["operation"] == "post_transaction"
        assert posted[0]["user_id"] == user_id
        assert "correlation_id" in posted[0]


class TestUpdateAndDelete:
    def test_update_round_trip(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        accounts = by_code(seeded_bookkeeping.list_accounts(user_id))

        updated = seeded_bookkeeping.update_transaction(
            user_id,
            record.id,
            {
                "description": "Almuerzo y propina",
                "date": "2026-01-10",
                "entries": [
                    {"accountId": accounts["5125-01"].id, "debit": 13000},
                    {"accountId": accounts["2105-02"].id, "credit": 13000},
                ],
            },
        )

        assert updated.numbering == record.numbering
        assert updated.total_debit == Decimal("13000")
        assert seeded_bookkeeping.get_transaction(user_id, record.id) == updated
        views = by_code(seeded_bookkeeping.list_accounts(user_id))
        assert views["1105-05"].total_credit == Decimal("0")
        assert views["2105-02"].total_credit == Decimal("13000")

    def test_unbalanced_update_keeps_original(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        accounts = by_code(seeded_bookkeeping.list_accounts(user_id))

        with pytest.raises(UnbalancedEntriesError):
            seeded_bookkeeping.update_transaction(
                user_id,
                record.id,
                {
                    "description": "x",
                    "date": "2026-01-10",
                    "entries": [
                        {"accountId": accounts["5125-01"].id, "debit": 30},
                        {"accountId": accounts["1105-05"].id, "credit": 25},
                    ],
                },
            )
        assert seeded_bookkeeping.get_transaction(user_id, record.id) == record

    def test_synthetic_id_from_listing_refused(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.post_transaction(user_id, EXPENSE)

        with pytest.raises(SyntheticAccountWriteError):
            seeded_bookkeeping.update_transaction(
                user_id,
                record.id,
                {
                    "description": "x",
                    "date": "2026-01-10",
                    "entries": [
                        {"accountId": "synthetic-5125", "debit": 12000},
                        {"accountId": str(record.entries[1].account_id), "credit": 12000},
                    ],
                },
            )
        assert seeded_bookkeeping.get_transaction(user_id, record.id) == record

    def test_delete(self, seeded_bookkeeping, user_id):
        keep = seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        drop = seeded_bookkeeping.post_transaction(user_id, {**EXPENSE, "amount": 500})

        seeded_bookkeeping.delete_transaction(user_id, drop.id)

        assert [t.id for t in seeded_bookkeeping.list_transactions(user_id)] == [keep.id]
        with pytest.raises(TransactionNotFoundError):
            seeded_bookkeeping.get_transaction(user_id, drop.id)
        views = by_code(seeded_bookkeeping.list_accounts(user_id))
        assert views["5125-01"].total_debit == Decimal("12000")

    def test_delete_other_users_transaction(self, seeded_bookkeeping, user_id):
        record = seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        with pytest.raises(TransactionNotFoundError):
            seeded_bookkeeping.delete_transaction("someone-else", record.id)
        assert seeded_bookkeeping.get_transaction(user_id, record.id) == record

    def test_get_unknown(self, bookkeeping, user_id):
        with pytest.raises(TransactionNotFoundError):
            bookkeeping.get_transaction(user_id, uuid4())


class TestCreateTransaction:
    def test_ledger_entries_payload(self, seeded_bookkeeping, user_id, captured_logs):
        seeded_bookkeeping.post_transaction(user_id, EXPENSE)
        accounts = by_code(seeded_bookkeeping.list_accounts(user_id))

        record = seeded_bookkeeping.create_transaction(
            user_id,
            {
                "description": "Pago tarjeta",
                "date": "2026-01-20",
                "ledgerEntries": [
                    {"accountId": accounts["2105-02"].id, "debit": "450.25"},
                    {"accountId": accounts["1110-05"].id, "credit": "450.25"},
                ],
            },
        )

        assert record.numbering == "2026-2"
        assert record.is_balanced
        assert record.total_debit == Decimal("450.25")
        assert seeded_bookkeeping.get_transaction(user_id, record.id) == record
        views = by_code(seeded_bookkeeping.list_accounts(user_id))
        assert views["2105-02"].total_debit == Decimal("450.25")
        created = [r for r in captured_logs() if r["message"] == "transaction_created"]
        assert created[0]["operation"] == "create_transaction"

    def test_unbalanced_writes_nothing(self, seeded_bookkeeping, user_id):
        accounts = by_code(seeded_bookkeeping.list_accounts(user_id))
        with pytest.raises(UnbalancedEntriesError):
            seeded_bookkeeping.create_transaction(
                user_id,
                {
                    "description": "x",
                    "date": "2026-01-20",
                    "ledgerEntries": [
                        {"accountId": accounts["5125-01"].id, "debit": 30},
                        {"accountId": accounts["1105-05"].id, "credit": 25},
                    ],
                },
            )
        assert seeded_bookkeeping.list_transactions(user_id) == []
        assert seeded_bookkeeping.post_transaction(user_id, EXPENSE).numbering == "2026-1"

    def test_sub_storage_precision_refused(self, seeded_bookkeeping, user_id):
        accounts = by_code(seeded_bookkeeping.list_accounts(user_id))
        with pytest.raises(InvalidEntryError):
            seeded_bookkeeping.create_transaction(
                user_id,
                {
                    "description": "x",
                    "date": "2026-01-20",
                    "ledgerEntries": [
                        {"accountId": accounts["5125-01"].id, "debit": "0.0000000001"},
                        {"accountId": accounts["1105-05"].id, "credit": "0.0000000001"},
                    ],
                },
            )
        assert seeded_bookkeeping.list_transactions(user_id) == []


class TestListings:
    def test_categories_and_payment_methods(self, seeded_bookkeeping, user_id):
        categories = {a.code for a in seeded_bookkeeping.list_categories(user_id)}
        payments = {a.code for a in seeded_bookkeeping.list_payment_methods(user_id)}

        assert "5125-01" in categories and "4135-05" in categories
        assert "5105" not in categories
        assert {"1105-05", "1110-05", "2105-02"} <= payments
        assert not categories & payments

    def test_seed_is_idempotent(self, seeded_bookkeeping, user_id):
        assert seeded_bookkeeping.seed_chart(user_id) == 0

    def test_transactions_newest_first(self, seeded_bookkeeping, user_id):
        seeded_bookkeeping.post_transaction(user_id, {**EXPENSE, "date": "2026-01-05"})
        seeded_bookkeeping.post_transaction(user_id, {**EXPENSE, "date": "2026-01-09"})

        dates = [t.date.isoformat() for t in seeded_bookkeeping.list_transactions(user_id)]
        assert dates == ["2026-01-09", "2026-01-05"]
        assert len(seeded_bookkeeping.list_transactions(user_id, limit=1)) == 1
