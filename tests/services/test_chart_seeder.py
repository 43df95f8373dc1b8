"""
Chart seeding: parents before children, idempotent, logged.
"""

import pytest

from ledger_config.schema import ChartAccountDef
from ledger_kernel.exceptions import MissingParentAccountError
from ledger_kernel.services.account_service import AccountService
from ledger_services.chart_seeder import seed_chart

SMALL_CHART = (
    ChartAccountDef("1105-01", "Caja general"),
    ChartAccountDef("1", "Activo"),
    ChartAccountDef("1105", "Caja"),
    ChartAccountDef("11", "Disponible"),
)


class TestSeedChart:
    def test_creates_parents_before_children(self, session, user_id):
        assert seed_chart(session, user_id, SMALL_CHART) == 4

        accounts = AccountService(session)
        leaf = accounts.get_by_code(user_id, "1105-01")
        assert leaf is not None
        assert leaf.can_receive_movement

    def test_second_run_creates_nothing(self, session, user_id):
        seed_chart(session, user_id, SMALL_CHART)
        assert seed_chart(session, user_id, SMALL_CHART) == 0

    def test_skipped_level_rejected(self, session, user_id):
        with pytest.raises(MissingParentAccountError):
            seed_chart(session, user_id, (ChartAccountDef("1105", "Caja"),))


class TestSeedChartLogging:
    def test_chart_seeded_logged(self, session, user_id, captured_logs):
        seed_chart(session, user_id, SMALL_CHART)
        seed_chart(session, user_id, SMALL_CHART)

        seeded = [r for r in captured_logs() if r["message"] == "chart_seeded"]
        assert [r["accounts_created"] for r in seeded] == [4, 0]
        assert all(r["chart_size"] == 4 for r in seeded)
        assert seeded[0]["user_id"] == user_id

    def test_facade_seed_logged(self, bookkeeping, user_id, chart, captured_logs):
        assert bookkeeping.seed_chart(user_id) == len(chart)

        seeded = [r for r in captured_logs() if r["message"] == "chart_seeded"]
        assert len(seeded) == 1
        assert seeded[0]["accounts_created"] == len(chart)
        assert seeded[0]["operation"] == "seed_chart"
