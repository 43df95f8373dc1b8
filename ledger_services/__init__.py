"""
ledger_services -- the API-facing layer over the ledger kernel.

``BookkeepingService`` is the entry point; ``UnitOfWork`` owns commits,
bounded retries and timeouts; ``chart_seeder`` seeds new users.
"""

from ledger_services.bookkeeping_service import BookkeepingService
from ledger_services.chart_seeder import seed_chart
from ledger_services.unit_of_work import UnitOfWork

__all__ = ["BookkeepingService", "UnitOfWork", "seed_chart"]
