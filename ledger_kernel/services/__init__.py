"""Write-side services for the ledger kernel."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.posting_service import PostingService
from ledger_kernel.services.sequence_service import NumberingService, SequenceService

__all__ = [
    "AccountService",
    "BaseService",
    "NumberingService",
    "PostingService",
    "SequenceService",
]
