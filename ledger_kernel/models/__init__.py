"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.models.transaction import LedgerEntry, Transaction

__all__ = [
    "Account",
    "LedgerEntry",
    "SequenceCounter",
    "Transaction",
]
