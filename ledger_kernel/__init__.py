"""
Ledger Kernel - conversational personal accounting engine

A double-entry bookkeeping core for chat-driven personal finance:
- Hierarchical 4-level numeric chart of accounts
- Synthetic ancestor accounts for complete hierarchies on read
- Prefix rollup of leaf balances to every ancestor
- Atomic, balanced posting of parsed transaction intents
- Per-user, per-year transaction numbering
"""

__version__ = "0.1.0"
