"""
FineX Kernel - audit-gated domain mutation engine

The single path through which every destructive or corrective change to
the petroleum ledger, chart of accounts, wells, partners, inventory and
users must pass:
- Pending-action justification workflow
- Append-only audit trail with before/after snapshots
- Per-entity invariant enforcement at the commit boundary
- Derived (never stored) account balances
"""

__version__ = "0.1.0"
