"""Selectors for the finex kernel (read side)."""

from finex_kernel.selectors.audit_selector import AuditSelector
from finex_kernel.selectors.ledger_selector import LedgerSelector, LedgerTotals, TrialBalanceRow
from finex_kernel.selectors.portfolio_selector import PortfolioSelector

__all__ = [
    "AuditSelector",
    "LedgerSelector",
    "LedgerTotals",
    "PortfolioSelector",
    "TrialBalanceRow",
]
