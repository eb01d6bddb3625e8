"""
Module: finex_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries -- per-account balances, trial balance
    rows and dashboard aggregates.  The ledger is a derived view over the journal
    entries; there are no stored balances anywhere in the system.
Architecture position: Kernel > Selectors.

Failure modes:
    - Returns zero balances when no entries exist.  Lines naming an account id
      that is not in the chart still contribute to that id's balance; the trial
      balance lists them after the chart rows.
"""

from dataclasses import dataclass
from decimal import Decimal

from finex_kernel.domain.balances import (
    AccountBalances,
    DashboardStats,
    compute_account_balances,
    compute_dashboard_stats,
)
from finex_kernel.domain.entities import ZERO, AccountCategory, code_sort_key
from finex_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class TrialBalanceRow:
    """A single row in a trial balance report."""

    account_id: str
    account_code: str
    account_name: str
    category: AccountCategory | None
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class LedgerTotals:
    total_debits: Decimal
    total_credits: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class LedgerSelector(BaseSelector):
    """Balance computation over the current journal."""

    def account_balances(self) -> AccountBalances:
        return compute_account_balances(self.store.entries)

    def balance(self, account_id: str) -> Decimal:
        return self.account_balances()[account_id]

    def totals(self) -> LedgerTotals:
        debits = sum((e.total_debits for e in self.store.entries), ZERO)
        credits = sum((e.total_credits for e in self.store.entries), ZERO)
        return LedgerTotals(total_debits=debits, total_credits=credits)

    def dashboard_stats(self) -> DashboardStats:
        return compute_dashboard_stats(
            self.store.coa,
            self.account_balances(),
            self.store.wells,
            self.store.partners,
        )

    def trial_balance(self) -> list[TrialBalanceRow]:
        """
        One row per account with any posted line, ordered by account code.

        Accounts with no lines are omitted.
        """
        debits: dict[str, Decimal] = {}
        credits: dict[str, Decimal] = {}
        for entry in self.store.entries:
            for line in entry.debit_lines:
                debits[line.account_id] = debits.get(line.account_id, ZERO) + line.amount
            for line in entry.credit_lines:
                credits[line.account_id] = credits.get(line.account_id, ZERO) + line.amount

        chart = {account.id: account for account in self.store.coa}
        rows = []
        for account_id in set(debits) | set(credits):
            account = chart.get(account_id)
            rows.append(
                TrialBalanceRow(
                    account_id=account_id,
                    account_code=account.code if account else "",
                    account_name=account.display_name if account else account_id,
                    category=account.category if account else None,
                    debit_total=debits.get(account_id, ZERO),
                    credit_total=credits.get(account_id, ZERO),
                )
            )
        rows.sort(key=lambda r: (r.account_code == "", code_sort_key(r.account_code), r.account_id))
        return rows
