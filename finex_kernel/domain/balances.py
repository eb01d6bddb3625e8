"""
Balance aggregator (``finex_kernel.domain.balances``).

Responsibility
--------------
Pure derivation of per-account balances and dashboard aggregates from
the full journal-entry collection.  Debit lines add, credit lines
subtract, keyed by ``account_id``.  Also derives the valuation figures
shown beside the ledger: total stock value and each partner's share of
daily well revenue at a given oil price.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.  Recomputed in
full on every call (O(n) over all lines); there is no cached or stored
balance anywhere in the system.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal

from finex_kernel.domain.entities import (
    ZERO,
    Account,
    AccountCategory,
    InventoryItem,
    JournalEntry,
    Partner,
    PartnerStatus,
    Well,
    WellStatus,
)


class AccountBalances(Mapping[str, Decimal]):
    """Read-only account_id -> balance mapping; unset keys read as zero."""

    def __init__(self, balances: Mapping[str, Decimal]):
        self._balances = dict(balances)

    def __getitem__(self, account_id: str) -> Decimal:
        return self._balances.get(account_id, ZERO)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._balances

    def __iter__(self) -> Iterator[str]:
        return iter(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"AccountBalances({self._balances!r})"


DEFAULT_OIL_PRICE = Decimal("80")  # USD per barrel

@dataclass(frozen=True)
class DashboardStats:
    total_assets: Decimal
    total_liabilities: Decimal
    production_bbl: Decimal
    total_partners: int


def compute_account_balances(entries: Iterable[JournalEntry]) -> AccountBalances:
    totals: defaultdict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        for line in entry.debit_lines:
            totals[line.account_id] += line.amount
        for line in entry.credit_lines:
            totals[line.account_id] -= line.amount
    return AccountBalances(totals)


def total_assets(accounts: Iterable[Account], balances: Mapping[str, Decimal]) -> Decimal:
    return sum(
        (balances.get(a.id, ZERO) for a in accounts if a.category is AccountCategory.ASSETS),
        ZERO,
    )


def total_liabilities(accounts: Iterable[Account], balances: Mapping[str, Decimal]) -> Decimal:
    # Liabilities carry credit (negative) balances; report the magnitude.
    return sum(
        (abs(balances.get(a.id, ZERO)) for a in accounts if a.category is AccountCategory.LIABILITIES),
        ZERO,
    )


def compute_dashboard_stats(
    accounts: Iterable[Account],
    balances: Mapping[str, Decimal],
    wells: Iterable[Well],
    partners: Iterable[Partner],
) -> DashboardStats:
    accounts = tuple(accounts)
    return DashboardStats(
        total_assets=total_assets(accounts, balances),
        total_liabilities=total_liabilities(accounts, balances),
        production_bbl=sum(
            (w.daily_yield for w in wells if w.status is WellStatus.PRODUCTION), ZERO
        ),
        total_partners=sum(1 for p in partners if p.status is PartnerStatus.ACTIVE),
    )


def total_stock_value(inventory: Iterable[InventoryItem]) -> Decimal:
    return sum((item.total_price for item in inventory), ZERO)


@dataclass(frozen=True)
class WellRevenueShare:
    """A partner's stake in one well and the revenue it yields per day."""

    well_id: str
    well_name: str
    percent: Decimal
    daily_revenue: Decimal


@dataclass(frozen=True)
class PartnerIntel:
    partner_id: str
    oil_price: Decimal
    wells: tuple[WellRevenueShare, ...]

    @property
    def total_daily_revenue(self) -> Decimal:
        return sum((w.daily_revenue for w in self.wells), ZERO)


def compute_partner_intel(
    partner_id: str, wells: Iterable[Well], oil_price: Decimal
) -> PartnerIntel:
    """
    Revenue attributable to ``partner_id``: for every well holding a share
    for the partner, ``daily_yield * percent / 100 * oil_price``.

    Well status is not considered; a suspended well with a non-zero yield
    still contributes.  When a well lists the partner more than once, the
    first share counts.
    """
    rows = []
    for well in wells:
        share = next((s for s in well.shares if s.partner_id == partner_id), None)
        if share is None:
            continue
        rows.append(
            WellRevenueShare(
                well_id=well.id,
                well_name=well.name,
                percent=share.percent,
                daily_revenue=well.daily_yield * share.percent / 100 * oil_price,
            )
        )
    return PartnerIntel(partner_id=partner_id, oil_price=oil_price, wells=tuple(rows))
