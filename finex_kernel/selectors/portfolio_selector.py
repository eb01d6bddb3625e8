"""
Module: finex_kernel.selectors.portfolio_selector
Responsibility: Valuation queries over the registries -- stock on hand and
    per-partner revenue from well shares.
Architecture position: Kernel > Selectors.

The oil price is injected at construction (configured, not market data);
callers may override it per query.
"""

from decimal import Decimal

from finex_kernel.domain.balances import (
    DEFAULT_OIL_PRICE,
    PartnerIntel,
    compute_partner_intel,
    total_stock_value,
)
from finex_kernel.selectors.base import BaseSelector
from finex_kernel.services.domain_store import DomainStore


class PortfolioSelector(BaseSelector):
    """Stock valuation and partner revenue at a configured oil price."""

    def __init__(self, store: DomainStore, oil_price: Decimal = DEFAULT_OIL_PRICE):
        super().__init__(store)
        self.oil_price = oil_price

    def stock_value(self) -> Decimal:
        return total_stock_value(self.store.inventory)

    def partner_intel(self, partner_id: str, oil_price: Decimal | None = None) -> PartnerIntel:
        price = self.oil_price if oil_price is None else oil_price
        return compute_partner_intel(partner_id, self.store.wells, price)

    def all_partner_intel(self) -> tuple[PartnerIntel, ...]:
        """One row per partner in registry order, at the configured price."""
        return tuple(self.partner_intel(p.id) for p in self.store.partners)
