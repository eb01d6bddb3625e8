"""
Bridges from configuration to kernel inputs.

The kernel never imports ``finex_config``; these helpers translate the
parsed configuration into the kernel values the application injects.
"""

from __future__ import annotations

from finex_config.schema import FinexConfig
from finex_kernel.domain.entities import Account, AccountCategory, AppSettings, code_sort_key


def build_default_chart(config: FinexConfig) -> tuple[Account, ...]:
    """Default chart of accounts, sorted by code."""
    accounts = [
        Account(
            id=a.id,
            code=a.code,
            name_ar=a.name_ar,
            name_en=a.name_en,
            category=AccountCategory(a.category),
        )
        for a in config.default_chart
    ]
    return tuple(sorted(accounts, key=lambda a: code_sort_key(a.code)))


def build_default_settings(config: FinexConfig) -> AppSettings:
    s = config.default_settings
    return AppSettings(theme=s.theme, currency=s.currency, locale=s.locale)
