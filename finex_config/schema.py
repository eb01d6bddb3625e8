"""
FinexConfig schema.

The human-authored, reviewable source artifact for application settings.
YAML is parsed into these frozen types by the loader; ``bridges`` turns
them into kernel inputs (default chart, default settings).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AccountDef:
    """One row of the default chart of accounts."""

    id: str
    code: str
    name_ar: str
    name_en: str
    category: str  # AccountCategory value


@dataclass(frozen=True)
class SettingsDef:
    theme: str = "dark"
    currency: str = "USD"
    locale: str = "ar"


@dataclass(frozen=True)
class FinexConfig:
    """Top-level configuration.

    ``checksum`` is the SHA-256 of the parsed YAML, for change detection.
    """

    config_id: str
    version: int
    database_url: str
    log_level: str = "INFO"
    reason_min_length: int = 3
    balance_tolerance: Decimal = Decimal("0.01")
    oil_price: Decimal = Decimal("80")
    default_settings: SettingsDef = SettingsDef()
    default_chart: tuple[AccountDef, ...] = ()
    checksum: str = ""
