"""
Configuration Loader (``finex_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the typed
``finex_config.schema`` dataclasses.  Runtime callers go through
``finex_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values (non-positive reason length, negative tolerance or
  oil price, duplicate chart codes)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from finex_config.schema import AccountDef, FinexConfig, SettingsDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    # YAML floats would lose precision; go through str.
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid {name}: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid {name}: {value!r}")
    return result


def parse_account(data: dict[str, Any]) -> AccountDef:
    return AccountDef(
        id=str(data["id"]),
        code=str(data["code"]),
        name_ar=data.get("name_ar", ""),
        name_en=data.get("name_en", ""),
        category=data["category"],
    )


def parse_settings(data: dict[str, Any] | None) -> SettingsDef:
    data = data or {}
    return SettingsDef(
        theme=data.get("theme", "dark"),
        currency=data.get("currency", "USD"),
        locale=data.get("locale", "ar"),
    )


def parse_config(data: dict[str, Any]) -> FinexConfig:
    """
    Parse a ``FinexConfig`` from a dict.

    Raises:
        KeyError: if ``config_id``, ``version`` or ``database_url`` is missing.
        ValueError: if a value is out of range or the chart repeats a code.
    """
    reason_min_length = int(data.get("reason_min_length", 3))
    if reason_min_length < 1:
        raise ValueError(f"reason_min_length must be positive, got {reason_min_length}")

    tolerance = parse_decimal(data.get("balance_tolerance", "0.01"), "balance_tolerance")
    if tolerance < 0:
        raise ValueError(f"balance_tolerance cannot be negative, got {tolerance}")

    oil_price = parse_decimal(data.get("oil_price", "80"), "oil_price")
    if oil_price < 0:
        raise ValueError(f"oil_price cannot be negative, got {oil_price}")

    chart = tuple(parse_account(a) for a in data.get("default_chart", []))
    codes = [a.code for a in chart]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ValueError(f"default_chart repeats account codes: {duplicates}")

    return FinexConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database_url=data["database_url"],
        log_level=str(data.get("log_level", "INFO")).upper(),
        reason_min_length=reason_min_length,
        balance_tolerance=tolerance,
        oil_price=oil_price,
        default_settings=parse_settings(data.get("default_settings")),
        default_chart=chart,
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> FinexConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
