"""
finex_config -- single public entrypoint for application configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads the YAML file or
    the ``FINEX_CONFIG`` environment variable directly.

Architecture position:
    Configuration -- sits above ``finex_kernel`` and below
    ``finex_services``.  The kernel MUST NEVER import from
    ``finex_config``; ``bridges`` translates parsed values into kernel
    inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configured file does not exist.
    - ``ValueError`` / ``KeyError`` -- schema or value validation failures.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from finex_config.bridges import build_default_chart, build_default_settings
from finex_config.loader import compute_checksum, load_config
from finex_config.schema import AccountDef, FinexConfig, SettingsDef

_logger = logging.getLogger("finex_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "finex.yaml"
CONFIG_ENV_VAR = "FINEX_CONFIG"


def get_active_config(path: Path | str | None = None) -> FinexConfig:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``path``, then ``$FINEX_CONFIG``, then the
    bundled ``defaults/finex.yaml``.  Emits a ``finex_config_loaded`` log
    entry with the config id, version and checksum.
    """
    resolved = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = load_config(resolved)
    _logger.info(
        "finex_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(resolved),
            "chart_size": len(config.default_chart),
        },
    )
    return config


__all__ = [
    "AccountDef",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "FinexConfig",
    "SettingsDef",
    "build_default_chart",
    "build_default_settings",
    "compute_checksum",
    "get_active_config",
]
