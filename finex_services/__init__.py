"""Services layer: the application controller and backup export/import."""

from finex_services.application import (
    ALL_PERMISSIONS,
    FinexApplication,
    open_application,
)

__all__ = [
    "ALL_PERMISSIONS",
    "FinexApplication",
    "open_application",
]
