"""Service layer modules."""

from .coordinator import (
    ExportCoordinator,
    get_export_coordinator,
    reset_export_coordinator,
    set_export_coordinator,
)
from .resolver import RequestResolver

__all__ = [
    "ExportCoordinator",
    "RequestResolver",
    "get_export_coordinator",
    "reset_export_coordinator",
    "set_export_coordinator",
]
