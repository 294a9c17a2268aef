"""SQLite storage for inventory, notifications, recipes and scan history."""

from .inventory import InventoryDB
from .notifications import NotificationDB
from .recipes import RecipeDB
from .scans import ScanHistoryDB
from .schema import ensure_schema

__all__ = [
    "InventoryDB",
    "NotificationDB",
    "RecipeDB",
    "ScanHistoryDB",
    "ensure_schema",
]
