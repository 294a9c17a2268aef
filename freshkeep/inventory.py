"""Inventory operations that keep expiry notifications in step with the data."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from .models import InventoryItem

if TYPE_CHECKING:
    from .db import InventoryDB
    from .notifications import ExpiryNotifier

logger = logging.getLogger(__name__)


class InventoryService:
    """Create, edit and consume items, re-running expiry scheduling after each change."""

    def __init__(self, inventory_db: InventoryDB, notifier: ExpiryNotifier) -> None:
        self._db = inventory_db
        self._notifier = notifier

    async def add_item(self, item: InventoryItem, today: date | None = None) -> InventoryItem | None:
        """Store a new item.

        Returns:
            The stored item with its ID, or None if it could not be saved.
        """
        if item.added_date is None:
            item.added_date = today or date.today()
        try:
            item.id = self._db.add_item(item)
        except Exception:
            logger.exception("Failed to add item %r", item.name)
            return None
        await self._notifier.schedule(item.user_id, today=today)
        return item

    async def update_item(
        self, item_id: int, today: date | None = None, **updates
    ) -> InventoryItem | None:
        try:
            item = self._db.update_item(item_id, **updates)
        except Exception:
            logger.exception("Failed to update item %s", item_id)
            return None
        if item is not None:
            await self._notifier.schedule(item.user_id, today=today)
        return item

    async def consume_item(self, item_id: int, today: date | None = None) -> bool:
        """Mark an item consumed. The row is kept."""
        try:
            item = self._db.get_item(item_id)
            if item is None or not self._db.consume_item(item_id):
                return False
        except Exception:
            logger.exception("Failed to consume item %s", item_id)
            return False
        await self._notifier.schedule(item.user_id, today=today)
        return True

    def list_items(self, user_id: int, limit: int = 50) -> list[InventoryItem]:
        try:
            return self._db.get_active_items(user_id, limit=limit)
        except Exception:
            logger.exception("Failed to list items for user %s", user_id)
            return []

    def get_expiring(
        self, user_id: int, days: int = 3, today: date | None = None
    ) -> list[InventoryItem]:
        try:
            return self._db.get_expiring_items(user_id, within_days=days, today=today)
        except Exception:
            logger.exception("Failed to load expiring items for user %s", user_id)
            return []

    def search(self, user_id: int, query: str) -> list[InventoryItem]:
        try:
            return self._db.search_items(user_id, query)
        except Exception:
            logger.exception("Failed to search items for user %s", user_id)
            return []

    def by_category(self, user_id: int, category: str) -> list[InventoryItem]:
        try:
            return self._db.get_items_by_category(user_id, category)
        except Exception:
            logger.exception("Failed to load %s items for user %s", category, user_id)
            return []

    def by_location(self, user_id: int, location: str) -> list[InventoryItem]:
        try:
            return self._db.get_items_by_location(user_id, location)
        except Exception:
            logger.exception("Failed to load items in %s for user %s", location, user_id)
            return []
