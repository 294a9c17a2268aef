"""Expiry-aware notification scheduling.

Scheduling is a synchronous pass over a user's inventory, run after every
inventory mutation. It is idempotent: an item that already has an unread
expiry warning is skipped, even if its urgency has changed since.

The duplicate check is check-then-insert without locking, so two passes for
the same user running at the same moment can both insert a warning for one
item. That duplicate is tolerated.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from .models import EXPIRY_WARNING, InventoryItem, Notification

if TYPE_CHECKING:
    from .config import FreshkeepConfig
    from .db import InventoryDB, NotificationDB
    from .generation import GroceryAI

logger = logging.getLogger(__name__)


def days_until_expiry(expiry_date: date, today: date) -> int:
    """Whole calendar days from today to the expiry date (negative once expired)."""
    return (expiry_date - today).days


def expiry_template(item_name: str, days: int) -> tuple[str, str, str]:
    """Return (title, message, priority) for an item expiring in ``days`` days."""
    if days <= 0:
        return (
            "Item Expired",
            f"Your {item_name} has expired. Consider removing it from your inventory.",
            "high",
        )
    plural = "" if days == 1 else "s"
    return (
        "Item Expiring Soon",
        f"Your {item_name} expires in {days} day{plural}. Consider using it soon!",
        "high" if days == 1 else "medium",
    )


class ExpiryNotifier:
    """Emit de-duplicated, prioritized expiry warnings for a user's inventory."""

    def __init__(
        self,
        inventory_db: InventoryDB,
        notification_db: NotificationDB,
        ai: GroceryAI | None = None,
        lookahead_days: int = 7,
        alert_days: int = 3,
    ) -> None:
        self._inventory = inventory_db
        self._notifications = notification_db
        self._ai = ai
        self._lookahead_days = lookahead_days
        self._alert_days = alert_days

    @classmethod
    def from_config(
        cls,
        config: FreshkeepConfig,
        inventory_db: InventoryDB,
        notification_db: NotificationDB,
        ai: GroceryAI | None = None,
    ) -> ExpiryNotifier:
        nc = config.notifications
        return cls(
            inventory_db,
            notification_db,
            ai=ai if nc.ai_phrasing else None,
            lookahead_days=nc.lookahead_days,
            alert_days=nc.alert_days,
        )

    async def schedule(self, user_id: int, today: date | None = None) -> list[Notification]:
        """Run one scheduling pass for a user.

        Returns:
            The notifications created by this pass.
        """
        today = today or date.today()
        try:
            items = self._inventory.get_expiring_items(
                user_id, within_days=self._lookahead_days, today=today
            )
        except Exception:
            logger.exception("Failed to load expiring items for user %s", user_id)
            return []

        created: list[Notification] = []
        for item in items:
            try:
                notification = await self._notify_item(item, today)
            except Exception:
                logger.exception(
                    "Failed to schedule expiry notification for item %s", item.id
                )
                continue
            if notification is not None:
                created.append(notification)

        logger.info(
            "Checked %d expiring items for user %s, created %d notifications",
            len(items),
            user_id,
            len(created),
        )
        return created

    async def _notify_item(self, item: InventoryItem, today: date) -> Notification | None:
        days = days_until_expiry(item.expiry_date, today)
        if days > self._alert_days:
            return None
        if self._notifications.has_unread(item.user_id, item.id, EXPIRY_WARNING):
            return None

        title, message, priority = expiry_template(item.name, days)
        if self._ai is not None:
            phrased = await self._ai.phrase_expiry_notification(item.name, days)
            if phrased:
                message = phrased

        now = datetime.now()
        notification = Notification(
            user_id=item.user_id,
            item_id=item.id,
            kind=EXPIRY_WARNING,
            title=title,
            message=message,
            priority=priority,
            scheduled_for=now,
            created_at=now,
        )
        notification.id = self._notifications.add_notification(notification)
        return notification

    def list_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        try:
            return self._notifications.get_notifications(
                user_id, unread_only=unread_only, limit=limit
            )
        except Exception:
            logger.exception("Failed to load notifications for user %s", user_id)
            return []

    def mark_read(self, notification_id: int) -> bool:
        try:
            return self._notifications.mark_read(notification_id)
        except Exception:
            logger.exception("Failed to mark notification %s as read", notification_id)
            return False
