"""Grocery scan pipeline: recognize items, record the scan, stock confident items."""

from __future__ import annotations

import logging
import time
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .models import SHELF_LIFE_DAYS, InventoryItem, RecognizedItem, ScanRecord

if TYPE_CHECKING:
    from .config import FreshkeepConfig
    from .db import ScanHistoryDB
    from .generation import GroceryAI
    from .inventory import InventoryService

logger = logging.getLogger(__name__)


def estimate_expiry(item: RecognizedItem, today: date) -> date:
    """Use the model's estimate when it is plausible, else the category shelf life."""
    if item.estimated_expiry is not None and item.estimated_expiry >= today:
        return item.estimated_expiry
    days = SHELF_LIFE_DAYS.get(item.category, SHELF_LIFE_DAYS["Other"])
    return today + timedelta(days=days)


class Scanner:
    """Record one ScanRecord per scan attempt and auto-add confident items."""

    def __init__(
        self,
        ai: GroceryAI,
        scan_db: ScanHistoryDB,
        inventory: InventoryService,
        auto_add_confidence: float = 0.8,
        default_location: str = "Refrigerator",
    ) -> None:
        self._ai = ai
        self._scans = scan_db
        self._inventory = inventory
        self._auto_add_confidence = auto_add_confidence
        self._default_location = default_location

    @classmethod
    def from_config(
        cls,
        config: FreshkeepConfig,
        ai: GroceryAI,
        scan_db: ScanHistoryDB,
        inventory: InventoryService,
    ) -> Scanner:
        return cls(
            ai,
            scan_db,
            inventory,
            auto_add_confidence=config.scanner.auto_add_confidence,
            default_location=config.scanner.default_location,
        )

    async def scan(
        self,
        user_id: int,
        image_description: str,
        image_url: str | None = None,
        today: date | None = None,
    ) -> ScanRecord:
        today = today or date.today()
        started = time.monotonic()
        items = await self._ai.recognize_items(image_description, today=today)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        scan = ScanRecord(
            user_id=user_id,
            recognized_items=items,
            processing_ms=elapsed_ms,
            success=bool(items),
            error_message=None if items else "No items recognized",
            image_url=image_url,
        )
        try:
            scan.id = self._scans.add_scan(scan)
        except Exception as e:
            logger.exception("Failed to record scan for user %s", user_id)
            return ScanRecord(
                user_id=user_id,
                recognized_items=items,
                processing_ms=elapsed_ms,
                success=False,
                error_message=str(e),
                image_url=image_url,
            )

        logger.info(
            "Recognized %d items for user %s in %d ms", len(items), user_id, elapsed_ms
        )

        for item in items:
            if item.confidence <= self._auto_add_confidence:
                continue
            try:
                await self._inventory.add_item(
                    InventoryItem(
                        user_id=user_id,
                        name=item.name,
                        category=item.category,
                        expiry_date=estimate_expiry(item, today),
                        quantity=item.quantity,
                        unit=item.unit,
                        location=self._default_location,
                        added_date=today,
                        ai_confidence=item.confidence,
                    ),
                    today=today,
                )
            except Exception:
                logger.exception("Failed to auto-add scanned item %r", item.name)

        return scan
