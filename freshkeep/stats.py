"""Dashboard summary metrics."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from .models import InventoryStats

if TYPE_CHECKING:
    from .db import InventoryDB, ScanHistoryDB

logger = logging.getLogger(__name__)

# Illustrative dashboard figures; not derived from data
WASTE_REDUCED_PCT = 85
MONEY_SAVED = 127


def compute_stats(
    user_id: int,
    inventory_db: InventoryDB,
    scan_db: ScanHistoryDB,
    today: date | None = None,
    now: datetime | None = None,
    expiring_days: int = 3,
    recent_scan_days: int = 7,
) -> InventoryStats:
    """Summarize a user's inventory and scan activity.

    On storage errors an all-zero result is returned.
    """
    today = today or date.today()
    now = now or datetime.now()
    try:
        total = inventory_db.count_active_items(user_id)
        expiring = inventory_db.get_expiring_items(
            user_id, within_days=expiring_days, today=today
        )
        scans = scan_db.count_scans_since(user_id, now - timedelta(days=recent_scan_days))
    except Exception:
        logger.exception("Failed to compute stats for user %s", user_id)
        return InventoryStats()

    return InventoryStats(
        total_items=total,
        expiring_items=len(expiring),
        recent_scans=scans,
        waste_reduced=WASTE_REDUCED_PCT,
        money_saved=MONEY_SAVED,
    )
