"""Tests for dashboard stats."""

from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from freshkeep.db import InventoryDB, ScanHistoryDB
from freshkeep.models import InventoryItem, InventoryStats, ScanRecord
from freshkeep.stats import compute_stats

TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def dbs(tmp_path):
    db_path = tmp_path / "test.db"
    inventory = InventoryDB(db_path=db_path)
    scans = ScanHistoryDB(db_path=db_path)
    yield inventory, scans
    inventory.close()
    scans.close()


def test_compute_stats(dbs):
    inventory, scans = dbs
    for n in range(10):
        days = n if n < 2 else 10 + n
        inventory.add_item(
            InventoryItem(
                user_id=1,
                name=f"Item {n}",
                category="Other",
                expiry_date=TODAY + timedelta(days=days),
            )
        )
    scans.add_scan(ScanRecord(user_id=1, scanned_at=NOW - timedelta(days=1)))
    scans.add_scan(ScanRecord(user_id=1, scanned_at=NOW - timedelta(days=10)))

    stats = compute_stats(1, inventory, scans, today=TODAY, now=NOW)

    assert stats == InventoryStats(
        total_items=10,
        expiring_items=2,
        recent_scans=1,
        waste_reduced=85,
        money_saved=127,
    )


def test_consumed_items_not_counted(dbs):
    inventory, scans = dbs
    item_id = inventory.add_item(
        InventoryItem(user_id=1, name="Milk", category="Dairy", expiry_date=TODAY)
    )
    inventory.consume_item(item_id)

    stats = compute_stats(1, inventory, scans, today=TODAY, now=NOW)
    assert stats.total_items == 0
    assert stats.expiring_items == 0


def test_to_dict_keys():
    assert InventoryStats(total_items=3).to_dict() == {
        "totalItems": 3,
        "expiringItems": 0,
        "recentScans": 0,
        "wasteReduced": 0,
        "moneySaved": 0,
    }


def test_storage_failure_returns_zeros():
    inventory = MagicMock()
    inventory.count_active_items.side_effect = RuntimeError("db gone")
    stats = compute_stats(1, inventory, MagicMock(), today=TODAY, now=NOW)
    assert stats == InventoryStats()
