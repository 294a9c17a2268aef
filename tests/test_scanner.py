"""Tests for the scan pipeline."""

import sqlite3
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from freshkeep.db import InventoryDB, NotificationDB, ScanHistoryDB
from freshkeep.generation import GroceryAI
from freshkeep.inventory import InventoryService
from freshkeep.models import RecognizedItem
from freshkeep.notifications import ExpiryNotifier
from freshkeep.scanner import Scanner, estimate_expiry

TODAY = date(2026, 3, 10)


@pytest.fixture
def stores(tmp_path):
    db_path = tmp_path / "test.db"
    inventory = InventoryDB(db_path=db_path)
    notifications = NotificationDB(db_path=db_path)
    scans = ScanHistoryDB(db_path=db_path)
    yield inventory, notifications, scans
    inventory.close()
    notifications.close()
    scans.close()


def _scanner(stores, recognized):
    inventory, notifications, scans = stores
    ai = MagicMock()
    ai.recognize_items = AsyncMock(return_value=recognized)
    service = InventoryService(inventory, ExpiryNotifier(inventory, notifications))
    return Scanner(ai, scans, service), ai


def test_estimate_expiry_uses_model_estimate():
    item = RecognizedItem(
        name="Milk", confidence=0.9, category="Dairy", estimated_expiry=TODAY + timedelta(days=4)
    )
    assert estimate_expiry(item, TODAY) == TODAY + timedelta(days=4)


def test_estimate_expiry_falls_back_to_shelf_life():
    past = RecognizedItem(
        name="Milk", confidence=0.9, category="Dairy", estimated_expiry=TODAY - timedelta(days=1)
    )
    assert estimate_expiry(past, TODAY) == TODAY + timedelta(days=10)

    unknown = RecognizedItem(name="Chicken", confidence=0.9, category="Meat")
    assert estimate_expiry(unknown, TODAY) == TODAY + timedelta(days=3)


@pytest.mark.asyncio
async def test_scan_records_and_auto_adds_confident_items(stores):
    inventory, notifications, scans = stores
    scanner, ai = _scanner(
        stores,
        [
            RecognizedItem(name="Apples", confidence=0.95, category="Fruits", quantity=6),
            RecognizedItem(name="Chicken", confidence=0.85, category="Meat"),
            RecognizedItem(name="Mystery Jar", confidence=0.5),
            RecognizedItem(name="Borderline", confidence=0.8),
        ],
    )

    scan = await scanner.scan(1, "a fridge shelf", image_url="file:///shelf.jpg", today=TODAY)

    assert scan.success is True
    assert scan.id is not None
    assert scan.error_message is None
    assert len(scan.recognized_items) == 4
    ai.recognize_items.assert_awaited_once_with("a fridge shelf", today=TODAY)

    items = {i.name: i for i in inventory.get_active_items(1)}
    assert set(items) == {"Apples", "Chicken"}
    assert items["Apples"].ai_confidence == 0.95
    assert items["Apples"].quantity == 6
    assert items["Apples"].expiry_date == TODAY + timedelta(days=7)
    assert items["Apples"].location == "Refrigerator"

    # Chicken expires within the alert window
    (notification,) = notifications.get_notifications(1)
    assert "Chicken" in notification.message

    (stored,) = scans.get_recent_scans(1)
    assert stored.image_url == "file:///shelf.jpg"


@pytest.mark.asyncio
async def test_scan_with_nothing_recognized(stores):
    inventory, _, scans = stores
    scanner, _ = _scanner(stores, [])

    scan = await scanner.scan(1, "blurry photo", today=TODAY)

    assert scan.success is False
    assert scan.error_message == "No items recognized"
    assert len(scans.get_recent_scans(1)) == 1
    assert inventory.get_active_items(1) == []


@pytest.mark.asyncio
async def test_scan_history_failure(stores):
    inventory, _, _ = stores
    scans = MagicMock()
    scans.add_scan.side_effect = sqlite3.OperationalError("disk I/O error")
    ai = MagicMock()
    ai.recognize_items = AsyncMock(
        return_value=[RecognizedItem(name="Apples", confidence=0.95, category="Fruits")]
    )
    scanner = Scanner(ai, scans, MagicMock())

    scan = await scanner.scan(1, "apples", today=TODAY)

    assert scan.success is False
    assert scan.id is None
    assert "disk I/O error" in scan.error_message


@pytest.mark.asyncio
async def test_auto_add_failure_does_not_abort_scan(stores):
    _, _, scans = stores
    ai = MagicMock()
    ai.recognize_items = AsyncMock(
        return_value=[
            RecognizedItem(name="Apples", confidence=0.95),
            RecognizedItem(name="Pears", confidence=0.95),
        ]
    )
    service = MagicMock()
    service.add_item = AsyncMock(side_effect=[RuntimeError("boom"), None])
    scanner = Scanner(ai, scans, service)

    scan = await scanner.scan(1, "fruit bowl", today=TODAY)

    assert scan.success is True
    assert service.add_item.await_count == 2


@pytest.mark.asyncio
async def test_scan_survives_pathological_model_output(stores):
    inventory, _, scans = stores
    client = MagicMock()
    client.generate = AsyncMock(return_value="[" * 100_000 + "]" * 100_000)
    service = InventoryService(inventory, MagicMock())
    scanner = Scanner(GroceryAI(client), scans, service)

    scan = await scanner.scan(1, "a fridge", today=TODAY)

    assert scan.success is False
    assert scan.error_message == "No items recognized"
