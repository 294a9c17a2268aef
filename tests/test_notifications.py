"""Tests for expiry notification scheduling."""

import sqlite3
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from freshkeep.db import InventoryDB, NotificationDB
from freshkeep.models import InventoryItem
from freshkeep.notifications import ExpiryNotifier, days_until_expiry, expiry_template
from freshkeep.sweeper import run_sweep

TODAY = date(2026, 3, 10)


@pytest.fixture
def dbs(tmp_path):
    db_path = tmp_path / "test.db"
    inventory = InventoryDB(db_path=db_path)
    notifications = NotificationDB(db_path=db_path)
    yield inventory, notifications
    inventory.close()
    notifications.close()


def _add(inventory, name, days, user_id=1):
    return inventory.add_item(
        InventoryItem(
            user_id=user_id,
            name=name,
            category="Other",
            expiry_date=TODAY + timedelta(days=days),
        )
    )


def test_days_until_expiry():
    assert days_until_expiry(date(2026, 3, 12), TODAY) == 2
    assert days_until_expiry(date(2026, 3, 8), TODAY) == -2


@pytest.mark.parametrize(
    "days, title, priority",
    [
        (-3, "Item Expired", "high"),
        (0, "Item Expired", "high"),
        (1, "Item Expiring Soon", "high"),
        (2, "Item Expiring Soon", "medium"),
        (3, "Item Expiring Soon", "medium"),
    ],
)
def test_expiry_template(days, title, priority):
    got_title, _, got_priority = expiry_template("Milk", days)
    assert got_title == title
    assert got_priority == priority


def test_expiry_template_messages():
    assert expiry_template("Milk", 0)[1] == (
        "Your Milk has expired. Consider removing it from your inventory."
    )
    assert expiry_template("Milk", 1)[1] == "Your Milk expires in 1 day. Consider using it soon!"
    assert expiry_template("Milk", 2)[1] == "Your Milk expires in 2 days. Consider using it soon!"


@pytest.mark.asyncio
async def test_schedule_creates_prioritized_warnings(dbs):
    inventory, notifications = dbs
    _add(inventory, "Expired Milk", 0)
    _add(inventory, "Spinach", 1)
    _add(inventory, "Bananas", 2)
    _add(inventory, "Yogurt", 5)
    _add(inventory, "Rice", 60)

    notifier = ExpiryNotifier(inventory, notifications)
    created = await notifier.schedule(1, today=TODAY)

    by_message = {n.message.split(" ")[1]: n for n in created}
    assert len(created) == 3
    assert by_message["Expired"].title == "Item Expired"
    assert by_message["Expired"].priority == "high"
    assert by_message["Spinach"].priority == "high"
    assert by_message["Bananas"].priority == "medium"
    assert all(n.id is not None for n in created)
    assert len(notifications.get_notifications(1)) == 3


@pytest.mark.asyncio
async def test_schedule_is_idempotent(dbs):
    inventory, notifications = dbs
    _add(inventory, "Spinach", 1)
    notifier = ExpiryNotifier(inventory, notifications)

    first = await notifier.schedule(1, today=TODAY)
    second = await notifier.schedule(1, today=TODAY + timedelta(days=1))

    assert len(first) == 1
    assert second == []
    assert len(notifications.get_notifications(1)) == 1


@pytest.mark.asyncio
async def test_schedule_again_after_read(dbs):
    inventory, notifications = dbs
    _add(inventory, "Spinach", 1)
    notifier = ExpiryNotifier(inventory, notifications)

    (first,) = await notifier.schedule(1, today=TODAY)
    assert notifier.mark_read(first.id) is True

    (second,) = await notifier.schedule(1, today=TODAY + timedelta(days=1))
    assert second.title == "Item Expired"
    assert len(notifier.list_notifications(1, unread_only=True)) == 1
    assert len(notifier.list_notifications(1)) == 2


@pytest.mark.asyncio
async def test_consumed_items_are_ignored(dbs):
    inventory, notifications = dbs
    item_id = _add(inventory, "Spinach", 1)
    inventory.consume_item(item_id)

    notifier = ExpiryNotifier(inventory, notifications)
    assert await notifier.schedule(1, today=TODAY) == []


@pytest.mark.asyncio
async def test_other_users_items_are_ignored(dbs):
    inventory, notifications = dbs
    _add(inventory, "Spinach", 1, user_id=2)

    notifier = ExpiryNotifier(inventory, notifications)
    assert await notifier.schedule(1, today=TODAY) == []


@pytest.mark.asyncio
async def test_failed_item_does_not_stop_pass(dbs):
    inventory, notifications = dbs
    _add(inventory, "Spinach", 1)
    _add(inventory, "Bananas", 2)
    notifier = ExpiryNotifier(inventory, notifications)

    with patch.object(
        notifications,
        "add_notification",
        side_effect=[sqlite3.OperationalError("database is locked"), 42],
    ):
        created = await notifier.schedule(1, today=TODAY)

    assert len(created) == 1
    assert created[0].id == 42


@pytest.mark.asyncio
async def test_inventory_failure_returns_empty():
    inventory = MagicMock()
    inventory.get_expiring_items.side_effect = sqlite3.OperationalError("no such table")
    notifier = ExpiryNotifier(inventory, MagicMock())

    assert await notifier.schedule(1, today=TODAY) == []


@pytest.mark.asyncio
async def test_ai_phrasing_replaces_message_only(dbs):
    inventory, notifications = dbs
    _add(inventory, "Milk", 1)
    ai = MagicMock()
    ai.phrase_expiry_notification = AsyncMock(return_value="Milk ends tomorrow, make pancakes!")

    notifier = ExpiryNotifier(inventory, notifications, ai=ai)
    (notification,) = await notifier.schedule(1, today=TODAY)

    assert notification.message == "Milk ends tomorrow, make pancakes!"
    assert notification.title == "Item Expiring Soon"
    assert notification.priority == "high"
    ai.phrase_expiry_notification.assert_awaited_once_with("Milk", 1)


@pytest.mark.asyncio
async def test_ai_phrasing_falls_back_to_template(dbs):
    inventory, notifications = dbs
    _add(inventory, "Milk", 2)
    ai = MagicMock()
    ai.phrase_expiry_notification = AsyncMock(return_value=None)

    notifier = ExpiryNotifier(inventory, notifications, ai=ai)
    (notification,) = await notifier.schedule(1, today=TODAY)

    assert notification.message == "Your Milk expires in 2 days. Consider using it soon!"


def test_list_notifications_swallows_errors():
    store = MagicMock()
    store.get_notifications.side_effect = sqlite3.OperationalError("boom")
    notifier = ExpiryNotifier(MagicMock(), store)
    assert notifier.list_notifications(1) == []


@pytest.mark.asyncio
async def test_run_sweep_schedules_each_user():
    inventory = MagicMock()
    inventory.get_active_user_ids.return_value = [1, 2]
    notifier = MagicMock()
    notifier.schedule = AsyncMock(side_effect=[["a", "b"], []])

    assert await run_sweep(inventory, notifier) == 2
    assert [c.args for c in notifier.schedule.await_args_list] == [(1,), (2,)]


@pytest.mark.asyncio
async def test_run_sweep_user_listing_failure():
    inventory = MagicMock()
    inventory.get_active_user_ids.side_effect = sqlite3.OperationalError("locked")
    notifier = MagicMock()
    notifier.schedule = AsyncMock()

    assert await run_sweep(inventory, notifier) == 0
    notifier.schedule.assert_not_awaited()
