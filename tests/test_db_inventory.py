"""Tests for InventoryDB CRUD operations."""

from datetime import date, timedelta

import pytest

from freshkeep.db.inventory import InventoryDB
from freshkeep.models import InventoryItem

TODAY = date(2026, 3, 10)


@pytest.fixture
def db(tmp_path):
    inventory = InventoryDB(db_path=tmp_path / "test.db")
    yield inventory
    inventory.close()


def _item(name, days, user_id=1, **kwargs):
    return InventoryItem(
        user_id=user_id,
        name=name,
        category=kwargs.pop("category", "Other"),
        expiry_date=TODAY + timedelta(days=days),
        added_date=TODAY,
        **kwargs,
    )


def test_add_and_get_item(db):
    item_id = db.add_item(
        _item(
            "Greek Yogurt",
            5,
            category="Dairy",
            quantity=2,
            unit="containers",
            ai_confidence=0.98,
            metadata={"brand": "Fage", "purchase_price": 4.5},
        )
    )
    item = db.get_item(item_id)

    assert item.id == item_id
    assert item.name == "Greek Yogurt"
    assert item.category == "Dairy"
    assert item.quantity == 2
    assert item.expiry_date == TODAY + timedelta(days=5)
    assert item.added_date == TODAY
    assert item.ai_confidence == 0.98
    assert item.metadata == {"brand": "Fage", "purchase_price": 4.5}
    assert item.consumed is False
    assert item.created_at is not None


def test_get_item_missing(db):
    assert db.get_item(999) is None


def test_consume_is_soft_delete(db):
    item_id = db.add_item(_item("Milk", 2))
    assert db.consume_item(item_id) is True

    assert db.get_active_items(1) == []
    # Row is kept
    assert db.get_item(item_id).consumed is True
    assert db.count_items() == 1


def test_consume_missing_item(db):
    assert db.consume_item(42) is False


def test_get_expiring_items_window(db):
    db.add_item(_item("Expired", -1))
    db.add_item(_item("Today", 0))
    db.add_item(_item("Three", 3))
    db.add_item(_item("Four", 4))
    consumed_id = db.add_item(_item("Consumed", 1))
    db.consume_item(consumed_id)
    db.add_item(_item("Other user", 1, user_id=2))

    names = [i.name for i in db.get_expiring_items(1, within_days=3, today=TODAY)]
    assert names == ["Expired", "Today", "Three"]

    names = [i.name for i in db.get_expiring_items(1, within_days=7, today=TODAY)]
    assert names == ["Expired", "Today", "Three", "Four"]


def test_count_active_items(db):
    for n in range(3):
        db.add_item(_item(f"Item {n}", n))
    db.consume_item(db.add_item(_item("Gone", 1)))
    db.add_item(_item("Theirs", 1, user_id=2))

    assert db.count_active_items(1) == 3
    assert db.count_active_items(2) == 1


def test_update_item(db):
    item_id = db.add_item(_item("Bread", 4))
    updated = db.update_item(
        item_id, expiry_date=TODAY + timedelta(days=1), location="Pantry"
    )

    assert updated.expiry_date == TODAY + timedelta(days=1)
    assert updated.location == "Pantry"
    assert updated.name == "Bread"


def test_update_item_unknown_field(db):
    item_id = db.add_item(_item("Bread", 4))
    with pytest.raises(ValueError, match="Unknown inventory fields"):
        db.update_item(item_id, colour="brown")


def test_update_missing_item(db):
    assert db.update_item(999, name="x") is None


def test_search_items(db):
    db.add_item(_item("Organic Bananas", 2, category="Fruits", location="Counter"))
    db.add_item(_item("Fresh Spinach", 1, category="Vegetables"))

    assert [i.name for i in db.search_items(1, "banana")] == ["Organic Bananas"]
    assert [i.name for i in db.search_items(1, "VEGETABLES")] == ["Fresh Spinach"]
    assert [i.name for i in db.search_items(1, "counter")] == ["Organic Bananas"]
    assert db.search_items(1, "cheese") == []


def test_items_by_category_and_location(db):
    db.add_item(_item("Bananas", 2, category="Fruits", location="Counter"))
    db.add_item(_item("Apples", 5, category="Fruits", location="Refrigerator"))
    db.add_item(_item("Milk", 3, category="Dairy", location="Refrigerator"))

    assert {i.name for i in db.get_items_by_category(1, "Fruits")} == {"Bananas", "Apples"}
    assert {i.name for i in db.get_items_by_location(1, "Refrigerator")} == {"Apples", "Milk"}


def test_get_active_user_ids(db):
    db.add_item(_item("A", 1, user_id=3))
    db.add_item(_item("B", 1, user_id=1))
    db.consume_item(db.add_item(_item("C", 1, user_id=7)))

    assert db.get_active_user_ids() == [1, 3]
