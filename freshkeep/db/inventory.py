"""Grocery inventory CRUD operations."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from pathlib import Path

from ..models import InventoryItem
from .schema import dump_json, ensure_schema, load_json, now_str, parse_date, parse_datetime

_UPDATABLE_FIELDS = {
    "name": "name",
    "category": "category",
    "quantity": "quantity",
    "unit": "unit",
    "location": "location",
    "expiry_date": "expiry_date",
    "consumed": "is_consumed",
    "ai_confidence": "ai_confidence",
    "metadata": "metadata",
    "barcode": "barcode",
    "image_url": "image_url",
}


def _row_to_item(row: sqlite3.Row) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        category=row["category"],
        quantity=row["quantity"],
        unit=row["unit"],
        location=row["location"],
        expiry_date=parse_date(row["expiry_date"]),
        added_date=parse_date(row["added_date"]),
        consumed=bool(row["is_consumed"]),
        ai_confidence=row["ai_confidence"],
        metadata=load_json(row["metadata"], {}),
        barcode=row["barcode"],
        image_url=row["image_url"],
        created_at=parse_datetime(row["created_at"]),
        updated_at=parse_datetime(row["updated_at"]),
    )


def _to_column(field_name: str, value):
    if field_name == "expiry_date" and isinstance(value, date):
        return value.isoformat()
    if field_name == "consumed":
        return int(bool(value))
    if field_name == "metadata":
        return dump_json(value or {})
    return value


class InventoryDB:
    """Manages the grocery_items table."""

    def __init__(self, db_path: str | Path = "~/.config/freshkeep/freshkeep.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_item(self, item: InventoryItem) -> int:
        """Insert an item and return its row ID."""
        conn = self._get_conn()
        ts = now_str()
        cur = conn.execute(
            """INSERT INTO grocery_items
               (user_id, name, category, quantity, unit, location, expiry_date,
                added_date, is_consumed, ai_confidence, metadata, barcode,
                image_url, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                item.user_id,
                item.name,
                item.category,
                item.quantity,
                item.unit,
                item.location,
                item.expiry_date.isoformat(),
                (item.added_date or date.today()).isoformat(),
                int(item.consumed),
                item.ai_confidence,
                dump_json(item.metadata or {}),
                item.barcode,
                item.image_url,
                ts,
                ts,
            ),
        )
        conn.commit()
        return cur.lastrowid

    def get_item(self, item_id: int) -> InventoryItem | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM grocery_items WHERE id = ?", (item_id,)
        ).fetchone()
        return _row_to_item(row) if row else None

    def update_item(self, item_id: int, **updates) -> InventoryItem | None:
        """Update the given fields of an item.

        Returns:
            The updated item, or None if no such item exists.

        Raises:
            ValueError: If an unknown field name is given.
        """
        unknown = set(updates) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown inventory fields: {sorted(unknown)}")

        if updates:
            assignments = ", ".join(
                f"{_UPDATABLE_FIELDS[name]} = ?" for name in updates
            )
            values = [_to_column(name, value) for name, value in updates.items()]
            conn = self._get_conn()
            conn.execute(
                f"UPDATE grocery_items SET {assignments}, updated_at = ? WHERE id = ?",
                (*values, now_str(), item_id),
            )
            conn.commit()
        return self.get_item(item_id)

    def consume_item(self, item_id: int) -> bool:
        """Soft-delete an item by setting its consumed flag.

        Returns:
            True if a row was updated.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """UPDATE grocery_items
               SET is_consumed = 1, updated_at = ?
               WHERE id = ?""",
            (now_str(), item_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def get_active_items(self, user_id: int, limit: int = 50) -> list[InventoryItem]:
        """Return non-consumed items, newest first."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM grocery_items
               WHERE user_id = ? AND is_consumed = 0
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def get_expiring_items(
        self, user_id: int, within_days: int = 3, today: date | None = None
    ) -> list[InventoryItem]:
        """Return non-consumed items whose expiry date is on or before today + within_days.

        Already-expired items are included.
        """
        conn = self._get_conn()
        cutoff = (today or date.today()) + timedelta(days=within_days)
        rows = conn.execute(
            """SELECT * FROM grocery_items
               WHERE user_id = ?
                 AND is_consumed = 0
                 AND expiry_date <= ?
               ORDER BY expiry_date, id""",
            (user_id, cutoff.isoformat()),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def count_active_items(self, user_id: int) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM grocery_items WHERE user_id = ? AND is_consumed = 0",
            (user_id,),
        ).fetchone()
        return row["n"]

    def count_items(self) -> int:
        """Count all rows, consumed or not."""
        conn = self._get_conn()
        return conn.execute("SELECT COUNT(*) AS n FROM grocery_items").fetchone()["n"]

    def search_items(self, user_id: int, query: str, limit: int = 50) -> list[InventoryItem]:
        """Case-insensitive substring search over name, category and location."""
        conn = self._get_conn()
        q = query.lower()
        rows = conn.execute(
            """SELECT * FROM grocery_items
               WHERE user_id = ?
                 AND is_consumed = 0
                 AND (instr(lower(name), ?) > 0
                      OR instr(lower(category), ?) > 0
                      OR instr(lower(location), ?) > 0)
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (user_id, q, q, q, limit),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def get_items_by_category(self, user_id: int, category: str) -> list[InventoryItem]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM grocery_items
               WHERE user_id = ? AND is_consumed = 0 AND category = ?
               ORDER BY created_at DESC, id DESC""",
            (user_id, category),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def get_items_by_location(self, user_id: int, location: str) -> list[InventoryItem]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM grocery_items
               WHERE user_id = ? AND is_consumed = 0 AND location = ?
               ORDER BY created_at DESC, id DESC""",
            (user_id, location),
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    def get_active_user_ids(self) -> list[int]:
        """Return IDs of users that own at least one non-consumed item."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT DISTINCT user_id FROM grocery_items
               WHERE is_consumed = 0
               ORDER BY user_id"""
        ).fetchall()
        return [r["user_id"] for r in rows]
