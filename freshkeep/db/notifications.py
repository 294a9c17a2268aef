"""Expiry notification storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..models import EXPIRY_WARNING, Notification
from .schema import ensure_schema, now_str, parse_datetime


def _row_to_notification(row: sqlite3.Row) -> Notification:
    return Notification(
        id=row["id"],
        user_id=row["user_id"],
        item_id=row["grocery_item_id"],
        kind=row["type"],
        title=row["title"],
        message=row["message"],
        priority=row["priority"],
        read=bool(row["is_read"]),
        scheduled_for=parse_datetime(row["scheduled_for"]),
        sent_at=parse_datetime(row["sent_at"]),
        created_at=parse_datetime(row["created_at"]),
    )


class NotificationDB:
    """Manages the expiry_notifications table."""

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

    def has_unread(self, user_id: int, item_id: int, kind: str = EXPIRY_WARNING) -> bool:
        """Check whether an unread notification of this kind exists for the item."""
        conn = self._get_conn()
        row = conn.execute(
            """SELECT 1 FROM expiry_notifications
               WHERE user_id = ? AND grocery_item_id = ? AND type = ? AND is_read = 0
               LIMIT 1""",
            (user_id, item_id, kind),
        ).fetchone()
        return row is not None

    def add_notification(self, notification: Notification) -> int:
        """Insert a notification and return its row ID."""
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO expiry_notifications
               (user_id, grocery_item_id, type, title, message, priority,
                is_read, scheduled_for, sent_at, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                notification.user_id,
                notification.item_id,
                notification.kind,
                notification.title,
                notification.message,
                notification.priority,
                int(notification.read),
                now_str(notification.scheduled_for) if notification.scheduled_for else None,
                now_str(notification.sent_at) if notification.sent_at else None,
                now_str(notification.created_at),
            ),
        )
        conn.commit()
        return cur.lastrowid

    def get_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        """Return a user's notifications, newest first."""
        conn = self._get_conn()
        sql = "SELECT * FROM expiry_notifications WHERE user_id = ?"
        if unread_only:
            sql += " AND is_read = 0"
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        rows = conn.execute(sql, (user_id, limit)).fetchall()
        return [_row_to_notification(r) for r in rows]

    def mark_read(self, notification_id: int) -> bool:
        conn = self._get_conn()
        cur = conn.execute(
            "UPDATE expiry_notifications SET is_read = 1 WHERE id = ?",
            (notification_id,),
        )
        conn.commit()
        return cur.rowcount > 0
