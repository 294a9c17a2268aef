"""Scan history storage."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from ..models import RecognizedItem, ScanRecord
from .schema import dump_json, ensure_schema, load_json, now_str, parse_date, parse_datetime


def _item_to_json(item: RecognizedItem) -> dict:
    data = asdict(item)
    data["estimated_expiry"] = (
        item.estimated_expiry.isoformat() if item.estimated_expiry else None
    )
    return data


def _item_from_json(data: dict) -> RecognizedItem:
    return RecognizedItem(
        name=data["name"],
        confidence=data.get("confidence", 0.0),
        category=data.get("category", "Other"),
        estimated_expiry=parse_date(data.get("estimated_expiry")),
        quantity=data.get("quantity", 1.0),
        unit=data.get("unit", "pieces"),
    )


def _row_to_scan(row: sqlite3.Row) -> ScanRecord:
    return ScanRecord(
        id=row["id"],
        user_id=row["user_id"],
        image_url=row["image_url"],
        recognized_items=[
            _item_from_json(d) for d in load_json(row["recognized_items"], [])
        ],
        scanned_at=parse_datetime(row["scan_date"]),
        processing_ms=row["processing_time"] or 0,
        success=bool(row["success"]),
        error_message=row["error_message"],
    )


class ScanHistoryDB:
    """Manages the scan_history table."""

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

    def add_scan(self, scan: ScanRecord) -> int:
        """Insert a scan record and return its row ID."""
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO scan_history
               (user_id, image_url, recognized_items, scan_date,
                processing_time, success, error_message)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                scan.user_id,
                scan.image_url,
                dump_json([_item_to_json(i) for i in scan.recognized_items]),
                now_str(scan.scanned_at),
                scan.processing_ms,
                int(scan.success),
                scan.error_message,
            ),
        )
        conn.commit()
        return cur.lastrowid

    def count_scans_since(self, user_id: int, since: datetime) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM scan_history WHERE user_id = ? AND scan_date >= ?",
            (user_id, now_str(since)),
        ).fetchone()
        return row["n"]

    def get_recent_scans(self, user_id: int, limit: int = 20) -> list[ScanRecord]:
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM scan_history
               WHERE user_id = ?
               ORDER BY scan_date DESC, id DESC
               LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        return [_row_to_scan(r) for r in rows]
