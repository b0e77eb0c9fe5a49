"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database: one
time-indexed table of captured notifications keyed by a surrogate id.
"""

from __future__ import annotations

import itertools
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, List

from notifhub.core.live import LiveQuery, Unwatch
from notifhub.core.models import CapturedRecord
from notifhub.core.ports import Since

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds; naive values are local time."""

    if value.tzinfo is None:
        value = value.astimezone()
    return (value - _EPOCH) // _MILLISECOND


def from_millis(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def _resolve_since(since: Since) -> datetime:
    return since() if callable(since) else since


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract.

    Writes are serialized by one lock and each runs in its own transaction,
    so readers never see half a record. Change watchers are told about a
    write only after it has committed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._write_lock = threading.Lock()
        self._watch_lock = threading.Lock()
        self._watchers: dict[int, Callable[[], None]] = {}
        self._watch_tokens = itertools.count()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the notifications table and its indexes if missing."""

        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with self._connect() as conn:
            # WAL lets the viewer read while the ingestion path writes.
            conn.execute("PRAGMA journal_mode=WAL")
            # notifications holds one row per captured notification.
            # Fields:
            # - id: surrogate key; AUTOINCREMENT so ids are never reused
            # - source_id: package / chat key of the originating app
            # - source_label: app display name at capture time
            # - title, body: notification text, never both empty
            # - captured_at: origin post time in epoch milliseconds
            # - icon_ref: optional reference to a cached icon
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source_id TEXT NOT NULL,
                    source_label TEXT NOT NULL,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    captured_at INTEGER NOT NULL,
                    icon_ref TEXT
                )
                """
            )
            # Windowed reads and retention sweeps both range over captured_at.
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_notifications_captured_at
                ON notifications (captured_at)
                """
            )
            # Natural key: a redelivered notification keeps its post time.
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_notifications_natural_key
                ON notifications (source_id, captured_at)
                """
            )

    def watch(self, callback: Callable[[], None]) -> Unwatch:
        """Register ``callback`` to run after every committed change."""

        with self._watch_lock:
            token = next(self._watch_tokens)
            self._watchers[token] = callback

        def unwatch() -> None:
            with self._watch_lock:
                self._watchers.pop(token, None)

        return unwatch

    @property
    def watcher_count(self) -> int:
        with self._watch_lock:
            return len(self._watchers)

    def _notify_changed(self) -> None:
        with self._watch_lock:
            callbacks = list(self._watchers.values())
        for callback in callbacks:
            callback()

    def insert(self, record: CapturedRecord) -> CapturedRecord:
        """Upsert a record by natural key and return it with its id.

        A redelivered notification (same source_id and captured_at) replaces
        the stored label, text, and icon but keeps the original id.
        """

        captured_at = to_millis(record.captured_at)
        with self._write_lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO notifications (
                        source_id,
                        source_label,
                        title,
                        body,
                        captured_at,
                        icon_ref
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(source_id, captured_at) DO UPDATE SET
                        source_label = excluded.source_label,
                        title = excluded.title,
                        body = excluded.body,
                        icon_ref = excluded.icon_ref
                    """,
                    (
                        record.source_id,
                        record.source_label,
                        record.title,
                        record.body,
                        captured_at,
                        record.icon_ref,
                    ),
                )
                row = conn.execute(
                    "SELECT * FROM notifications WHERE source_id = ? AND captured_at = ?",
                    (record.source_id, captured_at),
                ).fetchone()
        self._notify_changed()
        return self._row_to_record(row)

    def list_records_since(self, since: datetime) -> List[CapturedRecord]:
        """Return records captured at or after ``since``, newest first."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM notifications
                WHERE captured_at >= ?
                ORDER BY captured_at DESC, id DESC
                """,
                (to_millis(since),),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def query_records_since(self, since: Since) -> LiveQuery[List[CapturedRecord]]:
        """Live view of ``list_records_since`` that re-emits on every change."""

        return LiveQuery(lambda: self.list_records_since(_resolve_since(since)), watch=self.watch)

    def list_source_labels_since(self, since: datetime) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT source_label FROM notifications
                WHERE captured_at >= ?
                ORDER BY source_label
                """,
                (to_millis(since),),
            ).fetchall()
        return [row["source_label"] for row in rows]

    def distinct_source_labels_since(self, since: Since) -> LiveQuery[List[str]]:
        """Live, sorted list of app labels with records in the window."""

        return LiveQuery(
            lambda: self.list_source_labels_since(_resolve_since(since)),
            watch=self.watch,
        )

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete records captured before ``cutoff`` and return how many went."""

        with self._write_lock:
            with self._connect() as conn:
                cur = conn.execute(
                    "DELETE FROM notifications WHERE captured_at < ?",
                    (to_millis(cutoff),),
                )
                removed = cur.rowcount
        if removed:
            self._notify_changed()
        return removed

    def delete_by_id(self, record_id: int) -> bool:
        """Delete one record; a missing id is not an error."""

        with self._write_lock:
            with self._connect() as conn:
                cur = conn.execute("DELETE FROM notifications WHERE id = ?", (record_id,))
                removed = cur.rowcount > 0
        if removed:
            self._notify_changed()
        return removed

    def count(self) -> int:
        """Return the number of stored records of any age."""

        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM notifications").fetchone()
        return int(row["total"])

    def query_count(self) -> LiveQuery[int]:
        return LiveQuery(self.count, watch=self.watch, empty=lambda: 0)

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> CapturedRecord:
        return CapturedRecord(
            id=int(row["id"]),
            source_id=row["source_id"],
            source_label=row["source_label"],
            title=row["title"],
            body=row["body"],
            captured_at=from_millis(int(row["captured_at"])),
            icon_ref=row["icon_ref"],
        )
