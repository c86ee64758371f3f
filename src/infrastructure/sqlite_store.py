"""
SQLite Break Store

BreakStore backed by a SQLite database. The single-active-break rule is a
partial unique index, and ending a break is a conditional UPDATE on
end_time IS NULL, so concurrent requests cannot double-start or double-end.
"""

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from domain.break_store import BreakStore
from domain.entities import BreakRecord, BreakSource, BreakType
from domain.errors import (
    AlreadyOnBreakError, BreakNotFoundError, NotActiveError, StoreUnavailableError
)
from infrastructure.logger import get_logger

logger = get_logger("SqliteBreakStore")

_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS breaks (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        break_date TEXT NOT NULL,
        break_type TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT,
        notes TEXT,
        justification TEXT,
        source TEXT NOT NULL DEFAULT 'manual',
        created_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        CHECK (justification IS NULL OR end_time IS NOT NULL)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS breaks_one_active_per_user
        ON breaks (user_id) WHERE end_time IS NULL;
    CREATE INDEX IF NOT EXISTS breaks_by_date ON breaks (break_date, user_id);
'''


def _to_db(moment: datetime) -> str:
    """Store timestamps as UTC ISO-8601 so they sort as text."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def _from_db(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SqliteBreakStore(BreakStore):
    """
    BreakStore on SQLite.

    Args:
        db_path: Database file, or ":memory:" for a private in-memory database
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open break database {self.db_path}: {e}") from e
        self._conn.row_factory = sqlite3.Row
        with self._cursor() as cur:
            cur.executescript(_SCHEMA)
        logger.debug(f"Break database ready: {self.db_path}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """One transaction; connectivity problems become StoreUnavailableError."""
        with self._lock:
            try:
                with self._conn:
                    cur = self._conn.cursor()
                    try:
                        yield cur
                    finally:
                        cur.close()
            except sqlite3.OperationalError as e:
                logger.warning(f"Break database error: {e}")
                raise StoreUnavailableError(str(e)) from e

    # ── BreakStore ───────────────────────────────────────────

    def create(
        self,
        user_id: str,
        break_type: BreakType,
        notes: Optional[str] = None,
        *,
        start_time: datetime,
        break_date: date,
        source: BreakSource = BreakSource.MANUAL,
        created_by: Optional[str] = None
    ) -> BreakRecord:
        break_id = uuid.uuid4().hex
        stamp = _to_db(start_time)
        try:
            with self._cursor() as cur:
                cur.execute('''
                    INSERT INTO breaks (id, user_id, break_date, break_type, start_time,
                                        notes, source, created_by, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    break_id, user_id, break_date.isoformat(), break_type.value, stamp,
                    notes, source.value, created_by, stamp, stamp
                ))
        except sqlite3.IntegrityError:
            raise AlreadyOnBreakError(user_id, self.find_active(user_id))

        return BreakRecord(
            id=break_id,
            user_id=user_id,
            break_type=break_type,
            start_time=_from_db(stamp),
            break_date=break_date,
            notes=notes,
            source=source,
            created_by=created_by
        )

    def get(self, break_id: str) -> Optional[BreakRecord]:
        with self._cursor() as cur:
            row = cur.execute('SELECT * FROM breaks WHERE id = ?', (break_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def find_active(self, user_id: str) -> Optional[BreakRecord]:
        with self._cursor() as cur:
            row = cur.execute(
                'SELECT * FROM breaks WHERE user_id = ? AND end_time IS NULL',
                (user_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def update(
        self,
        break_id: str,
        end_time: datetime,
        justification: Optional[str] = None
    ) -> BreakRecord:
        stamp = _to_db(end_time)
        with self._cursor() as cur:
            cur.execute('''
                UPDATE breaks
                SET end_time = ?, justification = ?, updated_at = ?
                WHERE id = ? AND end_time IS NULL
            ''', (stamp, justification, stamp, break_id))
            changed = cur.rowcount

        record = self.get(break_id)
        if record is None:
            raise BreakNotFoundError(break_id)
        if changed == 0:
            raise NotActiveError(break_id, record)
        return record

    def list_for_user_on_date(self, user_id: str, day: date) -> List[BreakRecord]:
        with self._cursor() as cur:
            rows = cur.execute('''
                SELECT * FROM breaks WHERE user_id = ? AND break_date = ?
                ORDER BY start_time
            ''', (user_id, day.isoformat())).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_for_date(self, day: date) -> List[BreakRecord]:
        with self._cursor() as cur:
            rows = cur.execute(
                'SELECT * FROM breaks WHERE break_date = ? ORDER BY start_time',
                (day.isoformat(),)
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def list_active(self) -> List[BreakRecord]:
        with self._cursor() as cur:
            rows = cur.execute(
                'SELECT * FROM breaks WHERE end_time IS NULL ORDER BY start_time'
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> BreakRecord:
        return BreakRecord(
            id=row["id"],
            user_id=row["user_id"],
            break_type=BreakType(row["break_type"]),
            start_time=_from_db(row["start_time"]),
            break_date=date.fromisoformat(row["break_date"]),
            end_time=_from_db(row["end_time"]),
            notes=row["notes"],
            justification=row["justification"],
            source=BreakSource(row["source"]),
            created_by=row["created_by"]
        )
