"""
In-Memory Break Store

Dictionary-backed BreakStore for tests, demos and single-process use.
"""

import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional

from domain.break_store import BreakStore
from domain.entities import BreakRecord, BreakSource, BreakType
from domain.errors import AlreadyOnBreakError, BreakNotFoundError, NotActiveError


class InMemoryBreakStore(BreakStore):
    """Thread-safe BreakStore. Returned records are copies."""

    def __init__(self):
        self._records: Dict[str, BreakRecord] = {}
        self._lock = threading.Lock()

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
        with self._lock:
            active = self._find_active_locked(user_id)
            if active is not None:
                raise AlreadyOnBreakError(user_id, replace(active))

            record = BreakRecord(
                id=uuid.uuid4().hex,
                user_id=user_id,
                break_type=break_type,
                start_time=start_time,
                break_date=break_date,
                notes=notes,
                source=source,
                created_by=created_by
            )
            self._records[record.id] = record
            return replace(record)

    def get(self, break_id: str) -> Optional[BreakRecord]:
        with self._lock:
            record = self._records.get(break_id)
            return replace(record) if record else None

    def find_active(self, user_id: str) -> Optional[BreakRecord]:
        with self._lock:
            record = self._find_active_locked(user_id)
            return replace(record) if record else None

    def update(
        self,
        break_id: str,
        end_time: datetime,
        justification: Optional[str] = None
    ) -> BreakRecord:
        with self._lock:
            record = self._records.get(break_id)
            if record is None:
                raise BreakNotFoundError(break_id)
            if record.end_time is not None:
                raise NotActiveError(break_id, replace(record))

            record.end_time = end_time
            record.justification = justification
            return replace(record)

    def list_for_user_on_date(self, user_id: str, day: date) -> List[BreakRecord]:
        with self._lock:
            return self._sorted(
                r for r in self._records.values()
                if r.user_id == user_id and r.break_date == day
            )

    def list_for_date(self, day: date) -> List[BreakRecord]:
        with self._lock:
            return self._sorted(r for r in self._records.values() if r.break_date == day)

    def list_active(self) -> List[BreakRecord]:
        with self._lock:
            return self._sorted(r for r in self._records.values() if r.end_time is None)

    def _find_active_locked(self, user_id: str) -> Optional[BreakRecord]:
        for record in self._records.values():
            if record.user_id == user_id and record.end_time is None:
                return record
        return None

    @staticmethod
    def _sorted(records) -> List[BreakRecord]:
        return [replace(r) for r in sorted(records, key=lambda r: r.start_time)]
