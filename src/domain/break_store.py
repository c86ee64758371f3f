"""
Break Store Module

Abstract persistence collaborator for break records. Implementations live in
the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional

from .entities import BreakRecord, BreakSource, BreakType


class BreakStore(ABC):
    """
    Persistence port for BreakRecords.

    Implementations must enforce "at most one active break per user" on
    create, and must only set end_time on records whose end_time is still
    absent (compare-and-swap).
    """

    @abstractmethod
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
        """
        Create an active break.

        Raises:
            AlreadyOnBreakError: If the user already has an active break
        """
        pass

    @abstractmethod
    def get(self, break_id: str) -> Optional[BreakRecord]:
        """Fetch a record by id."""
        pass

    @abstractmethod
    def find_active(self, user_id: str) -> Optional[BreakRecord]:
        """The user's active break, if any."""
        pass

    @abstractmethod
    def update(
        self,
        break_id: str,
        end_time: datetime,
        justification: Optional[str] = None
    ) -> BreakRecord:
        """
        End a break, only if it is still active.

        Raises:
            BreakNotFoundError: If no such record exists
            NotActiveError: If the record was already ended
        """
        pass

    @abstractmethod
    def list_for_user_on_date(self, user_id: str, day: date) -> List[BreakRecord]:
        """All of a user's breaks for a business day, oldest first."""
        pass

    @abstractmethod
    def list_for_date(self, day: date) -> List[BreakRecord]:
        """Every user's breaks for a business day, oldest first."""
        pass

    @abstractmethod
    def list_active(self) -> List[BreakRecord]:
        """All active breaks, oldest first."""
        pass
