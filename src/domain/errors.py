"""
Break Errors Module

Expected, handleable outcomes of break operations. Callers branch on these;
none of them means the system is broken.
"""

from typing import Optional

from .entities import BreakRecord


class BreakError(Exception):
    """Base class for expected break workflow outcomes."""


class AlreadyOnBreakError(BreakError):
    """Start attempted while the user already has an active break."""

    def __init__(self, user_id: str, active_break: Optional[BreakRecord] = None):
        self.user_id = user_id
        self.active_break = active_break
        super().__init__(f"User {user_id} is already on a break")


class NotActiveError(BreakError):
    """End attempted on a break that has already ended."""

    def __init__(self, break_id: str, record: Optional[BreakRecord] = None):
        self.break_id = break_id
        self.record = record
        super().__init__(f"Break {break_id} is not active")


class BreakNotFoundError(BreakError):
    """No break with the given id."""

    def __init__(self, break_id: str):
        self.break_id = break_id
        super().__init__(f"Break {break_id} does not exist")


class RequiresJustification(BreakError):
    """
    Normal end blocked because the break ran past its limit.

    This is a control-flow signal: the caller should collect a reason and
    call force_end_break.
    """

    def __init__(self, record: BreakRecord, elapsed_seconds: float, limit_minutes: int):
        self.record = record
        self.elapsed_seconds = elapsed_seconds
        self.limit_minutes = limit_minutes
        super().__init__(
            f"Break {record.id} ran {self.elapsed_minutes} min "
            f"(limit {limit_minutes} min); justification required"
        )

    @property
    def elapsed_minutes(self) -> int:
        return round(self.elapsed_seconds / 60)


class JustificationRequiredError(BreakError):
    """Force-end attempted with a blank justification."""

    def __init__(self, break_id: str):
        self.break_id = break_id
        super().__init__(f"A justification is required to end break {break_id}")


class NotAuthorizedError(BreakError):
    """Caller is neither the owner nor holds an elevated role."""

    def __init__(self, break_id: str, actor_id: str):
        self.break_id = break_id
        self.actor_id = actor_id
        super().__init__(f"User {actor_id} may not end break {break_id}")


class NotIdleBreakError(BreakError):
    """Idle-end attempted on a break that was not recorded as idle time."""

    def __init__(self, break_id: str, record: Optional[BreakRecord] = None):
        self.break_id = break_id
        self.record = record
        super().__init__(f"Break {break_id} is not an idle break")


class StoreUnavailableError(Exception):
    """The persistence layer could not be reached. Safe to retry."""
