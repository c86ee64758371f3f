"""
Domain Entities Module

Core domain entities using dataclasses for the break tracking system.
These entities represent the core business concepts independent of infrastructure.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional


class BreakType(Enum):
    """Category of a break."""
    NORMAL = "normal"
    PRAYER = "prayer"
    TECHNICAL = "technical"
    MEETING = "meeting"
    AUTO_IDLE = "auto_idle"

    @classmethod
    def parse(cls, value) -> "BreakType":
        """Accept either a BreakType or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown break type '{value}' (expected one of: {valid})")


class BreakSource(Enum):
    """Where a break record came from. Informational only."""
    MANUAL = "manual"
    SYSTEM_IDLE = "system_idle"
    SCHEDULE_GAP = "schedule_gap"


class UsageLevel(Enum):
    """Warning level for daily normal-break usage."""
    OK = "ok"
    WARNING = "warning"
    DANGER = "danger"


# Roles allowed to end breaks they do not own
ELEVATED_ROLES = frozenset({"admin", "supervisor", "quality", "team_leader"})


@dataclass
class BreakRecord:
    """
    One instance of an employee taking a break.

    Attributes:
        id: Identifier assigned by the store
        user_id: Owning employee
        break_type: Category, fixed at start
        start_time: When the break started (timezone-aware)
        break_date: Business day the break belongs to
        end_time: When the break ended, None while active
        notes: Optional free text given at start
        justification: Reason recorded when an overrun break was force-ended
        source: Provenance tag
        created_by: Who started the break (None for the system)
    """
    id: str
    user_id: str
    break_type: BreakType
    start_time: datetime
    break_date: date
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    justification: Optional[str] = None
    source: BreakSource = BreakSource.MANUAL
    created_by: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def elapsed_seconds(self, now: datetime) -> float:
        """Seconds since start, up to end_time for ended breaks."""
        end = self.end_time if self.end_time is not None else now
        return max(0.0, (end - self.start_time).total_seconds())

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration_minutes(self) -> Optional[int]:
        """Whole minutes for ended breaks, None while active."""
        seconds = self.duration_seconds
        if seconds is None:
            return None
        return round(seconds / 60)


@dataclass
class EndResult:
    """Outcome of a successful end or force-end."""
    record: BreakRecord
    elapsed_seconds: float

    @property
    def duration_minutes(self) -> int:
        return round(self.elapsed_seconds / 60)


@dataclass
class DailyBreakTally:
    """
    Per user, per day view of break usage. Never persisted.

    Attributes:
        user_id: The employee
        day: The business day
        minutes_by_type: Committed minutes for every break type
        normal_total_minutes: Sum over normal breaks
        meeting_total_minutes: Sum over meetings (no ceiling)
        remaining_minutes: Normal budget left, floored at zero
        level: Warning level for normal usage
        break_count: Number of ended breaks
        overrun_count: Ended breaks that exceeded their type's limit
        justified_count: Ended breaks that carry a justification
        has_auto_idle: Whether any idle break was recorded
        active_break: The running break, if any
        active_elapsed_minutes: Live minutes of the running break (display only)
    """
    user_id: str
    day: date
    minutes_by_type: Dict[BreakType, int] = field(default_factory=dict)
    normal_total_minutes: int = 0
    meeting_total_minutes: int = 0
    remaining_minutes: int = 0
    level: UsageLevel = UsageLevel.OK
    break_count: int = 0
    overrun_count: int = 0
    justified_count: int = 0
    has_auto_idle: bool = False
    active_break: Optional[BreakRecord] = None
    active_elapsed_minutes: int = 0


@dataclass
class LiveBreak:
    """One row of the live "on break now" monitor."""
    record: BreakRecord
    duration_seconds: int
    allowed_limit_minutes: Optional[int]
    is_overtime: bool
    full_name: str = "Unknown"
    team: Optional[str] = None


@dataclass
class DailyBreakReportRow:
    """Supervisory per-employee summary for one day."""
    user_id: str
    full_name: str
    day: date
    team: Optional[str] = None
    normal_break_minutes: int = 0
    meeting_break_minutes: int = 0
    total_break_minutes: int = 0
    break_count: int = 0
    exceeded_daily_limit: bool = False
    has_long_break: bool = False
    has_auto_idle: bool = False
    justified_count: int = 0
    level: UsageLevel = UsageLevel.OK


@dataclass
class EmployeeProfile:
    """Display data for an employee, supplied by the caller."""
    user_id: str
    full_name: str
    role: str = "employee"
    team: Optional[str] = None
