"""
Break Session Module

State machine for one employee's break lifecycle:

    Idle --start--> Active --end--> Idle
                      |
                      +--end (overrun)--> RequiresJustification, still Active
                      +--force end + justification--> Idle

The session holds no state between calls. The current break is always read
back from the store, and policy decisions use this session's clock at the
moment of the end attempt.
"""

from datetime import datetime, timezone
from typing import Optional

from .break_store import BreakStore
from .clock import Clock, SystemClock
from .entities import (
    BreakRecord, BreakSource, BreakType, EndResult, ELEVATED_ROLES
)
from .errors import (
    AlreadyOnBreakError, BreakNotFoundError, JustificationRequiredError,
    NotActiveError, NotAuthorizedError, NotIdleBreakError, RequiresJustification
)
from config.config_manager import BreakPolicy, IdlePolicy


class BreakSession:
    """Start, end and force-end breaks against a BreakStore."""

    def __init__(
        self,
        store: BreakStore,
        clock: Optional[Clock] = None,
        policy: Optional[BreakPolicy] = None,
        idle_policy: Optional[IdlePolicy] = None
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.policy = policy or BreakPolicy()
        self.idle_policy = idle_policy or IdlePolicy()

    # ── Queries ──────────────────────────────────────────────

    def get_active_break(self, user_id: str) -> Optional[BreakRecord]:
        return self.store.find_active(user_id)

    def is_overrun(self, record: BreakRecord, now: Optional[datetime] = None) -> bool:
        """Whether a break has run past the limit for its type."""
        limit = self.policy.limit_for(record.break_type)
        if limit is None:
            return False
        now = now or self.clock.now()
        return record.elapsed_seconds(now) > limit * 60

    # ── Commands ─────────────────────────────────────────────

    def start_break(
        self,
        user_id: str,
        break_type,
        notes: Optional[str] = None,
        source: BreakSource = BreakSource.MANUAL,
        created_by: Optional[str] = None
    ) -> BreakRecord:
        """
        Start a break for a user.

        Args:
            user_id: The employee taking the break
            break_type: BreakType or its string value
            notes: Optional free text
            source: Provenance tag
            created_by: Who started it; defaults to the user for manual breaks

        Returns:
            The new active BreakRecord

        Raises:
            AlreadyOnBreakError: If the user already has an active break
        """
        break_type = BreakType.parse(break_type)

        existing = self.store.find_active(user_id)
        if existing is not None:
            raise AlreadyOnBreakError(user_id, existing)

        if created_by is None and source == BreakSource.MANUAL:
            created_by = user_id

        now = self.clock.now()
        notes = notes.strip() if notes and notes.strip() else None
        # The store re-checks the single-active-break rule atomically
        return self.store.create(
            user_id,
            break_type,
            notes,
            start_time=now,
            break_date=self.clock.business_date(now),
            source=source,
            created_by=created_by
        )

    def end_break(
        self,
        break_id: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None
    ) -> EndResult:
        """
        End a break that is within its limit.

        Raises:
            BreakNotFoundError: Unknown break id
            NotActiveError: Break already ended
            NotAuthorizedError: Caller is not the owner or a supervisor
            RequiresJustification: Break ran past its limit; the record stays
                active and the caller should use force_end_break
        """
        record = self._load_active(break_id, actor_id, actor_role)
        now = self._end_time_for(record)
        elapsed = record.elapsed_seconds(now)

        limit = self.policy.limit_for(record.break_type)
        if limit is not None and elapsed > limit * 60:
            raise RequiresJustification(record, elapsed, limit)

        updated = self.store.update(record.id, end_time=now)
        return EndResult(record=updated, elapsed_seconds=elapsed)

    def force_end_break(
        self,
        break_id: str,
        justification: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None
    ) -> EndResult:
        """
        End a break with a justification, regardless of its length.

        The justification is stored together with end_time in one update, and
        only when the break actually overran.

        Raises:
            BreakNotFoundError: Unknown break id
            NotActiveError: Break already ended
            NotAuthorizedError: Caller is not the owner or a supervisor
            JustificationRequiredError: Blank justification
        """
        record = self._load_active(break_id, actor_id, actor_role)

        reason = (justification or "").strip()
        if not reason:
            raise JustificationRequiredError(break_id)

        now = self._end_time_for(record)
        elapsed = record.elapsed_seconds(now)
        overran = self.is_overrun(record, now)

        updated = self.store.update(
            record.id,
            end_time=now,
            justification=reason if overran else None
        )
        return EndResult(record=updated, elapsed_seconds=elapsed)

    # ── System idle breaks ───────────────────────────────────

    def idle_threshold_reached(self, idle_since: datetime, now: Optional[datetime] = None) -> bool:
        """Whether a user inactive since idle_since counts as idle."""
        if idle_since.tzinfo is None:
            idle_since = idle_since.replace(tzinfo=timezone.utc)
        now = now or self.clock.now()
        idle_seconds = (now - idle_since).total_seconds()
        return idle_seconds >= self.idle_policy.idle_threshold_minutes * 60

    def start_auto_idle_break(
        self,
        user_id: str,
        role: Optional[str] = None,
        idle_since: Optional[datetime] = None
    ) -> Optional[BreakRecord]:
        """
        Record idle time as a break.

        Args:
            user_id: The inactive employee
            role: Their role; exempt roles are never recorded
            idle_since: Last activity seen. When given, nothing is recorded
                until the idle threshold has passed

        Returns None when the role is exempt, the user has not been idle long
        enough, or the user is already on a break.
        """
        if role is not None and role in self.idle_policy.exempt_roles:
            return None
        if idle_since is not None and not self.idle_threshold_reached(idle_since):
            return None
        if self.store.find_active(user_id) is not None:
            return None
        try:
            return self.start_break(
                user_id,
                BreakType.AUTO_IDLE,
                source=BreakSource.SYSTEM_IDLE
            )
        except AlreadyOnBreakError:
            # Lost a race with a manual start
            return None

    def end_auto_idle_break(self, break_id: str) -> EndResult:
        """
        Close an idle break; idle breaks are never limited.

        Raises:
            NotIdleBreakError: The break was not recorded as idle time. Other
                break types must go through end_break
        """
        record = self._load_active(break_id, None, None)
        if record.break_type != BreakType.AUTO_IDLE:
            raise NotIdleBreakError(break_id, record)
        now = self._end_time_for(record)
        updated = self.store.update(record.id, end_time=now)
        return EndResult(record=updated, elapsed_seconds=record.elapsed_seconds(now))

    # ── Helpers ──────────────────────────────────────────────

    def _load_active(
        self,
        break_id: str,
        actor_id: Optional[str],
        actor_role: Optional[str]
    ) -> BreakRecord:
        record = self.store.get(break_id)
        if record is None:
            raise BreakNotFoundError(break_id)
        if actor_id is not None and actor_id != record.user_id \
                and actor_role not in ELEVATED_ROLES:
            raise NotAuthorizedError(break_id, actor_id)
        if not record.is_active:
            raise NotActiveError(break_id, record)
        return record

    def _end_time_for(self, record: BreakRecord) -> datetime:
        # end_time never precedes start_time, even with a skewed clock
        return max(self.clock.now(), record.start_time)
