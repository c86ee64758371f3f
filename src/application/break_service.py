"""
Break Service Module

Application layer service that orchestrates the break workflow for callers
(CLI, web handlers, idle detectors). Adds logging and retries persistence
connectivity failures with backoff. Expected outcomes (RequiresJustification,
AlreadyOnBreakError, ...) pass through to the caller unchanged.
"""

import time
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, TypeVar

from config.config_manager import AppConfig, BreakPolicy, IdlePolicy
from domain.break_session import BreakSession
from domain.break_store import BreakStore
from domain.break_tally import compute_daily_tally
from domain.clock import Clock, SystemClock, get_timezone
from domain.entities import (
    BreakRecord, DailyBreakTally, EmployeeProfile, EndResult, LiveBreak
)
from domain.errors import (
    AlreadyOnBreakError, NotActiveError, NotIdleBreakError, RequiresJustification,
    StoreUnavailableError
)
from domain.live_monitor import build_live_monitor
from infrastructure.logger import get_logger

logger = get_logger("BreakService")

T = TypeVar("T")


class BreakService:
    """
    Application service for break tracking.

    This service:
    - Wraps BreakSession commands with logging
    - Retries StoreUnavailableError (3 attempts, 2s -> 4s by default)
    - Serves the per-user daily tally and the live monitor
    """

    def __init__(
        self,
        store: BreakStore,
        clock: Optional[Clock] = None,
        policy: Optional[BreakPolicy] = None,
        idle_policy: Optional[IdlePolicy] = None,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.policy = policy or BreakPolicy()
        self.session = BreakSession(store, self.clock, self.policy, idle_policy)
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff_seconds = retry_backoff_seconds
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: BreakStore,
        clock: Optional[Clock] = None
    ) -> "BreakService":
        """Build a service from AppConfig, using its timezone for business days."""
        clock = clock or SystemClock(get_timezone(config.storage.timezone))
        return cls(
            store,
            clock=clock,
            policy=config.break_policy,
            idle_policy=config.idle_policy,
            retry_attempts=config.storage.retry_attempts,
            retry_backoff_seconds=config.storage.retry_backoff_seconds
        )

    # ── Commands ─────────────────────────────────────────────

    def start_break(
        self,
        user_id: str,
        break_type,
        notes: Optional[str] = None,
        created_by: Optional[str] = None
    ) -> BreakRecord:
        try:
            record = self._with_retry(
                "start_break",
                lambda: self.session.start_break(
                    user_id, break_type, notes, created_by=created_by
                )
            )
        except AlreadyOnBreakError as e:
            active_id = e.active_break.id if e.active_break else "?"
            logger.info(f"Start refused, {user_id} already on break {active_id}")
            raise
        logger.info(f"Break started: {record.id} | user={user_id} | type={record.break_type.value}")
        return record

    def end_break(
        self,
        break_id: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None
    ) -> EndResult:
        try:
            result = self._with_retry(
                "end_break",
                lambda: self.session.end_break(break_id, actor_id, actor_role)
            )
        except RequiresJustification as e:
            # Control flow, not a failure
            logger.info(
                f"Break {break_id} needs justification: "
                f"{e.elapsed_minutes} min > {e.limit_minutes} min"
            )
            raise
        except NotActiveError:
            logger.warning(f"End requested for break {break_id} which is not active")
            raise
        logger.info(f"Break ended: {break_id} | duration={result.duration_minutes} min")
        return result

    def force_end_break(
        self,
        break_id: str,
        justification: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None
    ) -> EndResult:
        try:
            result = self._with_retry(
                "force_end_break",
                lambda: self.session.force_end_break(
                    break_id, justification, actor_id, actor_role
                )
            )
        except NotActiveError:
            logger.warning(f"Force end requested for break {break_id} which is not active")
            raise
        logger.info(
            f"Break force-ended: {break_id} | duration={result.duration_minutes} min"
            f" | justified={result.record.justification is not None}"
        )
        return result

    def start_auto_idle_break(
        self,
        user_id: str,
        role: Optional[str] = None,
        idle_since: Optional[datetime] = None
    ) -> Optional[BreakRecord]:
        record = self._with_retry(
            "start_auto_idle_break",
            lambda: self.session.start_auto_idle_break(user_id, role, idle_since)
        )
        if record:
            logger.info(f"Idle break started: {record.id} | user={user_id}")
        else:
            logger.debug(f"Idle break skipped for {user_id}")
        return record

    def end_auto_idle_break(self, break_id: str) -> EndResult:
        try:
            result = self._with_retry(
                "end_auto_idle_break",
                lambda: self.session.end_auto_idle_break(break_id)
            )
        except NotIdleBreakError as e:
            logger.warning(
                f"Idle end refused for break {break_id} of type {e.record.break_type.value}"
            )
            raise
        minutes = result.duration_minutes
        logger.info(
            f"Idle break ended: {break_id} | "
            f"idle for {minutes} minute{'s' if minutes != 1 else ''}"
        )
        return result

    # ── Queries ──────────────────────────────────────────────

    def get_active_break(self, user_id: str) -> Optional[BreakRecord]:
        return self._with_retry("find_active", lambda: self.session.get_active_break(user_id))

    def get_my_breaks_today(self, user_id: str) -> DailyBreakTally:
        """Today's tally for a user, recomputed from the store."""
        return self.get_daily_tally(user_id, self.clock.today())

    def get_daily_tally(self, user_id: str, day: date) -> DailyBreakTally:
        breaks = self._with_retry(
            "list_for_user_on_date",
            lambda: self.store.list_for_user_on_date(user_id, day)
        )
        return compute_daily_tally(user_id, day, breaks, self.policy, now=self.clock.now())

    def get_live_breaks(
        self,
        profiles: Optional[Dict[str, EmployeeProfile]] = None
    ) -> List[LiveBreak]:
        active = self._with_retry("list_active", self.store.list_active)
        return build_live_monitor(active, self.clock.now(), self.policy, profiles)

    # ── Retry ────────────────────────────────────────────────

    def _with_retry(self, operation: str, func: Callable[[], T]) -> T:
        """Run func, retrying StoreUnavailableError with exponential backoff."""
        for attempt in range(self.retry_attempts):
            try:
                return func()
            except StoreUnavailableError as e:
                if attempt + 1 >= self.retry_attempts:
                    logger.error(f"{operation} FAILED after {self.retry_attempts} attempts: {e}")
                    raise
                delay = self.retry_backoff_seconds * (2 ** attempt)
                logger.warning(
                    f"{operation} store error (attempt {attempt + 1}): {e}; retrying in {delay:.1f}s"
                )
                self._sleep(delay)
        raise AssertionError("unreachable")
