"""
Break Tally Module

Rolls a user's breaks for one day up into consumed and remaining minutes.
The tally is a view: it is recomputed from the records on every call.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from .entities import BreakRecord, BreakType, DailyBreakTally, UsageLevel
from config.config_manager import BreakPolicy


def classify_usage(normal_total_minutes: int, policy: Optional[BreakPolicy] = None) -> UsageLevel:
    """
    Classify daily normal-break usage.

    Args:
        normal_total_minutes: Minutes of normal breaks taken today
        policy: Thresholds (default 50 warning / 60 budget)

    Returns:
        DANGER at or above the budget, WARNING from the lower bound up to the
        budget, OK otherwise
    """
    policy = policy or BreakPolicy()
    if normal_total_minutes >= policy.daily_normal_budget_minutes:
        return UsageLevel.DANGER
    elif normal_total_minutes >= policy.warning_lower_bound_minutes:
        return UsageLevel.WARNING
    else:
        return UsageLevel.OK


def is_long_break(record: BreakRecord, policy: Optional[BreakPolicy] = None) -> bool:
    """Whether an ended break exceeded the limit for its type."""
    policy = policy or BreakPolicy()
    limit = policy.limit_for(record.break_type)
    if limit is None or record.duration_seconds is None:
        return False
    return record.duration_seconds > limit * 60


def compute_daily_tally(
    user_id: str,
    day: date,
    breaks: Iterable[BreakRecord],
    policy: Optional[BreakPolicy] = None,
    now: Optional[datetime] = None
) -> DailyBreakTally:
    """
    Compute one user's break usage for a day.

    Only ended breaks are committed to the totals. A running break is
    reported separately so it is not counted twice once it ends.

    Args:
        user_id: The employee
        day: Business day to tally
        breaks: Candidate records; other users and other days are ignored
        policy: Budget and limit settings
        now: Reference time for the running break's display minutes

    Returns:
        DailyBreakTally
    """
    policy = policy or BreakPolicy()
    minutes_by_type = {break_type: 0 for break_type in BreakType}
    tally = DailyBreakTally(user_id=user_id, day=day, minutes_by_type=minutes_by_type)

    for record in breaks:
        if record.user_id != user_id or record.break_date != day:
            continue

        if record.is_active:
            tally.active_break = record
            if now is not None:
                tally.active_elapsed_minutes = int(record.elapsed_seconds(now) // 60)
            continue

        minutes_by_type[record.break_type] += record.duration_minutes
        tally.break_count += 1
        if is_long_break(record, policy):
            tally.overrun_count += 1
        if record.justification:
            tally.justified_count += 1
        if record.break_type == BreakType.AUTO_IDLE:
            tally.has_auto_idle = True

    tally.normal_total_minutes = minutes_by_type[BreakType.NORMAL]
    tally.meeting_total_minutes = minutes_by_type[BreakType.MEETING]
    tally.remaining_minutes = max(
        0, policy.daily_normal_budget_minutes - tally.normal_total_minutes
    )
    tally.level = classify_usage(tally.normal_total_minutes, policy)
    return tally
