"""
Live Monitor Module

Builds the supervisor view of who is on break right now.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .entities import BreakRecord, EmployeeProfile, LiveBreak
from config.config_manager import BreakPolicy


def build_live_monitor(
    active_breaks: Iterable[BreakRecord],
    now: datetime,
    policy: Optional[BreakPolicy] = None,
    profiles: Optional[Dict[str, EmployeeProfile]] = None
) -> List[LiveBreak]:
    """
    Turn active breaks into monitor rows, longest-running first.

    Args:
        active_breaks: Records with no end_time; ended ones are skipped
        now: Reference time for durations
        policy: Per-type limits
        profiles: Optional display data keyed by user id

    Returns:
        List of LiveBreak rows
    """
    policy = policy or BreakPolicy()
    profiles = profiles or {}
    rows: List[LiveBreak] = []

    for record in sorted(active_breaks, key=lambda r: r.start_time):
        if not record.is_active:
            continue
        duration_seconds = int(record.elapsed_seconds(now))
        limit = policy.limit_for(record.break_type)
        profile = profiles.get(record.user_id)
        rows.append(LiveBreak(
            record=record,
            duration_seconds=duration_seconds,
            allowed_limit_minutes=limit,
            is_overtime=limit is not None and duration_seconds > limit * 60,
            full_name=profile.full_name if profile else "Unknown",
            team=profile.team if profile else None
        ))

    return rows


def format_elapsed(seconds: float) -> str:
    """MM:SS display, minutes grow past 59."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
