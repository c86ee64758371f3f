"""
Sorting Utilities Module

Provides sorting functions for break report output.
"""

from typing import List

from domain.entities import DailyBreakReportRow


def get_name_key(name: str) -> tuple:
    """
    Case-insensitive sort key for a display name.
    Returns tuple of (folded_name, name) for stable sorting.
    """
    if not name:
        return ("", "")
    return (name.casefold(), name)


def sort_report_rows(
    rows: List[DailyBreakReportRow],
    sort_by: str = "name"
) -> List[DailyBreakReportRow]:
    """
    Sort daily report rows by specified criteria.

    Args:
        rows: List of DailyBreakReportRow objects
        sort_by: Sorting method - "name" or "usage"

    Returns:
        Sorted list (new list, does not modify original)
    """
    if sort_by == "usage":
        # Heaviest normal-break usage first, then by name
        return sorted(
            rows,
            key=lambda r: (-r.normal_break_minutes, get_name_key(r.full_name))
        )
    else:
        return sorted(rows, key=lambda r: get_name_key(r.full_name))
