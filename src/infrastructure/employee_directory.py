"""
Employee Directory Module

Loads display names, roles and teams from an employee CSV file.
"""

import csv
from pathlib import Path
from typing import Dict

from domain.entities import EmployeeProfile
from infrastructure.logger import get_logger

logger = get_logger("EmployeeDirectory")


def load_profiles_from_csv(csv_path: Path) -> Dict[str, EmployeeProfile]:
    """
    Load employee profiles keyed by user id.

    Expected columns: user_id, full_name, role, team (header names are
    case-insensitive; role and team may be empty).

    Args:
        csv_path: Path to the CSV file

    Returns:
        Dict of user id -> EmployeeProfile; empty when the file is missing
    """
    csv_path = Path(csv_path)
    profiles: Dict[str, EmployeeProfile] = {}

    if not csv_path.exists():
        logger.warning(f"Employee file not found: {csv_path}")
        return profiles

    with open(csv_path, 'r', encoding='utf-8-sig', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            row = {(k or "").strip().lower(): (v or "").strip() for k, v in row.items()}
            user_id = row.get('user_id', row.get('id', ''))
            if not user_id:
                continue

            profiles[user_id] = EmployeeProfile(
                user_id=user_id,
                full_name=row.get('full_name', row.get('name', '')) or user_id,
                role=row.get('role', '') or "employee",
                team=row.get('team', '') or None
            )

    logger.info(f"Loaded {len(profiles)} employee profiles from {csv_path.name}")
    return profiles
