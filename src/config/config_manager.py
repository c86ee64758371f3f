"""
Configuration Manager Module

Handles loading, saving, and managing application configuration.
Provides bi-directional mapping between the dataclasses and JSON persistence.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from infrastructure.logger import get_logger

logger = get_logger("ConfigManager")


@dataclass
class BreakPolicy:
    """Break limits and daily budget thresholds.

    Break type values: 'normal', 'prayer', 'technical', 'meeting', 'auto_idle'
    """
    overrun_threshold_minutes: int = 30       # 單次休息上限
    limited_break_types: List[str] = field(default_factory=lambda: ["normal"])
    type_limits: Dict[str, int] = field(default_factory=dict)  # per-type override
    daily_normal_budget_minutes: int = 60     # 每日一般休息額度
    warning_lower_bound_minutes: int = 50     # 接近額度警告

    def limit_for(self, break_type) -> Optional[int]:
        """Overrun limit in minutes for a type, or None when unlimited."""
        key = getattr(break_type, "value", break_type)
        if key in self.type_limits:
            return self.type_limits[key]
        if key in self.limited_break_types:
            return self.overrun_threshold_minutes
        return None


@dataclass
class IdlePolicy:
    """System idle detection settings."""
    idle_threshold_minutes: int = 5
    exempt_roles: List[str] = field(default_factory=lambda: ["admin"])


@dataclass
class StorageSettings:
    """Persistence settings."""
    database_path: str = ""  # Default empty = breaks.db in project root
    timezone: str = "Asia/Riyadh"
    retry_attempts: int = 3
    retry_backoff_seconds: float = 2.0


@dataclass
class ReportSettings:
    """Output settings for generated reports."""
    output_dir: str = ""  # Default empty = project root
    excel_filename_pattern: str = "break_report_{date}.xlsx"
    pdf_filename_pattern: str = "break_report_{date}.pdf"
    custom_font_path: str = ""  # TTF for non-Latin names, empty = Helvetica
    employees_csv: str = ""  # user_id,full_name,role,team


@dataclass
class AppConfig:
    """Main application configuration container."""
    break_policy: BreakPolicy = field(default_factory=BreakPolicy)
    idle_policy: IdlePolicy = field(default_factory=IdlePolicy)
    storage: StorageSettings = field(default_factory=StorageSettings)
    reports: ReportSettings = field(default_factory=ReportSettings)


class ConfigManager:
    """
    Manages application configuration with JSON persistence.

    Responsibilities:
    - Load configuration from JSON file
    - Save configuration to JSON file
    - Provide default configuration
    - Convert between dataclass and dict representations
    """

    DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: AppConfig = AppConfig()

    @property
    def config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def load(self) -> AppConfig:
        """Load configuration from JSON file."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._config = self._dict_to_config(data)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to load config, using defaults. Error: {e}")
                self._config = AppConfig()
        else:
            self._config = AppConfig()
        return self._config

    def save(self) -> None:
        """Save current configuration to JSON file."""
        data = self._config_to_dict(self._config)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def update(self, **kwargs) -> None:
        """Update specific configuration sections."""
        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)
        self.save()

    def _config_to_dict(self, config: AppConfig) -> dict:
        """Convert AppConfig dataclass to dictionary."""
        return {
            "break_policy": {
                "overrun_threshold_minutes": config.break_policy.overrun_threshold_minutes,
                "limited_break_types": list(config.break_policy.limited_break_types),
                "type_limits": dict(config.break_policy.type_limits),
                "daily_normal_budget_minutes": config.break_policy.daily_normal_budget_minutes,
                "warning_lower_bound_minutes": config.break_policy.warning_lower_bound_minutes
            },
            "idle_policy": {
                "idle_threshold_minutes": config.idle_policy.idle_threshold_minutes,
                "exempt_roles": list(config.idle_policy.exempt_roles)
            },
            "storage": {
                "database_path": config.storage.database_path,
                "timezone": config.storage.timezone,
                "retry_attempts": config.storage.retry_attempts,
                "retry_backoff_seconds": config.storage.retry_backoff_seconds
            },
            "reports": {
                "output_dir": config.reports.output_dir,
                "excel_filename_pattern": config.reports.excel_filename_pattern,
                "pdf_filename_pattern": config.reports.pdf_filename_pattern,
                "custom_font_path": config.reports.custom_font_path,
                "employees_csv": config.reports.employees_csv
            }
        }

    def _dict_to_config(self, data: dict) -> AppConfig:
        """Convert dictionary to AppConfig dataclass."""
        policy_data = data.get("break_policy", {})
        idle_data = data.get("idle_policy", {})
        storage_data = data.get("storage", {})
        reports_data = data.get("reports", {})

        break_policy = BreakPolicy(
            overrun_threshold_minutes=int(policy_data.get("overrun_threshold_minutes", 30)),
            limited_break_types=list(policy_data.get("limited_break_types", ["normal"])),
            type_limits={
                str(k): int(v) for k, v in policy_data.get("type_limits", {}).items()
            },
            daily_normal_budget_minutes=int(policy_data.get("daily_normal_budget_minutes", 60)),
            warning_lower_bound_minutes=int(policy_data.get("warning_lower_bound_minutes", 50))
        )

        idle_policy = IdlePolicy(
            idle_threshold_minutes=int(idle_data.get("idle_threshold_minutes", 5)),
            exempt_roles=list(idle_data.get("exempt_roles", ["admin"]))
        )

        storage = StorageSettings(
            database_path=storage_data.get("database_path", ""),
            timezone=storage_data.get("timezone", "Asia/Riyadh"),
            retry_attempts=int(storage_data.get("retry_attempts", 3)),
            retry_backoff_seconds=float(storage_data.get("retry_backoff_seconds", 2.0))
        )

        reports = ReportSettings(
            output_dir=reports_data.get("output_dir", ""),
            excel_filename_pattern=reports_data.get("excel_filename_pattern", "break_report_{date}.xlsx"),
            pdf_filename_pattern=reports_data.get("pdf_filename_pattern", "break_report_{date}.pdf"),
            custom_font_path=reports_data.get("custom_font_path", ""),
            employees_csv=reports_data.get("employees_csv", "")
        )

        return AppConfig(
            break_policy=break_policy,
            idle_policy=idle_policy,
            storage=storage,
            reports=reports
        )
