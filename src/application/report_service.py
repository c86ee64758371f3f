"""
Report Service Module

Application layer service that builds the supervisory daily break report and
writes it to Excel and PDF.
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from config.config_manager import AppConfig, BreakPolicy, ReportSettings
from domain.break_store import BreakStore
from domain.break_tally import compute_daily_tally
from domain.clock import Clock, SystemClock, get_timezone
from domain.entities import BreakRecord, DailyBreakReportRow, EmployeeProfile
from domain.sorting import sort_report_rows
from infrastructure.logger import get_logger

logger = get_logger("ReportService")


@dataclass
class ReportResult:
    """Result of report generation."""
    success: bool
    day: date
    rows: List[DailyBreakReportRow] = field(default_factory=list)
    excel_path: Optional[Path] = None
    pdf_path: Optional[Path] = None
    error_message: str = ""


class BreakReportService:
    """
    Application service for daily break reports.

    This service:
    - Recomputes every employee's tally for the day from the store
    - Depends only on domain entities and infrastructure writers
    - Provides logging for key operations
    """

    def __init__(
        self,
        store: BreakStore,
        clock: Optional[Clock] = None,
        policy: Optional[BreakPolicy] = None,
        settings: Optional[ReportSettings] = None,
        custom_font_path: Optional[str] = None
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.policy = policy or BreakPolicy()
        self.settings = settings or ReportSettings()
        self.custom_font_path = custom_font_path or self.settings.custom_font_path or None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: BreakStore,
        clock: Optional[Clock] = None
    ) -> "BreakReportService":
        clock = clock or SystemClock(get_timezone(config.storage.timezone))
        return cls(
            store,
            clock=clock,
            policy=config.break_policy,
            settings=config.reports,
            custom_font_path=config.reports.custom_font_path or None
        )

    def build_daily_report(
        self,
        day: Optional[date] = None,
        user_ids: Optional[Iterable[str]] = None,
        profiles: Optional[Dict[str, EmployeeProfile]] = None,
        sort_by: str = "name",
        team: Optional[str] = None
    ) -> List[DailyBreakReportRow]:
        """
        Build one summary row per employee.

        Args:
            day: Report day (default: today in the business timezone)
            user_ids: Employees to include; those without breaks get zero rows.
                Default: everyone with at least one break that day
            profiles: Optional display data keyed by user id
            sort_by: "name" or "usage"
            team: Only employees whose profile has this team

        Returns:
            Sorted list of DailyBreakReportRow
        """
        day = day or self.clock.today()
        profiles = profiles or {}
        records = self.store.list_for_date(day)

        by_user: Dict[str, List[BreakRecord]] = {}
        for record in records:
            by_user.setdefault(record.user_id, []).append(record)

        wanted = list(user_ids) if user_ids is not None else list(by_user)
        if team is not None:
            wanted = [
                user_id for user_id in wanted
                if user_id in profiles and profiles[user_id].team == team
            ]
        now = self.clock.now()

        rows: List[DailyBreakReportRow] = []
        for user_id in wanted:
            tally = compute_daily_tally(
                user_id, day, by_user.get(user_id, []), self.policy, now=now
            )
            profile = profiles.get(user_id)
            rows.append(DailyBreakReportRow(
                user_id=user_id,
                full_name=profile.full_name if profile else user_id,
                day=day,
                team=profile.team if profile else None,
                normal_break_minutes=tally.normal_total_minutes,
                meeting_break_minutes=tally.meeting_total_minutes,
                total_break_minutes=sum(tally.minutes_by_type.values()),
                break_count=tally.break_count,
                exceeded_daily_limit=(
                    tally.normal_total_minutes > self.policy.daily_normal_budget_minutes
                ),
                has_long_break=tally.overrun_count > 0,
                has_auto_idle=tally.has_auto_idle,
                justified_count=tally.justified_count,
                level=tally.level
            ))

        logger.info(f"Daily break report for {day.isoformat()}: {len(rows)} employees")
        return sort_report_rows(rows, sort_by)

    def generate_reports(
        self,
        day: Optional[date] = None,
        excel_path: Optional[Path] = None,
        pdf_path: Optional[Path] = None,
        generate_excel: bool = True,
        generate_pdf: bool = True,
        profiles: Optional[Dict[str, EmployeeProfile]] = None,
        sort_by: str = "name",
        user_ids: Optional[Iterable[str]] = None,
        team: Optional[str] = None
    ) -> ReportResult:
        """
        Build the daily report and write the requested files.

        Output paths default to the configured output_dir and filename
        patterns. A PDF failure is logged and reported in error_message, but
        does not discard the Excel file.
        """
        from infrastructure.excel_writer import ExcelWriter
        from infrastructure.pdf_writer import PdfWriter, format_report_filename

        day = day or self.clock.today()
        rows = self.build_daily_report(
            day, user_ids=user_ids, profiles=profiles, sort_by=sort_by, team=team
        )
        included = {row.user_id for row in rows}
        result = ReportResult(success=True, day=day, rows=rows)

        output_dir = Path(self.settings.output_dir) if self.settings.output_dir else Path.cwd()

        if generate_excel:
            excel_path = excel_path or output_dir / format_report_filename(
                self.settings.excel_filename_pattern, day
            )
            names = {user_id: p.full_name for user_id, p in (profiles or {}).items()}
            logger.info(f"Writing Excel report: {excel_path}")
            ExcelWriter(display_tz=self.clock.business_tz).create_daily_report(
                rows, day, excel_path,
                records=[r for r in self.store.list_for_date(day) if r.user_id in included],
                names=names
            )
            result.excel_path = Path(excel_path)

        if generate_pdf:
            pdf_path = pdf_path or output_dir / format_report_filename(
                self.settings.pdf_filename_pattern, day
            )
            try:
                logger.info(f"Writing PDF report: {pdf_path}")
                PdfWriter(custom_font_path=self.custom_font_path).create_daily_report(
                    rows, day, Path(pdf_path)
                )
                if rows:
                    result.pdf_path = Path(pdf_path)
            except Exception as e:
                logger.error(f"PDF generation failed: {e}")
                result.error_message = f"PDF generation failed: {e}"

        return result
