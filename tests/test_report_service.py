"""
Unit tests for BreakReportService.
"""

import pytest
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from openpyxl import load_workbook

from application.report_service import BreakReportService
from config.config_manager import AppConfig, ReportSettings
from domain.clock import ManualClock
from domain.entities import BreakType, EmployeeProfile, UsageLevel
from infrastructure.memory_store import InMemoryBreakStore


DAY = date(2025, 3, 10)
START = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


def add_break(store, user_id, minutes, break_type=BreakType.NORMAL, offset_minutes=0,
              justification=None, ended=True):
    start = START + timedelta(minutes=offset_minutes)
    record = store.create(user_id, break_type, start_time=start, break_date=DAY)
    if ended:
        record = store.update(record.id, end_time=start + timedelta(minutes=minutes),
                              justification=justification)
    return record


@pytest.fixture
def store():
    store = InMemoryBreakStore()
    # zara: 10 + 20 + 25 normal, 45 meeting -> warning
    add_break(store, "zara", 10, offset_minutes=0)
    add_break(store, "zara", 20, offset_minutes=60)
    add_break(store, "zara", 25, offset_minutes=120)
    add_break(store, "zara", 45, BreakType.MEETING, offset_minutes=180)
    # adam: one long break, justified -> danger via 65 total
    add_break(store, "adam", 35, offset_minutes=0, justification="outage")
    add_break(store, "adam", 30, offset_minutes=90)
    # omar: idle only, plus an active normal break
    add_break(store, "omar", 8, BreakType.AUTO_IDLE, offset_minutes=0)
    add_break(store, "omar", 0, offset_minutes=200, ended=False)
    return store


@pytest.fixture
def clock():
    return ManualClock(START + timedelta(hours=5))


@pytest.fixture
def service(store, clock):
    return BreakReportService(store, clock)


class TestBuildDailyReport:
    """Tests for build_daily_report."""

    def test_one_row_per_user_sorted_by_name(self, service):
        rows = service.build_daily_report(DAY)
        assert [r.user_id for r in rows] == ["adam", "omar", "zara"]

    def test_row_values(self, service):
        rows = {r.user_id: r for r in service.build_daily_report(DAY)}

        zara = rows["zara"]
        assert zara.normal_break_minutes == 55
        assert zara.meeting_break_minutes == 45
        assert zara.total_break_minutes == 100
        assert zara.break_count == 4
        assert zara.level == UsageLevel.WARNING
        assert zara.exceeded_daily_limit is False
        assert zara.has_long_break is False

        adam = rows["adam"]
        assert adam.normal_break_minutes == 65
        assert adam.level == UsageLevel.DANGER
        assert adam.exceeded_daily_limit is True
        assert adam.has_long_break is True
        assert adam.justified_count == 1

    def test_active_break_not_counted(self, service):
        rows = {r.user_id: r for r in service.build_daily_report(DAY)}

        omar = rows["omar"]
        assert omar.normal_break_minutes == 0
        assert omar.break_count == 1
        assert omar.has_auto_idle is True
        assert omar.total_break_minutes == 8

    def test_sort_by_usage(self, service):
        rows = service.build_daily_report(DAY, sort_by="usage")
        assert [r.user_id for r in rows] == ["adam", "zara", "omar"]

    def test_explicit_user_ids_include_zero_rows(self, service):
        rows = service.build_daily_report(DAY, user_ids=["zara", "nobody"])
        by_user = {r.user_id: r for r in rows}

        assert set(by_user) == {"zara", "nobody"}
        assert by_user["nobody"].normal_break_minutes == 0
        assert by_user["nobody"].level == UsageLevel.OK

    def test_profiles_supply_names_and_teams(self, service):
        profiles = {"zara": EmployeeProfile("zara", "Zara Khan", team="Support")}
        rows = {r.user_id: r for r in service.build_daily_report(DAY, profiles=profiles)}

        assert rows["zara"].full_name == "Zara Khan"
        assert rows["zara"].team == "Support"
        assert rows["adam"].full_name == "adam"

    def test_team_filter(self, service):
        profiles = {
            "zara": EmployeeProfile("zara", "Zara Khan", team="Support"),
            "adam": EmployeeProfile("adam", "Adam Saleh", team="Sales"),
            "omar": EmployeeProfile("omar", "Omar Aziz", team="Support"),
        }
        rows = service.build_daily_report(DAY, profiles=profiles, team="Support")
        assert [r.user_id for r in rows] == ["omar", "zara"]

    def test_team_filter_skips_users_without_profile(self, service):
        profiles = {"zara": EmployeeProfile("zara", "Zara Khan", team="Support")}
        rows = service.build_daily_report(DAY, profiles=profiles, team="Support")
        assert [r.user_id for r in rows] == ["zara"]

    def test_team_and_user_filters_combine(self, service):
        profiles = {
            "zara": EmployeeProfile("zara", "Zara Khan", team="Support"),
            "omar": EmployeeProfile("omar", "Omar Aziz", team="Support"),
        }
        rows = service.build_daily_report(
            DAY, user_ids=["zara", "adam"], profiles=profiles, team="Support"
        )
        assert [r.user_id for r in rows] == ["zara"]

    def test_day_defaults_to_today(self, service):
        rows = service.build_daily_report()
        assert all(r.day == DAY for r in rows)

    def test_empty_day(self, service):
        assert service.build_daily_report(date(2025, 3, 11)) == []


class TestGenerateReports:
    """Tests for generate_reports."""

    def test_writes_excel_and_pdf(self, service):
        with tempfile.TemporaryDirectory() as tmpdir:
            excel_path = Path(tmpdir) / "report.xlsx"
            pdf_path = Path(tmpdir) / "report.pdf"

            result = service.generate_reports(DAY, excel_path=excel_path, pdf_path=pdf_path)

            assert result.success
            assert result.error_message == ""
            assert result.excel_path == excel_path
            assert result.pdf_path == pdf_path
            assert excel_path.exists()
            assert pdf_path.exists()

            wb = load_workbook(excel_path)
            assert wb.sheetnames == ["Daily Breaks", "Break Details"]
            assert wb["Daily Breaks"].cell(row=2, column=1).value == "adam"

    def test_default_paths_use_settings(self, store, clock):
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = ReportSettings(output_dir=tmpdir,
                                      excel_filename_pattern="breaks_{year}{month}{day}.xlsx")
            service = BreakReportService(store, clock, settings=settings)

            result = service.generate_reports(DAY, generate_pdf=False)

            assert result.excel_path == Path(tmpdir) / "breaks_20250310.xlsx"
            assert result.excel_path.exists()
            assert result.pdf_path is None

    def test_pdf_failure_keeps_excel(self, service):
        with tempfile.TemporaryDirectory() as tmpdir:
            excel_path = Path(tmpdir) / "report.xlsx"

            with patch("infrastructure.pdf_writer.PdfWriter.create_daily_report",
                       side_effect=RuntimeError("font error")):
                result = service.generate_reports(
                    DAY, excel_path=excel_path, pdf_path=Path(tmpdir) / "report.pdf"
                )

            assert excel_path.exists()
            assert result.pdf_path is None
            assert "font error" in result.error_message

    def test_empty_day_writes_no_pdf(self, service):
        with tempfile.TemporaryDirectory() as tmpdir:
            pdf_path = Path(tmpdir) / "empty.pdf"

            result = service.generate_reports(
                date(2025, 3, 11), generate_excel=False, pdf_path=pdf_path
            )

            assert result.rows == []
            assert result.pdf_path is None
            assert not pdf_path.exists()

    def test_user_filter_limits_detail_sheet(self, service):
        with tempfile.TemporaryDirectory() as tmpdir:
            excel_path = Path(tmpdir) / "report.xlsx"

            result = service.generate_reports(
                DAY, excel_path=excel_path, generate_pdf=False, user_ids=["adam"]
            )

            assert [r.user_id for r in result.rows] == ["adam"]
            details = load_workbook(excel_path)["Break Details"]
            users = {details.cell(row=r, column=1).value for r in range(2, details.max_row + 1)}
            assert users == {"adam"}

    def test_team_filter_limits_detail_sheet(self, service):
        profiles = {
            "zara": EmployeeProfile("zara", "Zara Khan", team="Support"),
            "adam": EmployeeProfile("adam", "Adam Saleh", team="Sales"),
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            excel_path = Path(tmpdir) / "report.xlsx"

            result = service.generate_reports(
                DAY, excel_path=excel_path, generate_pdf=False,
                profiles=profiles, team="Support"
            )

            assert [r.full_name for r in result.rows] == ["Zara Khan"]
            details = load_workbook(excel_path)["Break Details"]
            assert details.max_row == 5
            assert details.cell(row=2, column=1).value == "Zara Khan"


class TestFromConfig:
    """Tests for BreakReportService.from_config."""

    def test_custom_font_path_from_config(self, store, clock):
        config = AppConfig()
        config.reports.custom_font_path = "/fonts/Amiri-Regular.ttf"

        service = BreakReportService.from_config(config, store, clock)

        assert service.custom_font_path == "/fonts/Amiri-Regular.ttf"

    def test_font_defaults_to_none(self, store, clock):
        service = BreakReportService.from_config(AppConfig(), store, clock)
        assert service.custom_font_path is None

    def test_font_reaches_pdf_writer(self, store, clock):
        config = AppConfig()
        config.reports.custom_font_path = "/fonts/Amiri-Regular.ttf"
        service = BreakReportService.from_config(config, store, clock)

        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("infrastructure.pdf_writer.PdfWriter") as writer:
                service.generate_reports(
                    DAY, generate_excel=False, pdf_path=Path(tmpdir) / "r.pdf"
                )

            writer.assert_called_once_with(custom_font_path="/fonts/Amiri-Regular.ttf")
