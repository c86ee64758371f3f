"""
Excel Writer Module

Generates formatted Excel daily break reports with styling.
Applies color formatting based on daily usage levels.
"""

from datetime import date, tzinfo
from pathlib import Path
from typing import Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import (
    Font, PatternFill, Alignment, Border, Side
)
from openpyxl.utils import get_column_letter

from domain.entities import BreakRecord, DailyBreakReportRow, UsageLevel
from infrastructure.logger import get_logger

logger = get_logger("ExcelWriter")


class ExcelWriter:
    """
    Generates formatted Excel break reports.

    Output format:
    - Sheet "Daily Breaks": header row, then one row per employee
    - Sheet "Break Details" (optional): one row per break record

    Styling:
    - Green/Yellow/Red status cell based on UsageLevel
    - Red fill on the yes-flags (long break, over limit)
    """

    SUMMARY_SHEET = "Daily Breaks"
    DETAIL_SHEET = "Break Details"

    SUMMARY_HEADERS = [
        "Employee", "Team", "Normal (min)", "Meeting (min)", "Total (min)",
        "Breaks", "Over Daily Limit", "Long Break", "Auto Idle", "Justified", "Status",
    ]

    DETAIL_HEADERS = [
        "Employee", "Type", "Start", "End", "Duration (min)", "Source",
        "Notes", "Justification",
    ]

    COLORS = {
        'green': PatternFill(start_color='90EE90', end_color='90EE90', fill_type='solid'),
        'red': PatternFill(start_color='FF6B6B', end_color='FF6B6B', fill_type='solid'),
        'yellow': PatternFill(start_color='FFD700', end_color='FFD700', fill_type='solid'),
        'gray': PatternFill(start_color='D3D3D3', end_color='D3D3D3', fill_type='solid'),
        'header': PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid'),
    }

    LEVEL_COLORS = {
        UsageLevel.OK: 'green',
        UsageLevel.WARNING: 'yellow',
        UsageLevel.DANGER: 'red',
    }

    BORDER = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    def __init__(self, display_tz: Optional[tzinfo] = None):
        self.display_tz = display_tz
        self.wb: Optional[Workbook] = None

    def create_daily_report(
        self,
        rows: List[DailyBreakReportRow],
        day: date,
        output_path: Path,
        records: Optional[List[BreakRecord]] = None,
        names: Optional[Dict[str, str]] = None
    ) -> Path:
        """
        Create a daily break report workbook.

        Args:
            rows: Per-employee summary rows
            day: Report day (used in the sheet title row)
            output_path: Path to save the Excel file
            records: Optional break records for the detail sheet
            names: Optional user id -> display name map for the detail sheet

        Returns:
            Path to the created file
        """
        self.wb = Workbook()

        summary_ws = self.wb.active
        summary_ws.title = self.SUMMARY_SHEET
        self._write_summary_sheet(summary_ws, rows, day)

        if records is not None:
            detail_ws = self.wb.create_sheet(self.DETAIL_SHEET)
            self._write_detail_sheet(detail_ws, records, names or {})

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(output_path)
        logger.info(f"Excel report saved: {output_path}")
        return output_path

    def _write_summary_sheet(self, ws, rows: List[DailyBreakReportRow], day: date):
        """Write the per-employee summary with a status color per row."""
        self._write_header(ws, self.SUMMARY_HEADERS)

        for row_idx, row in enumerate(rows, start=2):
            values = [
                row.full_name,
                row.team or "",
                row.normal_break_minutes,
                row.meeting_break_minutes,
                row.total_break_minutes,
                row.break_count,
                self._yes_no(row.exceeded_daily_limit),
                self._yes_no(row.has_long_break),
                self._yes_no(row.has_auto_idle),
                row.justified_count,
                row.level.value.upper(),
            ]
            for col_idx, value in enumerate(values, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.BORDER
                cell.alignment = Alignment(
                    horizontal='left' if col_idx <= 2 else 'center',
                    vertical='center'
                )

            # Flag cells
            for col_idx, flagged in ((7, row.exceeded_daily_limit), (8, row.has_long_break)):
                if flagged:
                    ws.cell(row=row_idx, column=col_idx).fill = self.COLORS['red']

            status_cell = ws.cell(row=row_idx, column=len(values))
            status_cell.fill = self.COLORS[self.LEVEL_COLORS[row.level]]
            status_cell.font = Font(bold=True)

        # Footer with report date
        footer_row = len(rows) + 3
        ws.cell(row=footer_row, column=1, value=f"Report date: {day.isoformat()}").font = Font(italic=True)

        self._set_column_widths(ws, [24, 14, 13, 14, 12, 9, 16, 12, 11, 11, 10])
        ws.freeze_panes = "B2"

    def _write_detail_sheet(self, ws, records: List[BreakRecord], names: Dict[str, str]):
        """Write one row per break; active breaks have an empty end."""
        self._write_header(ws, self.DETAIL_HEADERS)

        for row_idx, record in enumerate(records, start=2):
            values = [
                names.get(record.user_id, record.user_id),
                record.break_type.value,
                self._format_time(record.start_time),
                self._format_time(record.end_time) if record.end_time else "",
                record.duration_minutes if record.duration_minutes is not None else "",
                record.source.value,
                record.notes or "",
                record.justification or "",
            ]
            for col_idx, value in enumerate(values, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.BORDER
                cell.alignment = Alignment(vertical='center', wrap_text=col_idx >= 7)

            if record.is_active:
                ws.cell(row=row_idx, column=4).fill = self.COLORS['gray']
            if record.justification:
                ws.cell(row=row_idx, column=8).fill = self.COLORS['yellow']

        self._set_column_widths(ws, [24, 12, 10, 10, 15, 13, 30, 40])
        ws.freeze_panes = "A2"

    def _write_header(self, ws, headers: List[str]):
        for col_idx, title in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=title)
            cell.fill = self.COLORS['header']
            cell.font = Font(bold=True, color='FFFFFF')
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.BORDER

    @staticmethod
    def _set_column_widths(ws, widths: List[int]):
        for col_idx, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = width

    @staticmethod
    def _yes_no(flag: bool) -> str:
        return "Yes" if flag else "No"

    def _format_time(self, moment) -> str:
        if self.display_tz is not None:
            moment = moment.astimezone(self.display_tz)
        return moment.strftime('%H:%M')
