"""
PDF Writer Module

Generates formatted PDF daily break reports using fpdf2.
Replicates the Excel summary sheet with color coding and table structure.
"""

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fpdf import FPDF

from domain.entities import DailyBreakReportRow, UsageLevel
from infrastructure.logger import get_logger

logger = get_logger("PdfWriter")

FALLBACK_FONT = "Helvetica"


# ==============================================================================
# BreakReportPdf Class (A4 Landscape)
# ==============================================================================
class BreakReportPdf(FPDF):
    """
    Custom FPDF class for A4 landscape break reports.

    Uses a TTF font when one is supplied (needed for Arabic names),
    otherwise the built-in Helvetica.
    """

    def __init__(self, title: str = "", custom_font_path: Optional[str] = None):
        # A4 Landscape: 297mm x 210mm
        super().__init__(orientation='L', unit='mm', format='A4')
        self.title_text = title
        self._report_font = FALLBACK_FONT
        self._font_loaded = False
        self._setup_font(custom_font_path)

    def _setup_font(self, custom_font_path: Optional[str]) -> None:
        """Load a custom TTF font if the path exists."""
        if not custom_font_path:
            return
        font_path = Path(custom_font_path)
        if not font_path.exists():
            logger.warning(f"Custom font path does not exist: {font_path}")
            return
        try:
            self.add_font("ReportFont", "", str(font_path))
            self._report_font = "ReportFont"
            self._font_loaded = True
            logger.info(f"Loaded report font: {font_path.name}")
        except Exception as e:
            logger.warning(f"Cannot load font {font_path}: {e}")

    @property
    def font_family_name(self) -> str:
        return self._report_font

    def header(self) -> None:
        """Draw page header with centered title."""
        self.set_font(self._report_font, '', 14)
        self.cell(0, 10, self.title_text, align='C', new_x='LMARGIN', new_y='NEXT')
        self.ln(3)

    def footer(self) -> None:
        """Draw page footer with page number."""
        self.set_y(-12)
        self.set_font(self._report_font, '', 8)
        self.cell(0, 10, f'Page {self.page_no()}/{{nb}}', align='C')


# ==============================================================================
# PdfWriter Class
# ==============================================================================
class PdfWriter:
    """
    Generates PDF daily break reports that replicate the Excel summary.

    Features:
    - A4 Landscape, one row per employee
    - Status column colored by usage level
    - Header repeated on every page
    """

    # RGB Color definitions (matching ExcelWriter)
    COLORS: Dict[str, Tuple[int, int, int]] = {
        'green': (144, 238, 144),
        'red': (255, 107, 107),
        'yellow': (255, 215, 0),
        'header': (68, 114, 196),
        'white': (255, 255, 255),
    }

    LEVEL_COLORS: Dict[UsageLevel, str] = {
        UsageLevel.OK: 'green',
        UsageLevel.WARNING: 'yellow',
        UsageLevel.DANGER: 'red',
    }

    # (title, width mm)
    COLUMNS: List[Tuple[str, float]] = [
        ("Employee", 60),
        ("Team", 30),
        ("Normal", 22),
        ("Meeting", 22),
        ("Total", 22),
        ("Breaks", 18),
        ("Over Limit", 24),
        ("Long Break", 24),
        ("Auto Idle", 20),
        ("Justified", 18),
        ("Status", 21),
    ]

    MARGIN = 8
    PAGE_HEIGHT = 210
    HEADER_ROW_HEIGHT = 9
    DATA_ROW_HEIGHT = 7
    FOOTER_SPACE = 16

    def __init__(self, custom_font_path: Optional[str] = None):
        self._custom_font_path = custom_font_path

    def create_daily_report(
        self,
        rows: List[DailyBreakReportRow],
        day: date,
        output_path: Path
    ) -> None:
        """
        Create a PDF daily break report.

        Returns early without writing a file when there are no rows.
        """
        if not rows:
            return

        title = f"Daily Break Report - {day.isoformat()}"
        pdf = BreakReportPdf(title=title, custom_font_path=self._custom_font_path)
        pdf.alias_nb_pages()
        pdf.set_auto_page_break(auto=False)
        pdf.set_margins(self.MARGIN, self.MARGIN, self.MARGIN)
        pdf.add_page()

        self._draw_table_header(pdf)
        for row in rows:
            if pdf.get_y() + self.DATA_ROW_HEIGHT > self.PAGE_HEIGHT - self.FOOTER_SPACE:
                pdf.add_page()
                self._draw_table_header(pdf)
            self._draw_row(pdf, row)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        pdf.output(str(output_path))
        logger.info(f"PDF report saved: {output_path}")

    def _draw_table_header(self, pdf: BreakReportPdf) -> None:
        pdf.set_font(pdf.font_family_name, '', 9)
        pdf.set_fill_color(*self.COLORS['header'])
        pdf.set_text_color(*self.COLORS['white'])
        pdf.set_x(self.MARGIN)
        for title, width in self.COLUMNS:
            pdf.cell(width, self.HEADER_ROW_HEIGHT, title, border=1, align='C', fill=True)
        pdf.ln(self.HEADER_ROW_HEIGHT)
        pdf.set_text_color(0, 0, 0)

    def _draw_row(self, pdf: BreakReportPdf, row: DailyBreakReportRow) -> None:
        values = self.get_row_values(row)
        pdf.set_font(pdf.font_family_name, '', 9)
        pdf.set_x(self.MARGIN)

        for idx, ((_, width), text) in enumerate(zip(self.COLUMNS, values)):
            fill_rgb = self._get_cell_fill(idx, row)
            if fill_rgb:
                pdf.set_fill_color(*fill_rgb)
            pdf.cell(
                width, self.DATA_ROW_HEIGHT, text,
                border=1,
                align='L' if idx < 2 else 'C',
                fill=fill_rgb is not None
            )
        pdf.ln(self.DATA_ROW_HEIGHT)

    @staticmethod
    def get_row_values(row: DailyBreakReportRow) -> List[str]:
        """Cell texts for one report row, in column order."""
        def yes_no(flag: bool) -> str:
            return "Yes" if flag else "No"

        return [
            row.full_name,
            row.team or "",
            str(row.normal_break_minutes),
            str(row.meeting_break_minutes),
            str(row.total_break_minutes),
            str(row.break_count),
            yes_no(row.exceeded_daily_limit),
            yes_no(row.has_long_break),
            yes_no(row.has_auto_idle),
            str(row.justified_count),
            row.level.value.upper(),
        ]

    def _get_cell_fill(self, column_index: int, row: DailyBreakReportRow) -> Optional[Tuple[int, int, int]]:
        """Fill color for a cell, or None for no fill."""
        if column_index == len(self.COLUMNS) - 1:
            return self.COLORS[self.LEVEL_COLORS[row.level]]
        if column_index == 6 and row.exceeded_daily_limit:
            return self.COLORS['red']
        if column_index == 7 and row.has_long_break:
            return self.COLORS['red']
        return None


# ==============================================================================
# Utility Functions
# ==============================================================================
def format_report_filename(pattern: str, day: date) -> str:
    """Format filename pattern with {date}, {year}, {month} and {day} placeholders."""
    return pattern.format(
        date=day.isoformat(),
        year=day.year,
        month=f"{day.month:02d}",
        day=f"{day.day:02d}"
    )
