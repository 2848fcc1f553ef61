"""
Spreadsheet and PDF renderings of admission records.

Column sets and their order are the contract with the people opening
these files; cell styling and page layout are not.
"""
from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import pandas as pd
from django.utils import timezone
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from records.models import CODE_FIELDS, PROC_FIELDS, SDX_FIELDS
from records.services.stats import count_codes, classify_department, record_status

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
SHEET_NAME = 'Patient Records'

WORKBOOK_COLUMNS = (
    'AN', 'name', 'dob', 'sex', 'dateadm', 'timeadm', 'datedsc', 'timedsc',
    'age', 'ageday', 'cc', 'pi', 'ph', 'fh', 'patient_examine',
    'bt', 'pr', 'rr', 'bp', 'o2',
    'pre_diagnosis', 'reason_for_admit', 'treatment_plan', 'pdx',
) + SDX_FIELDS + PROC_FIELDS + ('drg', 'rw', 'wtlos', 'adjrw', 'lengthofstay')

COLUMN_WIDTHS = {
    'AN': 12, 'name': 25, 'dob': 12, 'sex': 6, 'dateadm': 17, 'timeadm': 10,
    'datedsc': 17, 'timedsc': 10, 'age': 6, 'ageday': 8, 'cc': 20,
    'pi': 30, 'ph': 30, 'fh': 30, 'patient_examine': 40,
    'pre_diagnosis': 30, 'reason_for_admit': 30, 'treatment_plan': 40,
    'lengthofstay': 12,
}
DEFAULT_WIDTH = 10


def _cell(value):
    if value is None:
        return ''
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.strftime('%Y-%m-%d %H:%M')
    if isinstance(value, date):
        return value.isoformat()
    return value


def workbook_row(patient) -> dict:
    row = {}
    for column in WORKBOOK_COLUMNS:
        attr = 'an' if column == 'AN' else column
        row[column] = _cell(getattr(patient, attr, None))
    return row


def build_patient_workbook(patients: Iterable) -> bytes:
    """One worksheet, one row per patient, columns in ``WORKBOOK_COLUMNS`` order."""
    frame = pd.DataFrame([workbook_row(p) for p in patients], columns=list(WORKBOOK_COLUMNS))
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine='openpyxl') as writer:
        frame.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        sheet = writer.sheets[SHEET_NAME]
        for idx, column in enumerate(WORKBOOK_COLUMNS, start=1):
            sheet.column_dimensions[get_column_letter(idx)].width = COLUMN_WIDTHS.get(column, DEFAULT_WIDTH)
    return buf.getvalue()


@dataclass
class CodingRow:
    patient_name: str
    an: str
    date_of_service: Optional[datetime]
    department: str
    status: str
    code_count: int
    confidences: list[float] = field(default_factory=list)

    @property
    def avg_confidence(self) -> Optional[float]:
        if not self.confidences:
            return None
        return sum(self.confidences) / len(self.confidences)


# Columns coding_rows reads; the report query loads only these
REPORT_FIELDS = ('name', 'an', 'dateadm', 'datedsc') + CODE_FIELDS


def coding_rows(patients: Iterable) -> list[CodingRow]:
    """Report rows derived from stored records.

    Stored records carry no per-code confidence, so ``confidences`` stays
    empty and the report prints ``-`` in that column.
    """
    return [
        CodingRow(
            patient_name=p.name or 'Unknown Patient',
            an=p.an or 'N/A',
            date_of_service=p.dateadm,
            department=classify_department(p.pdx),
            status=record_status(p),
            code_count=count_codes(p),
        )
        for p in patients
    ]


PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 1.5 * cm
ROW_HEIGHT = 0.6 * cm
HEADER_BLOCK = 4.2 * cm
TABLE_HEADINGS = ('Patient Name', 'AN', 'Date of Service', 'Department', 'Status', 'Codes', 'Confidence')
# x offsets from the left margin, in cm
TABLE_COLUMNS_CM = (0, 4.6, 7.6, 10.2, 13.0, 15.2, 16.4)
CELL_PADDING = 0.1 * cm
BODY_FONT = ('Helvetica', 8)


def column_widths() -> tuple[float, ...]:
    """Usable width of each table column in points, padding excluded."""
    edges = [x * cm for x in TABLE_COLUMNS_CM] + [PAGE_WIDTH - 2 * MARGIN]
    return tuple(right - left - 2 * CELL_PADDING for left, right in zip(edges, edges[1:]))


def clip(text: str, width: float, font: str = BODY_FONT[0], size: float = BODY_FONT[1]) -> str:
    """Cut ``text`` so it fits in ``width`` points."""
    while text and stringWidth(text, font, size) > width:
        text = text[:-1]
    return text


def rows_per_page(first: bool) -> int:
    usable = PAGE_HEIGHT - 2 * MARGIN - 1 * cm
    if first:
        usable -= HEADER_BLOCK
    # one row is taken by the table heading
    return int(usable // ROW_HEIGHT) - 1


def paginate(rows: Sequence[CodingRow]) -> list[list[CodingRow]]:
    first = rows_per_page(first=True)
    rest = rows_per_page(first=False)
    pages = [list(rows[:first])]
    remaining = rows[first:]
    for start in range(0, len(remaining), rest):
        pages.append(list(remaining[start:start + rest]))
    return pages


def overall_completeness(stats: dict) -> float:
    total = stats['summary']['totalPatients']
    if not total:
        return 0
    coded = sum(d['count'] * d['codingCompleteness'] / 100 for d in stats['departments'])
    return coded / total * 100


def row_cells(row: CodingRow) -> tuple[str, ...]:
    """Table cells for one report row, each clipped to its column."""
    when = row.date_of_service
    if isinstance(when, datetime) and timezone.is_aware(when):
        when = timezone.localtime(when)
    avg = row.avg_confidence
    cells = (
        row.patient_name,
        row.an,
        when.strftime('%b %d, %Y') if when else '',
        row.department,
        row.status,
        str(row.code_count),
        f"{round(avg * 100)}%" if avg is not None else '-',
    )
    return tuple(clip(text, width) for text, width in zip(cells, column_widths()))


def _draw_table_heading(c: canvas.Canvas, y: float) -> float:
    c.setFillColor(colors.HexColor('#14b8a6'))
    c.rect(MARGIN, y - 0.15 * cm, PAGE_WIDTH - 2 * MARGIN, ROW_HEIGHT, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont('Helvetica-Bold', 9)
    for heading, x in zip(TABLE_HEADINGS, TABLE_COLUMNS_CM):
        c.drawString(MARGIN + x * cm + CELL_PADDING, y, heading)
    c.setFillColor(colors.black)
    return y - ROW_HEIGHT


def build_coding_report_pdf(rows: Sequence[CodingRow], stats: dict,
                            generated_at: Optional[datetime] = None) -> bytes:
    """Paginated coding report with a summary header and page footers."""
    generated_at = generated_at or timezone.now()
    if timezone.is_aware(generated_at):
        generated_at = timezone.localtime(generated_at)
    summary = stats['summary']
    codes = stats['codes']
    pages = paginate(rows)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle('Patient Coding Report')
    for page_no, page_rows in enumerate(pages, start=1):
        y = PAGE_HEIGHT - MARGIN
        if page_no == 1:
            c.setFont('Helvetica-Bold', 18)
            c.drawString(MARGIN, y - 0.4 * cm, 'Patient Coding Report')
            y -= 1.4 * cm
            c.setFont('Helvetica', 10)
            c.setFillColor(colors.HexColor('#64748b'))
            lines = (
                f"Generated: {generated_at.strftime('%b %d, %Y %H:%M')}",
                f"Total Records: {summary['totalPatients']}",
                f"Pending: {summary['pendingCount']} | In Review: {summary['inReviewCount']}"
                f" | Completed: {summary['completedCount']}",
                f"Coding Completeness: {overall_completeness(stats):.1f}%"
                f" | Avg Codes/Record: {codes['avgCodesPerPatient']:.1f}",
            )
            for line in lines:
                c.drawString(MARGIN, y, line)
                y -= 0.6 * cm
            c.setFillColor(colors.black)
            c.setLineWidth(0.5)
            c.line(MARGIN, y, PAGE_WIDTH - MARGIN, y)
            y -= 0.6 * cm

        y = _draw_table_heading(c, y)
        c.setFont(*BODY_FONT)
        for i, row in enumerate(page_rows):
            if i % 2:
                c.setFillColor(colors.HexColor('#f1f5f9'))
                c.rect(MARGIN, y - 0.15 * cm, PAGE_WIDTH - 2 * MARGIN, ROW_HEIGHT, stroke=0, fill=1)
                c.setFillColor(colors.black)
            for text, x in zip(row_cells(row), TABLE_COLUMNS_CM):
                c.drawString(MARGIN + x * cm + CELL_PADDING, y, text)
            y -= ROW_HEIGHT

        c.setFont('Helvetica', 8)
        c.setFillColor(colors.grey)
        c.drawCentredString(PAGE_WIDTH / 2, 1 * cm, f"Page {page_no} of {len(pages)}")
        c.setFillColor(colors.black)
        c.showPage()
    c.save()
    return buf.getvalue()

