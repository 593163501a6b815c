# Overview: Spreadsheet export of report rows (openpyxl).

from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from carwash.time_utils import utcnow

MAX_COLUMN_WIDTH = 50
MAX_SHEET_TITLE = 31  # Excel limit


def column_widths(rows: list[dict], headers: list[str]) -> list[int]:
    """Width per column: longest cell (or header) + 2, capped at 50."""
    widths = []
    for header in headers:
        longest = max([len(header)] + [len(_display(row.get(header))) for row in rows])
        widths.append(min(longest + 2, MAX_COLUMN_WIDTH))
    return widths


def _display(value) -> str:
    return "" if value is None else str(value)


def _headers(rows: list[dict]) -> list[str]:
    """Union of keys in first-seen order (section rows may have fewer keys)."""
    headers: list[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)
    return headers


def export_filename(base_name: str) -> str:
    return f"{base_name}_{utcnow().strftime('%Y%m%d_%H%M%S')}.xlsx"


def build_workbook(rows: list[dict], sheet_name: str = "Datos") -> Workbook:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name[:MAX_SHEET_TITLE]

    headers = _headers(rows)
    if headers:
        sheet.append(headers)
        for row in rows:
            sheet.append([row.get(header) for header in headers])
        for index, width in enumerate(column_widths(rows, headers), start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width
    return workbook


def export_to_excel(rows: list[dict], base_name: str, sheet_name: str = "Datos") -> tuple[BytesIO, str]:
    """Return (xlsx bytes, download filename)."""
    buffer = BytesIO()
    build_workbook(rows, sheet_name).save(buffer)
    buffer.seek(0)
    return buffer, export_filename(base_name)
