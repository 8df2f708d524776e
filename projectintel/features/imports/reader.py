"""
projectintel/features/imports/reader.py

Reads the first worksheet of an uploaded workbook into header-keyed rows.
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, List

from openpyxl import load_workbook

from projectintel.core.errors import ValidationError


# Spreadsheet row number of the first data row (row 1 holds the headers)
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class SheetRow:
    row_number: int
    values: Dict[str, Any]


def read_workbook(file_bytes: bytes) -> List[SheetRow]:
    """
    Parse workbook bytes into rows keyed by the header row.
    
    Raises:
        ValidationError: if the file cannot be read, or it has no data row
    """
    try:
        workbook = load_workbook(BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as exc:
        raise ValidationError(f"Failed to parse Excel file: {exc}") from exc

    try:
        worksheet = workbook.worksheets[0]
        raw_rows = [list(r) for r in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    if len(raw_rows) < 2:
        raise ValidationError("Excel file must contain at least a header row and one data row")

    headers = [str(h) if h is not None else None for h in raw_rows[0]]
    rows: List[SheetRow] = []
    for offset, raw in enumerate(raw_rows[1:]):
        values = {
            header: raw[i] if i < len(raw) else None
            for i, header in enumerate(headers)
            if header
        }
        rows.append(SheetRow(row_number=offset + FIRST_DATA_ROW, values=values))
    return rows
