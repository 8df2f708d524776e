"""
projectintel/features/imports/normalizer.py

Maps one raw spreadsheet row (header -> cell value) to a canonical
ProjectRecord.

Rules:
- Only the canonical headers below are read; anything else is ignored.
- Strings are trimmed and empty strings become None.
- Date columns accept datetime cells, spreadsheet serial numbers or
  parseable date strings; anything else becomes None.
- The sector is always derived from the industry column.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

from projectintel.features.imports.sector_mapper import map_industry_to_sector
from projectintel.models.project import ProjectRecord


COLUMN_MAPPING: Dict[str, str] = {
    "P-Code": "project_code",
    "Project Title": "project_title",
    "Industry": "industry_raw",
    "Project Value": "project_value",
    "Status of the Project": "status",
    "Product": "product",
    "Country": "country",
    "State": "state",
    "City": "city",
    "Capacity": "capacity",
    "Place of Work": "place_of_work",
    "Project Details": "project_details",
    "Contact Details": "contact_details",
    "Contractor": "contractor",
    "Constructor": "constructor",
    "Architect": "architect",
    "Updated Date": "updated_date",
    "EDC": "expected_completion_date",
}

DATE_FIELDS = frozenset({"updated_date", "expected_completion_date"})

# Serial 1 is 1900-01-01; the 1900 leap-year artifact is kept as-is
SPREADSHEET_EPOCH = datetime(1900, 1, 1, tzinfo=timezone.utc)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%B %d, %Y",
    "%B %d %Y",
)


def normalize_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Numeric cells such as project codes come back as floats
        value = int(value)
    text = str(value).strip()
    return text or None


def _parse_date_string(text: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Any) -> Optional[datetime]:
    """Best-effort date parsing; unparseable input yields None, never an error."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return SPREADSHEET_EPOCH + timedelta(days=value - 1)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return _parse_date_string(text)
    return None


def is_blank_row(row: Mapping[str, Any]) -> bool:
    """True when every mapped column of the row is empty."""
    return all(
        row.get(header) is None or str(row.get(header)).strip() == ""
        for header in COLUMN_MAPPING
    )


def normalize_row(raw_row: Mapping[str, Any], source_month: str) -> ProjectRecord:
    values: Dict[str, Any] = {}
    for header, field in COLUMN_MAPPING.items():
        cell = raw_row.get(header)
        if field in DATE_FIELDS:
            values[field] = parse_date(cell)
        else:
            values[field] = normalize_string(cell)

    values["sector"] = map_industry_to_sector(values["industry_raw"])
    values["source_month"] = source_month
    values["is_active"] = True
    return ProjectRecord(**values)
