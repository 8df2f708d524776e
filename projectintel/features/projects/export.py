"""
projectintel/features/projects/export.py

Spreadsheet export of the records a subscriber is entitled to.
"""

from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from projectintel.features.projects.access import filter_records
from projectintel.features.projects.repository import SqlProjectRepository
from projectintel.models.project import ProjectRecord


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "Projects"
COLUMN_WIDTH = 15

# (record field, header cell) in sheet order
EXPORT_COLUMNS = (
    ("project_code", "Project Code"),
    ("project_title", "Project Title"),
    ("sector", "Sector"),
    ("state", "State"),
    ("city", "City"),
    ("country", "Country"),
    ("status", "Status"),
    ("project_value", "Project Value"),
    ("product", "Product"),
    ("capacity", "Capacity"),
    ("place_of_work", "Place of Work"),
    ("project_details", "Project Details"),
    ("contact_details", "Contact Details"),
    ("contractor", "Contractor"),
    ("constructor", "Constructor"),
    ("architect", "Architect"),
    ("updated_date", "Updated Date"),
    ("expected_completion_date", "Expected Completion Date"),
    ("source_month", "Source Month"),
)


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime) and value.tzinfo is not None:
        # Excel cells carry no timezone
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def build_workbook(records: Iterable[ProjectRecord]) -> bytes:
    """Render records as a single-sheet .xlsx file, header row first."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append([header for _, header in EXPORT_COLUMNS])
    for record in records:
        sheet.append([_cell(getattr(record, field)) for field, _ in EXPORT_COLUMNS])
    for index in range(1, len(EXPORT_COLUMNS) + 1):
        sheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTH

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d")
    return f"projects_{stamp}.xlsx"


def collect_export_records(
    subscription: Any,
    *,
    months: Optional[Sequence[str]] = None,
    sectors: Optional[Sequence[str]] = None,
    repository: Optional[Any] = None,
) -> List[ProjectRecord]:
    """
    Active records in the selected months and sectors, narrowed to the
    subscription's entitlement. Newest update first.
    """
    repo = repository or SqlProjectRepository()
    filters: Dict[str, Any] = {"source_month": list(months or []), "sector": list(sectors or [])}
    return filter_records(subscription, repo.iter_active(filters))
