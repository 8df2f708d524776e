"""Workbook export of entitled projects."""
from datetime import datetime, timezone
from io import BytesIO

from openpyxl import load_workbook

from projectintel.features.projects.export import EXPORT_COLUMNS, build_workbook, collect_export_records
from projectintel.models.project import ProjectRecord
from projectintel.models.subscription import Entitlement
from projectintel.tests.mocks import InMemoryProjectRepository


def _record(code, state, sector="Industrial", month="Jan-2025", **extra):
    return ProjectRecord(project_code=code, state=state, sector=sector, source_month=month, **extra)


def _repo(*records):
    repo = InMemoryProjectRepository()
    for record in records:
        repo.insert(record)
    return repo


def test_sheet_layout_and_cell_values():
    record = _record(
        "P1",
        "Goa",
        project_title="Cement plant",
        updated_date=datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc),
    )
    sheet = load_workbook(BytesIO(build_workbook([record]))).active

    header, row = list(sheet.iter_rows(values_only=True))
    assert sheet.title == "Projects"
    assert list(header) == [h for _, h in EXPORT_COLUMNS]
    values = dict(zip(header, row))
    assert values["Project Code"] == "P1"
    assert values["Updated Date"] == datetime(2025, 3, 4, 10, 0)
    assert values["Source Month"] == "Jan-2025"
    assert values["City"] in (None, "")
    assert sheet.column_dimensions["A"].width == 15


def test_collect_narrows_to_entitlement_after_selection():
    repo = _repo(
        _record("K1", "Karnataka"),
        _record("K2", "Karnataka", sector="Government"),
        _record("K3", "Karnataka", month="Feb-2025"),
        _record("G1", "Goa"),
    )
    grant = Entitlement(allowed_states=("Karnataka",), allowed_sectors=("Industrial",))

    assert [r.project_code for r in collect_export_records(grant, repository=repo)] == ["K1", "K3"]
    selected = collect_export_records(grant, months=["Feb-2025"], repository=repo)
    assert [r.project_code for r in selected] == ["K3"]


def test_collect_with_no_sector_grant_is_empty():
    repo = _repo(_record("K1", "Karnataka"))
    grant = Entitlement(is_pan_india=True, allowed_sectors=())
    assert collect_export_records(grant, repository=repo) == []
