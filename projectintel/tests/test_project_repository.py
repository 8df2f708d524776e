"""SqlProjectRepository against SQLite, including the full import path."""
import pytest

from projectintel.core.errors import PersistenceError
from projectintel.features.imports.reconciler import import_workbook
from projectintel.features.master_data.registry import SqlMasterDataRegistry
from projectintel.features.projects.repository import SqlProjectRepository
from projectintel.models.project import ProjectRecord
from projectintel.tests.mocks import build_workbook, sheet_row


def _record(code, **fields):
    values = {"sector": "Industrial", "source_month": "Jan-2025"}
    values.update(fields)
    return ProjectRecord(project_code=code, **values)


def test_insert_then_update_overwrites_fields(sqlite_db):
    repo = SqlProjectRepository()
    repo.insert(_record("P1", project_title="Old", city="Pune"))
    repo.update(_record("P1", project_title="New", source_month="Feb-2025"))

    stored = repo.find_by_code("P1")
    assert stored.project_title == "New"
    assert stored.city is None
    assert stored.source_month == "Feb-2025"
    assert repo.count() == 1


def test_duplicate_insert_is_persistence_error(sqlite_db):
    repo = SqlProjectRepository()
    repo.insert(_record("P1"))
    with pytest.raises(PersistenceError):
        repo.insert(_record("P1"))


def test_update_of_missing_code_is_persistence_error(sqlite_db):
    with pytest.raises(PersistenceError):
        SqlProjectRepository().update(_record("nope"))


def test_list_projects_filters_and_pages(sqlite_db):
    repo = SqlProjectRepository()
    for i in range(5):
        repo.insert(_record(f"P{i}", state="Kerala" if i % 2 else "Goa"))

    page, total = repo.list_projects({"state": "Goa"}, page=1, limit=2)
    assert total == 3
    assert len(page) == 2
    assert all(p.state == "Goa" for p in page)

    options = repo.filter_options()
    assert options["states"] == ["Goa", "Kerala"]
    assert options["months"] == ["Jan-2025"]


def test_list_values_filter_with_in_and_empty_list_is_ignored(sqlite_db):
    repo = SqlProjectRepository()
    for code, state in (("A", "Goa"), ("B", "Kerala"), ("C", "Karnataka")):
        repo.insert(_record(code, state=state))

    selected = repo.iter_active({"state": ["Goa", "Kerala"]})
    assert sorted(r.project_code for r in selected) == ["A", "B"]
    assert len(repo.iter_active({"state": []})) == 3


def test_workbook_import_persists_through_sql(seeded_db):
    repo = SqlProjectRepository()
    data = build_workbook([
        sheet_row(project_code="P1", state="karnataka", industry_raw="Hospital building"),
        sheet_row(project_code="P2", state="Atlantis"),
    ])

    outcome = import_workbook(data, "Mar-2025", registry=SqlMasterDataRegistry(), repository=repo)

    assert (outcome.inserted, outcome.skipped) == (1, 1)
    stored = repo.find_by_code("P1")
    assert stored.state == "Karnataka"
    assert stored.sector == "Government"
    assert stored.source_month == "Mar-2025"
    assert stored.created_at is not None
