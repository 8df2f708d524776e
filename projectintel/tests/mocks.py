from datetime import datetime, timezone
from io import BytesIO
from typing import Dict, Iterable, List, Optional, Sequence

from openpyxl import Workbook

from projectintel.core.errors import PersistenceError
from projectintel.features.imports.normalizer import COLUMN_MAPPING
from projectintel.models.master_data import RegistrySnapshot, name_key
from projectintel.models.project import ProjectRecord


HEADERS = list(COLUMN_MAPPING)


class FakeRegistry:
    """Registry with fixed active states/sectors; counts snapshot calls."""

    def __init__(self, states: Sequence[str] = ("Karnataka", "Kerala"), sectors: Sequence[str] = ("Industrial", "Residential & Commercial", "Government")):
        self.states = list(states)
        self.sectors = list(sectors)
        self.snapshot_calls = 0

    def snapshot(self) -> RegistrySnapshot:
        self.snapshot_calls += 1
        return RegistrySnapshot(
            state_names=tuple(self.states),
            sector_names=tuple(self.sectors),
            taken_at=datetime.now(timezone.utc),
        )

    def _resolve(self, names, active):
        lookup = {name_key(n): n for n in active}
        resolved, unknown = [], []
        for raw in names:
            match = lookup.get(name_key(raw))
            if match is None:
                unknown.append(raw)
            elif match not in resolved:
                resolved.append(match)
        return resolved, unknown

    def active_sector_names(self):
        return list(self.sectors)

    def resolve_state_names(self, names):
        return self._resolve(names, self.states)

    def resolve_sector_names(self, names):
        return self._resolve(names, self.sectors)


class InMemoryProjectRepository:
    """Dict-backed project master set; codes in `failing_codes` raise on write."""

    def __init__(self, failing_codes: Iterable[str] = ()):
        self.records: Dict[str, ProjectRecord] = {}
        self.failing_codes = set(failing_codes)
        self.writes: List[str] = []
        self.on_write = None

    def _maybe_fail(self, record: ProjectRecord) -> None:
        if record.project_code in self.failing_codes:
            raise PersistenceError(f"Database error: write refused for {record.project_code}")

    def find_by_code(self, project_code: str) -> Optional[ProjectRecord]:
        return self.records.get(project_code)

    def insert(self, record: ProjectRecord) -> None:
        self._maybe_fail(record)
        if record.project_code in self.records:
            raise PersistenceError("Database error: duplicate project code")
        self.records[record.project_code] = record
        self.writes.append(f"insert:{record.project_code}")
        if self.on_write:
            self.on_write(record)

    def update(self, record: ProjectRecord) -> None:
        self._maybe_fail(record)
        self.records[record.project_code] = record
        self.writes.append(f"update:{record.project_code}")
        if self.on_write:
            self.on_write(record)

    def iter_active(self, filters=None) -> List[ProjectRecord]:
        def matches(record):
            for name, wanted in (filters or {}).items():
                if wanted is None or (isinstance(wanted, (list, tuple)) and not wanted):
                    continue
                allowed = wanted if isinstance(wanted, (list, tuple)) else [wanted]
                if getattr(record, name) not in allowed:
                    return False
            return True

        return [r for r in self.records.values() if r.is_active and matches(r)]


def sheet_row(**fields) -> Dict[str, object]:
    """Raw sheet row keyed by canonical headers, from snake_case field names."""
    reverse = {field: header for header, field in COLUMN_MAPPING.items()}
    return {reverse[k]: v for k, v in fields.items()}


def build_workbook(rows: Sequence[Dict[str, object]], headers: Sequence[str] = HEADERS) -> bytes:
    """Serialize header-keyed rows into .xlsx bytes."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append([row.get(h) for h in headers])
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
