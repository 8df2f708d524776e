"""
projectintel/features/imports/reconciler.py

Bulk reconciliation of uploaded project rows into the master set.

Pipeline: read workbook -> drop blank rows -> normalize -> take one
registry snapshot -> validate and upsert each row in order -> outcome.

Row failures (missing code, unknown state, storage error) are recorded in
the outcome and never abort the batch. Rows are processed strictly in
sheet order by a single writer, so an upsert by project_code cannot race
with another upsert of the same code inside one import.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from projectintel.core.errors import PersistenceError, ReferentialError, ValidationError
from projectintel.core.logging import import_batch_context, log_event
from projectintel.features.imports.normalizer import is_blank_row, normalize_row
from projectintel.features.imports.reader import SheetRow, read_workbook
from projectintel.models.import_outcome import ImportOutcome
from projectintel.models.master_data import RegistrySnapshot
from projectintel.models.project import ProjectRecord


logger = logging.getLogger(__name__)

MISSING_PROJECT_CODE = "Missing project code"


@dataclass(frozen=True)
class NormalizedRow:
    row_number: int
    record: ProjectRecord


def validate_row(record: ProjectRecord, snapshot: RegistrySnapshot) -> ProjectRecord:
    """
    Check one normalized row against the batch snapshot.
    
    Returns the record with its state in the registry's spelling.
    
    Raises:
        ValidationError: if the project code is missing or blank
        ReferentialError: if the state is not an active registry state
    """
    if not record.project_code or not record.project_code.strip():
        raise ValidationError(MISSING_PROJECT_CODE)

    if record.state:
        canonical = snapshot.match_state(record.state)
        if canonical is None:
            raise ReferentialError(
                f"Invalid state: {record.state}. Please create this state in Settings before importing."
            )
        if canonical != record.state:
            record = record.model_copy(update={"state": canonical})

    return record


def normalize_rows(rows: Iterable[SheetRow], source_month: str) -> List[NormalizedRow]:
    """Normalize sheet rows, silently dropping rows blank in every mapped column."""
    normalized = []
    for row in rows:
        if is_blank_row(row.values):
            continue
        normalized.append(NormalizedRow(row.row_number, normalize_row(row.values, source_month)))
    return normalized


def reconcile_batch(
    rows: Iterable[NormalizedRow],
    snapshot: RegistrySnapshot,
    repository: Any,
    *,
    source_month: Optional[str] = None,
) -> ImportOutcome:
    """
    Validate and upsert normalized rows in order.
    
    The repository needs find_by_code / insert / update and must raise
    PersistenceError for storage failures.
    """
    outcome = ImportOutcome(source_month=source_month)

    for item in rows:
        outcome.total += 1
        code = item.record.project_code

        try:
            record = validate_row(item.record, snapshot)
        except (ValidationError, ReferentialError) as exc:
            outcome.record_error(item.row_number, exc.message, code)
            log_event(
                "warning",
                "import.row_rejected",
                project_code=code,
                event_type="import.row_rejected",
                error_code=exc.code,
                extra={"row": item.row_number, "reason": exc.message},
            )
            continue

        try:
            if repository.find_by_code(record.project_code) is not None:
                repository.update(record)
                outcome.updated += 1
            else:
                repository.insert(record)
                outcome.inserted += 1
        except PersistenceError as exc:
            outcome.record_error(item.row_number, exc.message, code)
            log_event(
                "error",
                "import.row_failed",
                project_code=code,
                event_type="import.row_failed",
                error_code=exc.code,
                extra={"row": item.row_number, "reason": exc.message},
            )

    return outcome


def import_rows(
    rows: Iterable[SheetRow],
    source_month: str,
    *,
    registry: Any,
    repository: Any,
) -> ImportOutcome:
    """Normalize, snapshot the registry once, then reconcile."""
    if not source_month or not str(source_month).strip():
        raise ValidationError("Source month is required")
    source_month = str(source_month).strip()

    with import_batch_context(source_month):
        normalized = normalize_rows(rows, source_month)
        snapshot = registry.snapshot()
        log_event(
            "info",
            "import.started",
            event_type="import.started",
            extra={"rows": len(normalized), "active_states": len(snapshot.state_names)},
        )

        outcome = reconcile_batch(normalized, snapshot, repository, source_month=source_month)

        log_event(
            "info",
            "import.completed",
            event_type="import.completed",
            extra={
                "total": outcome.total,
                "inserted": outcome.inserted,
                "updated": outcome.updated,
                "skipped": outcome.skipped,
            },
        )
    return outcome


def import_workbook(
    file_bytes: bytes,
    source_month: str,
    *,
    registry: Any,
    repository: Any,
) -> ImportOutcome:
    """
    Import one uploaded workbook.
    
    Raises:
        ValidationError: if the source month is missing or the workbook is
            unreadable / empty. Row-level problems never raise.
    """
    if not source_month or not str(source_month).strip():
        raise ValidationError("Source month is required")
    return import_rows(read_workbook(file_bytes), source_month, registry=registry, repository=repository)
