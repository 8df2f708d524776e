"""
projectintel/features/projects/repository.py

Persistence for the project master set.

Every write runs in its own transaction so that a failing row never rolls
back rows written before it. Storage errors surface as PersistenceError.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select, insert, update, func, distinct
from sqlalchemy.exc import SQLAlchemyError

from projectintel.core.database import get_db_session, project_master
from projectintel.core.errors import PersistenceError
from projectintel.models.project import ProjectRecord
from projectintel.models.timestamps import as_utc, utc_now


logger = logging.getLogger(__name__)

# Filter names accepted by list_projects, mapped to columns
FILTER_COLUMNS = {
    "sector": project_master.c.sector,
    "state": project_master.c.state,
    "status": project_master.c.status,
    "source_month": project_master.c.source_month,
}


def _filter_conditions(filters: Optional[Dict[str, Any]], active_only: bool) -> List[Any]:
    """
    WHERE clauses for the named filters.

    A scalar value is an equality match, a list or tuple is an IN match.
    None and empty lists are ignored.
    """
    conditions = []
    if active_only:
        conditions.append(project_master.c.is_active.is_(True))
    for name, value in (filters or {}).items():
        if name not in FILTER_COLUMNS or value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            values = [v for v in value if v is not None]
            if values:
                conditions.append(FILTER_COLUMNS[name].in_(values))
        else:
            conditions.append(FILTER_COLUMNS[name] == value)
    return conditions


def project_from_row(row) -> ProjectRecord:
    values = {name: getattr(row, name) for name in ProjectRecord.model_fields}
    for name in ("updated_date", "expected_completion_date", "created_at", "updated_at"):
        values[name] = as_utc(values[name])
    values["is_active"] = bool(values["is_active"])
    return ProjectRecord(**values)


class SqlProjectRepository:
    """Project master set stored in the project_master table."""

    def find_by_code(self, project_code: str) -> Optional[ProjectRecord]:
        try:
            with get_db_session() as session:
                row = session.execute(
                    select(project_master).where(project_master.c.project_code == project_code)
                ).first()
                return project_from_row(row) if row else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database error: {exc.__class__.__name__}: {exc}") from exc

    def insert(self, record: ProjectRecord) -> None:
        try:
            with get_db_session() as session:
                session.execute(insert(project_master).values(**record.to_values()))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database error: {exc.__class__.__name__}: {exc}") from exc

    def update(self, record: ProjectRecord) -> None:
        """Overwrite every field of the record with the same project_code."""
        try:
            with get_db_session() as session:
                result = session.execute(
                    update(project_master)
                    .where(project_master.c.project_code == record.project_code)
                    .values(**record.to_values(), updated_at=utc_now())
                )
                if result.rowcount == 0:
                    raise PersistenceError(f"Project {record.project_code} disappeared during update")
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database error: {exc.__class__.__name__}: {exc}") from exc

    def count(self) -> int:
        with get_db_session() as session:
            return session.execute(select(func.count()).select_from(project_master)).scalar() or 0

    def list_projects(
        self,
        filters: Optional[Dict[str, Any]] = None,
        *,
        page: int = 1,
        limit: int = 50,
        active_only: bool = True,
    ) -> Tuple[List[ProjectRecord], int]:
        """Return (page of records, total matching), newest update first."""
        conditions = _filter_conditions(filters, active_only)
        with get_db_session() as session:
            total = session.execute(
                select(func.count()).select_from(project_master).where(*conditions)
            ).scalar() or 0
            rows = session.execute(
                select(project_master)
                .where(*conditions)
                .order_by(project_master.c.updated_at.desc(), project_master.c.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
        return [project_from_row(r) for r in rows], total

    def iter_active(self, filters: Optional[Dict[str, Any]] = None) -> List[ProjectRecord]:
        """All active records matching the filters, newest update first."""
        conditions = _filter_conditions(filters, active_only=True)
        with get_db_session() as session:
            rows = session.execute(
                select(project_master)
                .where(*conditions)
                .order_by(project_master.c.updated_at.desc(), project_master.c.id.desc())
            ).all()
        return [project_from_row(r) for r in rows]

    def filter_options(self) -> Dict[str, List[str]]:
        options: Dict[str, List[str]] = {}
        with get_db_session() as session:
            for key, column in (
                ("sectors", project_master.c.sector),
                ("states", project_master.c.state),
                ("statuses", project_master.c.status),
                ("months", project_master.c.source_month),
            ):
                values = session.execute(
                    select(distinct(column))
                    .where(project_master.c.is_active.is_(True))
                    .where(column.is_not(None))
                    .order_by(column)
                ).scalars().all()
                options[key] = list(values)
        return options
