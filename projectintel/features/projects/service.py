"""
projectintel/features/projects/service.py

Project listing for administrators and subscribers.
"""

import math
from typing import Any, Dict, Optional

from projectintel.core.errors import NotFoundError
from projectintel.features.entitlements.service import require_access
from projectintel.features.projects.access import authorize_record, filter_records
from projectintel.features.projects.repository import SqlProjectRepository
from projectintel.models.master_data import name_key
from projectintel.models.project import ProjectRecord


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def list_projects(
    filters: Optional[Dict[str, Any]] = None,
    *,
    page: int = 1,
    limit: int = 50,
    repository: Optional[Any] = None,
) -> Dict[str, Any]:
    """Admin listing: every active record matching the filters, paged."""
    repo = repository or SqlProjectRepository()
    projects, total = repo.list_projects(filters, page=page, limit=limit)
    return {"projects": projects, "pagination": _pagination(page, limit, total)}


def list_projects_for_subscriber(
    subscription: Any,
    filters: Optional[Dict[str, Any]] = None,
    *,
    page: int = 1,
    limit: int = 50,
    repository: Optional[Any] = None,
) -> Dict[str, Any]:
    """Subscriber listing: entitlement filter first, then paging."""
    repo = repository or SqlProjectRepository()
    visible = filter_records(subscription, repo.iter_active(filters))
    start = (page - 1) * limit
    return {
        "projects": visible[start:start + limit],
        "pagination": _pagination(page, limit, len(visible)),
    }


def list_projects_in_scope(
    subscription: Any,
    *,
    state: Optional[str] = None,
    sector: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
    repository: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Entitled records for one state or one sector.

    The whole scope must be covered by the subscription; a partial grant is
    refused rather than silently narrowed. Names match case-insensitively.

    Raises:
        AuthorizationDenied: with code insufficient_state_access or
            insufficient_sector_access
    """
    require_access(
        subscription,
        required_states=[state] if state else (),
        required_sectors=[sector] if sector else (),
    )
    repo = repository or SqlProjectRepository()
    records = [
        r for r in filter_records(subscription, repo.iter_active())
        if (state is None or name_key(r.state or "") == name_key(state))
        and (sector is None or name_key(r.sector) == name_key(sector))
    ]
    start = (page - 1) * limit
    return {
        "projects": records[start:start + limit],
        "pagination": _pagination(page, limit, len(records)),
    }


def get_project_for_subscriber(
    subscription: Any,
    project_code: str,
    *,
    repository: Optional[Any] = None,
) -> ProjectRecord:
    """
    Single-record lookup with authorization.
    
    Raises:
        NotFoundError: if no active record has this code
        AuthorizationDenied: if the record is outside the subscription
    """
    repo = repository or SqlProjectRepository()
    record = repo.find_by_code(project_code)
    if record is None or not record.is_active:
        raise NotFoundError("Project not found")
    return authorize_record(subscription, record)


def get_filter_options(*, repository: Optional[Any] = None) -> Dict[str, Any]:
    repo = repository or SqlProjectRepository()
    return repo.filter_options()
