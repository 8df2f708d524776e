"""
Subscriber-facing routes: own subscription summary and entitled projects.

Every route resolves the caller's active subscription first; an expired
or missing subscription is a 403 with code subscription_expired.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from projectintel.api.dependencies import get_project_repository
from projectintel.core.auth import get_current_user_id
from projectintel.core.config import settings
from projectintel.features.projects.export import (
    XLSX_MEDIA_TYPE,
    build_workbook,
    collect_export_records,
    export_filename,
)
from projectintel.features.projects.service import (
    get_project_for_subscriber,
    list_projects_for_subscriber,
    list_projects_in_scope,
)
from projectintel.features.subscriptions.service import require_active_subscription, summarize_subscription
from projectintel.models.subscription import UserSubscription

logger = logging.getLogger("projectintel.projects")

router = APIRouter(prefix="/api", tags=["projects"])


def get_subscription(user_id: str = Depends(get_current_user_id)) -> UserSubscription:
    return require_active_subscription(user_id)


def _page_size(limit: Optional[int]) -> int:
    return min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)


def _page_body(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "projects": [p.model_dump(mode="json") for p in result["projects"]],
        "pagination": result["pagination"],
    }


@router.get("/subscriptions/me")
def my_subscription(subscription: UserSubscription = Depends(get_subscription)) -> Dict[str, Any]:
    return summarize_subscription(subscription)


@router.get("/projects")
def my_projects(
    sector: Optional[str] = None,
    state: Optional[str] = None,
    status: Optional[str] = None,
    month: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    subscription: UserSubscription = Depends(get_subscription),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    result = list_projects_for_subscriber(
        subscription,
        {"sector": sector, "state": state, "status": status, "source_month": month},
        page=page,
        limit=_page_size(limit),
        repository=repository,
    )
    return _page_body(result)


@router.get("/projects/export")
def export_my_projects(
    months: Optional[List[str]] = Query(None),
    sectors: Optional[List[str]] = Query(None),
    subscription: UserSubscription = Depends(get_subscription),
    repository=Depends(get_project_repository),
) -> Response:
    """Entitled projects as an .xlsx download; repeat months/sectors to select several."""
    records = collect_export_records(subscription, months=months, sectors=sectors, repository=repository)
    logger.info(
        "projects.exported",
        extra={"user_id": subscription.user_id, "event_type": "projects.exported", "count": len(records)},
    )
    return Response(
        content=build_workbook(records),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/projects/{project_code}")
def my_project(
    project_code: str,
    subscription: UserSubscription = Depends(get_subscription),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    record = get_project_for_subscriber(subscription, project_code, repository=repository)
    return record.model_dump(mode="json")


@router.get("/data/state/{state}")
def projects_in_state(
    state: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    subscription: UserSubscription = Depends(get_subscription),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    result = list_projects_in_scope(
        subscription, state=state, page=page, limit=_page_size(limit), repository=repository
    )
    return {"state": state, **_page_body(result)}


@router.get("/data/sector/{sector}")
def projects_in_sector(
    sector: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    subscription: UserSubscription = Depends(get_subscription),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    result = list_projects_in_scope(
        subscription, sector=sector, page=page, limit=_page_size(limit), repository=repository
    )
    return {"sector": sector, **_page_body(result)}
