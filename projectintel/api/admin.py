"""
Admin-only router.
Requires X-Admin-Key header for all endpoints.

Handles project imports and listing, subscription assignment, the plan
catalog and master data (states / sectors).
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from projectintel.api.dependencies import get_project_repository, get_registry
from projectintel.core.auth import AdminActor, require_admin
from projectintel.core.config import settings
from projectintel.core.errors import PayloadTooLargeError, ValidationError
from projectintel.features.imports.reconciler import import_workbook
from projectintel.features.master_data import service as master_data
from projectintel.features.plans.service import list_plans
from projectintel.features.projects.service import get_filter_options, list_projects
from projectintel.features.subscriptions.service import (
    assign_subscription,
    list_subscription_history,
    summarize_subscription,
)
from projectintel.models.subscription import SubscriptionAssignment

logger = logging.getLogger("projectintel.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"])

EXCEL_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# ============================================================================
# Pydantic Models
# ============================================================================

class AssignSubscriptionRequest(BaseModel):
    """Request to assign a plan to a user."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    plan_id: int = Field(..., alias="planId")
    allowed_states: List[str] = Field(default_factory=list, alias="allowedStates")
    allowed_sectors: Optional[List[str]] = Field(default=None, alias="allowedSectors")
    is_pan_india: bool = Field(default=False, alias="isPanIndia")
    payment_status: str = Field(default="pending", alias="paymentStatus")


class CreateStateRequest(BaseModel):
    name: str
    code: Optional[str] = None


class CreateSectorRequest(BaseModel):
    name: str


class UpdateStateRequest(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None


class UpdateSectorRequest(BaseModel):
    name: Optional[str] = None


# ============================================================================
# Projects
# ============================================================================

@router.post("/projects/import")
def import_projects(
    file: UploadFile = File(...),
    source_month: str = Form(..., alias="sourceMonth"),
    actor: AdminActor = Depends(require_admin),
    registry=Depends(get_registry),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    """Import a project workbook; row failures are reported, never raised."""
    if file.content_type not in EXCEL_MIME_TYPES:
        raise ValidationError("Only Excel files are allowed")

    contents = file.file.read(settings.IMPORT_MAX_FILE_BYTES + 1)
    if len(contents) > settings.IMPORT_MAX_FILE_BYTES:
        raise PayloadTooLargeError(
            f"File size must be less than {settings.IMPORT_MAX_FILE_BYTES // (1024 * 1024)}MB"
        )

    logger.info(
        "admin.import_requested",
        extra={"actor": actor.actor_id, "source_month": source_month, "bytes": len(contents)},
    )
    outcome = import_workbook(contents, source_month, registry=registry, repository=repository)
    return outcome.to_response(settings.IMPORT_MAX_ERRORS_REPORTED)


@router.get("/projects")
def admin_list_projects(
    sector: Optional[str] = None,
    state: Optional[str] = None,
    status: Optional[str] = None,
    month: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    actor: AdminActor = Depends(require_admin),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    page_size = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    result = list_projects(
        {"sector": sector, "state": state, "status": status, "source_month": month},
        page=page,
        limit=page_size,
        repository=repository,
    )
    return {
        "projects": [p.model_dump(mode="json") for p in result["projects"]],
        "pagination": result["pagination"],
    }


@router.get("/projects/filters")
def admin_filter_options(
    actor: AdminActor = Depends(require_admin),
    repository=Depends(get_project_repository),
) -> Dict[str, Any]:
    return get_filter_options(repository=repository)


# ============================================================================
# Subscriptions and plans
# ============================================================================

@router.post("/subscriptions", status_code=201)
def admin_assign_subscription(
    request: AssignSubscriptionRequest,
    actor: AdminActor = Depends(require_admin),
    registry=Depends(get_registry),
) -> Dict[str, Any]:
    subscription = assign_subscription(
        SubscriptionAssignment(
            user_id=request.user_id,
            plan_id=request.plan_id,
            allowed_states=request.allowed_states,
            allowed_sectors=request.allowed_sectors,
            is_pan_india=request.is_pan_india,
            payment_status=request.payment_status,
        ),
        registry=registry,
    )
    logger.info("admin.subscription_assigned", extra={"actor": actor.actor_id, "user_id": request.user_id})
    return {
        "subscriptionId": subscription.subscription_id,
        "userId": subscription.user_id,
        "subscription": summarize_subscription(subscription),
    }


@router.get("/users/{user_id}/subscriptions")
def admin_subscription_history(user_id: str, actor: AdminActor = Depends(require_admin)) -> Dict[str, Any]:
    history = list_subscription_history(user_id)
    return {"subscriptions": [s.model_dump(mode="json") for s in history], "total": len(history)}


@router.get("/plans")
def admin_list_plans(actor: AdminActor = Depends(require_admin)) -> Dict[str, Any]:
    return {"plans": [p.model_dump(mode="json") for p in list_plans(active_only=False)]}


# ============================================================================
# Master data
# ============================================================================

def _parse_active(is_active: Optional[str]) -> Optional[bool]:
    if is_active is None:
        return None
    return is_active.lower() == "true"


@router.get("/states")
def admin_list_states(is_active: Optional[str] = Query(None, alias="isActive"), actor: AdminActor = Depends(require_admin)):
    states = master_data.list_states(_parse_active(is_active))
    return {"success": True, "data": [s.model_dump(mode="json") for s in states], "total": len(states)}


@router.post("/states", status_code=201)
def admin_create_state(request: CreateStateRequest, actor: AdminActor = Depends(require_admin)):
    state = master_data.create_state(request.name, request.code)
    return {"success": True, "message": "State created successfully", "data": state.model_dump(mode="json")}


@router.put("/states/{state_id}")
def admin_update_state(state_id: int, request: UpdateStateRequest, actor: AdminActor = Depends(require_admin)):
    state = master_data.update_state(state_id, request.name, request.code)
    return {"success": True, "message": "State updated successfully", "data": state.model_dump(mode="json")}


@router.put("/states/{state_id}/toggle")
def admin_toggle_state(state_id: int, actor: AdminActor = Depends(require_admin)):
    state = master_data.toggle_state(state_id)
    verb = "activated" if state.is_active else "deactivated"
    return {"success": True, "message": f"State {verb} successfully", "data": state.model_dump(mode="json")}


@router.get("/sectors")
def admin_list_sectors(is_active: Optional[str] = Query(None, alias="isActive"), actor: AdminActor = Depends(require_admin)):
    sectors = master_data.list_sectors(_parse_active(is_active))
    return {"success": True, "data": [s.model_dump(mode="json") for s in sectors], "total": len(sectors)}


@router.post("/sectors", status_code=201)
def admin_create_sector(request: CreateSectorRequest, actor: AdminActor = Depends(require_admin)):
    sector = master_data.create_sector(request.name)
    return {"success": True, "message": "Sector created successfully", "data": sector.model_dump(mode="json")}


@router.put("/sectors/{sector_id}")
def admin_update_sector(sector_id: int, request: UpdateSectorRequest, actor: AdminActor = Depends(require_admin)):
    sector = master_data.update_sector(sector_id, request.name)
    return {"success": True, "message": "Sector updated successfully", "data": sector.model_dump(mode="json")}


@router.put("/sectors/{sector_id}/toggle")
def admin_toggle_sector(sector_id: int, actor: AdminActor = Depends(require_admin)):
    sector = master_data.toggle_sector(sector_id)
    verb = "activated" if sector.is_active else "deactivated"
    return {"success": True, "message": f"Sector {verb} successfully", "data": sector.model_dump(mode="json")}
