"""
Activity Routes
Courses and events certificates are issued for
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from certi.auth import require_permission
from certi.responses import success_response, created_response
from certi.schemas.activity import (
    CreateActivityRequest,
    UpdateActivityRequest,
    ToggleActivityStatusRequest,
    ActivityResponse,
)
from certi.schemas.common import ActivityType
from certi.services.activity_service import activity_service

router = APIRouter()


def _activity(activity: dict) -> dict:
    return ActivityResponse.model_validate(activity).model_dump()


@router.get("")
async def list_activities(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    type: Optional[ActivityType] = Query(None),
    is_active: Optional[bool] = Query(None),
    current_user: dict = Depends(require_permission("activities.read"))
):
    result = await activity_service.list_activities(
        page, per_page, search, type.value if type else None, is_active
    )
    return success_response(
        {"activities": [_activity(a) for a in result["activities"]], "pagination": result["pagination"]},
        "Activities retrieved successfully"
    )


@router.get("/list")
async def list_all_activities(current_user: dict = Depends(require_permission("activities.read"))):
    """Unpaginated activities for select boxes"""
    activities = await activity_service.all_activities()
    return success_response({"activities": [_activity(a) for a in activities]}, "Activities retrieved successfully")


@router.get("/{activity_id}")
async def get_activity(activity_id: UUID, current_user: dict = Depends(require_permission("activities.read"))):
    activity = await activity_service.get_activity(str(activity_id))
    return success_response({"activity": _activity(activity)}, "Activity retrieved successfully")


@router.post("")
async def create_activity(
    request: CreateActivityRequest,
    current_user: dict = Depends(require_permission("activities.create"))
):
    activity = await activity_service.create_activity(request)
    return created_response({"activity": _activity(activity)}, "Activity created successfully")


@router.put("/{activity_id}")
async def update_activity(
    activity_id: UUID,
    request: UpdateActivityRequest,
    current_user: dict = Depends(require_permission("activities.update"))
):
    activity = await activity_service.update_activity(str(activity_id), request)
    return success_response({"activity": _activity(activity)}, "Activity updated successfully")


@router.delete("/{activity_id}")
async def delete_activity(activity_id: UUID, current_user: dict = Depends(require_permission("activities.delete"))):
    await activity_service.delete_activity(str(activity_id))
    return success_response(None, "Activity deleted successfully")


@router.patch("/{activity_id}/toggle-status")
async def toggle_activity_status(
    activity_id: UUID,
    request: Optional[ToggleActivityStatusRequest] = Body(None),
    current_user: dict = Depends(require_permission("activities.update"))
):
    activity = await activity_service.toggle_status(str(activity_id), request.is_active if request else None)
    state = "activated" if activity["is_active"] else "deactivated"
    return success_response({"activity": _activity(activity)}, f"Activity {state} successfully")


@router.get("/{activity_id}/certificates")
async def activity_certificates(
    activity_id: UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: dict = Depends(require_permission("activities.read"))
):
    result = await activity_service.get_certificates(str(activity_id), page, per_page)
    return success_response(result, "Certificates retrieved successfully")
