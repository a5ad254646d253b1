"""
Permission Management Routes
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from certi.auth import require_permission
from certi.responses import success_response, created_response
from certi.schemas.role import (
    CreatePermissionRequest,
    BulkPermissionsRequest,
    UpdatePermissionRequest,
    PermissionResponse,
)
from certi.services.permission_service import permission_service

router = APIRouter()


def _permission(permission: dict) -> dict:
    return PermissionResponse.model_validate(permission).model_dump()


@router.get("")
async def list_permissions(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    grouped: bool = Query(False, description="Group by module prefix instead of paginating"),
    current_user: dict = Depends(require_permission("permissions.read"))
):
    if grouped:
        return success_response(
            {"permissions": await permission_service.grouped_permissions()},
            "Permissions retrieved successfully"
        )

    result = await permission_service.list_permissions(page, per_page, search)
    return success_response(
        {"permissions": [_permission(p) for p in result["permissions"]], "pagination": result["pagination"]},
        "Permissions retrieved successfully"
    )


@router.get("/by-module")
async def permissions_by_module(current_user: dict = Depends(require_permission("permissions.read"))):
    return success_response(
        {"modules": await permission_service.permissions_by_module()},
        "Permissions retrieved successfully"
    )


@router.get("/{permission_id}")
async def get_permission(permission_id: UUID, current_user: dict = Depends(require_permission("permissions.read"))):
    permission = await permission_service.get_permission(str(permission_id))
    return success_response({"permission": _permission(permission)}, "Permission retrieved successfully")


@router.post("")
async def create_permission(
    request: CreatePermissionRequest,
    current_user: dict = Depends(require_permission("permissions.create"))
):
    permission = await permission_service.create_permission(request.name)
    return created_response({"permission": _permission(permission)}, "Permission created successfully")


@router.post("/bulk")
async def bulk_create_permissions(
    request: BulkPermissionsRequest,
    current_user: dict = Depends(require_permission("permissions.create"))
):
    created = await permission_service.bulk_create([p.name for p in request.permissions])
    return created_response(
        {"permissions": [_permission(p) for p in created], "count": len(created)},
        "Permissions created successfully"
    )


@router.put("/{permission_id}")
async def update_permission(
    permission_id: UUID,
    request: UpdatePermissionRequest,
    current_user: dict = Depends(require_permission("permissions.update"))
):
    permission = await permission_service.update_permission(str(permission_id), request.name)
    return success_response({"permission": _permission(permission)}, "Permission updated successfully")


@router.delete("/{permission_id}")
async def delete_permission(
    permission_id: UUID,
    current_user: dict = Depends(require_permission("permissions.delete"))
):
    await permission_service.delete_permission(str(permission_id))
    return success_response(None, "Permission deleted successfully")
