"""
Role Management Routes
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from certi.auth import require_permission
from certi.responses import success_response, created_response
from certi.schemas.role import (
    CreateRoleRequest,
    UpdateRoleRequest,
    RolePermissionsRequest,
    CloneRoleRequest,
    RoleResponse,
)
from certi.services.permission_service import permission_service
from certi.services.role_service import role_service

router = APIRouter()


def _role(role: dict) -> dict:
    return RoleResponse.model_validate(role).model_dump()


@router.get("")
async def list_roles(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    current_user: dict = Depends(require_permission("roles.read"))
):
    result = await role_service.list_roles(page, per_page, search)
    return success_response(
        {"roles": [_role(r) for r in result["roles"]], "pagination": result["pagination"]},
        "Roles retrieved successfully"
    )


@router.get("/available-permissions")
async def available_permissions(current_user: dict = Depends(require_permission("roles.read"))):
    """All permissions grouped by module prefix"""
    return success_response(
        {"permissions": await permission_service.grouped_permissions()},
        "Permissions retrieved successfully"
    )


@router.get("/{role_id}")
async def get_role(role_id: UUID, current_user: dict = Depends(require_permission("roles.read"))):
    role = await role_service.get_role(str(role_id))
    users = await role_service.get_role_users(str(role_id))
    return success_response({"role": _role(role), "users": users}, "Role retrieved successfully")


@router.post("")
async def create_role(request: CreateRoleRequest, current_user: dict = Depends(require_permission("roles.create"))):
    role = await role_service.create_role(request)
    return created_response({"role": _role(role)}, "Role created successfully")


@router.put("/{role_id}")
async def update_role(
    role_id: UUID,
    request: UpdateRoleRequest,
    current_user: dict = Depends(require_permission("roles.update"))
):
    role = await role_service.update_role(str(role_id), request)
    return success_response({"role": _role(role)}, "Role updated successfully")


@router.delete("/{role_id}")
async def delete_role(role_id: UUID, current_user: dict = Depends(require_permission("roles.delete"))):
    await role_service.delete_role(str(role_id))
    return success_response(None, "Role deleted successfully")


@router.post("/{role_id}/assign-permissions")
async def assign_permissions(
    role_id: UUID,
    request: RolePermissionsRequest,
    current_user: dict = Depends(require_permission("permissions.assign"))
):
    """Replace the role's permissions with the given set, or add to it when ``sync`` is false"""
    await role_service.get_role(str(role_id))
    if request.sync:
        await role_service.sync_permissions(str(role_id), request.permissions)
    else:
        await role_service.give_permissions(str(role_id), request.permissions)
    role = await role_service.get_role(str(role_id))
    return success_response({"role": _role(role)}, "Permissions assigned successfully")


@router.delete("/{role_id}/remove-permissions")
async def remove_permissions(
    role_id: UUID,
    request: RolePermissionsRequest,
    current_user: dict = Depends(require_permission("permissions.assign"))
):
    await role_service.get_role(str(role_id))
    await role_service.revoke_permissions(str(role_id), request.permissions)
    role = await role_service.get_role(str(role_id))
    return success_response({"role": _role(role)}, "Permissions removed successfully")


@router.post("/{role_id}/clone")
async def clone_role(
    role_id: UUID,
    request: CloneRoleRequest,
    current_user: dict = Depends(require_permission("roles.create"))
):
    role = await role_service.clone_role(str(role_id), request.name, request.description)
    return created_response({"role": _role(role)}, "Role cloned successfully")
