"""
User Management Routes
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from certi.auth import require_permission, require_role
from certi.responses import success_response, created_response
from certi.schemas.user import CreateUserRequest, UpdateUserRequest, AssignRolesRequest, UserResponse
from certi.services.role_service import role_service
from certi.services.user_service import user_service

# Account management is reserved to super admins on top of the users.* permissions
router = APIRouter(dependencies=[Depends(require_role("super_admin"))])


def _user(user: dict) -> dict:
    return UserResponse.model_validate(user).model_dump()


@router.get("/available-roles")
async def available_roles(current_user: dict = Depends(require_permission("users.read"))):
    return success_response({"roles": await role_service.all_role_names()}, "Roles retrieved successfully")


@router.get("/list")
async def list_users_simple(
    search: Optional[str] = Query(None),
    current_user: dict = Depends(require_permission("users.read"))
):
    """Active users (id, name, email) for select boxes"""
    return success_response({"users": await user_service.list_simple(search)}, "Users retrieved successfully")


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    current_user: dict = Depends(require_permission("users.read"))
):
    result = await user_service.list_users(page, per_page, search, role, is_active)
    return success_response(
        {"users": [_user(u) for u in result["users"]], "pagination": result["pagination"]},
        "Users retrieved successfully"
    )


@router.get("/{user_id}")
async def get_user(user_id: UUID, current_user: dict = Depends(require_permission("users.read"))):
    user = await user_service.get_user(str(user_id))
    return success_response({"user": _user(user)}, "User retrieved successfully")


@router.post("")
async def create_user(request: CreateUserRequest, current_user: dict = Depends(require_permission("users.create"))):
    """
    Create a user account

    - **password**: optional, a random one is generated when omitted
    - **roles**: role names, defaults to ``usuario_final``
    """
    user = await user_service.create_user(request)
    return created_response({"user": _user(user)}, "User created successfully")


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    current_user: dict = Depends(require_permission("users.update"))
):
    user = await user_service.update_user(str(user_id), request)
    return success_response({"user": _user(user)}, "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(user_id: UUID, current_user: dict = Depends(require_permission("users.delete"))):
    await user_service.delete_user(str(user_id), current_user["id"])
    return success_response(None, "User deleted successfully")


@router.post("/{user_id}/assign-roles")
async def assign_roles(
    user_id: UUID,
    request: AssignRolesRequest,
    current_user: dict = Depends(require_permission("users.assign_roles"))
):
    """Replace the user's roles with the given set"""
    user = await user_service.assign_roles(str(user_id), request.roles)
    return success_response({"user": _user(user)}, "Roles assigned successfully")
