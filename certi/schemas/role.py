"""
Role and Permission Request/Response Models
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

PERMISSION_PATTERN = r"^[a-z_]+\.[a-z_]+$"


class CreateRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=125)
    description: Optional[str] = Field(default=None, max_length=1000)
    permissions: List[str] = Field(default_factory=list)


class UpdateRoleRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=125)
    description: Optional[str] = Field(default=None, max_length=1000)
    permissions: Optional[List[str]] = None


class RolePermissionsRequest(BaseModel):
    """Permission names to sync onto or remove from a role"""
    permissions: List[str] = Field(..., min_length=1)
    sync: bool = Field(default=True, description="Replace the current set; false only adds")


class CloneRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=125)
    description: Optional[str] = Field(default=None, max_length=1000)


class CreatePermissionRequest(BaseModel):
    name: str = Field(..., pattern=PERMISSION_PATTERN, max_length=125, description="<module>.<action>")


class BulkPermissionsRequest(BaseModel):
    permissions: List[CreatePermissionRequest] = Field(..., min_length=1)


class UpdatePermissionRequest(BaseModel):
    name: str = Field(..., pattern=PERMISSION_PATTERN, max_length=125)


class PermissionResponse(BaseModel):
    id: UUID
    name: str
    guard_name: str = "web"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    guard_name: str = "web"
    permissions: List[str] = Field(default_factory=list)
    users_count: int = 0
    is_system: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
