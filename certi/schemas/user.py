"""
User Request/Response Models
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID


class CreateUserRequest(BaseModel):
    """Administrator-created account"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    birth_date: Optional[date] = None
    country: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_active: bool = True
    roles: List[str] = Field(default_factory=list)


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    birth_date: Optional[date] = None
    country: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None
    roles: Optional[List[str]] = None


class AssignRolesRequest(BaseModel):
    """Role names that replace the user's current roles"""
    roles: List[str] = Field(..., min_length=1)


class UserSummary(BaseModel):
    """User reference embedded in other resources"""
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User details (never includes the password hash)"""
    id: UUID
    name: str
    email: str
    birth_date: Optional[date] = None
    country: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    email_verified_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    roles: List[str] = Field(default_factory=list)
    permissions: Optional[List[str]] = None
    certificates_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
