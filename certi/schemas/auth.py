"""
Authentication Request/Response Models
"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List
from datetime import date
from certi.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Self-service account registration"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    password_confirmation: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password_confirmation is not None and self.password_confirmation != self.password:
            raise ValueError("The password confirmation does not match.")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UpdateProfileRequest(BaseModel):
    """Fields the authenticated user may change on their own account"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    current_password: Optional[str] = None
    birth_date: Optional[date] = None
    country: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=50)


class AuthResponse(BaseModel):
    """Payload returned by login and register"""
    user: UserResponse
    roles: List[str]
    permissions: List[str]
    access_token: str
    token_type: str = "Bearer"
    email_verified: bool = False
