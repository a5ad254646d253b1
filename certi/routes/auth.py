"""
Authentication Routes
Register, login, logout and profile endpoints
"""

from fastapi import APIRouter, Depends

from certi.auth import get_current_user
from certi.responses import success_response, created_response
from certi.schemas.auth import RegisterRequest, LoginRequest, UpdateProfileRequest
from certi.schemas.user import UserResponse
from certi.services.auth_service import auth_service

router = APIRouter()


@router.post("/register")
async def register(request: RegisterRequest):
    """
    Create an account and return a bearer token

    New accounts get the ``usuario_final`` role.
    """
    payload = await auth_service.register(request)
    return created_response(payload, "User registered successfully")


@router.post("/login")
async def login(credentials: LoginRequest):
    """
    Exchange email and password for a bearer token

    Process:
    1. Look up the user by email (case-insensitive)
    2. Verify password and active flag
    3. Store a token row and sign the JWT
    4. Update last_login timestamp
    """
    payload = await auth_service.login(credentials.email, credentials.password)
    return success_response(payload, "Login successful")


@router.get("/me")
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Authenticated user with roles and effective permissions"""
    user = UserResponse.model_validate(current_user).model_dump()
    return success_response(
        {"user": user, "roles": current_user["roles"], "permissions": current_user["permissions"]},
        "User retrieved successfully"
    )


@router.post("/logout")
async def logout(current_user: dict = Depends(get_current_user)):
    """Revoke the token used for this request"""
    await auth_service.logout(current_user["token_id"])
    return success_response(None, "Logged out successfully")


@router.post("/logout-all")
async def logout_all(current_user: dict = Depends(get_current_user)):
    """Revoke every token of the current user"""
    revoked = await auth_service.logout_all(current_user["id"])
    return success_response({"revoked_tokens": revoked}, "Logged out from all devices")


@router.put("/profile")
async def update_profile(request: UpdateProfileRequest, current_user: dict = Depends(get_current_user)):
    user = await auth_service.update_profile(current_user, request)
    return success_response(
        {"user": UserResponse.model_validate(user).model_dump()},
        "Profile updated successfully"
    )
