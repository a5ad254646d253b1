"""
Authentication Dependencies
JWT token handling and user authentication
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from certi.config import settings
from certi.database import database, row_to_dict
from certi.auth.permissions import get_user_roles, get_user_permissions, has_permission, has_role

# Security schemes
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        data: Claims to encode (``sub`` user id and ``jti`` token id)
        expires_delta: Token expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRATION_HOURS)

    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(token: str) -> dict:
    """
    Decode JWT access token

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def resolve_token_user(token: str) -> dict:
    """
    Load the user behind a bearer token.

    The token must decode, reference a non-revoked row in ``access_tokens``
    and belong to an active user. Roles and effective permissions are
    attached to the returned dict.
    """
    payload = decode_access_token(token)

    user_id = payload.get("sub")
    token_id = payload.get("jti")

    if not user_id or not token_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )

    token_row = row_to_dict(await database.fetch_one(
        "SELECT id, revoked FROM access_tokens WHERE id = :id AND user_id = :user_id",
        {"id": token_id, "user_id": user_id}
    ))

    if not token_row or token_row["revoked"]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = row_to_dict(await database.fetch_one(
        "SELECT * FROM users WHERE id = :id",
        {"id": user_id}
    ))

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Contact an administrator."
        )

    await database.execute(
        "UPDATE access_tokens SET last_used_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": token_id}
    )

    user["id"] = str(user["id"])
    user["token_id"] = token_id
    user["roles"] = await get_user_roles(user["id"])
    user["permissions"] = await get_user_permissions(user["id"])
    return user


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Require a valid bearer token and return the authenticated user"""
    return await resolve_token_user(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[dict]:
    """Authenticated user when a valid token is sent, otherwise None"""
    if credentials is None:
        return None
    try:
        return await resolve_token_user(credentials.credentials)
    except HTTPException:
        return None


def require_permission(*permissions: str):
    """
    Dependency factory: the current user must hold at least one of ``permissions``

    Usage:
        current_user: dict = Depends(require_permission("certificates.create"))
    """

    async def checker(current_user: dict = Depends(get_current_user)) -> dict:
        if not any(has_permission(current_user, permission) for permission in permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User does not have the right permissions."
            )
        return current_user

    return checker


def require_role(*roles: str):
    """Dependency factory: the current user must hold at least one of ``roles``"""

    async def checker(current_user: dict = Depends(get_current_user)) -> dict:
        if not has_role(current_user, *roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User does not have the right roles."
            )
        return current_user

    return checker
