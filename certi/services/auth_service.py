"""
Auth Service
Registration, login and bearer-token lifecycle
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from certi.auth import create_access_token, hash_password, verify_password
from certi.auth.permissions import get_user_permissions, get_user_roles
from certi.config import settings
from certi.database import database, row_to_dict
from certi.responses import field_error
from certi.schemas.auth import RegisterRequest, UpdateProfileRequest
from certi.schemas.user import UserResponse
from certi.services.role_service import RoleService

logger = logging.getLogger(__name__)

DEFAULT_REGISTRATION_ROLE = "usuario_final"


class AuthService:
    """Service for authentication operations"""

    @staticmethod
    async def issue_token(user_id: str, name: str = "auth_token") -> str:
        """Store a new access token row and return the signed JWT for it"""
        token_id = str(uuid.uuid4())
        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRATION_HOURS)

        await database.execute(
            """
            INSERT INTO access_tokens (id, user_id, name, revoked, expires_at, created_at)
            VALUES (:id, :user_id, :name, :revoked, :expires_at, CURRENT_TIMESTAMP)
            """,
            {
                "id": token_id,
                "user_id": user_id,
                "name": name,
                "revoked": False,
                "expires_at": expires_at,
            }
        )

        return create_access_token(
            {"sub": user_id, "jti": token_id},
            expires_delta=timedelta(hours=settings.JWT_EXPIRATION_HOURS),
        )

    @staticmethod
    async def auth_payload(user: dict, access_token: str) -> dict:
        user_id = str(user["id"])
        roles = await get_user_roles(user_id)
        permissions = await get_user_permissions(user_id)
        return {
            "user": UserResponse.model_validate({**user, "roles": roles}).model_dump(),
            "roles": roles,
            "permissions": permissions,
            "access_token": access_token,
            "token_type": "Bearer",
            "email_verified": user.get("email_verified_at") is not None,
        }

    @staticmethod
    async def email_taken(email: str, exclude_id: str = None) -> bool:
        existing = await database.fetch_one(
            "SELECT id FROM users WHERE LOWER(email) = LOWER(:email)",
            {"email": email}
        )
        return existing is not None and str(existing[0]) != str(exclude_id)

    @staticmethod
    async def register(data: RegisterRequest) -> dict:
        """
        Create an account with the default role and log it in

        Raises:
            HTTPException 422: email already registered
        """
        if await AuthService.email_taken(data.email):
            raise field_error("email", "The email has already been taken.")

        user_id = str(uuid.uuid4())

        async with database.transaction():
            await database.execute(
                """
                INSERT INTO users (id, name, email, password_hash, is_active, created_at, updated_at)
                VALUES (:id, :name, :email, :password_hash, :is_active, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                {
                    "id": user_id,
                    "name": data.name,
                    "email": data.email.lower(),
                    "password_hash": hash_password(data.password),
                    "is_active": True,
                }
            )
            await RoleService.assign_roles(user_id, [DEFAULT_REGISTRATION_ROLE])
            token = await AuthService.issue_token(user_id)

        user = row_to_dict(await database.fetch_one("SELECT * FROM users WHERE id = :id", {"id": user_id}))
        logger.info("User registered: %s", data.email)
        return await AuthService.auth_payload(user, token)

    @staticmethod
    async def login(email: str, password: str) -> dict:
        user = row_to_dict(await database.fetch_one(
            "SELECT * FROM users WHERE LOWER(email) = LOWER(:email)",
            {"email": email}
        ))

        if not user or not verify_password(password, user["password_hash"]):
            logger.warning("Failed login for %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        if not user["is_active"]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is deactivated. Contact an administrator."
            )

        user_id = str(user["id"])
        await database.execute(
            "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": user_id}
        )
        token = await AuthService.issue_token(user_id)

        logger.info("User logged in: %s", user["email"])
        return await AuthService.auth_payload(user, token)

    @staticmethod
    async def logout(token_id: str) -> None:
        """Revoke only the token used for this request"""
        await database.execute(
            "UPDATE access_tokens SET revoked = :revoked WHERE id = :id",
            {"id": token_id, "revoked": True}
        )

    @staticmethod
    async def logout_all(user_id: str) -> int:
        """Revoke every token of the user; returns how many were active"""
        active = await database.fetch_val(
            "SELECT COUNT(*) FROM access_tokens WHERE user_id = :user_id AND revoked = :revoked",
            {"user_id": user_id, "revoked": False}
        )
        await database.execute(
            "UPDATE access_tokens SET revoked = :revoked WHERE user_id = :user_id",
            {"user_id": user_id, "revoked": True}
        )
        logger.info("Revoked %s tokens for user %s", active, user_id)
        return active or 0

    @staticmethod
    async def update_profile(user: dict, data: UpdateProfileRequest) -> dict:
        """
        Update the authenticated user's own profile

        Changing the password requires the current one.
        """
        user_id = str(user["id"])

        if data.email and await AuthService.email_taken(data.email, exclude_id=user_id):
            raise field_error("email", "The email has already been taken.")

        password_hash = user["password_hash"]
        if data.password:
            if not data.current_password or not verify_password(data.current_password, user["password_hash"]):
                raise field_error("current_password", "The current password is incorrect.")
            password_hash = hash_password(data.password)

        fields = data.model_dump(exclude_unset=True, exclude={"password", "current_password"})
        if "email" in fields and fields["email"]:
            fields["email"] = fields["email"].lower()

        values = {
            "id": user_id,
            "name": fields.get("name") or user["name"],
            "email": fields.get("email") or user["email"],
            "password_hash": password_hash,
            "birth_date": fields.get("birth_date", user.get("birth_date")),
            "country": fields.get("country", user.get("country")),
            "gender": fields.get("gender", user.get("gender")),
            "phone": fields.get("phone", user.get("phone")),
        }

        await database.execute(
            """
            UPDATE users
            SET name = :name, email = :email, password_hash = :password_hash,
                birth_date = :birth_date, country = :country, gender = :gender, phone = :phone,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            """,
            values
        )

        updated = row_to_dict(await database.fetch_one("SELECT * FROM users WHERE id = :id", {"id": user_id}))
        updated["roles"] = await get_user_roles(user_id)
        logger.info("Profile updated for user %s", user_id)
        return updated


# Create singleton instance
auth_service = AuthService()
