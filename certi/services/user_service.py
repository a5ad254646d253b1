"""
User Service
Administrator management of user accounts
"""

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from certi.auth import hash_password, generate_random_password
from certi.auth.permissions import get_user_roles
from certi.database import database, row_to_dict, rows_to_dicts, pagination
from certi.responses import field_error
from certi.schemas.user import CreateUserRequest, UpdateUserRequest
from certi.services.auth_service import AuthService
from certi.services.role_service import RoleService

logger = logging.getLogger(__name__)

DEFAULT_USER_ROLE = "usuario_final"


class UserService:
    """Service for user management operations"""

    @staticmethod
    async def get_user(user_id: str) -> dict:
        user = await database.fetch_one("SELECT * FROM users WHERE id = :id", {"id": user_id})
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        user = row_to_dict(user)
        user["roles"] = await get_user_roles(str(user["id"]))
        user["certificates_count"] = await database.fetch_val(
            "SELECT COUNT(*) FROM certificates WHERE user_id = :id",
            {"id": user_id}
        ) or 0
        return user

    @staticmethod
    async def list_users(
        page: int = 1,
        per_page: int = 15,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict:
        """Paginated users, filterable by name/email, role and active flag"""
        conditions = []
        values = {}

        if search:
            conditions.append("(LOWER(u.name) LIKE :search OR LOWER(u.email) LIKE :search)")
            values["search"] = f"%{search.lower()}%"

        if role:
            conditions.append(
                """
                EXISTS (
                    SELECT 1 FROM user_roles ur JOIN roles r ON r.id = ur.role_id
                    WHERE ur.user_id = u.id AND r.name = :role
                )
                """
            )
            values["role"] = role

        if is_active is not None:
            conditions.append("u.is_active = :is_active")
            values["is_active"] = is_active

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await database.fetch_val(f"SELECT COUNT(*) FROM users u {where}", values)
        rows = await database.fetch_all(
            f"""
            SELECT u.* FROM users u {where}
            ORDER BY u.created_at DESC, u.name
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )

        users = rows_to_dicts(rows)
        for user in users:
            user["roles"] = await get_user_roles(str(user["id"]))

        return {"users": users, "pagination": pagination(page, per_page, total or 0)}

    @staticmethod
    async def list_simple(search: Optional[str] = None) -> List[dict]:
        """id/name/email of active users, for select boxes"""
        values = {"is_active": True}
        where = "WHERE is_active = :is_active"
        if search:
            where += " AND (LOWER(name) LIKE :search OR LOWER(email) LIKE :search)"
            values["search"] = f"%{search.lower()}%"
        rows = await database.fetch_all(
            f"SELECT id, name, email FROM users {where} ORDER BY name",
            values
        )
        return rows_to_dicts(rows)

    @staticmethod
    async def create_user(data: CreateUserRequest) -> dict:
        if await AuthService.email_taken(data.email):
            raise field_error("email", "The email has already been taken.")

        role_names = data.roles or [DEFAULT_USER_ROLE]
        await RoleService.resolve_names(role_names)

        password = data.password or generate_random_password(12)
        user_id = str(uuid.uuid4())

        async with database.transaction():
            await database.execute(
                """
                INSERT INTO users
                (id, name, email, password_hash, birth_date, country, gender, phone, is_active,
                 created_at, updated_at)
                VALUES (:id, :name, :email, :password_hash, :birth_date, :country, :gender, :phone, :is_active,
                        CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                {
                    "id": user_id,
                    "name": data.name,
                    "email": data.email.lower(),
                    "password_hash": hash_password(password),
                    "birth_date": data.birth_date,
                    "country": data.country,
                    "gender": data.gender,
                    "phone": data.phone,
                    "is_active": data.is_active,
                }
            )
            await RoleService.sync_roles(user_id, role_names)

        logger.info("User created: %s with roles %s", data.email, role_names)
        return await UserService.get_user(user_id)

    @staticmethod
    async def update_user(user_id: str, data: UpdateUserRequest) -> dict:
        user = await UserService.get_user(user_id)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("email") and await AuthService.email_taken(fields["email"], exclude_id=user_id):
            raise field_error("email", "The email has already been taken.")

        if fields.get("roles") is not None:
            await RoleService.resolve_names(fields["roles"])

        values = {
            "id": user_id,
            "name": fields.get("name") or user["name"],
            "email": (fields.get("email") or user["email"]).lower(),
            "password_hash": hash_password(fields["password"]) if fields.get("password") else user["password_hash"],
            "birth_date": fields.get("birth_date", user["birth_date"]),
            "country": fields.get("country", user["country"]),
            "gender": fields.get("gender", user["gender"]),
            "phone": fields.get("phone", user["phone"]),
            "is_active": fields["is_active"] if fields.get("is_active") is not None else bool(user["is_active"]),
        }

        async with database.transaction():
            await database.execute(
                """
                UPDATE users
                SET name = :name, email = :email, password_hash = :password_hash,
                    birth_date = :birth_date, country = :country, gender = :gender, phone = :phone,
                    is_active = :is_active, updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                """,
                values
            )
            if fields.get("roles") is not None:
                await RoleService.sync_roles(user_id, fields["roles"])

        logger.info("User updated: %s", user_id)
        return await UserService.get_user(user_id)

    @staticmethod
    async def delete_user(user_id: str, current_user_id: str) -> None:
        """
        Delete an account

        Refused for the caller's own account and for users who hold
        certificates (their certificates and audit trail must survive).
        """
        user = await UserService.get_user(user_id)

        if str(user["id"]) == str(current_user_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot delete your own account"
            )

        if user["certificates_count"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The user cannot be deleted because they hold certificates"
            )

        async with database.transaction():
            await database.execute("DELETE FROM user_roles WHERE user_id = :id", {"id": user_id})
            await database.execute("DELETE FROM access_tokens WHERE user_id = :id", {"id": user_id})
            await database.execute("UPDATE certificates SET signed_by = NULL WHERE signed_by = :id", {"id": user_id})
            await database.execute("UPDATE validations SET user_id = NULL WHERE user_id = :id", {"id": user_id})
            await database.execute("UPDATE email_sends SET user_id = NULL WHERE user_id = :id", {"id": user_id})
            await database.execute("DELETE FROM users WHERE id = :id", {"id": user_id})

        logger.info("User deleted: %s", user["email"])

    @staticmethod
    async def assign_roles(user_id: str, names: List[str]) -> dict:
        await UserService.get_user(user_id)
        await RoleService.sync_roles(user_id, names)
        logger.info("Roles of user %s set to %s", user_id, names)
        return await UserService.get_user(user_id)


# Create singleton instance
user_service = UserService()
