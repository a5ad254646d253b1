"""
Role Service
Roles group permissions; users hold roles
"""

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination, in_clause
from certi.responses import field_error
from certi.schemas.role import CreateRoleRequest, UpdateRoleRequest
from certi.services.permission_service import PermissionService

logger = logging.getLogger(__name__)

SYSTEM_ROLES = ("super_admin", "administrador", "emisor", "validador", "usuario_final")


class RoleService:
    """Service for role management operations"""

    @staticmethod
    async def _role_permissions(role_id: str) -> List[str]:
        rows = await database.fetch_all(
            """
            SELECT p.name FROM permissions p
            JOIN role_permissions rp ON rp.permission_id = p.id
            WHERE rp.role_id = :role_id
            ORDER BY p.name
            """,
            {"role_id": role_id}
        )
        return [row[0] for row in rows]

    @staticmethod
    async def _present(role: dict) -> dict:
        role_id = str(role["id"])
        role["permissions"] = await RoleService._role_permissions(role_id)
        role["users_count"] = await database.fetch_val(
            "SELECT COUNT(*) FROM user_roles WHERE role_id = :role_id",
            {"role_id": role_id}
        ) or 0
        role["is_system"] = role["name"] in SYSTEM_ROLES
        return role

    @staticmethod
    async def get_role(role_id: str) -> dict:
        role = await database.fetch_one(
            "SELECT * FROM roles WHERE id = :id",
            {"id": role_id}
        )
        if not role:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Role not found"
            )
        return await RoleService._present(row_to_dict(role))

    @staticmethod
    async def get_role_users(role_id: str) -> List[dict]:
        rows = await database.fetch_all(
            """
            SELECT u.id, u.name, u.email FROM users u
            JOIN user_roles ur ON ur.user_id = u.id
            WHERE ur.role_id = :role_id
            ORDER BY u.name
            """,
            {"role_id": role_id}
        )
        return rows_to_dicts(rows)

    @staticmethod
    async def list_roles(page: int = 1, per_page: int = 15, search: Optional[str] = None) -> dict:
        where = ""
        values = {}
        if search:
            where = "WHERE LOWER(name) LIKE :search OR LOWER(COALESCE(description, '')) LIKE :search"
            values["search"] = f"%{search.lower()}%"

        total = await database.fetch_val(f"SELECT COUNT(*) FROM roles {where}", values)
        rows = await database.fetch_all(
            f"""
            SELECT * FROM roles {where}
            ORDER BY name
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )
        roles = [await RoleService._present(role) for role in rows_to_dicts(rows)]
        return {"roles": roles, "pagination": pagination(page, per_page, total or 0)}

    @staticmethod
    async def all_role_names() -> List[str]:
        rows = await database.fetch_all("SELECT name FROM roles ORDER BY name")
        return [row[0] for row in rows]

    @staticmethod
    async def resolve_names(names: List[str], field: str = "roles") -> List[dict]:
        names = list(dict.fromkeys(names))
        if not names:
            return []
        fragment, values = in_clause("r", names)
        rows = rows_to_dicts(await database.fetch_all(
            f"SELECT * FROM roles WHERE name IN ({fragment})",
            values
        ))
        found = {row["name"] for row in rows}
        missing = [name for name in names if name not in found]
        if missing:
            raise field_error(field, f"The following roles do not exist: {', '.join(missing)}")
        return rows

    @staticmethod
    async def _ensure_unique_name(name: str, exclude_id: Optional[str] = None) -> None:
        existing = await database.fetch_one("SELECT id FROM roles WHERE name = :name", {"name": name})
        if existing and str(existing[0]) != str(exclude_id):
            raise field_error("name", f"The role '{name}' already exists.")

    @staticmethod
    async def _insert_role(name: str, description: Optional[str], guard_name: str = "web") -> str:
        role_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO roles (id, name, description, guard_name, created_at, updated_at)
            VALUES (:id, :name, :description, :guard_name, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
            """,
            {"id": role_id, "name": name, "description": description, "guard_name": guard_name}
        )
        return role_id

    # Permission assignment

    @staticmethod
    async def sync_permissions(role_id: str, names: List[str]) -> None:
        """Replace the role's permission set with exactly ``names``"""
        permissions = await PermissionService.resolve_names(names)
        async with database.transaction():
            await database.execute(
                "DELETE FROM role_permissions WHERE role_id = :role_id",
                {"role_id": role_id}
            )
            for permission in permissions:
                await database.execute(
                    "INSERT INTO role_permissions (role_id, permission_id) VALUES (:role_id, :permission_id)",
                    {"role_id": role_id, "permission_id": str(permission["id"])}
                )

    @staticmethod
    async def give_permissions(role_id: str, names: List[str]) -> None:
        permissions = await PermissionService.resolve_names(names)
        current = set(await RoleService._role_permissions(role_id))
        async with database.transaction():
            for permission in permissions:
                if permission["name"] in current:
                    continue
                await database.execute(
                    "INSERT INTO role_permissions (role_id, permission_id) VALUES (:role_id, :permission_id)",
                    {"role_id": role_id, "permission_id": str(permission["id"])}
                )

    @staticmethod
    async def revoke_permissions(role_id: str, names: List[str]) -> None:
        permissions = await PermissionService.resolve_names(names)
        async with database.transaction():
            for permission in permissions:
                await database.execute(
                    "DELETE FROM role_permissions WHERE role_id = :role_id AND permission_id = :permission_id",
                    {"role_id": role_id, "permission_id": str(permission["id"])}
                )

    # CRUD

    @staticmethod
    async def create_role(data: CreateRoleRequest) -> dict:
        await RoleService._ensure_unique_name(data.name)
        # Validate names before writing anything
        await PermissionService.resolve_names(data.permissions)

        async with database.transaction():
            role_id = await RoleService._insert_role(data.name, data.description)
            if data.permissions:
                await RoleService.sync_permissions(role_id, data.permissions)

        logger.info("Role created: %s", data.name)
        return await RoleService.get_role(role_id)

    @staticmethod
    async def update_role(role_id: str, data: UpdateRoleRequest) -> dict:
        role = await RoleService.get_role(role_id)

        if data.name is not None and data.name != role["name"]:
            if role["is_system"]:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="System roles cannot be renamed"
                )
            await RoleService._ensure_unique_name(data.name, exclude_id=role_id)

        if data.permissions is not None:
            await PermissionService.resolve_names(data.permissions)

        async with database.transaction():
            await database.execute(
                """
                UPDATE roles
                SET name = :name, description = :description, updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                """,
                {
                    "id": role_id,
                    "name": data.name if data.name is not None else role["name"],
                    "description": data.description if data.description is not None else role["description"],
                }
            )
            if data.permissions is not None:
                await RoleService.sync_permissions(role_id, data.permissions)

        logger.info("Role updated: %s", role_id)
        return await RoleService.get_role(role_id)

    @staticmethod
    async def delete_role(role_id: str) -> None:
        role = await RoleService.get_role(role_id)

        if role["users_count"] > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The role cannot be deleted because it is assigned to one or more users"
            )

        if role["is_system"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="System roles cannot be deleted"
            )

        async with database.transaction():
            await database.execute("DELETE FROM role_permissions WHERE role_id = :id", {"id": role_id})
            await database.execute("DELETE FROM roles WHERE id = :id", {"id": role_id})

        logger.info("Role deleted: %s", role["name"])

    @staticmethod
    async def clone_role(role_id: str, name: str, description: Optional[str] = None) -> dict:
        """New role with the same guard and permissions under a different name"""
        source = await RoleService.get_role(role_id)
        await RoleService._ensure_unique_name(name)

        async with database.transaction():
            new_id = await RoleService._insert_role(
                name,
                description if description is not None else source["description"],
                source["guard_name"] or "web",
            )
            if source["permissions"]:
                await RoleService.sync_permissions(new_id, source["permissions"])

        logger.info("Role %s cloned into %s", source["name"], name)
        return await RoleService.get_role(new_id)

    # User assignment

    @staticmethod
    async def assign_roles(user_id: str, names: List[str]) -> None:
        """Add roles the user does not already hold"""
        roles = await RoleService.resolve_names(names)
        current = await database.fetch_all(
            "SELECT role_id FROM user_roles WHERE user_id = :user_id",
            {"user_id": user_id}
        )
        held = {str(row[0]) for row in current}
        for role in roles:
            if str(role["id"]) in held:
                continue
            await database.execute(
                "INSERT INTO user_roles (user_id, role_id) VALUES (:user_id, :role_id)",
                {"user_id": user_id, "role_id": str(role["id"])}
            )

    @staticmethod
    async def sync_roles(user_id: str, names: List[str]) -> None:
        """Replace the user's roles with exactly ``names``"""
        roles = await RoleService.resolve_names(names)
        async with database.transaction():
            await database.execute("DELETE FROM user_roles WHERE user_id = :user_id", {"user_id": user_id})
            for role in roles:
                await database.execute(
                    "INSERT INTO user_roles (user_id, role_id) VALUES (:user_id, :role_id)",
                    {"user_id": user_id, "role_id": str(role["id"])}
                )


# Create singleton instance
role_service = RoleService()
