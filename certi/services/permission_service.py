"""
Permission Service
Catalogue of "<module>.<action>" permissions
"""

import logging
import uuid
from typing import Dict, List, Optional

from fastapi import HTTPException, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination, in_clause
from certi.responses import field_error

logger = logging.getLogger(__name__)


def split_permission(name: str) -> tuple:
    module, _, action = name.partition(".")
    return module or "general", action or "general"


class PermissionService:
    """Service for permission management operations"""

    @staticmethod
    async def get_permission(permission_id: str) -> dict:
        permission = await database.fetch_one(
            "SELECT * FROM permissions WHERE id = :id",
            {"id": permission_id}
        )
        if not permission:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Permission not found"
            )
        return row_to_dict(permission)

    @staticmethod
    async def list_permissions(page: int = 1, per_page: int = 15, search: Optional[str] = None) -> dict:
        where = ""
        values = {}
        if search:
            where = "WHERE LOWER(name) LIKE :search"
            values["search"] = f"%{search.lower()}%"

        total = await database.fetch_val(f"SELECT COUNT(*) FROM permissions {where}", values)
        rows = await database.fetch_all(
            f"""
            SELECT * FROM permissions {where}
            ORDER BY name
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )
        return {
            "permissions": rows_to_dicts(rows),
            "pagination": pagination(page, per_page, total or 0),
        }

    @staticmethod
    async def all_permissions() -> List[dict]:
        rows = await database.fetch_all("SELECT * FROM permissions ORDER BY name")
        return rows_to_dicts(rows)

    @staticmethod
    async def grouped_permissions() -> Dict[str, List[dict]]:
        """Permissions keyed by module prefix"""
        grouped: Dict[str, List[dict]] = {}
        for permission in await PermissionService.all_permissions():
            module, action = split_permission(permission["name"])
            grouped.setdefault(module, []).append({
                "id": permission["id"],
                "name": permission["name"],
                "action": action,
            })
        return grouped

    @staticmethod
    async def permissions_by_module() -> List[dict]:
        grouped = await PermissionService.grouped_permissions()
        return [
            {"module": module, "permissions": permissions, "count": len(permissions)}
            for module, permissions in sorted(grouped.items())
        ]

    @staticmethod
    async def resolve_names(names: List[str], field: str = "permissions") -> List[dict]:
        """
        Look up permissions by name.

        Raises a field-keyed 422 naming every unknown permission.
        """
        names = list(dict.fromkeys(names))
        if not names:
            return []
        fragment, values = in_clause("p", names)
        rows = rows_to_dicts(await database.fetch_all(
            f"SELECT * FROM permissions WHERE name IN ({fragment})",
            values
        ))
        found = {row["name"] for row in rows}
        missing = [name for name in names if name not in found]
        if missing:
            raise field_error(field, f"The following permissions do not exist: {', '.join(missing)}")
        return rows

    @staticmethod
    async def _ensure_unique_name(name: str, exclude_id: Optional[str] = None) -> None:
        existing = await database.fetch_one(
            "SELECT id FROM permissions WHERE name = :name",
            {"name": name}
        )
        if existing and str(existing[0]) != str(exclude_id):
            raise field_error("name", f"The permission '{name}' already exists.")

    @staticmethod
    async def create_permission(name: str) -> dict:
        await PermissionService._ensure_unique_name(name)

        permission_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO permissions (id, name, guard_name, created_at, updated_at)
            VALUES (:id, :name, 'web', CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
            """,
            {"id": permission_id, "name": name}
        )
        logger.info("Permission created: %s", name)
        return await PermissionService.get_permission(permission_id)

    @staticmethod
    async def bulk_create(names: List[str]) -> List[dict]:
        """Create several permissions at once; any duplicate rejects the whole batch"""
        names = list(dict.fromkeys(names))
        for name in names:
            await PermissionService._ensure_unique_name(name)

        created = []
        async with database.transaction():
            for name in names:
                created.append(await PermissionService.create_permission(name))
        return created

    @staticmethod
    async def update_permission(permission_id: str, name: str) -> dict:
        await PermissionService.get_permission(permission_id)
        await PermissionService._ensure_unique_name(name, exclude_id=permission_id)

        await database.execute(
            "UPDATE permissions SET name = :name, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": permission_id, "name": name}
        )
        logger.info("Permission %s renamed to %s", permission_id, name)
        return await PermissionService.get_permission(permission_id)

    @staticmethod
    async def delete_permission(permission_id: str) -> None:
        permission = await PermissionService.get_permission(permission_id)

        in_use = await database.fetch_val(
            "SELECT COUNT(*) FROM role_permissions WHERE permission_id = :id",
            {"id": permission_id}
        )
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The permission cannot be deleted because it is assigned to one or more roles"
            )

        await database.execute("DELETE FROM permissions WHERE id = :id", {"id": permission_id})
        logger.info("Permission deleted: %s", permission["name"])


# Create singleton instance
permission_service = PermissionService()
