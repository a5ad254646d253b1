"""
Role and Permission Checks
A user's permissions are the union of the permissions of their roles
"""

from typing import List
from certi.database import database

SUPER_ADMIN_ROLE = "super_admin"


async def get_user_roles(user_id: str) -> List[str]:
    rows = await database.fetch_all(
        """
        SELECT r.name FROM roles r
        JOIN user_roles ur ON ur.role_id = r.id
        WHERE ur.user_id = :user_id
        ORDER BY r.name
        """,
        {"user_id": user_id}
    )
    return [row[0] for row in rows]


async def get_user_permissions(user_id: str) -> List[str]:
    rows = await database.fetch_all(
        """
        SELECT DISTINCT p.name FROM permissions p
        JOIN role_permissions rp ON rp.permission_id = p.id
        JOIN user_roles ur ON ur.role_id = rp.role_id
        WHERE ur.user_id = :user_id
        ORDER BY p.name
        """,
        {"user_id": user_id}
    )
    return [row[0] for row in rows]


def has_role(user: dict, *roles: str) -> bool:
    return any(role in user.get("roles", []) for role in roles)


def has_permission(user: dict, permission: str) -> bool:
    # super_admin passes every check, including permissions created after seeding
    if has_role(user, SUPER_ADMIN_ROLE):
        return True
    return permission in user.get("permissions", [])
