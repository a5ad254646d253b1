"""
Seed Service
Default permission catalogue and the five system roles
"""

import logging
import uuid
from typing import Dict, List

from certi.database import database

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS: List[str] = [
    "users.create", "users.read", "users.update", "users.delete", "users.assign_roles",
    "roles.create", "roles.read", "roles.update", "roles.delete",
    "permissions.create", "permissions.read", "permissions.update", "permissions.delete", "permissions.assign",
    "activities.create", "activities.read", "activities.update", "activities.delete", "activities.manage_own",
    "certificates.create", "certificates.read", "certificates.update", "certificates.delete",
    "certificates.issue", "certificates.revoke", "certificates.validate", "certificates.download",
    "certificates.manage_own",
    "templates.create", "templates.read", "templates.update", "templates.delete", "templates.manage_own",
    "validations.read", "validations.create", "validations.manage_own",
    "documents.upload", "documents.download", "documents.delete", "documents.manage_own",
    "emails.send", "emails.read", "emails.resend", "emails.manage_own",
    "reports.certificates", "reports.validations", "reports.activities", "reports.users", "reports.export",
]

_ADMIN_EXCLUDED = {
    "roles.create", "roles.update", "roles.delete",
    "permissions.create", "permissions.update", "permissions.delete",
}

DEFAULT_ROLES: Dict[str, List[str]] = {
    "super_admin": DEFAULT_PERMISSIONS,
    "administrador": [name for name in DEFAULT_PERMISSIONS if name not in _ADMIN_EXCLUDED],
    "emisor": [
        "users.read",
        "activities.create", "activities.read", "activities.update", "activities.manage_own",
        "certificates.create", "certificates.read", "certificates.issue", "certificates.download",
        "certificates.manage_own",
        "templates.read", "templates.manage_own",
        "validations.read", "validations.manage_own",
        "documents.upload", "documents.download", "documents.manage_own",
        "emails.send", "emails.read", "emails.resend", "emails.manage_own",
        "reports.certificates", "reports.activities",
    ],
    "validador": [
        "certificates.read", "certificates.validate", "certificates.download",
        "validations.read", "validations.create",
        "activities.read",
    ],
    "usuario_final": [
        "certificates.read", "certificates.download", "certificates.manage_own",
        "validations.read", "validations.manage_own",
        "documents.download", "documents.manage_own",
    ],
}


async def _get_or_create(table: str, name: str) -> str:
    row = await database.fetch_one(f"SELECT id FROM {table} WHERE name = :name", {"name": name})
    if row:
        return str(row[0])
    new_id = str(uuid.uuid4())
    await database.execute(
        f"""
        INSERT INTO {table} (id, name, guard_name, created_at, updated_at)
        VALUES (:id, :name, 'web', CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
        """,
        {"id": new_id, "name": name}
    )
    return new_id


async def seed_roles_and_permissions() -> Dict[str, str]:
    """
    Idempotently create the permission catalogue and system roles.

    Existing role permission sets are synced to the defaults.
    Returns a mapping of role name to role id.
    """
    async with database.transaction():
        permission_ids = {name: await _get_or_create("permissions", name) for name in DEFAULT_PERMISSIONS}

        role_ids = {}
        for role_name, permissions in DEFAULT_ROLES.items():
            role_id = await _get_or_create("roles", role_name)
            role_ids[role_name] = role_id
            await database.execute(
                "DELETE FROM role_permissions WHERE role_id = :role_id",
                {"role_id": role_id}
            )
            for permission in permissions:
                await database.execute(
                    "INSERT INTO role_permissions (role_id, permission_id) VALUES (:role_id, :permission_id)",
                    {"role_id": role_id, "permission_id": permission_ids[permission]}
                )

    logger.info("Seeded %d permissions and %d roles", len(DEFAULT_PERMISSIONS), len(DEFAULT_ROLES))
    return role_ids
