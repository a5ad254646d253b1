"""
Authentication Module
Password hashing, JWT tokens and role/permission checks
"""

from certi.auth.password import hash_password, verify_password, generate_random_password
from certi.auth.permissions import SUPER_ADMIN_ROLE, has_permission, has_role
from certi.auth.dependencies import (
    create_access_token,
    decode_access_token,
    get_current_user,
    get_optional_user,
    require_permission,
    require_role,
)

__all__ = [
    "hash_password",
    "verify_password",
    "generate_random_password",
    "SUPER_ADMIN_ROLE",
    "has_permission",
    "has_role",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "get_optional_user",
    "require_permission",
    "require_role",
]
