"""
Create a super_admin account
Run this after migrating to get the first administrator.

Usage:
  python scripts/create_super_admin.py [--email EMAIL] [--name NAME]
"""

import argparse
import asyncio
import uuid
from getpass import getpass
from typing import Optional

from certi.auth import hash_password, generate_random_password
from certi.config import settings
from certi.database import database, connect_db, disconnect_db
from certi.services.role_service import RoleService
from certi.services.seed_service import seed_roles_and_permissions


async def create_super_admin(email: str, name: str, password: Optional[str] = None) -> Optional[str]:
    """
    Create the account (if missing) and give it the super_admin role

    Returns the generated password, or None when one was supplied.
    """
    await seed_roles_and_permissions()

    existing = await database.fetch_one(
        "SELECT id FROM users WHERE LOWER(email) = LOWER(:email)",
        {"email": email}
    )
    if existing:
        await RoleService.assign_roles(str(existing[0]), ["super_admin"])
        print(f"User {email} already exists; super_admin role ensured.")
        return None

    generated = password is None
    if generated:
        password = generate_random_password(12)

    user_id = str(uuid.uuid4())
    async with database.transaction():
        await database.execute(
            """
            INSERT INTO users (id, name, email, password_hash, is_active, email_verified_at, created_at, updated_at)
            VALUES (:id, :name, :email, :password_hash, :is_active, CURRENT_TIMESTAMP,
                    CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
            """,
            {
                "id": user_id,
                "name": name,
                "email": email.lower(),
                "password_hash": hash_password(password),
                "is_active": True,
            }
        )
        await RoleService.assign_roles(user_id, ["super_admin"])

    print("Super admin created")
    print(f"   Email: {email}")
    print(f"   Name: {name}")
    return password if generated else None


async def main():
    parser = argparse.ArgumentParser(description="Create a super_admin account")
    parser.add_argument("--email", default=settings.SUPER_ADMIN_EMAIL)
    parser.add_argument("--name", default="Super Administrator")
    parser.add_argument("--generate-password", action="store_true", help="Do not prompt, generate one")
    args = parser.parse_args()

    password = None
    if not args.generate_password:
        password = getpass("Password (min 8 characters): ")
        if len(password) < 8:
            print("Password must be at least 8 characters!")
            return
        if getpass("Confirm password: ") != password:
            print("Passwords do not match!")
            return

    await connect_db()
    try:
        generated = await create_super_admin(args.email, args.name, password)
    finally:
        await disconnect_db()

    if generated:
        print(f"   Password: {generated}")
        print("   IMPORTANT: Save this password, it is not stored anywhere in plain text.")


if __name__ == "__main__":
    asyncio.run(main())
