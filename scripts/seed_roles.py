"""
Seed the default permission catalogue and system roles
Safe to run repeatedly; role permission sets are reset to the defaults.

Usage:
  python scripts/seed_roles.py
"""

import asyncio

from certi.database import connect_db, disconnect_db
from certi.services.seed_service import seed_roles_and_permissions, DEFAULT_PERMISSIONS


async def main():
    await connect_db()
    try:
        roles = await seed_roles_and_permissions()
    finally:
        await disconnect_db()

    print(f"Seeded {len(DEFAULT_PERMISSIONS)} permissions")
    for name in roles:
        print(f"  role: {name}")


if __name__ == "__main__":
    asyncio.run(main())
