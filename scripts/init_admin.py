"""Script to create the initial admin user."""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskflow.core.statuses import UserRole
from taskflow.crud.user import user as user_crud
from taskflow.database import AsyncSessionLocal, init_db


async def init_admin(email: str, full_name: str):
    """Create the admin user if it doesn't exist."""
    await init_db()

    async with AsyncSessionLocal() as db:
        admin_user = await user_crud.get_by_email(db, email=email)

        if not admin_user:
            admin_user = await user_crud.create(
                db,
                obj_in={
                    "email": email,
                    "full_name": full_name,
                    "role": UserRole.ADMIN,
                    "is_active": True,
                },
            )
            print("✓ Admin user created")
        elif admin_user.role != UserRole.ADMIN:
            admin_user = await user_crud.update(db, db_obj=admin_user, obj_in={"role": UserRole.ADMIN})
            print("✓ Existing user promoted to admin")
        else:
            print("✓ Admin user already exists")

        print("\n" + "=" * 50)
        print(f"  Email: {admin_user.email}")
        print(f"  Actor id (X-Actor-Id header): {admin_user.id}")
        print("=" * 50)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--full-name", default="Administrator")
    args = parser.parse_args()
    asyncio.run(init_admin(args.email, args.full_name))
