"""
Initialise the admin user.
Creates a default admin with a wallet account so the admin console can be used on first start.
"""
import asyncio
import os

from sqlalchemy import select

from quickpe.core.config import get_settings
from quickpe.db.models import User
from quickpe.infrastructure.database.session import build_engine, build_session_factory, init_db, session_scope
from quickpe.modules.users import UserCreateInput, UserService

ADMIN_USERNAME = os.getenv("QUICKPE_ADMIN_USERNAME", "admin@quickpe.local")
ADMIN_PASSWORD = os.getenv("QUICKPE_ADMIN_PASSWORD", "admin123")


async def create_default_admin():
    """Create the default admin unless one already exists."""
    settings = get_settings()
    engine = build_engine(settings)
    await init_db(engine)

    try:
        async with session_scope(build_session_factory(engine)) as db:
            stmt = select(User).where(User.role == "admin").limit(1)
            result = await db.execute(stmt)
            if result.scalar_one_or_none() is not None:
                print("Admin user already exists, nothing to do")
                return

            service = UserService.with_session(db, settings)
            admin = await service.signup(
                UserCreateInput(
                    username=ADMIN_USERNAME,
                    password=ADMIN_PASSWORD,
                    first_name="QuickPe",
                    last_name="Admin",
                    role="admin",
                )
            )
            await db.commit()
    finally:
        await engine.dispose()

    print("=" * 50)
    print("Default admin created")
    print("=" * 50)
    print(f"Username:   {admin.username}")
    print(f"Password:   {ADMIN_PASSWORD}")
    print(f"QuickPe ID: {admin.quickpe_id}")
    print("=" * 50)
    print("Change the password after the first login!")
    print("=" * 50)


if __name__ == "__main__":
    asyncio.run(create_default_admin())
