"""
Setup Admin User Script.

Creates an administrator account, or promotes an existing account to admin.

Usage:
  python scripts/setup_admin.py --email admin@example.com --name Admin
  python scripts/setup_admin.py --email admin@example.com --check
"""

import argparse
import asyncio
import getpass
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from backstage.core.database import async_session_maker, engine  # noqa: E402
from backstage.modules.auth.exceptions import PasswordValidationError  # noqa: E402
from backstage.modules.auth.models import UserRole  # noqa: E402
from backstage.modules.auth.repository import UserRepository  # noqa: E402


async def check_admin(email: str) -> bool:
    async with async_session_maker() as session:
        user = await UserRepository(session).get_by_email(email)

    if user is None:
        print(f"\n❌ No account for {email}")
        return False

    print("\n✅ Account found:")
    print(f"   ID: {user.id}")
    print(f"   Name: {user.user_name}")
    print(f"   Role: {user.role}")
    return user.is_admin


async def create_admin(email: str, name: str, password: str) -> bool:
    async with async_session_maker() as session:
        repo = UserRepository(session)
        user = await repo.get_by_email(email)

        if user is not None:
            if user.is_admin:
                print(f"\n✅ {email} is already an admin")
                return True
            await repo.update(user, role=UserRole.ADMIN.value)
            await session.commit()
            print(f"\n✅ Promoted {email} to admin")
            return True

        try:
            user = await repo.create(
                email=email,
                password=password,
                user_name=name,
                role=UserRole.ADMIN.value,
            )
        except PasswordValidationError as e:
            print(f"\n❌ {e.message}")
            return False
        await session.commit()

    print(f"\n✅ Admin created: {user.email} (id {user.id})")
    return True


async def main() -> int:
    parser = argparse.ArgumentParser(description="Setup admin user")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument("--check", action="store_true", help="Only check the account")
    args = parser.parse_args()

    try:
        if args.check:
            ok = await check_admin(args.email)
        else:
            password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
            ok = await create_admin(args.email, args.name, password)
    finally:
        await engine.dispose()

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
