"""Create or promote an admin account

Usage:
    python scripts/create_admin.py admin@example.com 'S3cret-pass' --first-name Site --last-name Admin
"""

import argparse
import asyncio

from sqlalchemy import select

from swapmarket.core.database import async_session_maker, close_db
from swapmarket.core.security import hash_password
from swapmarket.models.user import RoleName, UserProfile
from swapmarket.services.auth import AuthService
from swapmarket.services.credits import CreditService


async def create_admin(email: str, password: str, first_name: str, last_name: str):
    async with async_session_maker() as session:
        service = AuthService(session, redis=None)
        result = await session.execute(select(UserProfile).where(UserProfile.email == email.strip().lower()))
        user = result.scalar_one_or_none()

        if user is None:
            user = await service.signup(email, password, first_name, last_name, role=RoleName.ADMIN)
            print(f"Created admin account: {user.email}")
        else:
            user.role = await service.get_or_create_role(RoleName.ADMIN.value)
            user.password_hash = hash_password(password)
            user.is_active = True
            await CreditService(session).ensure_account(user.id)
            await session.commit()
            print(f"Existing account promoted to admin and password reset: {user.email}")

    await close_db()


def main():
    parser = argparse.ArgumentParser(description="Create or promote an admin account")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Site")
    parser.add_argument("--last-name", default="Admin")
    args = parser.parse_args()
    asyncio.run(create_admin(args.email, args.password, args.first_name, args.last_name))


if __name__ == "__main__":
    main()
