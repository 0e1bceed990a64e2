"""
Seed HR Account

Creates the initial HR account for SASM-IMS.
Run this script once to set up the first HR user.

Credentials come from the environment (or command-line arguments):
    HR_EMAIL, HR_PASSWORD, HR_FIRST_NAME, HR_LAST_NAME

Usage:
    HR_EMAIL=hr@example.edu HR_PASSWORD=... python scripts/seed_hr_account.py
    python scripts/seed_hr_account.py --email hr@example.edu --password ...
"""

import argparse
import asyncio
import os
import sys

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sasm_ims.core.config import settings
from sasm_ims.core.security import hash_password
from sasm_ims.modules.office_profiles.models import OfficeProfile  # noqa: F401 - FK resolution
from sasm_ims.modules.users.models import User, UserRole


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the initial HR account")
    parser.add_argument("--email", default=os.getenv("HR_EMAIL"))
    parser.add_argument("--password", default=os.getenv("HR_PASSWORD"))
    parser.add_argument("--first-name", default=os.getenv("HR_FIRST_NAME", "HR"))
    parser.add_argument("--last-name", default=os.getenv("HR_LAST_NAME", "Administrator"))
    return parser.parse_args()


async def seed_hr_account(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create the HR user if it doesn't exist."""
    engine = create_async_engine(settings.database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        existing_user = result.scalar_one_or_none()

        if existing_user:
            print(f"Account already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            await engine.dispose()
            return

        hr_user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.HR,
            status="active",
            is_verified=True,  # Pre-verified
        )

        db.add(hr_user)
        await db.commit()
        await db.refresh(hr_user)

        print("HR account created successfully!")
        print(f"  Email: {hr_user.email}")
        print(f"  Name: {first_name} {last_name}")
        print(f"  ID: {hr_user.id}")

    await engine.dispose()


if __name__ == "__main__":
    args = parse_args()
    if not args.email or not args.password:
        print("HR_EMAIL and HR_PASSWORD (or --email and --password) are required")
        sys.exit(1)
    if len(args.password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    asyncio.run(seed_hr_account(args.email, args.password, args.first_name, args.last_name))
