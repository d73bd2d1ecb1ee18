"""
Database seeding script for initial data.

Creates an ADMIN user, a demo company and two employees with PTO balances
for testing and development. Seeding (and admin grants) is how hours enter
the system; donations only move them.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.company import Company
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from sqlalchemy import select


async def seed_users():
    """
    Seed initial data.

    Creates:
    - 1 ADMIN user
    - 1 company (cross-company donations allowed)
    - 2 EMPLOYEE users with opening PTO balances
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting seeding...")

        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ADMIN user already exists, skipping seeding")
            return

        company = Company(name="Acme Corp", allow_cross_company=True)
        db.add(company)
        await db.flush()

        db.add(User(
            first_name="Site",
            last_name="Admin",
            email="admin@ptobuddy.com",
            phone="555-0100",
            username="admin",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            is_active=True
        ))
        print("Created ADMIN user (username: admin, password: admin123)")

        db.add(User(
            first_name="Dana",
            last_name="Donor",
            email="dana@acme.com",
            phone="555-0101",
            username="dana",
            hashed_password=get_password_hash("dana123"),
            role=UserRole.EMPLOYEE,
            company_id=company.id,
            can_donate=True,
            available_pto_hours=80
        ))
        print("Created EMPLOYEE user (username: dana, password: dana123, 80 PTO hours)")

        db.add(User(
            first_name="Riley",
            last_name="Recipient",
            email="riley@acme.com",
            phone="555-0102",
            username="riley",
            hashed_password=get_password_hash("riley123"),
            role=UserRole.EMPLOYEE,
            company_id=company.id,
            need_support=True,
            available_pto_hours=0
        ))
        print("Created EMPLOYEE user (username: riley, password: riley123)")

        await db.commit()
        print("Seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_users())
