"""
Seed script to create one demo user per role for development.

Run with: python -m scripts.seed_users
"""
import asyncio

from sqlalchemy import select

from propledger.config import settings
from propledger.database import Database
from propledger.models.user import User, UserRole
from propledger.services.auth import get_password_hash


DEMO_PASSWORD = "Password123!"
DEMO_USERS = [
    ("Demo Buyer", "buyer@example.com", UserRole.BUYER),
    ("Demo Seller", "seller@example.com", UserRole.SELLER),
    ("Demo Agent", "agent@example.com", UserRole.AGENT),
    ("Demo Admin", "admin@example.com", UserRole.ADMIN),
]


async def create_demo_users():
    """Create the demo users that do not exist yet"""
    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await database.create_all()

    created = []
    async with database.session_maker() as session:
        for name, email, role in DEMO_USERS:
            result = await session.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                continue

            session.add(User(
                name=name,
                email=email,
                password_hash=get_password_hash(DEMO_PASSWORD),
                role=role,
            ))
            created.append(email)

        await session.commit()

    await database.dispose()

    print(f"\n{'='*50}")
    print(f"Created {len(created)} demo user(s)" if created else "Demo users already exist!")
    print(f"{'='*50}")
    for name, email, role in DEMO_USERS:
        print(f"{role.value:<8} {email}")
    print(f"Password: {DEMO_PASSWORD}")
    print(f"{'='*50}\n")


if __name__ == "__main__":
    asyncio.run(create_demo_users())
