"""Seed a demo operator, a demo tenant with complete preferences, and a property catalog."""
import argparse
import asyncio
import random
import sys
from datetime import date, timedelta
sys.path.insert(0, ".")

from sqlalchemy import select
from app.database import async_session_factory
from app.models.preferences import Preferences
from app.models.property import Property
from app.models.user import User


OPERATOR_EMAIL = "operator@rentmatch.test"
TENANT_EMAIL = "tenant@rentmatch.test"

AREAS = [
    ("SW1A 1AA", "Westminster, London"),
    ("SW1A 2AB", "St James's, London"),
    ("SW3 4RY", "Chelsea, London"),
    ("E1 6AN", "Shoreditch, London"),
    ("N1 9GU", "Islington, London"),
    ("M1 1AE", "Piccadilly, Manchester"),
]
PROPERTY_TYPES = ["flat", "house", "studio", "maisonette"]
FURNISHING = ["furnished", "unfurnished", "part_furnished"]
LET_DURATIONS = ["short_term", "6_months", "12_months", "long_term", "flexible"]
LIFESTYLE_TAGS = ["gym", "garden", "balcony", "concierge", "parking", "bike_storage", "pet_friendly"]

TENANT_PREFERENCES = {
    "primary_postcode": "SW1A 1AA",
    "min_price": 1500,
    "max_price": 2500,
    "min_bedrooms": 2,
    "max_bedrooms": 3,
    "furnishing": "furnished",
    "let_duration": "12_months",
    "property_type": ["flat"],
    "lifestyle_features": ["gym", "balcony"],
    "convenience_features": ["parking"],
    "smoker": False,
}


def random_property(operator_id, index: int) -> Property:
    postcode, area = random.choice(AREAS)
    bedrooms = random.randint(0, 4)
    kind = random.choice(PROPERTY_TYPES)
    size = f"{bedrooms} bed" if bedrooms else "Studio"
    return Property(
        operator_id=operator_id,
        title=f"{size} {kind} in {area.split(',')[0]}",
        address=f"{index + 1} Demo Street, {area}",
        postcode=postcode,
        price=random.randrange(900, 4000, 50),
        bedrooms=bedrooms,
        bathrooms=random.randint(1, 3),
        property_type=kind,
        furnishing=random.choice(FURNISHING),
        let_duration=random.choice(LET_DURATIONS),
        lifestyle_features=random.sample(LIFESTYLE_TAGS, random.randint(0, 4)),
        available_from=date.today() + timedelta(days=random.randint(0, 60)),
    )


async def get_or_create_user(session, email: str, role: str) -> User:
    existing = await session.execute(select(User).where(User.email == email))
    user = existing.scalar_one_or_none()
    if user is None:
        user = User(email=email, full_name=f"Demo {role.title()}", role=role)
        session.add(user)
        await session.flush()
        print(f"  Created {role} {email}")
    else:
        print(f"  {role.title()} {email} already exists, reusing.")
    return user


async def seed(count: int):
    async with async_session_factory() as session:
        operator = await get_or_create_user(session, OPERATOR_EMAIL, "operator")
        tenant = await get_or_create_user(session, TENANT_EMAIL, "tenant")

        prefs_result = await session.execute(
            select(Preferences).where(Preferences.user_id == tenant.id)
        )
        if prefs_result.scalar_one_or_none() is None:
            session.add(Preferences(user_id=tenant.id, **TENANT_PREFERENCES))
            print("  Seeded tenant preferences.")

        for i in range(count):
            session.add(random_property(operator.id, i))
        await session.commit()

    print(f"Done seeding {count} properties.")
    print(f"Tenant id: {tenant.id}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo RentMatch data")
    parser.add_argument("--count", type=int, default=50, help="Number of properties to create")
    args = parser.parse_args()
    asyncio.run(seed(args.count))
