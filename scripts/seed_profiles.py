"""Seed demo users and profiles for local development.

Goes through UserService so the same validation applies as for real
sign-ups.  Safe to re-run: existing emails are reused and their profiles
merged.
"""
import asyncio
import sys
sys.path.insert(0, ".")

from spark.database import async_session_factory
from spark.services.user_service import UserService


DEMO_PROFILES = [
    {
        "email": "emma@example.com",
        "name": "Emma",
        "age": 26,
        "gender": "woman",
        "looking_for": "serious",
        "bio": "Love hiking, good coffee, and spontaneous adventures.",
        "interests": ["Travel", "Photography", "Coffee", "Hiking", "Music", "Books"],
        "city": "San Francisco",
        "latitude": 37.7749,
        "longitude": -122.4194,
    },
    {
        "email": "alex@example.com",
        "name": "Alex",
        "age": 28,
        "gender": "man",
        "looking_for": "casual",
        "bio": "Photographer and adventure seeker",
        "interests": ["Photography", "Climbing"],
        "city": "Oakland",
        "latitude": 37.8044,
        "longitude": -122.2712,
    },
    {
        "email": "sarah@example.com",
        "name": "Sarah",
        "age": 25,
        "gender": "woman",
        "looking_for": "friends",
        "bio": "Yoga instructor and foodie",
        "interests": ["Yoga", "Cooking"],
    },
    {
        "email": "mike@example.com",
        "name": "Mike",
        "age": 30,
        "gender": "man",
        "looking_for": "unsure",
        "bio": "Software engineer who loves music",
        "interests": ["Music", "Coding", "Vinyl"],
    },
]


async def seed():
    service = UserService()
    async with async_session_factory() as session:
        for entry in DEMO_PROFILES:
            fields = dict(entry)
            email = fields.pop("email")
            user = await service.login(session, email)
            await service.upsert_profile(session, user.id, fields)
            print(f"  Seeded {fields['name']} ({email}) -> user-id {user.id}")
        await session.commit()
    print("Done seeding profiles.")


if __name__ == "__main__":
    asyncio.run(seed())
