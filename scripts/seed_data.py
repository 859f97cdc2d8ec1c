"""
Seed script for the levels, tasks and market_items collections.
Run: python -m scripts.seed_data
"""

import asyncio
from datetime import datetime, timedelta
from motor.motor_asyncio import AsyncIOMotorClient
import os
from dotenv import load_dotenv

load_dotenv()

MONGO_URL = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("MONGO_DB_NAME", "qappio")

LEVELS_DATA = [
    {
        "name": "Apprentice",
        "color": "#8B7355",
        "min_points": 0,
        "max_points": 999,
        "order": 1,
        "benefits": ["Access to basic tasks", "Market access"],
        "market_access": True,
        "special_perks": [],
        "icon": "🥉",
        "is_active": True,
    },
    {
        "name": "Journeyman",
        "color": "#C0C0C0",
        "min_points": 1000,
        "max_points": 4999,
        "order": 2,
        "benefits": ["Intermediate tasks", "Weekly bonus", "Priority support"],
        "market_access": True,
        "special_perks": [],
        "icon": "🥈",
        "is_active": True,
    },
    {
        "name": "Master",
        "color": "#FFD700",
        "min_points": 5000,
        "max_points": 14999,
        "order": 3,
        "benefits": ["Premium tasks", "Exclusive discounts", "VIP events"],
        "market_access": True,
        "special_perks": [],
        "icon": "🥇",
        "is_active": True,
    },
    {
        "name": "Viralist",
        "color": "#E74C3C",
        "min_points": 15000,
        "max_points": 49999,
        "order": 4,
        "benefits": ["Sponsored tasks", "Exclusive rewards", "Beta features"],
        "market_access": True,
        "special_perks": [
            {
                "name": "Viral Bonus",
                "description": "Extra points when your posts go viral",
                "is_active": True,
            }
        ],
        "icon": "💎",
        "is_active": True,
    },
    {
        "name": "Qappian",
        "color": "#1A237E",
        "min_points": 50000,
        "max_points": 999999,
        "order": 5,
        "benefits": ["Access to everything", "Personal advisor", "Unlimited perks"],
        "market_access": True,
        "special_perks": [
            {
                "name": "Qappian Exclusive",
                "description": "Features reserved for Qappians",
                "is_active": True,
            },
            {
                "name": "Personal Manager",
                "description": "Dedicated account manager",
                "is_active": True,
            },
        ],
        "icon": "👑",
        "is_active": True,
    },
]


def build_tasks(now: datetime) -> list:
    """Task windows are relative to now so the seeded data is always live."""
    return [
        {
            "title": "Nike Sneaker Photo",
            "description": "Take a photo of your new Nike sneakers and share it. The shoe box must be visible.",
            "brand": "Nike",
            "category": "Photo",
            "status": "Active",
            "budget": 5000,
            "participants": 23,
            "max_participants": 100,
            "reward": 50,
            "start_date": now - timedelta(days=10),
            "end_date": now + timedelta(days=60),
            "is_weekly": False,
            "is_sponsored": True,
            "sponsor_brand": "Nike",
            "requirements": ["Shoe box visible", "Good lighting", "Clean background"],
            "tags": ["sneakers", "nike", "sports", "fashion"],
            "featured": False,
        },
        {
            "title": "Starbucks Drink Review",
            "description": "Try the new seasonal Starbucks drink and share your experience.",
            "brand": "Starbucks",
            "category": "Video",
            "status": "Active",
            "budget": 3000,
            "participants": 67,
            "max_participants": 150,
            "reward": 30,
            "start_date": now - timedelta(days=2),
            "end_date": now + timedelta(days=5),
            "is_weekly": True,
            "is_sponsored": False,
            "sponsor_brand": None,
            "requirements": ["At least 30 seconds of video", "Clear audio"],
            "tags": ["coffee", "starbucks", "drinks", "review"],
            # Weekly tasks are always featured
            "featured": True,
        },
        {
            "title": "Samsung Galaxy S24 Unboxing",
            "description": "Film the unboxing of your new Samsung Galaxy S24.",
            "brand": "Samsung",
            "category": "Video",
            "status": "Active",
            "budget": 10000,
            "participants": 12,
            "max_participants": 50,
            "reward": 200,
            "start_date": now + timedelta(days=3),
            "end_date": now + timedelta(days=30),
            "is_weekly": False,
            "is_sponsored": True,
            "sponsor_brand": "Samsung",
            "requirements": ["HD quality", "At least 2 minutes", "Narrated"],
            "tags": ["phone", "samsung", "tech", "unboxing"],
            "featured": False,
        },
    ]


def build_market_items(now: datetime) -> list:
    no_discount = {"percentage": 0, "start_date": None, "end_date": None, "is_active": False}
    no_rating = {"average": 0, "count": 0}
    return [
        {
            "name": "iPhone 15 Pro",
            "description": "The latest iPhone 15 Pro with 128GB storage",
            "brand": "Apple",
            "category": "Electronics",
            "qp_price": 25000,
            "real_price": 50000,
            "currency": "TL",
            "stock": 5,
            "level_access": "Gold+",
            "min_level_points": 5000,
            "images": [{"url": "https://example.com/iphone15pro.jpg", "alt": "iPhone 15 Pro", "is_primary": True}],
            "status": "Active",
            "featured": True,
            "discount": no_discount,
            "specifications": [
                {"key": "Storage", "value": "128GB"},
                {"key": "Color", "value": "Space Black"},
                {"key": "Warranty", "value": "2 years"},
            ],
            "tags": ["phone", "apple", "iphone", "premium"],
            "sales": 0,
            "revenue": 0,
            "rating": no_rating,
            "delivery_info": {"type": "Physical", "estimated_days": 3, "description": "Shipped by courier"},
        },
        {
            "name": "Starbucks 50 TL Gift Card",
            "description": "50 TL gift card valid at Starbucks stores",
            "brand": "Starbucks",
            "category": "Gift Card",
            "qp_price": 1000,
            "real_price": 50,
            "currency": "TL",
            "stock": -1,
            "level_access": "All Levels",
            "min_level_points": 0,
            "images": [{"url": "https://example.com/starbucks-card.jpg", "alt": "Starbucks Gift Card", "is_primary": True}],
            "status": "Active",
            "featured": True,
            "discount": no_discount,
            "specifications": [
                {"key": "Value", "value": "50 TL"},
                {"key": "Validity", "value": "2 years"},
                {"key": "Usage", "value": "All Starbucks stores"},
            ],
            "tags": ["gift", "coffee", "starbucks", "card"],
            "sales": 156,
            "revenue": 156000,
            "rating": no_rating,
            "delivery_info": {"type": "Digital", "estimated_days": 0, "description": "Sent instantly by email"},
        },
        {
            "name": "Nike Air Max 270",
            "description": "Comfortable and stylish Nike Air Max 270 sneakers",
            "brand": "Nike",
            "category": "Sports",
            "qp_price": 8000,
            "real_price": 1200,
            "currency": "TL",
            "stock": 15,
            "level_access": "Silver+",
            "min_level_points": 1000,
            "images": [{"url": "https://example.com/nike-air-max.jpg", "alt": "Nike Air Max 270", "is_primary": True}],
            "status": "Active",
            "featured": False,
            "discount": {
                "percentage": 20,
                "start_date": now - timedelta(days=7),
                "end_date": now + timedelta(days=30),
                "is_active": True,
            },
            "specifications": [
                {"key": "Size", "value": "42"},
                {"key": "Color", "value": "Black/White"},
                {"key": "Material", "value": "Mesh/Synthetic"},
            ],
            "tags": ["sneakers", "nike", "sports", "running"],
            "sales": 23,
            "revenue": 147200,
            "rating": {"average": 4.5, "count": 18},
            "delivery_info": {"type": "Physical", "estimated_days": 5, "description": "Shipped by courier"},
        },
    ]


async def seed_collection(db, name: str, documents: list, now: datetime) -> int:
    collection = db[name]

    existing_count = await collection.count_documents({})
    if existing_count > 0:
        print(f"Found {existing_count} existing {name}. Dropping and re-seeding...")
        await collection.drop()

    for doc in documents:
        doc["created_at"] = now
        doc["updated_at"] = now

    result = await collection.insert_many(documents)
    return len(result.inserted_ids)


async def seed_data():
    """Seed levels, tasks and market items."""
    client = AsyncIOMotorClient(MONGO_URL)
    db = client[DB_NAME]
    print(f"Connected to MongoDB: {MONGO_URL}/{DB_NAME}")

    now = datetime.utcnow()
    levels = await seed_collection(db, "levels", LEVELS_DATA, now)
    tasks = await seed_collection(db, "tasks", build_tasks(now), now)
    items = await seed_collection(db, "market_items", build_market_items(now), now)

    await db["levels"].create_index("name", unique=True)
    print("Created indexes")

    print("\nData summary:")
    print(f"  Levels: {levels}")
    print(f"  Tasks: {tasks}")
    print(f"  Market items: {items}")

    for level in await db["levels"].find({}).sort("order", 1).to_list(length=100):
        print(f"  {level['icon']} {level['name']} ({level['min_points']:,}-{level['max_points']:,} pts)")

    client.close()
    print("\n✅ Seed complete!")


if __name__ == "__main__":
    asyncio.run(seed_data())
