"""
MongoDB database connection and utilities.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

LEVELS_COLLECTION = "levels"
TASKS_COLLECTION = "tasks"
MARKET_ITEMS_COLLECTION = "market_items"


class Database:
    """MongoDB database connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None
    
    @classmethod
    async def connect(cls):
        """Connect to MongoDB."""
        cls.client = AsyncIOMotorClient(settings.MONGO_URI)
        cls.db = cls.client[settings.MONGO_DB_NAME]
        
        # Create indexes
        await cls._create_indexes()
        
        logger.info(f"Connected to MongoDB: {settings.MONGO_DB_NAME}")
    
    @classmethod
    async def disconnect(cls):
        """Disconnect from MongoDB."""
        if cls.client:
            cls.client.close()
            logger.info("Disconnected from MongoDB")
    
    @classmethod
    async def _create_indexes(cls):
        """Create database indexes for better query performance."""
        # Levels collection
        await cls.db[LEVELS_COLLECTION].create_index("name", unique=True)
        await cls.db[LEVELS_COLLECTION].create_index("order")
        await cls.db[LEVELS_COLLECTION].create_index([("min_points", 1), ("max_points", 1)])
        await cls.db[LEVELS_COLLECTION].create_index("is_active")
        
        # Tasks collection
        await cls.db[TASKS_COLLECTION].create_index([("status", 1), ("brand", 1)])
        await cls.db[TASKS_COLLECTION].create_index([("start_date", 1), ("end_date", 1)])
        await cls.db[TASKS_COLLECTION].create_index("tags")
        await cls.db[TASKS_COLLECTION].create_index("featured")
        
        # Market items collection
        await cls.db[MARKET_ITEMS_COLLECTION].create_index([("status", 1), ("featured", 1)])
        await cls.db[MARKET_ITEMS_COLLECTION].create_index([("category", 1), ("brand", 1)])
        await cls.db[MARKET_ITEMS_COLLECTION].create_index("qp_price")
        await cls.db[MARKET_ITEMS_COLLECTION].create_index([("level_access", 1), ("min_level_points", 1)])
        await cls.db[MARKET_ITEMS_COLLECTION].create_index("tags")
    
    @classmethod
    def get_collection(cls, name: str):
        """Get a collection by name."""
        return cls.db[name]

