"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from okr_service.config import settings


logger = logging.getLogger(__name__)

# Indexes the service queries on, per collection: (keys, options)
INDEXES = {
    "objectives": [
        ([("tenant_id", ASCENDING), ("brand_id", ASCENDING), ("status", ASCENDING)], {}),
        ([("tenant_id", ASCENDING), ("brand_id", ASCENDING), ("is_active", ASCENDING)], {}),
    ],
    "dim_date": [([("id", ASCENDING)], {"unique": True})],
    "dim_platform": [([("id", ASCENDING)], {"unique": True})],
    "dim_metric_type": [([("id", ASCENDING)], {"unique": True})],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> int:
    """
    Create the objective and dimension indexes (no-op if they exist).

    Returns:
        Number of indexes ensured
    """
    count = 0
    for collection, indexes in INDEXES.items():
        for keys, options in indexes:
            await db[collection].create_index(keys, **options)
            count += 1
    return count


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure the query indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        count = await ensure_indexes(self.db)
        logger.info("Connected to MongoDB: %s (%d indexes)", settings.mongodb_db_name, count)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
