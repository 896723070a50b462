from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("db")

class MongoDatabase:
    """MongoDB connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]
    
    # Create indexes
    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Sessions expire together with their JWT
    await mongodb.db["sessions"].create_index(
        "created_at",
        expireAfterSeconds=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60
    )

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
