import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from swisscoin.core.config import settings

logger = structlog.get_logger(__name__)

PARTICIPANT_COLLECTIONS = (
    ("transaction_participants", "transaction_id"),
    ("settlement_participants", "settlement_id"),
    ("subscription_participants", "subscription_id"),
)

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("mongo_disconnected")

async def create_indexes():
    """Create database indexes."""
    # Active profiles by phone hash
    await mongodb.db["profiles"].create_index([("phone_hash", ASCENDING), ("deleted_at", ASCENDING)])

    # Participant rows: unclaimed lookup, owner lookup, one row per (parent, phone)
    for collection, parent_field in PARTICIPANT_COLLECTIONS:
        await mongodb.db[collection].create_index([("phone_hash", ASCENDING), ("profile_id", ASCENDING)])
        await mongodb.db[collection].create_index("source_owner_id")
        await mongodb.db[collection].create_index(
            [(parent_field, ASCENDING), ("phone_hash", ASCENDING)],
            unique=True
        )

    # Shared reminders
    await mongodb.db["shared_reminders"].create_index([("phone_hash", ASCENDING), ("to_profile_id", ASCENDING)])
    await mongodb.db["shared_reminders"].create_index("from_profile_id")
    await mongodb.db["shared_reminders"].create_index(
        [("reminder_id", ASCENDING), ("phone_hash", ASCENDING)],
        unique=True,
        partialFilterExpression={"reminder_id": {"$type": "string"}}
    )

    # Contacts mirror and the records shared from it
    await mongodb.db["persons"].create_index("phone_hash")
    await mongodb.db["persons"].create_index("linked_profile_id")
    for collection in ("transaction_splits", "transaction_payers"):
        await mongodb.db[collection].create_index("transaction_id")
    for collection in (
        "subscription_subscribers",
        "subscription_payments",
        "subscription_settlements",
        "subscription_reminders",
    ):
        await mongodb.db[collection].create_index("subscription_id")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
