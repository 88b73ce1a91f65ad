# app/db/mongo.py
from contextlib import asynccontextmanager
from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
from app.core.logger import logger


client = AsyncIOMotorClient(settings.MONGODB_URI)
db = client[settings.MONGODB_DB]

# Collections
users_collection = db.get_collection("users")
doctors_collection = db.get_collection("doctors")
patients_collection = db.get_collection("patients")
appointments_collection = db.get_collection("appointments")


# Function to check DB connection
async def verify_mongodb_connection():
    try:
        await client.server_info()
        logger.info("MongoDB connection established")
    except Exception as e:
        logger.error(f"MongoDB connection failed: {str(e)}")


@asynccontextmanager
async def transaction():
    """
    Unit of work over a client session. Writes issued with the yielded
    session commit together when the block exits cleanly; any exception
    raised inside the block aborts them.
    Requires a replica set or sharded cluster.
    """
    async with await client.start_session() as session:
        async with session.start_transaction():
            yield session


def to_object_id(value) -> Optional[ObjectId]:
    """Parse an id from a path or token; malformed ids yield None."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None
