from motor.motor_asyncio import AsyncIOMotorDatabase

from ptoflow.core.config import settings
from ptoflow.db.mongo import get_mongo_db


async def ensure_indexes(db: AsyncIOMotorDatabase | None = None) -> None:
    """Create required MongoDB indexes (idempotent)."""
    if db is None:
        db = get_mongo_db()

    kv = db[settings.KV_COLLECTION]
    # Keys are the _id; the collection tag speeds up whole-collection scans and exports
    await kv.create_index([("collection", 1)], name="idx_kv_collection")
