import re
from typing import Any, Optional

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from ptoflow.core.config import settings
from ptoflow.core.errors import StorageError
from ptoflow.db.kv import KeyValueStore


_mongo_client: Optional[AsyncIOMotorClient] = None


def get_mongo_client() -> AsyncIOMotorClient:
    global _mongo_client
    if _mongo_client is None:
        # Use certifi CA bundle to avoid SSL verify errors with Atlas
        client_kwargs = {"serverSelectionTimeoutMS": 30000}
        if settings.MONGODB_URI.startswith("mongodb+srv://") or "tls=true" in settings.MONGODB_URI:
            client_kwargs["tlsCAFile"] = certifi.where()
        _mongo_client = AsyncIOMotorClient(settings.MONGODB_URI, **client_kwargs)
    return _mongo_client


def get_mongo_db() -> AsyncIOMotorDatabase:
    client = get_mongo_client()
    return client[settings.MONGODB_DB_NAME]


def close_mongo_client() -> None:
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None


class MongoKeyValueStore(KeyValueStore):
    """One document per key: ``{_id: key, collection: <prefix>, value: ...}``."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get(self, key: str) -> Optional[Any]:
        try:
            doc = await self.collection.find_one({"_id": key})
        except PyMongoError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        return doc.get("value") if doc else None

    async def set(self, key: str, value: Any) -> None:
        try:
            await self.collection.replace_one(
                {"_id": key},
                {"_id": key, "collection": key.split(":", 1)[0], "value": value},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self.collection.delete_one({"_id": key})
        except PyMongoError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc

    async def keys(self, prefix: str) -> list[str]:
        try:
            cursor = self.collection.find({"_id": {"$regex": f"^{re.escape(prefix)}"}}, {"_id": 1})
            return [doc["_id"] async for doc in cursor]
        except PyMongoError as exc:
            raise StorageError(f"Failed to list keys under {prefix}: {exc}") from exc
