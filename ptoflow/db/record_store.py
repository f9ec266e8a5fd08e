"""Record store over the key-value port.

Every record lives under ``"<collection>:<id>"`` as one JSON object. There
are no secondary indexes: queries list the collection prefix and filter in
memory, so each query costs O(collection size).
"""
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ptoflow.core.errors import NotFoundError, StorageError, UnknownCollectionError
from ptoflow.db.kv import KeyValueStore
from ptoflow.db.schema import SCHEMA, primary_key_field
from ptoflow.db.validation import validate_against_schema


logger = logging.getLogger("uvicorn.error")

Predicate = Callable[[dict], bool]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_id() -> str:
    return str(uuid.uuid4())


def match_filters(filters: Optional[dict[str, Any]]) -> Optional[Predicate]:
    """Predicate for field filters: a list value means "is one of", anything else exact match."""
    if not filters:
        return None
    items = list(filters.items())

    def predicate(record: dict) -> bool:
        for field, expected in items:
            value = record.get(field)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True

    return predicate


class RecordStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv
        self.schema = SCHEMA

    def _require_collection(self, collection: str) -> None:
        if collection not in self.schema:
            raise UnknownCollectionError(collection)

    @staticmethod
    def key(collection: str, record_id: str) -> str:
        return f"{collection}:{record_id}"

    def _prepare_new(self, collection: str, data: dict) -> dict:
        record = dict(data)
        id_field = primary_key_field(collection)
        if not record.get(id_field):
            record[id_field] = generate_id()
        now = utcnow_iso()
        if not record.get("created_at"):
            record["created_at"] = now
        if not record.get("updated_at"):
            record["updated_at"] = now
        validate_against_schema(collection, record)
        return record

    async def create(self, collection: str, data: dict) -> dict:
        self._require_collection(collection)
        record = self._prepare_new(collection, data)
        await self.kv.set(self.key(collection, record[primary_key_field(collection)]), record)
        return record

    async def get_by_id(self, collection: str, record_id: Optional[str]) -> Optional[dict]:
        if not record_id:
            return None
        key = self.key(collection, record_id)
        try:
            return await self.kv.get(key)
        except StorageError as exc:
            logger.error("Error retrieving %s: %s", key, exc)
            return None

    async def update(self, collection: str, record_id: str, data: dict) -> dict:
        self._require_collection(collection)
        key = self.key(collection, record_id)
        existing = await self.kv.get(key)
        if not existing:
            raise NotFoundError(f"Record not found: {key}")
        # Read-merge-write without a version check: concurrent updates to
        # the same key can lose one of the writes
        updated = {**existing, **data, "updated_at": utcnow_iso()}
        updated[primary_key_field(collection)] = existing.get(primary_key_field(collection), record_id)
        validate_against_schema(collection, updated)
        await self.kv.set(key, updated)
        return updated

    async def delete(self, collection: str, record_id: Optional[str]) -> bool:
        if not record_id:
            return False
        key = self.key(collection, record_id)
        try:
            await self.kv.delete(key)
            return True
        except StorageError as exc:
            logger.error("Error deleting %s: %s", key, exc)
            return False

    async def query(self, collection: str, predicate: Optional[Predicate] = None) -> list[dict]:
        self._require_collection(collection)
        try:
            keys = await self.kv.keys(f"{collection}:")
            if not keys:
                return []
            items = await asyncio.gather(*(self.kv.get(k) for k in keys))
        except StorageError as exc:
            logger.error("Error querying %s: %s", collection, exc)
            return []
        records = [item for item in items if item is not None]
        return [r for r in records if predicate(r)] if predicate else records

    async def find_all(self, collection: str, filters: Optional[dict[str, Any]] = None) -> list[dict]:
        return await self.query(collection, match_filters(filters))

    async def find_by_field(self, collection: str, field: str, value: Any) -> list[dict]:
        return await self.query(collection, lambda r: r.get(field) == value)

    async def export_collection(self, collection: str) -> list[dict]:
        return await self.query(collection)

    async def replace_collection(self, collection: str, records: Iterable[dict]) -> int:
        """Replace every record of ``collection`` with ``records``.

        Records are validated before anything is deleted, so a bad payload
        leaves the collection untouched.
        """
        return (await self.replace_collections({collection: records}))[collection]

    async def replace_collections(self, snapshot: dict[str, Iterable[dict]]) -> dict[str, int]:
        """Replace each named collection. Every record of every collection is
        validated before the first delete."""
        for collection in snapshot:
            self._require_collection(collection)
        prepared = {c: [self._prepare_new(c, r) for r in records] for c, records in snapshot.items()}
        counts = {}
        for collection, records in prepared.items():
            for key in await self.kv.keys(f"{collection}:"):
                await self.kv.delete(key)
            id_field = primary_key_field(collection)
            for record in records:
                await self.kv.set(self.key(collection, record[id_field]), record)
            counts[collection] = len(records)
        return counts
