import pytest
from pymongo.errors import PyMongoError

from conftest import run
from ptoflow.core.errors import NotFoundError, RecordValidationError, StorageError, UnknownCollectionError
from ptoflow.db.kv import MemoryKeyValueStore
from ptoflow.db.mongo import MongoKeyValueStore
from ptoflow.db.record_store import RecordStore, match_filters
from ptoflow.db.schema import PTO_REQUESTS, TEAMS, USERS, primary_key_field
from ptoflow.db.validation import is_date_string, validate_against_schema


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return RecordStore(kv)


def test_primary_key_field():
    assert primary_key_field("pto_requests") == "pto_request_id"
    assert primary_key_field("pto_daily_schedules") == "pto_daily_schedule_id"
    assert primary_key_field("users") == "user_id"


def test_validation_accepts_declared_types():
    validate_against_schema(
        PTO_REQUESTS,
        {"requester_id": "u1", "total_days": 2.5, "daily_schedules": [], "start_date": "2025-03-03"},
    )
    validate_against_schema(USERS, {"isAdmin": False, "created_at": "2025-03-03T10:00:00.000Z"})


def test_validation_skips_absent_and_none_fields():
    validate_against_schema(PTO_REQUESTS, {})
    validate_against_schema(PTO_REQUESTS, {"manager_id": None, "extra_field": object()})


def test_validation_rejects_string_number():
    with pytest.raises(RecordValidationError) as excinfo:
        validate_against_schema(PTO_REQUESTS, {"total_days": "2"})
    assert excinfo.value.field == "total_days"


def test_validation_rejects_bool_as_number():
    with pytest.raises(RecordValidationError):
        validate_against_schema(PTO_REQUESTS, {"total_hours": True})


def test_validation_rejects_unparseable_date():
    with pytest.raises(RecordValidationError) as excinfo:
        validate_against_schema(PTO_REQUESTS, {"start_date": "next tuesday"})
    assert excinfo.value.field == "start_date"
    assert not is_date_string("")
    assert is_date_string("2025-03-03")


def test_validation_unknown_collection():
    with pytest.raises(UnknownCollectionError):
        validate_against_schema("holidays", {})


def test_create_assigns_id_and_does_not_mutate_input(store):
    data = {"team_name": "Platform"}
    team = run(store.create(TEAMS, data))
    assert team["team_id"]
    assert team["created_at"].endswith("Z")
    assert team["created_at"] == team["updated_at"]
    assert data == {"team_name": "Platform"}
    assert run(store.get_by_id(TEAMS, team["team_id"])) == team


def test_create_keeps_supplied_id(store):
    team = run(store.create(TEAMS, {"team_id": "t-1", "team_name": "Platform"}))
    assert team["team_id"] == "t-1"


def test_create_rejects_invalid_record_without_writing(store, kv):
    with pytest.raises(RecordValidationError):
        run(store.create(PTO_REQUESTS, {"requester_id": 42}))
    assert len(kv) == 0


def test_unknown_collection_raises_before_io(store, kv):
    with pytest.raises(UnknownCollectionError):
        run(store.create("holidays", {"name": "x"}))
    with pytest.raises(UnknownCollectionError):
        run(store.query("holidays"))
    assert len(kv) == 0


def test_get_by_id_missing_or_empty(store):
    assert run(store.get_by_id(TEAMS, "nope")) is None
    assert run(store.get_by_id(TEAMS, "")) is None


def test_update_missing_record_writes_nothing(store, kv):
    with pytest.raises(NotFoundError):
        run(store.update(TEAMS, "missing", {"team_name": "X"}))
    assert len(kv) == 0


def test_update_merges_and_refreshes_updated_at(store):
    team = run(
        store.create(
            TEAMS,
            {
                "team_id": "t-1",
                "team_name": "Platform",
                "team_department": "R&D",
                "created_at": "2020-01-01T00:00:00Z",
                "updated_at": "2020-01-01T00:00:00Z",
            },
        )
    )
    updated = run(store.update(TEAMS, "t-1", {"team_name": "Infra", "team_id": "other"}))
    assert updated["team_name"] == "Infra"
    assert updated["team_department"] == "R&D"
    assert updated["team_id"] == "t-1"
    assert updated["created_at"] == team["created_at"]
    assert updated["updated_at"] != team["updated_at"]


def test_update_rejects_invalid_partial(store):
    run(store.create(TEAMS, {"team_id": "t-1", "team_name": "Platform"}))
    with pytest.raises(RecordValidationError):
        run(store.update(TEAMS, "t-1", {"team_name": 7}))
    assert run(store.get_by_id(TEAMS, "t-1"))["team_name"] == "Platform"


def test_delete_and_query(store):
    a = run(store.create(TEAMS, {"team_name": "A"}))
    run(store.create(TEAMS, {"team_name": "B"}))
    run(store.create(USERS, {"display_name": "Not a team"}))

    assert len(run(store.query(TEAMS))) == 2
    assert [t["team_name"] for t in run(store.query(TEAMS, lambda t: t["team_name"] == "B"))] == ["B"]

    assert run(store.delete(TEAMS, a["team_id"])) is True
    assert run(store.get_by_id(TEAMS, a["team_id"])) is None
    assert len(run(store.query(TEAMS))) == 1


def test_match_filters_membership_and_exact():
    predicate = match_filters({"status": ["pending", "approved"], "leave_type": "vacation"})
    assert predicate({"status": "pending", "leave_type": "vacation"})
    assert predicate({"status": "approved", "leave_type": "vacation"})
    assert not predicate({"status": "declined", "leave_type": "vacation"})
    assert not predicate({"status": "pending", "leave_type": "sick"})
    assert match_filters({}) is None


def test_find_all_with_filters(store):
    run(store.create(PTO_REQUESTS, {"requester_id": "u1", "status": "pending"}))
    run(store.create(PTO_REQUESTS, {"requester_id": "u2", "status": "approved"}))
    run(store.create(PTO_REQUESTS, {"requester_id": "u3", "status": "declined"}))
    found = run(store.find_all(PTO_REQUESTS, {"status": ["pending", "approved"]}))
    assert sorted(r["requester_id"] for r in found) == ["u1", "u2"]
    assert len(run(store.find_all(PTO_REQUESTS))) == 3


def test_replace_collection(store):
    run(store.create(TEAMS, {"team_id": "old", "team_name": "Old"}))
    run(store.create(USERS, {"user_id": "u1", "display_name": "Kept"}))
    count = run(store.replace_collection(TEAMS, [{"team_name": "New 1"}, {"team_id": "n2", "team_name": "New 2"}]))
    assert count == 2
    names = sorted(t["team_name"] for t in run(store.query(TEAMS)))
    assert names == ["New 1", "New 2"]
    assert run(store.get_by_id(USERS, "u1"))["display_name"] == "Kept"


def test_replace_collection_invalid_payload_leaves_collection(store):
    run(store.create(TEAMS, {"team_id": "old", "team_name": "Old"}))
    with pytest.raises(RecordValidationError):
        run(store.replace_collection(TEAMS, [{"team_name": "Fine"}, {"team_name": 3}]))
    assert [t["team_id"] for t in run(store.query(TEAMS))] == ["old"]


def test_replace_collections_validates_everything_before_writing(store):
    run(store.create(TEAMS, {"team_id": "old", "team_name": "Old"}))
    run(store.create(USERS, {"user_id": "u1", "display_name": "Kept"}))
    snapshot = {
        TEAMS: [{"team_id": "new", "team_name": "New"}],
        USERS: [{"user_id": "u2", "display_name": 3}],
    }
    with pytest.raises(RecordValidationError):
        run(store.replace_collections(snapshot))
    assert [t["team_id"] for t in run(store.query(TEAMS))] == ["old"]
    assert [u["user_id"] for u in run(store.query(USERS))] == ["u1"]


def test_replace_collections_unknown_collection_writes_nothing(store):
    run(store.create(TEAMS, {"team_id": "old", "team_name": "Old"}))
    with pytest.raises(UnknownCollectionError):
        run(store.replace_collections({TEAMS: [], "holidays": []}))
    assert [t["team_id"] for t in run(store.query(TEAMS))] == ["old"]


class BrokenKeyValueStore(MemoryKeyValueStore):
    async def get(self, key):
        raise StorageError("backend down")

    async def keys(self, prefix):
        raise StorageError("backend down")

    async def delete(self, key):
        raise StorageError("backend down")


def test_read_failures_degrade_to_empty():
    store = RecordStore(BrokenKeyValueStore())
    assert run(store.get_by_id(TEAMS, "t-1")) is None
    assert run(store.query(TEAMS)) == []
    assert run(store.delete(TEAMS, "t-1")) is False


def test_memory_store_copies_values(kv):
    value = {"nested": {"n": 1}}
    run(kv.set("teams:a", value))
    value["nested"]["n"] = 2
    fetched = run(kv.get("teams:a"))
    assert fetched == {"nested": {"n": 1}}
    fetched["nested"]["n"] = 3
    assert run(kv.get("teams:a")) == {"nested": {"n": 1}}


class FakeCursor:
    def __init__(self, docs):
        self._docs = iter(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._docs)
        except StopIteration:
            raise StopAsyncIteration


class FakeMotorCollection:
    def __init__(self):
        self.docs = {}
        self.last_filter = None

    async def find_one(self, flt):
        return self.docs.get(flt["_id"])

    async def replace_one(self, flt, doc, upsert=False):
        self.docs[flt["_id"]] = doc

    async def delete_one(self, flt):
        self.docs.pop(flt["_id"], None)

    def find(self, flt, projection=None):
        self.last_filter = flt
        prefix = flt["_id"]["$regex"]
        return FakeCursor([{"_id": k} for k in sorted(self.docs) if k.startswith(prefix[1:].replace("\\", ""))])


def test_mongo_store_document_layout():
    collection = FakeMotorCollection()
    kv = MongoKeyValueStore(collection)
    run(kv.set("pto_requests:abc", {"status": "pending"}))
    run(kv.set("teams:t1", {"team_name": "A"}))

    assert collection.docs["pto_requests:abc"] == {
        "_id": "pto_requests:abc",
        "collection": "pto_requests",
        "value": {"status": "pending"},
    }
    assert run(kv.get("pto_requests:abc")) == {"status": "pending"}
    assert run(kv.keys("pto_requests:")) == ["pto_requests:abc"]
    assert collection.last_filter == {"_id": {"$regex": "^pto_requests:"}}

    run(kv.delete("pto_requests:abc"))
    assert run(kv.get("pto_requests:abc")) is None


class FailingMotorCollection:
    async def find_one(self, flt):
        raise PyMongoError("connection refused")

    async def replace_one(self, flt, doc, upsert=False):
        raise PyMongoError("connection refused")


def test_mongo_store_wraps_driver_errors():
    kv = MongoKeyValueStore(FailingMotorCollection())
    with pytest.raises(StorageError):
        run(kv.get("teams:t1"))
    with pytest.raises(StorageError):
        run(kv.set("teams:t1", {}))
