"""Tests for device_spine.store.memory.InMemoryDocumentStore."""

import threading

import pytest

from device_spine.core.errors import DuplicateDocumentError, StorageError, StoreUnavailableError
from device_spine.store.memory import InMemoryDocumentStore, matches, sort_documents
from device_spine.store.protocols import ASCENDING, DESCENDING, DocumentStore


@pytest.fixture
def devices():
    return InMemoryDocumentStore(timeout_seconds=0.5).collection("devices")


class TestMatches:
    def test_equality_and_missing_field_matches_none(self):
        assert matches({"a": 1}, {"a": 1})
        assert matches({"a": 1}, {"b": None})
        assert not matches({"a": 1}, {"a": None})

    def test_scalar_matches_array_element(self):
        assert matches({"roles": ["ops", "lab"]}, {"roles": "lab"})
        assert not matches({"roles": ["ops"]}, {"roles": "lab"})

    def test_subdocument_and_dotted_path(self):
        doc = {"assetReference": {"module": "m", "id": "1"}}
        assert matches(doc, {"assetReference": {"module": "m", "id": "1"}})
        assert matches(doc, {"assetReference.id": "1"})

    def test_range_and_set_operators(self):
        doc = {"n": 5}
        assert matches(doc, {"n": {"$gte": 5, "$lt": 6}})
        assert not matches(doc, {"n": {"$gt": 5}})
        assert matches(doc, {"n": {"$in": [1, 5]}})
        assert matches(doc, {"n": {"$nin": [1, 2]}})
        assert matches(doc, {"n": {"$ne": 4}})
        assert matches(doc, {"m": {"$exists": False}})

    def test_and_or(self):
        doc = {"a": 1, "b": 2}
        assert matches(doc, {"$or": [{"a": 2}, {"b": 2}]})
        assert not matches(doc, {"$and": [{"a": 1}, {"b": 3}]})

    def test_unknown_operator(self):
        with pytest.raises(StorageError):
            matches({"a": 1}, {"a": {"$regex": "x"}})


class TestSortDocuments:
    def test_multi_key_with_nulls_first(self):
        docs = [
            {"deleted": True, "n": 3},
            {"deleted": False, "n": 1},
            {"deleted": False, "n": 2},
            {"deleted": False},
        ]
        ordered = sort_documents(docs, [("deleted", ASCENDING), ("n", DESCENDING)])
        assert [d.get("n") for d in ordered] == [2, 1, None, 3]


class TestCollection:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryDocumentStore(), DocumentStore)

    def test_insert_assigns_id_and_copies(self, devices):
        doc = {"hardwareId": "HW1"}
        inserted_id = devices.insert_one(doc)
        assert doc["_id"] == inserted_id
        doc["hardwareId"] = "changed"
        assert devices.find_one({"_id": inserted_id})["hardwareId"] == "HW1"

    def test_unique_index(self, devices):
        devices.create_index([("hardwareId", 1)], unique=True)
        devices.insert_one({"hardwareId": "HW1"})
        with pytest.raises(DuplicateDocumentError) as excinfo:
            devices.insert_one({"hardwareId": "HW1"})
        assert excinfo.value.index == "hardwareId_1"
        assert "E11000" in str(excinfo.value)

    def test_partial_unique_index_ignores_filtered_documents(self, devices):
        devices.create_index(
            [("hardwareId", 1)], unique=True, partial_filter={"deleted": False}
        )
        devices.insert_one({"hardwareId": "HW1", "deleted": True})
        devices.insert_one({"hardwareId": "HW1", "deleted": False})
        with pytest.raises(DuplicateDocumentError):
            devices.insert_one({"hardwareId": "HW1", "deleted": False})
        assert devices.count({"hardwareId": "HW1"}) == 2

    def test_create_index_idempotent_and_rejects_existing_duplicates(self, devices):
        assert devices.create_index([("token", 1)]) == "token_1"
        assert devices.create_index([("token", 1)]) == "token_1"
        devices.insert_one({"code": "on"})
        devices.insert_one({"code": "on"})
        with pytest.raises(DuplicateDocumentError):
            devices.create_index([("code", 1)], unique=True)
        assert devices.index_names() == ["token_1"]

    def test_replace_checks_unique_and_keeps_id(self, devices):
        devices.create_index([("hardwareId", 1)], unique=True)
        first = devices.insert_one({"hardwareId": "HW1"})
        devices.insert_one({"hardwareId": "HW2"})
        with pytest.raises(DuplicateDocumentError):
            devices.replace_one({"_id": first}, {"hardwareId": "HW2"})
        assert devices.replace_one({"_id": first}, {"hardwareId": "HW3"}) == 1
        assert devices.find_one({"hardwareId": "HW3"})["_id"] == first
        assert devices.replace_one({"_id": "nope"}, {"hardwareId": "HW4"}) == 0

    def test_find_sort_skip_limit(self, devices):
        for n in range(5):
            devices.insert_one({"n": n})
        page = list(devices.find({}, sort=[("n", DESCENDING)], skip=1, limit=2))
        assert [d["n"] for d in page] == [3, 2]

    def test_delete_counts(self, devices):
        devices.insert_one({"g": "a"})
        devices.insert_one({"g": "a"})
        devices.insert_one({"g": "b"})
        assert devices.delete_one({"g": "b"}) == 1
        assert devices.delete_one({"g": "b"}) == 0
        assert devices.delete_many({"g": "a"}) == 2

    def test_find_one_and_increment_returns_previous(self, devices):
        group_id = devices.insert_one({"token": "G1", "lastIndex": 0})
        before = devices.find_one_and_increment({"_id": group_id}, "lastIndex", 1)
        assert before["lastIndex"] == 0
        assert devices.find_one({"_id": group_id})["lastIndex"] == 1
        assert devices.find_one_and_increment({"_id": "missing"}, "lastIndex") is None

    def test_increment_is_atomic_under_threads(self, devices):
        group_id = devices.insert_one({"lastIndex": 0})
        seen = []
        lock = threading.Lock()

        def bump():
            for _ in range(50):
                value = devices.find_one_and_increment({"_id": group_id}, "lastIndex")["lastIndex"]
                with lock:
                    seen.append(value)

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert sorted(seen) == list(range(200))

    def test_lock_timeout_is_store_unavailable(self, devices):
        acquired = threading.Event()
        release = threading.Event()

        def hold():
            with devices._locked():
                acquired.set()
                release.wait(2)

        thread = threading.Thread(target=hold)
        thread.start()
        acquired.wait(2)
        try:
            with pytest.raises(StoreUnavailableError):
                devices.count({})
        finally:
            release.set()
            thread.join()


class TestStore:
    def test_collections_are_shared_by_name(self):
        store = InMemoryDocumentStore()
        assert store.collection("sites") is store.collection("sites")
        store.collection("devices")
        assert store.collection_names() == ["devices", "sites"]
        store.close()
