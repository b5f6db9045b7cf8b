"""MongoDB document store.

Requires ``pymongo`` (install via ``pip install device-spine[mongo]``).

Driver exceptions never leave this module. They are translated into the
registry taxonomy:

    ==========================================  ==========================
    pymongo                                     registry
    ==========================================  ==========================
    DuplicateKeyError                           DuplicateDocumentError
    ServerSelectionTimeoutError, NetworkTimeout StoreUnavailableError
    ExecutionTimeout, AutoReconnect,            StoreUnavailableError
    ConnectionFailure, any ``exc.timeout``
    any other PyMongoError                      StorageError
    ==========================================  ==========================

Every operation runs under the client-wide ``timeoutMS`` budget, so a
stalled server surfaces as :class:`StoreUnavailableError` rather than a hang.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from device_spine.core.errors import (
    ConfigError,
    DuplicateDocumentError,
    StorageError,
    StoreUnavailableError,
)
from device_spine.core.logging import get_logger
from device_spine.store.protocols import Document, IndexKeys, SortSpec

logger = get_logger(__name__)


def _require_pymongo() -> Any:
    try:
        import pymongo
    except ImportError:
        raise ConfigError(
            "pymongo is required for the MongoDB store. Install with: pip install device-spine[mongo]"
        ) from None
    return pymongo


def _index_name(details: Mapping[str, Any] | None) -> str | None:
    pattern = (details or {}).get("keyPattern")
    if not pattern:
        return None
    return "_".join(f"{field}_{direction}" for field, direction in pattern.items())


@contextmanager
def translate_errors(collection: str | None = None) -> Iterator[None]:
    """Translate pymongo exceptions raised inside the block."""
    from pymongo import errors

    try:
        yield
    except errors.DuplicateKeyError as e:
        raise DuplicateDocumentError(
            str(e),
            index=_index_name(e.details),
            cause=e,
        ).with_context(collection=collection) from e
    except (
        errors.ServerSelectionTimeoutError,
        errors.NetworkTimeout,
        errors.ExecutionTimeout,
        errors.AutoReconnect,
        errors.ConnectionFailure,
    ) as e:
        raise StoreUnavailableError(
            f"MongoDB unavailable: {e}", cause=e
        ).with_context(collection=collection) from e
    except errors.PyMongoError as e:
        if getattr(e, "timeout", False):
            raise StoreUnavailableError(
                f"MongoDB operation timed out: {e}", cause=e
            ).with_context(collection=collection) from e
        raise StorageError(f"MongoDB error: {e}", cause=e).with_context(
            collection=collection
        ) from e


class MongoCollection:
    """Adapter from a pymongo ``Collection`` to :class:`DocumentCollection`."""

    def __init__(self, raw: Any):
        self._raw = raw
        self.name = raw.name

    def create_index(
        self,
        keys: IndexKeys,
        *,
        unique: bool = False,
        partial_filter: Mapping[str, Any] | None = None,
    ) -> str:
        options: dict[str, Any] = {"unique": unique}
        if partial_filter:
            options["partialFilterExpression"] = dict(partial_filter)
        with translate_errors(self.name):
            return self._raw.create_index(list(keys), **options)

    def find(
        self,
        filter: Mapping[str, Any],
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> Iterator[Document]:
        with translate_errors(self.name):
            cursor = self._raw.find(
                dict(filter), sort=list(sort) if sort else None, skip=skip, limit=limit
            )
            # Drain under translation; cursor iteration talks to the server.
            return iter(list(cursor))

    def find_one(
        self, filter: Mapping[str, Any], *, sort: SortSpec | None = None
    ) -> Document | None:
        with translate_errors(self.name):
            return self._raw.find_one(dict(filter), sort=list(sort) if sort else None)

    def count(self, filter: Mapping[str, Any]) -> int:
        with translate_errors(self.name):
            return self._raw.count_documents(dict(filter))

    def insert_one(self, document: Document) -> Any:
        with translate_errors(self.name):
            return self._raw.insert_one(document).inserted_id

    def replace_one(self, filter: Mapping[str, Any], document: Document) -> int:
        with translate_errors(self.name):
            return self._raw.replace_one(dict(filter), document).matched_count

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        with translate_errors(self.name):
            return self._raw.delete_one(dict(filter)).deleted_count

    def delete_many(self, filter: Mapping[str, Any]) -> int:
        with translate_errors(self.name):
            return self._raw.delete_many(dict(filter)).deleted_count

    def find_one_and_increment(
        self, filter: Mapping[str, Any], field: str, amount: int = 1
    ) -> Document | None:
        from pymongo import ReturnDocument

        with translate_errors(self.name):
            return self._raw.find_one_and_update(
                dict(filter),
                {"$inc": {field: amount}},
                return_document=ReturnDocument.BEFORE,
            )


class MongoDocumentStore:
    """MongoDB-backed document store.

    Attributes:
        url: MongoDB connection URL.
        database: Database holding the registry collections.

    Example:
        store = MongoDocumentStore("mongodb://localhost:27017", "device_registry")
        management = DeviceManagement(store)

    Raises:
        ConfigError: If ``pymongo`` is not installed.
    """

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        database: str = "device_registry",
        *,
        timeout_ms: int = 5000,
        client: Any = None,
    ):
        """Initialize the store.

        Args:
            url: MongoDB connection URL.
            database: Database name.
            timeout_ms: Per-operation and server-selection timeout.
            client: Pre-built ``MongoClient`` (tests, shared pools).
        """
        pymongo = _require_pymongo()
        self.url = url
        self.database = database
        self._client = client if client is not None else pymongo.MongoClient(
            url,
            tz_aware=True,
            timeoutMS=timeout_ms,
            serverSelectionTimeoutMS=timeout_ms,
        )
        self._db = self._client[database]
        self._collections: dict[str, MongoCollection] = {}
        logger.info("mongo_store_created", database=database, timeout_ms=timeout_ms)

    def collection(self, name: str) -> MongoCollection:
        if name not in self._collections:
            self._collections[name] = MongoCollection(self._db[name])
        return self._collections[name]

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()
        logger.info("mongo_store_closed", database=self.database)


__all__ = ["MongoCollection", "MongoDocumentStore", "translate_errors"]
