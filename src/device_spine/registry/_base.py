"""Shared plumbing for the registry operation classes.

:class:`RegistryRepository` pairs a :class:`DocumentStore` with the actor
recorded in audit fields and the per-device lock table. The operation
classes (sites, specifications, devices, assignments, groups) derive from
it and are combined into :class:`~device_spine.registry.management.DeviceManagement`.

Lookups prefer the live document: when a key has been soft-deleted and
reused, ``find_one`` returns the non-deleted document first, then the most
recently created deleted one.

Writes always address a document by its store ``_id``, never by token, so
a soft-deleted twin sharing the token is never touched by accident.
"""

from __future__ import annotations

from typing import Any

from device_spine.codecs import DELETED, codec_for
from device_spine.codecs.base import CREATED_DATE
from device_spine.core.errors import (
    ErrorCode,
    InvalidReferenceError,
    NotFoundError,
)
from device_spine.core.locks import KeyedLock
from device_spine.model.enums import EntityType
from device_spine.persistence import primitives
from device_spine.persistence.indexes import NOT_DELETED, ensure_indexes
from device_spine.store.protocols import (
    ASCENDING,
    DESCENDING,
    Document,
    DocumentCollection,
    DocumentStore,
)

LIVE_FIRST = [(DELETED, ASCENDING), (CREATED_DATE, DESCENDING)]


def live(query: dict[str, Any], include_deleted: bool = False) -> dict[str, Any]:
    """Add the default soft-delete filter unless deleted rows are wanted."""
    if not include_deleted:
        query.update(NOT_DELETED)
    return query


class RegistryRepository:
    """Base class for registry operations.

    Parameters:
        store: Any object satisfying the :class:`DocumentStore` protocol.
        actor: Recorded as ``created_by`` / ``updated_by``.
        lock_timeout: Seconds to wait for the per-device lock.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        actor: str = "system",
        lock_timeout: float = 10.0,
    ) -> None:
        self.store = store
        self.actor = actor
        self.locks = KeyedLock(timeout_seconds=lock_timeout)

    def ensure_indexes(self) -> dict[str, list[str]]:
        """Create the startup index layout (idempotent)."""
        return ensure_indexes(self.store)

    # -- Store access ------------------------------------------------------

    def collection(self, name: str) -> DocumentCollection:
        return self.store.collection(name)

    def find_document(self, collection: str, query: dict[str, Any]) -> Document | None:
        return self.collection(collection).find_one(query, sort=LIVE_FIRST)

    def assert_document(
        self,
        collection: str,
        query: dict[str, Any],
        *,
        entity: str,
        key: str | None,
        code: ErrorCode,
        reference: bool = False,
    ) -> Document:
        """Fetch the document for *query* or fail with the entity-specific code.

        ``reference=True`` reports the miss as a dangling reference from
        another entity instead of a plain lookup miss.
        """
        document = self.find_document(collection, query) if key else None
        if document is None:
            error_cls = InvalidReferenceError if reference else NotFoundError
            raise error_cls(f"{entity} {key!r} does not exist", code=code).with_context(
                entity=entity, key=key, collection=collection
            )
        return document

    # -- Codec helpers -----------------------------------------------------

    @staticmethod
    def decode(entity_type: EntityType, document: Document) -> Any:
        return codec_for(entity_type).from_document(document)

    @staticmethod
    def round_trip(entity_type: EntityType, entity: Any) -> Any:
        """Return the entity exactly as a read from the store would produce it."""
        codec = codec_for(entity_type)
        return codec.from_document(codec.to_document(entity))

    def insert_entity(
        self, collection: str, entity_type: EntityType, entity: Any, duplicate_code: ErrorCode
    ) -> Any:
        document = codec_for(entity_type).to_document(entity)
        primitives.insert(self.collection(collection), document, duplicate_code)
        return self.decode(entity_type, document)

    def replace_entity(
        self,
        collection: str,
        entity_type: EntityType,
        existing: Document,
        entity: Any,
        duplicate_code: ErrorCode = ErrorCode.DUPLICATE_KEY,
    ) -> Any:
        document = codec_for(entity_type).to_document(entity)
        document["_id"] = existing["_id"]
        primitives.update(
            self.collection(collection), {"_id": existing["_id"]}, document, duplicate_code
        )
        return self.decode(entity_type, document)

    def delete_entity(
        self, collection: str, entity_type: EntityType, existing: Document, force: bool
    ) -> Any:
        """Hard delete when *force*, otherwise flag the document as deleted."""
        if force:
            primitives.delete(self.collection(collection), existing)
            return self.decode(entity_type, existing)
        flagged = dict(existing)
        flagged[DELETED] = True
        primitives.update(self.collection(collection), {"_id": existing["_id"]}, flagged)
        return self.decode(entity_type, flagged)


__all__ = ["RegistryRepository", "LIVE_FIRST", "live"]
