"""Generic persistence primitives shared by every entity type.

Manifesto:
    The store has no foreign keys and no check constraints. Every entity
    therefore goes through the same small set of operations, so that
    uniqueness translation, not-found detection and pagination behave
    identically everywhere.

Architecture::

    insert(collection, document, duplicate_code)
        store DuplicateDocumentError ──► DuplicateKeyError(code=duplicate_code)
    update(collection, query, document)
        matched == 0 ──► NotFoundError
    delete(collection, document)          → 0 | 1 (keyed by _id)
    delete_matching(collection, query)    → count (explicit cascades)
    search(entity_type, collection, filter, sort, criteria)
                                          → SearchResults(total, items)
    list_entities(entity_type, collection, filter, sort)
                                          → list (internal, unpaginated)

Guardrails:
    ❌ DON'T: use list_entities for caller-facing listings
    ✅ DO: use search with SearchCriteria so result sets stay bounded

Tags:
    device-spine, persistence, pagination, uniqueness
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from device_spine.codecs import codec_for
from device_spine.core.errors import (
    DuplicateDocumentError,
    DuplicateKeyError,
    ErrorCode,
    NotFoundError,
)
from device_spine.core.logging import get_logger
from device_spine.model.enums import EntityType
from device_spine.persistence.search import SearchCriteria, SearchResults
from device_spine.store.protocols import Document, DocumentCollection, SortSpec

logger = get_logger(__name__)

DEFAULT_DATE_FIELD = "createdDate"


def insert(collection: DocumentCollection, document: Document, duplicate_code: ErrorCode) -> Document:
    """Insert *document*; a uniqueness violation becomes ``DuplicateKeyError``."""
    try:
        collection.insert_one(document)
    except DuplicateDocumentError as e:
        raise DuplicateKeyError(
            f"Duplicate key in {collection.name}",
            code=duplicate_code,
            cause=e,
        ).with_context(collection=collection.name, index=e.index) from e
    return document


def update(
    collection: DocumentCollection,
    query: Mapping[str, Any],
    document: Document,
    duplicate_code: ErrorCode = ErrorCode.DUPLICATE_KEY,
) -> Document:
    """Replace the single document matching *query*.

    Raises:
        NotFoundError: nothing matched.
        DuplicateKeyError: the replacement collides with a unique index.
    """
    try:
        matched = collection.replace_one(query, document)
    except DuplicateDocumentError as e:
        raise DuplicateKeyError(
            f"Update would duplicate a unique key in {collection.name}",
            code=duplicate_code,
            cause=e,
        ).with_context(collection=collection.name, index=e.index) from e
    if matched == 0:
        raise NotFoundError(f"No document in {collection.name} matched update").with_context(
            collection=collection.name, query=dict(query)
        )
    return document


def delete(collection: DocumentCollection, document: Mapping[str, Any]) -> int:
    """Remove *document* by its store key; returns 0 if it was already gone."""
    return collection.delete_one({"_id": document["_id"]})


def delete_matching(collection: DocumentCollection, query: Mapping[str, Any]) -> int:
    removed = collection.delete_many(query)
    logger.debug("documents_deleted", collection=collection.name, count=removed)
    return removed


def add_date_search_criteria(
    query: dict[str, Any], date_field: str, criteria: SearchCriteria
) -> dict[str, Any]:
    """Constrain *date_field* to the criteria's inclusive date range."""
    bounds: dict[str, Any] = {}
    if criteria.start_date is not None:
        bounds["$gte"] = criteria.start_date
    if criteria.end_date is not None:
        bounds["$lte"] = criteria.end_date
    if bounds:
        query[date_field] = bounds
    return query


def search(
    entity_type: EntityType,
    collection: DocumentCollection,
    filter: Mapping[str, Any],
    sort: SortSpec | None,
    criteria: SearchCriteria | None = None,
    *,
    date_field: str = DEFAULT_DATE_FIELD,
) -> SearchResults[Any]:
    """Run a paged, sorted search and decode the page with the entity's codec."""
    criteria = criteria or SearchCriteria()
    query = add_date_search_criteria(dict(filter), date_field, criteria)
    codec = codec_for(entity_type)

    total = collection.count(query)
    documents = collection.find(query, sort=sort, skip=criteria.skip, limit=criteria.page_size)
    items = [codec.from_document(document) for document in documents]
    return SearchResults(total=total, items=items)


def list_entities(
    entity_type: EntityType,
    collection: DocumentCollection,
    filter: Mapping[str, Any],
    sort: SortSpec | None = None,
) -> list[Any]:
    codec = codec_for(entity_type)
    return [codec.from_document(document) for document in collection.find(filter, sort=sort)]


__all__ = [
    "insert",
    "update",
    "delete",
    "delete_matching",
    "add_date_search_criteria",
    "search",
    "list_entities",
]
