"""
Document store protocols.

The registry never talks to a database driver directly. It depends on the
two structural protocols below; any object with the right shape works.

Architecture:
    ::

        DocumentStore (Protocol)
        ├── InMemoryDocumentStore  single process, tests and development
        └── MongoDocumentStore     MongoDB via pymongo

        collection(name) → DocumentCollection
            create_index(keys, unique=False, partial_filter=None)
            find(filter, sort, skip, limit) → iterator of documents
            find_one(filter, sort)          → document | None
            count(filter)                   → int
            insert_one(document)            → sets document["_id"]
            replace_one(filter, document)   → matched count
            delete_one(filter) / delete_many(filter) → deleted count
            find_one_and_increment(filter, field, amount) → document before update

Filters use the MongoDB query subset the registry needs: field equality
(``None`` matches a missing field, a scalar matches an array element),
subdocument equality and ``$gt``/``$gte``/``$lt``/``$lte``/``$ne``/``$in``/
``$exists``. Sorts are lists of ``(field, ASCENDING | DESCENDING)``.

Error contract:
    - uniqueness violations raise ``DuplicateDocumentError``
    - timeouts and connection loss raise ``StoreUnavailableError``

Tags:
    protocol, document-store, mongodb, device-spine, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

ASCENDING = 1
DESCENDING = -1

Document = dict[str, Any]
SortSpec = Sequence[tuple[str, int]]
IndexKeys = Sequence[tuple[str, int]]


@runtime_checkable
class DocumentCollection(Protocol):
    """One collection of schemaless documents."""

    name: str

    def create_index(
        self,
        keys: IndexKeys,
        *,
        unique: bool = False,
        partial_filter: Mapping[str, Any] | None = None,
    ) -> str:
        """Create (or confirm) an index and return its name."""
        ...

    def find(
        self,
        filter: Mapping[str, Any],
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> Iterator[Document]:
        """Iterate over matching documents. ``limit=0`` means unbounded."""
        ...

    def find_one(
        self, filter: Mapping[str, Any], *, sort: SortSpec | None = None
    ) -> Document | None:
        """Return the first matching document or None."""
        ...

    def count(self, filter: Mapping[str, Any]) -> int:
        """Count matching documents."""
        ...

    def insert_one(self, document: Document) -> Any:
        """Insert a document, assigning ``_id`` when absent."""
        ...

    def replace_one(self, filter: Mapping[str, Any], document: Document) -> int:
        """Replace the first matching document. Returns the matched count."""
        ...

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        """Delete the first matching document. Returns the deleted count."""
        ...

    def delete_many(self, filter: Mapping[str, Any]) -> int:
        """Delete every matching document. Returns the deleted count."""
        ...

    def find_one_and_increment(
        self, filter: Mapping[str, Any], field: str, amount: int = 1
    ) -> Document | None:
        """Atomically add *amount* to *field*; return the document as it was before."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """A set of named collections sharing one backend."""

    def collection(self, name: str) -> DocumentCollection:
        """Return the handle for collection *name* (created lazily)."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "Document",
    "SortSpec",
    "IndexKeys",
    "DocumentCollection",
    "DocumentStore",
]
