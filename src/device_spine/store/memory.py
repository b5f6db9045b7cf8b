"""In-memory document store.

A single-process implementation of :class:`~device_spine.store.protocols.DocumentStore`
that honours the same contract as the MongoDB adapter: unique and partial
unique indexes, atomic per-document writes, atomic increment-and-read,
and bounded waits.

Documents are deep-copied on the way in and on the way out.

Examples:
    >>> store = InMemoryDocumentStore()
    >>> devices = store.collection("devices")
    >>> devices.create_index([("hardwareId", 1)], unique=True)
    'hardwareId_1'
    >>> _ = devices.insert_one({"hardwareId": "HW1"})
    >>> devices.count({"hardwareId": "HW1"})
    1

Performance:
    - Every query is a linear scan. Fine for tests and development data sets.

Tags:
    document-store, in-memory, device-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from device_spine.core.errors import DuplicateDocumentError, StorageError, StoreUnavailableError
from device_spine.core.logging import get_logger
from device_spine.store.protocols import Document, IndexKeys, SortSpec

logger = get_logger(__name__)

_MISSING = object()


# ------------------------------------------------------------------ #
# Query evaluation
# ------------------------------------------------------------------ #


def _lookup(document: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path, returning ``_MISSING`` when absent."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if isinstance(value, list) and not isinstance(expected, list):
        return any(_equals(item, expected) for item in value)
    if expected is None:
        return value is None
    return value == expected


def _compare(value: Any, bound: Any, op: str) -> bool:
    if value is _MISSING or value is None or bound is None:
        return False
    try:
        if op == "$gt":
            return value > bound
        if op == "$gte":
            return value >= bound
        if op == "$lt":
            return value < bound
        return value <= bound
    except TypeError:
        return False


def _apply_operator(op: str, value: Any, argument: Any) -> bool:
    if op == "$eq":
        return _equals(value, argument)
    if op == "$ne":
        return not _equals(value, argument)
    if op == "$in":
        return any(_equals(value, candidate) for candidate in argument)
    if op == "$nin":
        return not any(_equals(value, candidate) for candidate in argument)
    if op == "$exists":
        return (value is not _MISSING) == bool(argument)
    if op in ("$gt", "$gte", "$lt", "$lte"):
        return _compare(value, argument, op)
    raise StorageError(f"Unsupported query operator: {op}")


def _is_operator_document(condition: Any) -> bool:
    return (
        isinstance(condition, Mapping)
        and len(condition) > 0
        and all(str(key).startswith("$") for key in condition)
    )


def matches(document: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    """Evaluate a MongoDB-style filter against *document*."""
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
            continue
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
            continue

        value = _lookup(document, key)
        if _is_operator_document(condition):
            for op, argument in condition.items():
                if not _apply_operator(op, value, argument):
                    return False
        elif not _equals(value, condition):
            return False
    return True


def _sort_key(value: Any) -> tuple:
    # Missing and null sort before every other value, as in MongoDB.
    if value is _MISSING or value is None:
        return (0, 0)
    return (1, value)


def sort_documents(documents: list[Document], sort: SortSpec | None) -> list[Document]:
    """Sort in place by a multi-key sort spec (stable, last key applied first)."""
    if not sort:
        return documents
    for field, direction in reversed(list(sort)):
        documents.sort(key=lambda doc: _sort_key(_lookup(doc, field)), reverse=direction < 0)
    return documents


# ------------------------------------------------------------------ #
# Collections
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class _Index:
    name: str
    keys: tuple[tuple[str, int], ...]
    unique: bool
    partial_filter: dict[str, Any] | None

    def applies_to(self, document: Mapping[str, Any]) -> bool:
        return self.partial_filter is None or matches(document, self.partial_filter)

    def key_of(self, document: Mapping[str, Any]) -> tuple:
        values = []
        for field, _ in self.keys:
            value = _lookup(document, field)
            values.append(None if value is _MISSING else value)
        return tuple(values)


def _index_name(keys: IndexKeys) -> str:
    return "_".join(f"{field}_{direction}" for field, direction in keys)


class InMemoryCollection:
    """A collection of documents guarded by one re-entrant lock."""

    def __init__(self, name: str, *, timeout_seconds: float = 5.0):
        self.name = name
        self._timeout = timeout_seconds
        self._lock = threading.RLock()
        self._documents: dict[Any, Document] = {}
        self._indexes: dict[str, _Index] = {}

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailableError(
                f"Timed out after {self._timeout}s waiting for collection {self.name!r}"
            ).with_context(collection=self.name)
        try:
            yield
        finally:
            self._lock.release()

    def _check_unique(self, document: Document) -> None:
        for index in self._indexes.values():
            if not index.unique or not index.applies_to(document):
                continue
            key = index.key_of(document)
            for other_id, other in self._documents.items():
                if other_id == document["_id"] or not index.applies_to(other):
                    continue
                if index.key_of(other) == key:
                    raise DuplicateDocumentError(
                        f"E11000 duplicate key error collection: {self.name} "
                        f"index: {index.name} dup key: {key!r}",
                        index=index.name,
                    ).with_context(collection=self.name)

    def _matching(self, filter: Mapping[str, Any]) -> list[Document]:
        return [doc for doc in self._documents.values() if matches(doc, filter)]

    def create_index(
        self,
        keys: IndexKeys,
        *,
        unique: bool = False,
        partial_filter: Mapping[str, Any] | None = None,
    ) -> str:
        name = _index_name(keys)
        index = _Index(
            name=name,
            keys=tuple((field, direction) for field, direction in keys),
            unique=unique,
            partial_filter=dict(partial_filter) if partial_filter else None,
        )
        with self._locked():
            if name in self._indexes:
                return name
            if unique:
                seen: set[str] = set()
                for doc in self._documents.values():
                    if not index.applies_to(doc):
                        continue
                    key = repr(index.key_of(doc))
                    if key in seen:
                        raise DuplicateDocumentError(
                            f"Cannot build unique index {name} on {self.name}: duplicate {key}",
                            index=name,
                        )
                    seen.add(key)
            self._indexes[name] = index
        logger.debug("index_created", collection=self.name, index=name, unique=unique)
        return name

    def index_names(self) -> list[str]:
        with self._locked():
            return list(self._indexes)

    def find(
        self,
        filter: Mapping[str, Any],
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> Iterator[Document]:
        with self._locked():
            found = sort_documents(self._matching(filter), sort)
            if skip:
                found = found[skip:]
            if limit:
                found = found[:limit]
            snapshot = copy.deepcopy(found)
        return iter(snapshot)

    def find_one(
        self, filter: Mapping[str, Any], *, sort: SortSpec | None = None
    ) -> Document | None:
        return next(self.find(filter, sort=sort, limit=1), None)

    def count(self, filter: Mapping[str, Any]) -> int:
        with self._locked():
            return len(self._matching(filter))

    def insert_one(self, document: Document) -> Any:
        with self._locked():
            if "_id" not in document:
                document["_id"] = uuid.uuid4().hex
            if document["_id"] in self._documents:
                raise DuplicateDocumentError(
                    f"E11000 duplicate key error collection: {self.name} index: _id_",
                    index="_id_",
                ).with_context(collection=self.name)
            stored = copy.deepcopy(document)
            self._check_unique(stored)
            self._documents[stored["_id"]] = stored
            return stored["_id"]

    def replace_one(self, filter: Mapping[str, Any], document: Document) -> int:
        with self._locked():
            found = self._matching(filter)
            if not found:
                return 0
            target_id = found[0]["_id"]
            replacement = copy.deepcopy(document)
            replacement["_id"] = target_id
            self._check_unique(replacement)
            self._documents[target_id] = replacement
            return 1

    def delete_one(self, filter: Mapping[str, Any]) -> int:
        with self._locked():
            found = self._matching(filter)
            if not found:
                return 0
            del self._documents[found[0]["_id"]]
            return 1

    def delete_many(self, filter: Mapping[str, Any]) -> int:
        with self._locked():
            found = self._matching(filter)
            for doc in found:
                del self._documents[doc["_id"]]
            return len(found)

    def find_one_and_increment(
        self, filter: Mapping[str, Any], field: str, amount: int = 1
    ) -> Document | None:
        with self._locked():
            found = self._matching(filter)
            if not found:
                return None
            target = found[0]
            before = copy.deepcopy(target)
            target[field] = (target.get(field) or 0) + amount
            return before


class InMemoryDocumentStore:
    """Bounded-wait in-memory store. Thread-safe for single-process use.

    Example:
        store = InMemoryDocumentStore(timeout_seconds=2.0)
        management = DeviceManagement(store)
        management.ensure_indexes()
    """

    def __init__(self, *, timeout_seconds: float = 5.0):
        self._timeout = timeout_seconds
        self._guard = threading.Lock()
        self._collections: dict[str, InMemoryCollection] = {}

    def collection(self, name: str) -> InMemoryCollection:
        with self._guard:
            if name not in self._collections:
                self._collections[name] = InMemoryCollection(name, timeout_seconds=self._timeout)
            return self._collections[name]

    def collection_names(self) -> list[str]:
        with self._guard:
            return sorted(self._collections)

    def close(self) -> None:
        """Nothing to release."""


__all__ = [
    "InMemoryCollection",
    "InMemoryDocumentStore",
    "matches",
    "sort_documents",
]
