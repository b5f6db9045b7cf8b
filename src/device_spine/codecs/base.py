"""Codec contract and shared field helpers.

A codec is stateless: ``to_document`` turns an entity into the camelCase
document stored in its collection, ``from_document`` does the reverse and
ignores the store's ``_id``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from device_spine.core.timestamps import ensure_utc
from device_spine.model.entities import AssetReference, PersistentEntity
from device_spine.model.enums import EntityType
from device_spine.store.protocols import Document

E = TypeVar("E")

# Stored field names shared by every persistent entity.
CREATED_DATE = "createdDate"
CREATED_BY = "createdBy"
UPDATED_DATE = "updatedDate"
UPDATED_BY = "updatedBy"
DELETED = "deleted"
METADATA = "metadata"


class EntityCodec(ABC, Generic[E]):
    """Converts one entity type to and from its stored document."""

    entity_type: ClassVar[EntityType]

    @abstractmethod
    def to_document(self, entity: E) -> Document: ...

    @abstractmethod
    def from_document(self, document: Mapping[str, Any]) -> E: ...


def write_audit(entity: PersistentEntity, document: Document) -> Document:
    """Add audit fields, soft-delete flag and metadata to *document*."""
    document[CREATED_DATE] = entity.created_date
    document[CREATED_BY] = entity.created_by
    document[UPDATED_DATE] = entity.updated_date
    document[UPDATED_BY] = entity.updated_by
    document[DELETED] = bool(entity.deleted)
    document[METADATA] = dict(entity.metadata)
    return document


def read_audit(document: Mapping[str, Any]) -> dict[str, Any]:
    """Keyword arguments for the audit fields of a PersistentEntity."""
    return {
        "created_date": ensure_utc(document.get(CREATED_DATE)),
        "created_by": document.get(CREATED_BY),
        "updated_date": ensure_utc(document.get(UPDATED_DATE)),
        "updated_by": document.get(UPDATED_BY),
        "deleted": bool(document.get(DELETED, False)),
        "metadata": dict(document.get(METADATA) or {}),
    }


def write_asset_reference(reference: AssetReference | None) -> Document | None:
    if reference is None:
        return None
    # Key order is part of subdocument equality in MongoDB.
    return {"module": reference.module, "id": reference.id}


def read_asset_reference(value: Mapping[str, Any] | None) -> AssetReference | None:
    if not value:
        return None
    return AssetReference(module=value.get("module", ""), id=value.get("id", ""))


__all__ = [
    "EntityCodec",
    "write_audit",
    "read_audit",
    "write_asset_reference",
    "read_asset_reference",
    "CREATED_DATE",
    "CREATED_BY",
    "UPDATED_DATE",
    "UPDATED_BY",
    "DELETED",
    "METADATA",
]
