"""Collection names and the index layout created at startup.

Unique indexes are partial over ``{"deleted": False}``: a soft-deleted
document keeps its key on disk but no longer blocks a new entity with the
same key.
"""

from __future__ import annotations

from dataclasses import dataclass

from device_spine.codecs import (
    DELETED,
    DeviceAssignmentCodec,
    DeviceCodec,
    DeviceCommandCodec,
    DeviceGroupCodec,
    DeviceGroupElementCodec,
    DeviceSpecificationCodec,
    DeviceStatusCodec,
    DeviceStreamCodec,
    SiteCodec,
    ZoneCodec,
)
from device_spine.core.logging import get_logger
from device_spine.store.protocols import ASCENDING, DocumentStore, IndexKeys

logger = get_logger(__name__)

SITES = "sites"
ZONES = "zones"
SPECIFICATIONS = "specifications"
COMMANDS = "commands"
STATUSES = "statuses"
DEVICES = "devices"
ASSIGNMENTS = "assignments"
STREAMS = "streams"
GROUPS = "groups"
GROUP_ELEMENTS = "groupelements"

NOT_DELETED = {DELETED: False}


@dataclass(frozen=True)
class IndexSpec:
    collection: str
    keys: IndexKeys
    unique: bool = False

    @property
    def partial_filter(self) -> dict | None:
        return NOT_DELETED if self.unique else None


INDEX_LAYOUT: tuple[IndexSpec, ...] = (
    IndexSpec(SITES, [(SiteCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(ZONES, [(ZoneCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(SPECIFICATIONS, [(DeviceSpecificationCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(COMMANDS, [(DeviceCommandCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(
        STATUSES,
        [(DeviceStatusCodec.SPEC_TOKEN, ASCENDING), (DeviceStatusCodec.CODE, ASCENDING)],
        unique=True,
    ),
    IndexSpec(DEVICES, [(DeviceCodec.HARDWARE_ID, ASCENDING)], unique=True),
    IndexSpec(ASSIGNMENTS, [(DeviceAssignmentCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(
        ASSIGNMENTS,
        [
            (DeviceAssignmentCodec.SITE_TOKEN, ASCENDING),
            (DeviceAssignmentCodec.ASSET_REFERENCE, ASCENDING),
            (DeviceAssignmentCodec.STATUS, ASCENDING),
        ],
    ),
    IndexSpec(
        STREAMS,
        [
            (DeviceStreamCodec.ASSIGNMENT_TOKEN, ASCENDING),
            (DeviceStreamCodec.STREAM_ID, ASCENDING),
        ],
        unique=True,
    ),
    IndexSpec(GROUPS, [(DeviceGroupCodec.TOKEN, ASCENDING)], unique=True),
    IndexSpec(GROUPS, [(DeviceGroupCodec.ROLES, ASCENDING)]),
    IndexSpec(
        GROUP_ELEMENTS,
        [
            (DeviceGroupElementCodec.GROUP_TOKEN, ASCENDING),
            (DeviceGroupElementCodec.TYPE, ASCENDING),
            (DeviceGroupElementCodec.ELEMENT_ID, ASCENDING),
        ],
    ),
    IndexSpec(
        GROUP_ELEMENTS,
        [
            (DeviceGroupElementCodec.GROUP_TOKEN, ASCENDING),
            (DeviceGroupElementCodec.ROLES, ASCENDING),
        ],
    ),
)


def ensure_indexes(store: DocumentStore) -> dict[str, list[str]]:
    """Create every index in :data:`INDEX_LAYOUT`. Idempotent.

    Returns index names grouped by collection.
    """
    created: dict[str, list[str]] = {}
    for spec in INDEX_LAYOUT:
        name = store.collection(spec.collection).create_index(
            spec.keys, unique=spec.unique, partial_filter=spec.partial_filter
        )
        created.setdefault(spec.collection, []).append(name)
    logger.info("indexes_ensured", collections=len(created), indexes=len(INDEX_LAYOUT))
    return created


__all__ = [
    "SITES",
    "ZONES",
    "SPECIFICATIONS",
    "COMMANDS",
    "STATUSES",
    "DEVICES",
    "ASSIGNMENTS",
    "STREAMS",
    "GROUPS",
    "GROUP_ELEMENTS",
    "NOT_DELETED",
    "IndexSpec",
    "INDEX_LAYOUT",
    "ensure_indexes",
]
