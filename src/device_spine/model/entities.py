"""Registry entity models.

Manifesto:
    Every registry object is a plain dataclass. Codecs translate them to
    and from camelCase store documents; the registry never hands raw
    documents to callers.

Ownership::

    Site ─┬─ Zone
          └─ Device ── DeviceAssignment ── DeviceStream
    DeviceSpecification ─┬─ DeviceCommand
                         └─ DeviceStatus
    DeviceGroup ── DeviceGroupElement

All fields carry defaults so partially populated documents decode without
error. The ``deleted`` flag implements soft delete.

Tags:
    device-spine, models, dataclasses

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from device_spine.model.enums import AssignmentStatus, ContainerPolicy, GroupElementType

# ---------------------------------------------------------------------------
# Shared shapes
# ---------------------------------------------------------------------------


@dataclass
class PersistentEntity:
    """Audit fields, soft-delete flag and free-form metadata."""

    created_date: datetime | None = None
    created_by: str | None = None
    updated_date: datetime | None = None
    updated_by: str | None = None
    deleted: bool = False
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Location:
    """One vertex of a zone boundary."""

    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float | None = None


@dataclass
class AssetReference:
    """Pointer to an asset held by an external asset module."""

    module: str = ""
    id: str = ""


# ---------------------------------------------------------------------------
# Sites and zones
# ---------------------------------------------------------------------------


@dataclass
class Site(PersistentEntity):
    token: str = ""
    name: str = ""
    description: str | None = None
    image_url: str | None = None
    map_type: str | None = None
    map_metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Zone(PersistentEntity):
    token: str = ""
    site_token: str = ""
    name: str = ""
    coordinates: list[Location] = field(default_factory=list)
    border_color: str | None = None
    fill_color: str | None = None
    opacity: float | None = None


# ---------------------------------------------------------------------------
# Specifications, commands, statuses
# ---------------------------------------------------------------------------


@dataclass
class DeviceSpecification(PersistentEntity):
    token: str = ""
    name: str = ""
    asset_reference: AssetReference | None = None
    container_policy: ContainerPolicy = ContainerPolicy.STANDALONE


@dataclass
class CommandParameter:
    name: str = ""
    type: str = "String"
    required: bool = False


@dataclass
class DeviceCommand(PersistentEntity):
    """A command understood by devices of one specification.

    ``(namespace, name)`` is unique among the non-deleted commands of a
    specification.
    """

    token: str = ""
    spec_token: str = ""
    namespace: str | None = None
    name: str = ""
    description: str | None = None
    parameters: list[CommandParameter] = field(default_factory=list)


@dataclass
class DeviceStatus(PersistentEntity):
    """A named status; ``code`` is unique per specification."""

    token: str = ""
    spec_token: str = ""
    code: str = ""
    name: str = ""
    background_color: str | None = None
    foreground_color: str | None = None
    border_color: str | None = None
    icon: str | None = None


# ---------------------------------------------------------------------------
# Devices and assignments
# ---------------------------------------------------------------------------


@dataclass
class DeviceElementMapping:
    """Places the device ``hardware_id`` at slot ``path`` of a composite parent."""

    path: str = ""
    hardware_id: str = ""


@dataclass
class Device(PersistentEntity):
    """A physical device. ``hardware_id`` plays the role of the token."""

    hardware_id: str = ""
    specification_token: str | None = None
    site_token: str | None = None
    parent_hardware_id: str | None = None
    assignment_token: str | None = None
    comments: str | None = None
    status: str | None = None
    device_element_mappings: list[DeviceElementMapping] = field(default_factory=list)


@dataclass
class DeviceAssignment(PersistentEntity):
    token: str = ""
    device_hardware_id: str = ""
    site_token: str = ""
    asset_reference: AssetReference | None = None
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    active_date: datetime | None = None
    released_date: datetime | None = None


@dataclass
class DeviceStream(PersistentEntity):
    """Named binary stream attached to an assignment."""

    assignment_token: str = ""
    stream_id: str = ""
    content_type: str | None = None


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


@dataclass
class DeviceGroup(PersistentEntity):
    token: str = ""
    name: str = ""
    description: str | None = None
    roles: list[str] = field(default_factory=list)
    last_index: int = 0  # next element index, advanced atomically


@dataclass
class DeviceGroupElement:
    group_token: str = ""
    type: GroupElementType = GroupElementType.DEVICE
    element_id: str = ""
    index: int = 0
    roles: list[str] = field(default_factory=list)


__all__ = [
    "PersistentEntity",
    "Location",
    "AssetReference",
    "Site",
    "Zone",
    "DeviceSpecification",
    "CommandParameter",
    "DeviceCommand",
    "DeviceStatus",
    "DeviceElementMapping",
    "Device",
    "DeviceAssignment",
    "DeviceStream",
    "DeviceGroup",
    "DeviceGroupElement",
]
