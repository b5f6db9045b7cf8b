"""Create/update request models.

A request's ``None`` fields mean "not supplied": creates fall back to
defaults, updates leave the stored value untouched. ``token`` (or
``hardware_id``) is honoured on create and ignored on update.
"""

from __future__ import annotations

from dataclasses import dataclass

from device_spine.model.entities import AssetReference, CommandParameter, Location
from device_spine.model.enums import ContainerPolicy, GroupElementType


@dataclass
class SiteCreateRequest:
    token: str | None = None
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    map_type: str | None = None
    map_metadata: dict[str, str] | None = None
    metadata: dict[str, str] | None = None


@dataclass
class ZoneCreateRequest:
    token: str | None = None
    name: str | None = None
    coordinates: list[Location] | None = None
    border_color: str | None = None
    fill_color: str | None = None
    opacity: float | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceSpecificationCreateRequest:
    token: str | None = None
    name: str | None = None
    asset_reference: AssetReference | None = None
    container_policy: ContainerPolicy | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceCommandCreateRequest:
    token: str | None = None
    namespace: str | None = None
    name: str | None = None
    description: str | None = None
    parameters: list[CommandParameter] | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceStatusCreateRequest:
    code: str | None = None
    name: str | None = None
    background_color: str | None = None
    foreground_color: str | None = None
    border_color: str | None = None
    icon: str | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceCreateRequest:
    hardware_id: str | None = None
    specification_token: str | None = None
    site_token: str | None = None
    parent_hardware_id: str | None = None
    comments: str | None = None
    status: str | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceAssignmentCreateRequest:
    token: str | None = None
    device_hardware_id: str | None = None
    asset_reference: AssetReference | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceStreamCreateRequest:
    stream_id: str | None = None
    content_type: str | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceGroupCreateRequest:
    token: str | None = None
    name: str | None = None
    description: str | None = None
    roles: list[str] | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeviceGroupElementCreateRequest:
    type: GroupElementType = GroupElementType.DEVICE
    element_id: str = ""
    roles: list[str] | None = None


@dataclass
class DeviceRegistrationRequest:
    """Self-registration of a device announcing its hardware id."""

    hardware_id: str = ""
    specification_token: str = ""
    site_token: str | None = None
    asset_reference: AssetReference | None = None
    metadata: dict[str, str] | None = None


__all__ = [
    "SiteCreateRequest",
    "ZoneCreateRequest",
    "DeviceSpecificationCreateRequest",
    "DeviceCommandCreateRequest",
    "DeviceStatusCreateRequest",
    "DeviceCreateRequest",
    "DeviceAssignmentCreateRequest",
    "DeviceStreamCreateRequest",
    "DeviceGroupCreateRequest",
    "DeviceGroupElementCreateRequest",
    "DeviceRegistrationRequest",
]
