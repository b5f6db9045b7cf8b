"""Create/update logic shared by every store backend.

Each ``*_create_logic`` turns a request into a fully defaulted entity
(token accepted or generated, audit fields stamped). Each
``*_update_logic`` applies the supplied fields of a request to an existing
entity in place. Neither touches the store.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from device_spine.core.errors import ErrorCode, ValidationError
from device_spine.core.timestamps import new_token, utc_now
from device_spine.model.entities import (
    Device,
    DeviceAssignment,
    DeviceCommand,
    DeviceGroup,
    DeviceGroupElement,
    DeviceSpecification,
    DeviceStatus,
    DeviceStream,
    PersistentEntity,
    Site,
    Zone,
)
from device_spine.model.enums import AssignmentStatus, ContainerPolicy
from device_spine.model.requests import (
    DeviceAssignmentCreateRequest,
    DeviceCommandCreateRequest,
    DeviceCreateRequest,
    DeviceGroupCreateRequest,
    DeviceGroupElementCreateRequest,
    DeviceSpecificationCreateRequest,
    DeviceStatusCreateRequest,
    DeviceStreamCreateRequest,
    SiteCreateRequest,
    ZoneCreateRequest,
)


def stamp_created(entity: PersistentEntity, actor: str, metadata: dict[str, str] | None) -> None:
    entity.created_date = utc_now()
    entity.created_by = actor
    entity.deleted = False
    entity.metadata = dict(metadata or {})


def stamp_updated(entity: PersistentEntity, actor: str) -> None:
    entity.updated_date = utc_now()
    entity.updated_by = actor


def copy_supplied(target: Any, request: Any, fields: Iterable[str]) -> None:
    """Copy every non-None request field in *fields* onto *target*."""
    for name in fields:
        value = getattr(request, name)
        if value is not None:
            setattr(target, name, list(value) if isinstance(value, list) else value)


def _update_metadata(entity: PersistentEntity, metadata: dict[str, str] | None) -> None:
    if metadata is not None:
        entity.metadata = dict(metadata)


def _require(value: str | None, field: str) -> str:
    if not value:
        raise ValidationError(
            f"{field} is required", field=field, code=ErrorCode.MISSING_REQUIRED_FIELD
        )
    return value


# ---------------------------------------------------------------------------
# Sites and zones
# ---------------------------------------------------------------------------

_SITE_FIELDS = ("name", "description", "image_url", "map_type", "map_metadata")
_ZONE_FIELDS = ("name", "coordinates", "border_color", "fill_color", "opacity")


def site_create_logic(request: SiteCreateRequest, actor: str) -> Site:
    site = Site(token=request.token or new_token())
    copy_supplied(site, request, _SITE_FIELDS)
    stamp_created(site, actor, request.metadata)
    return site


def site_update_logic(site: Site, request: SiteCreateRequest, actor: str) -> Site:
    copy_supplied(site, request, _SITE_FIELDS)
    _update_metadata(site, request.metadata)
    stamp_updated(site, actor)
    return site


def zone_create_logic(site_token: str, request: ZoneCreateRequest, actor: str) -> Zone:
    zone = Zone(token=request.token or new_token(), site_token=site_token)
    copy_supplied(zone, request, _ZONE_FIELDS)
    stamp_created(zone, actor, request.metadata)
    return zone


def zone_update_logic(zone: Zone, request: ZoneCreateRequest, actor: str) -> Zone:
    copy_supplied(zone, request, _ZONE_FIELDS)
    _update_metadata(zone, request.metadata)
    stamp_updated(zone, actor)
    return zone


# ---------------------------------------------------------------------------
# Specifications, commands, statuses
# ---------------------------------------------------------------------------

_SPECIFICATION_FIELDS = ("name", "asset_reference", "container_policy")
_COMMAND_FIELDS = ("namespace", "name", "description", "parameters")
_STATUS_FIELDS = ("name", "background_color", "foreground_color", "border_color", "icon")


def specification_create_logic(
    request: DeviceSpecificationCreateRequest, actor: str
) -> DeviceSpecification:
    specification = DeviceSpecification(token=request.token or new_token())
    copy_supplied(specification, request, _SPECIFICATION_FIELDS)
    specification.container_policy = ContainerPolicy(specification.container_policy)
    stamp_created(specification, actor, request.metadata)
    return specification


def specification_update_logic(
    specification: DeviceSpecification, request: DeviceSpecificationCreateRequest, actor: str
) -> DeviceSpecification:
    copy_supplied(specification, request, _SPECIFICATION_FIELDS)
    _update_metadata(specification, request.metadata)
    stamp_updated(specification, actor)
    return specification


def command_create_logic(
    spec_token: str, request: DeviceCommandCreateRequest, actor: str
) -> DeviceCommand:
    command = DeviceCommand(
        token=request.token or new_token(),
        spec_token=spec_token,
        name=_require(request.name, "name"),
    )
    copy_supplied(command, request, _COMMAND_FIELDS)
    stamp_created(command, actor, request.metadata)
    return command


def command_update_logic(
    command: DeviceCommand, request: DeviceCommandCreateRequest, actor: str
) -> DeviceCommand:
    copy_supplied(command, request, _COMMAND_FIELDS)
    _update_metadata(command, request.metadata)
    stamp_updated(command, actor)
    return command


def status_create_logic(
    spec_token: str, request: DeviceStatusCreateRequest, actor: str
) -> DeviceStatus:
    status = DeviceStatus(
        token=new_token(),
        spec_token=spec_token,
        code=_require(request.code, "code"),
    )
    copy_supplied(status, request, _STATUS_FIELDS)
    stamp_created(status, actor, request.metadata)
    return status


def status_update_logic(
    status: DeviceStatus, request: DeviceStatusCreateRequest, actor: str
) -> DeviceStatus:
    # The code is the status's key within its specification.
    copy_supplied(status, request, _STATUS_FIELDS)
    _update_metadata(status, request.metadata)
    stamp_updated(status, actor)
    return status


# ---------------------------------------------------------------------------
# Devices, assignments, streams
# ---------------------------------------------------------------------------

# parent_hardware_id is maintained by element mappings after creation.
_DEVICE_FIELDS = ("specification_token", "site_token", "comments", "status")


def device_create_logic(request: DeviceCreateRequest, actor: str) -> Device:
    device = Device(
        hardware_id=request.hardware_id or new_token(),
        parent_hardware_id=request.parent_hardware_id,
    )
    copy_supplied(device, request, _DEVICE_FIELDS)
    stamp_created(device, actor, request.metadata)
    return device


def device_update_logic(device: Device, request: DeviceCreateRequest, actor: str) -> Device:
    copy_supplied(device, request, _DEVICE_FIELDS)
    _update_metadata(device, request.metadata)
    stamp_updated(device, actor)
    return device


def assignment_create_logic(
    request: DeviceAssignmentCreateRequest, device: Device, site_token: str, actor: str
) -> DeviceAssignment:
    assignment = DeviceAssignment(
        token=request.token or new_token(),
        device_hardware_id=device.hardware_id,
        site_token=site_token,
        asset_reference=request.asset_reference,
        status=AssignmentStatus.ACTIVE,
        active_date=utc_now(),
    )
    stamp_created(assignment, actor, request.metadata)
    return assignment


def stream_create_logic(
    assignment_token: str, request: DeviceStreamCreateRequest, actor: str
) -> DeviceStream:
    stream = DeviceStream(
        assignment_token=assignment_token,
        stream_id=_require(request.stream_id, "stream_id"),
        content_type=request.content_type,
    )
    stamp_created(stream, actor, request.metadata)
    return stream


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

_GROUP_FIELDS = ("name", "description", "roles")


def group_create_logic(request: DeviceGroupCreateRequest, actor: str) -> DeviceGroup:
    group = DeviceGroup(token=request.token or new_token(), last_index=0)
    copy_supplied(group, request, _GROUP_FIELDS)
    stamp_created(group, actor, request.metadata)
    return group


def group_update_logic(group: DeviceGroup, request: DeviceGroupCreateRequest, actor: str) -> DeviceGroup:
    # last_index is owned by the element allocator and never copied from a request.
    copy_supplied(group, request, _GROUP_FIELDS)
    _update_metadata(group, request.metadata)
    stamp_updated(group, actor)
    return group


def group_element_create_logic(
    request: DeviceGroupElementCreateRequest, group_token: str, index: int
) -> DeviceGroupElement:
    return DeviceGroupElement(
        group_token=group_token,
        type=request.type,
        element_id=request.element_id,
        index=index,
        roles=list(request.roles or []),
    )


__all__ = [
    "stamp_created",
    "stamp_updated",
    "copy_supplied",
    "site_create_logic",
    "site_update_logic",
    "zone_create_logic",
    "zone_update_logic",
    "specification_create_logic",
    "specification_update_logic",
    "command_create_logic",
    "command_update_logic",
    "status_create_logic",
    "status_update_logic",
    "device_create_logic",
    "device_update_logic",
    "assignment_create_logic",
    "stream_create_logic",
    "group_create_logic",
    "group_update_logic",
    "group_element_create_logic",
]
