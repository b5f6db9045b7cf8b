"""Per-entity codecs and the codec registry.

Field-name constants live on each codec class so that query builders in
the registry use exactly the names the codec writes::

    {DeviceCodec.SITE_TOKEN: "S1", DELETED: False}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from device_spine.codecs.base import (
    EntityCodec,
    read_asset_reference,
    read_audit,
    write_asset_reference,
    write_audit,
)
from device_spine.core.errors import ConfigError
from device_spine.core.timestamps import ensure_utc
from device_spine.model.entities import (
    CommandParameter,
    Device,
    DeviceAssignment,
    DeviceCommand,
    DeviceElementMapping,
    DeviceGroup,
    DeviceGroupElement,
    DeviceSpecification,
    DeviceStatus,
    DeviceStream,
    Location,
    Site,
    Zone,
)
from device_spine.model.enums import (
    AssignmentStatus,
    ContainerPolicy,
    EntityType,
    GroupElementType,
)
from device_spine.store.protocols import Document

# ---------------------------------------------------------------------------
# Sites and zones
# ---------------------------------------------------------------------------


class SiteCodec(EntityCodec[Site]):
    entity_type = EntityType.SITE

    TOKEN = "token"
    NAME = "name"
    DESCRIPTION = "description"
    IMAGE_URL = "imageUrl"
    MAP_TYPE = "mapType"
    MAP_METADATA = "mapMetadata"

    def to_document(self, entity: Site) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.NAME: entity.name,
            self.DESCRIPTION: entity.description,
            self.IMAGE_URL: entity.image_url,
            self.MAP_TYPE: entity.map_type,
            self.MAP_METADATA: dict(entity.map_metadata),
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> Site:
        return Site(
            token=document.get(self.TOKEN, ""),
            name=document.get(self.NAME, ""),
            description=document.get(self.DESCRIPTION),
            image_url=document.get(self.IMAGE_URL),
            map_type=document.get(self.MAP_TYPE),
            map_metadata=dict(document.get(self.MAP_METADATA) or {}),
            **read_audit(document),
        )


class ZoneCodec(EntityCodec[Zone]):
    entity_type = EntityType.ZONE

    TOKEN = "token"
    SITE_TOKEN = "siteToken"
    NAME = "name"
    COORDINATES = "coordinates"
    BORDER_COLOR = "borderColor"
    FILL_COLOR = "fillColor"
    OPACITY = "opacity"

    def to_document(self, entity: Zone) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.SITE_TOKEN: entity.site_token,
            self.NAME: entity.name,
            self.COORDINATES: [
                {"latitude": c.latitude, "longitude": c.longitude, "elevation": c.elevation}
                for c in entity.coordinates
            ],
            self.BORDER_COLOR: entity.border_color,
            self.FILL_COLOR: entity.fill_color,
            self.OPACITY: entity.opacity,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> Zone:
        return Zone(
            token=document.get(self.TOKEN, ""),
            site_token=document.get(self.SITE_TOKEN, ""),
            name=document.get(self.NAME, ""),
            coordinates=[
                Location(
                    latitude=c.get("latitude", 0.0),
                    longitude=c.get("longitude", 0.0),
                    elevation=c.get("elevation"),
                )
                for c in document.get(self.COORDINATES) or []
            ],
            border_color=document.get(self.BORDER_COLOR),
            fill_color=document.get(self.FILL_COLOR),
            opacity=document.get(self.OPACITY),
            **read_audit(document),
        )


# ---------------------------------------------------------------------------
# Specifications, commands, statuses
# ---------------------------------------------------------------------------


class DeviceSpecificationCodec(EntityCodec[DeviceSpecification]):
    entity_type = EntityType.DEVICE_SPECIFICATION

    TOKEN = "token"
    NAME = "name"
    ASSET_REFERENCE = "assetReference"
    CONTAINER_POLICY = "containerPolicy"

    def to_document(self, entity: DeviceSpecification) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.NAME: entity.name,
            self.ASSET_REFERENCE: write_asset_reference(entity.asset_reference),
            self.CONTAINER_POLICY: ContainerPolicy(entity.container_policy).value,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceSpecification:
        return DeviceSpecification(
            token=document.get(self.TOKEN, ""),
            name=document.get(self.NAME, ""),
            asset_reference=read_asset_reference(document.get(self.ASSET_REFERENCE)),
            container_policy=ContainerPolicy(
                document.get(self.CONTAINER_POLICY) or ContainerPolicy.STANDALONE.value
            ),
            **read_audit(document),
        )


class DeviceCommandCodec(EntityCodec[DeviceCommand]):
    entity_type = EntityType.DEVICE_COMMAND

    TOKEN = "token"
    SPEC_TOKEN = "specToken"
    NAMESPACE = "namespace"
    NAME = "name"
    DESCRIPTION = "description"
    PARAMETERS = "parameters"

    def to_document(self, entity: DeviceCommand) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.SPEC_TOKEN: entity.spec_token,
            self.NAMESPACE: entity.namespace,
            self.NAME: entity.name,
            self.DESCRIPTION: entity.description,
            self.PARAMETERS: [
                {"name": p.name, "type": p.type, "required": p.required}
                for p in entity.parameters
            ],
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceCommand:
        return DeviceCommand(
            token=document.get(self.TOKEN, ""),
            spec_token=document.get(self.SPEC_TOKEN, ""),
            namespace=document.get(self.NAMESPACE),
            name=document.get(self.NAME, ""),
            description=document.get(self.DESCRIPTION),
            parameters=[
                CommandParameter(
                    name=p.get("name", ""),
                    type=p.get("type", "String"),
                    required=bool(p.get("required", False)),
                )
                for p in document.get(self.PARAMETERS) or []
            ],
            **read_audit(document),
        )


class DeviceStatusCodec(EntityCodec[DeviceStatus]):
    entity_type = EntityType.DEVICE_STATUS

    TOKEN = "token"
    SPEC_TOKEN = "specToken"
    CODE = "code"
    NAME = "name"
    BACKGROUND_COLOR = "bgColor"
    FOREGROUND_COLOR = "fgColor"
    BORDER_COLOR = "borderColor"
    ICON = "icon"

    def to_document(self, entity: DeviceStatus) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.SPEC_TOKEN: entity.spec_token,
            self.CODE: entity.code,
            self.NAME: entity.name,
            self.BACKGROUND_COLOR: entity.background_color,
            self.FOREGROUND_COLOR: entity.foreground_color,
            self.BORDER_COLOR: entity.border_color,
            self.ICON: entity.icon,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceStatus:
        return DeviceStatus(
            token=document.get(self.TOKEN, ""),
            spec_token=document.get(self.SPEC_TOKEN, ""),
            code=document.get(self.CODE, ""),
            name=document.get(self.NAME, ""),
            background_color=document.get(self.BACKGROUND_COLOR),
            foreground_color=document.get(self.FOREGROUND_COLOR),
            border_color=document.get(self.BORDER_COLOR),
            icon=document.get(self.ICON),
            **read_audit(document),
        )


# ---------------------------------------------------------------------------
# Devices, assignments, streams
# ---------------------------------------------------------------------------


class DeviceCodec(EntityCodec[Device]):
    entity_type = EntityType.DEVICE

    HARDWARE_ID = "hardwareId"
    SPEC_TOKEN = "specToken"
    SITE_TOKEN = "siteToken"
    PARENT_HARDWARE_ID = "parentHardwareId"
    ASSIGNMENT_TOKEN = "assignmentToken"
    COMMENTS = "comments"
    STATUS = "status"
    ELEMENT_MAPPINGS = "deviceElementMappings"

    def to_document(self, entity: Device) -> Document:
        document = {
            self.HARDWARE_ID: entity.hardware_id,
            self.SPEC_TOKEN: entity.specification_token,
            self.SITE_TOKEN: entity.site_token,
            self.PARENT_HARDWARE_ID: entity.parent_hardware_id,
            self.ASSIGNMENT_TOKEN: entity.assignment_token,
            self.COMMENTS: entity.comments,
            self.STATUS: entity.status,
            self.ELEMENT_MAPPINGS: [
                {"path": m.path, "hardwareId": m.hardware_id}
                for m in entity.device_element_mappings
            ],
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> Device:
        return Device(
            hardware_id=document.get(self.HARDWARE_ID, ""),
            specification_token=document.get(self.SPEC_TOKEN),
            site_token=document.get(self.SITE_TOKEN),
            parent_hardware_id=document.get(self.PARENT_HARDWARE_ID),
            assignment_token=document.get(self.ASSIGNMENT_TOKEN),
            comments=document.get(self.COMMENTS),
            status=document.get(self.STATUS),
            device_element_mappings=[
                DeviceElementMapping(path=m.get("path", ""), hardware_id=m.get("hardwareId", ""))
                for m in document.get(self.ELEMENT_MAPPINGS) or []
            ],
            **read_audit(document),
        )


class DeviceAssignmentCodec(EntityCodec[DeviceAssignment]):
    entity_type = EntityType.DEVICE_ASSIGNMENT

    TOKEN = "token"
    DEVICE_HARDWARE_ID = "deviceHardwareId"
    SITE_TOKEN = "siteToken"
    ASSET_REFERENCE = "assetReference"
    STATUS = "status"
    ACTIVE_DATE = "activeDate"
    RELEASED_DATE = "releasedDate"

    def to_document(self, entity: DeviceAssignment) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.DEVICE_HARDWARE_ID: entity.device_hardware_id,
            self.SITE_TOKEN: entity.site_token,
            self.ASSET_REFERENCE: write_asset_reference(entity.asset_reference),
            self.STATUS: AssignmentStatus(entity.status).value,
            self.ACTIVE_DATE: entity.active_date,
            self.RELEASED_DATE: entity.released_date,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceAssignment:
        return DeviceAssignment(
            token=document.get(self.TOKEN, ""),
            device_hardware_id=document.get(self.DEVICE_HARDWARE_ID, ""),
            site_token=document.get(self.SITE_TOKEN, ""),
            asset_reference=read_asset_reference(document.get(self.ASSET_REFERENCE)),
            status=AssignmentStatus(document.get(self.STATUS) or AssignmentStatus.ACTIVE.value),
            active_date=ensure_utc(document.get(self.ACTIVE_DATE)),
            released_date=ensure_utc(document.get(self.RELEASED_DATE)),
            **read_audit(document),
        )


class DeviceStreamCodec(EntityCodec[DeviceStream]):
    entity_type = EntityType.DEVICE_STREAM

    ASSIGNMENT_TOKEN = "assignmentToken"
    STREAM_ID = "streamId"
    CONTENT_TYPE = "contentType"

    def to_document(self, entity: DeviceStream) -> Document:
        document = {
            self.ASSIGNMENT_TOKEN: entity.assignment_token,
            self.STREAM_ID: entity.stream_id,
            self.CONTENT_TYPE: entity.content_type,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceStream:
        return DeviceStream(
            assignment_token=document.get(self.ASSIGNMENT_TOKEN, ""),
            stream_id=document.get(self.STREAM_ID, ""),
            content_type=document.get(self.CONTENT_TYPE),
            **read_audit(document),
        )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


class DeviceGroupCodec(EntityCodec[DeviceGroup]):
    entity_type = EntityType.DEVICE_GROUP

    TOKEN = "token"
    NAME = "name"
    DESCRIPTION = "description"
    ROLES = "roles"
    LAST_INDEX = "lastIndex"

    def to_document(self, entity: DeviceGroup) -> Document:
        document = {
            self.TOKEN: entity.token,
            self.NAME: entity.name,
            self.DESCRIPTION: entity.description,
            self.ROLES: list(entity.roles),
            self.LAST_INDEX: entity.last_index,
        }
        return write_audit(entity, document)

    def from_document(self, document: Mapping[str, Any]) -> DeviceGroup:
        return DeviceGroup(
            token=document.get(self.TOKEN, ""),
            name=document.get(self.NAME, ""),
            description=document.get(self.DESCRIPTION),
            roles=list(document.get(self.ROLES) or []),
            last_index=int(document.get(self.LAST_INDEX) or 0),
            **read_audit(document),
        )


class DeviceGroupElementCodec(EntityCodec[DeviceGroupElement]):
    entity_type = EntityType.DEVICE_GROUP_ELEMENT

    GROUP_TOKEN = "groupToken"
    TYPE = "type"
    ELEMENT_ID = "elementId"
    INDEX = "index"
    ROLES = "roles"

    def to_document(self, entity: DeviceGroupElement) -> Document:
        return {
            self.GROUP_TOKEN: entity.group_token,
            self.TYPE: GroupElementType(entity.type).value,
            self.ELEMENT_ID: entity.element_id,
            self.INDEX: entity.index,
            self.ROLES: list(entity.roles),
        }

    def from_document(self, document: Mapping[str, Any]) -> DeviceGroupElement:
        return DeviceGroupElement(
            group_token=document.get(self.GROUP_TOKEN, ""),
            type=GroupElementType(document.get(self.TYPE) or GroupElementType.DEVICE.value),
            element_id=document.get(self.ELEMENT_ID, ""),
            index=int(document.get(self.INDEX) or 0),
            roles=list(document.get(self.ROLES) or []),
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CODECS: dict[EntityType, EntityCodec[Any]] = {
    codec.entity_type: codec
    for codec in (
        SiteCodec(),
        ZoneCodec(),
        DeviceSpecificationCodec(),
        DeviceCommandCodec(),
        DeviceStatusCodec(),
        DeviceCodec(),
        DeviceAssignmentCodec(),
        DeviceStreamCodec(),
        DeviceGroupCodec(),
        DeviceGroupElementCodec(),
    )
}


def codec_for(entity_type: EntityType) -> EntityCodec[Any]:
    """Resolve the codec registered for *entity_type*."""
    try:
        return CODECS[entity_type]
    except KeyError:
        raise ConfigError(f"No codec registered for {entity_type!r}") from None


__all__ = [
    "CODECS",
    "codec_for",
    "SiteCodec",
    "ZoneCodec",
    "DeviceSpecificationCodec",
    "DeviceCommandCodec",
    "DeviceStatusCodec",
    "DeviceCodec",
    "DeviceAssignmentCodec",
    "DeviceStreamCodec",
    "DeviceGroupCodec",
    "DeviceGroupElementCodec",
]
