"""Registry entities, requests and enums."""

from device_spine.model.entities import (
    AssetReference,
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
    PersistentEntity,
    Site,
    Zone,
)
from device_spine.model.enums import AssignmentStatus, ContainerPolicy, EntityType, GroupElementType
from device_spine.model.requests import (
    DeviceAssignmentCreateRequest,
    DeviceCommandCreateRequest,
    DeviceCreateRequest,
    DeviceGroupCreateRequest,
    DeviceGroupElementCreateRequest,
    DeviceRegistrationRequest,
    DeviceSpecificationCreateRequest,
    DeviceStatusCreateRequest,
    DeviceStreamCreateRequest,
    SiteCreateRequest,
    ZoneCreateRequest,
)

__all__ = [
    "AssetReference",
    "AssignmentStatus",
    "CommandParameter",
    "ContainerPolicy",
    "Device",
    "DeviceAssignment",
    "DeviceAssignmentCreateRequest",
    "DeviceCommand",
    "DeviceCommandCreateRequest",
    "DeviceCreateRequest",
    "DeviceElementMapping",
    "DeviceGroup",
    "DeviceGroupCreateRequest",
    "DeviceGroupElement",
    "DeviceGroupElementCreateRequest",
    "DeviceRegistrationRequest",
    "DeviceSpecification",
    "DeviceSpecificationCreateRequest",
    "DeviceStatus",
    "DeviceStatusCreateRequest",
    "DeviceStream",
    "DeviceStreamCreateRequest",
    "EntityType",
    "GroupElementType",
    "Location",
    "PersistentEntity",
    "Site",
    "SiteCreateRequest",
    "Zone",
    "ZoneCreateRequest",
]
