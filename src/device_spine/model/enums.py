"""
Registry enums.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class EntityType(str, Enum):
    """Persistent entity kinds. Each has exactly one codec."""

    SITE = "site"
    ZONE = "zone"
    DEVICE_SPECIFICATION = "device_specification"
    DEVICE_COMMAND = "device_command"
    DEVICE_STATUS = "device_status"
    DEVICE = "device"
    DEVICE_ASSIGNMENT = "device_assignment"
    DEVICE_GROUP = "device_group"
    DEVICE_GROUP_ELEMENT = "device_group_element"
    DEVICE_STREAM = "device_stream"


class AssignmentStatus(str, Enum):
    """
    Device assignment state.

    ACTIVE -> RELEASED through end_device_assignment (RELEASED is terminal).
    ACTIVE <-> MISSING only through update_device_assignment_status, which
    is driven by an external presence monitor.
    """

    ACTIVE = "Active"
    MISSING = "Missing"
    RELEASED = "Released"


class GroupElementType(str, Enum):
    """What a device group element points at."""

    DEVICE = "Device"
    GROUP = "Group"


class ContainerPolicy(str, Enum):
    """Whether devices of a specification may contain nested devices."""

    STANDALONE = "Standalone"
    COMPOSITE = "Composite"


__all__ = [
    "EntityType",
    "AssignmentStatus",
    "GroupElementType",
    "ContainerPolicy",
]
