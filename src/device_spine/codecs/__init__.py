"""Entity codecs: domain dataclass <-> stored document."""

from device_spine.codecs.base import DELETED, EntityCodec
from device_spine.codecs.entities import (
    CODECS,
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
    codec_for,
)

__all__ = [
    "CODECS",
    "DELETED",
    "DeviceAssignmentCodec",
    "DeviceCodec",
    "DeviceCommandCodec",
    "DeviceGroupCodec",
    "DeviceGroupElementCodec",
    "DeviceSpecificationCodec",
    "DeviceStatusCodec",
    "DeviceStreamCodec",
    "EntityCodec",
    "SiteCodec",
    "ZoneCodec",
    "codec_for",
]
