"""Registry operations: lifecycle rules and referential checks over a document store."""

from device_spine.registry._base import LIVE_FIRST, RegistryRepository, live
from device_spine.registry.management import DeviceManagement

__all__ = ["DeviceManagement", "LIVE_FIRST", "RegistryRepository", "live"]
