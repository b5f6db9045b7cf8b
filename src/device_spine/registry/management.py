"""The device management facade.

:class:`DeviceManagement` is the single entry point for registry
operations. It combines the per-aggregate operation classes over one
document store, one actor and one per-device lock table::

    from device_spine.core.settings import get_settings
    from device_spine.registry import DeviceManagement
    from device_spine.store import create_store

    settings = get_settings()
    management = DeviceManagement.from_settings(settings, create_store(settings))
    management.ensure_indexes()

Tags:
    device-spine, registry, facade
"""

from __future__ import annotations

from device_spine.core.logging import get_logger
from device_spine.core.settings import RegistrySettings
from device_spine.registry.assignments import AssignmentOperations
from device_spine.registry.devices import DeviceOperations
from device_spine.registry.groups import GroupOperations
from device_spine.registry.sites import SiteOperations
from device_spine.registry.specifications import SpecificationOperations
from device_spine.store.protocols import DocumentStore

logger = get_logger(__name__)


class DeviceManagement(
    SiteOperations,
    SpecificationOperations,
    DeviceOperations,
    AssignmentOperations,
    GroupOperations,
):
    """Sites, specifications, devices, assignments and groups over one store."""

    @classmethod
    def from_settings(
        cls, settings: RegistrySettings, store: DocumentStore
    ) -> DeviceManagement:
        management = cls(
            store, actor=settings.actor, lock_timeout=settings.lock_timeout_seconds
        )
        logger.debug(
            "device_management_created",
            backend=settings.store_backend.value,
            actor=settings.actor,
        )
        return management


__all__ = ["DeviceManagement"]
