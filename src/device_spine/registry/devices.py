"""Device operations and composite-device element mappings.

A composite device lists its children in ``device_element_mappings``
(one ``{path, hardware_id}`` per slot) and each child points back through
``parent_hardware_id``. Both sides are written by the mapping operations;
they are two separate document writes.
"""

from __future__ import annotations

from device_spine.codecs import DeviceCodec
from device_spine.codecs.base import CREATED_DATE
from device_spine.core.errors import (
    DuplicateKeyError,
    ErrorCode,
    InvariantViolationError,
    StoreUnavailableError,
)
from device_spine.core.logging import get_logger
from device_spine.model.entities import Device, DeviceAssignment, DeviceElementMapping
from device_spine.model.enums import EntityType
from device_spine.model.requests import DeviceCreateRequest
from device_spine.persistence import primitives
from device_spine.persistence.indexes import DEVICES
from device_spine.persistence.search import DeviceSearchCriteria, SearchResults
from device_spine.registry import logic
from device_spine.registry._base import RegistryRepository, live
from device_spine.store.protocols import DESCENDING

logger = get_logger(__name__)


class DeviceOperations(RegistryRepository):
    """Device CRUD, the delete-while-assigned guard and element mappings."""

    MAPPING_LOCK_ATTEMPTS = 3

    def assert_device(self, hardware_id: str | None, *, reference: bool = False):
        return self.assert_document(
            DEVICES,
            {DeviceCodec.HARDWARE_ID: hardware_id},
            entity="device",
            key=hardware_id,
            code=ErrorCode.INVALID_HARDWARE_ID,
            reference=reference,
        )

    def _assert_device_references(self, request: DeviceCreateRequest) -> None:
        if request.specification_token is not None:
            self.assert_device_specification(request.specification_token, reference=True)
        if request.site_token is not None:
            self.assert_site(request.site_token, reference=True)

    def create_device(self, request: DeviceCreateRequest) -> Device:
        self._assert_device_references(request)
        if request.parent_hardware_id is not None:
            self.assert_device(request.parent_hardware_id, reference=True)
        device = logic.device_create_logic(request, self.actor)
        created = self.insert_entity(
            DEVICES, EntityType.DEVICE, device, ErrorCode.DUPLICATE_HARDWARE_ID
        )
        logger.info(
            "device_created",
            hardware_id=created.hardware_id,
            site_token=created.site_token,
            specification_token=created.specification_token,
        )
        return created

    def update_device(self, hardware_id: str, request: DeviceCreateRequest) -> Device:
        self._assert_device_references(request)
        with self.locks.hold(hardware_id):
            existing = self.assert_device(hardware_id)
            device = logic.device_update_logic(
                self.decode(EntityType.DEVICE, existing), request, self.actor
            )
            return self.replace_entity(DEVICES, EntityType.DEVICE, existing, device)

    def get_device_by_hardware_id(self, hardware_id: str) -> Device | None:
        document = self.find_document(DEVICES, {DeviceCodec.HARDWARE_ID: hardware_id})
        return self.decode(EntityType.DEVICE, document) if document else None

    def get_current_device_assignment(self, hardware_id: str) -> DeviceAssignment | None:
        """The device's active assignment, or None when it is unassigned."""
        device = self.decode(EntityType.DEVICE, self.assert_device(hardware_id))
        if device.assignment_token is None:
            return None
        return self.decode(
            EntityType.DEVICE_ASSIGNMENT,
            self.assert_device_assignment(device.assignment_token, reference=True),
        )

    def list_devices(
        self, include_deleted: bool = False, criteria: DeviceSearchCriteria | None = None
    ) -> SearchResults[Device]:
        criteria = criteria or DeviceSearchCriteria()
        query = live({}, include_deleted)
        if criteria.exclude_assigned:
            query[DeviceCodec.ASSIGNMENT_TOKEN] = None
        if criteria.specification_token:
            query[DeviceCodec.SPEC_TOKEN] = criteria.specification_token
        if criteria.site_token:
            query[DeviceCodec.SITE_TOKEN] = criteria.site_token
        return primitives.search(
            EntityType.DEVICE,
            self.collection(DEVICES),
            query,
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )

    def delete_device(self, hardware_id: str, force: bool = False) -> Device:
        """Soft (or, with *force*, hard) delete an unassigned device.

        Raises:
            InvariantViolationError: the device still has an assignment.
        """
        with self.locks.hold(hardware_id):
            existing = self.assert_device(hardware_id)
            device = self.decode(EntityType.DEVICE, existing)
            if device.assignment_token is not None:
                raise InvariantViolationError(
                    f"Device {hardware_id!r} is assigned; end the assignment first",
                    code=ErrorCode.DEVICE_CANNOT_BE_DELETED_IF_ASSIGNED,
                ).with_context(
                    entity="device", key=hardware_id, assignment_token=device.assignment_token
                )
            deleted = self.delete_entity(DEVICES, EntityType.DEVICE, existing, force)
        logger.info("device_deleted", hardware_id=hardware_id, force=force)
        return deleted

    # -- Element mappings --------------------------------------------------

    def create_device_element_mapping(
        self, hardware_id: str, mapping: DeviceElementMapping
    ) -> Device:
        """Place device ``mapping.hardware_id`` at slot ``mapping.path``.

        Raises:
            InvalidReferenceError: the child device does not exist.
            InvariantViolationError: the child already has a parent.
            DuplicateKeyError: the slot is already occupied.
        """
        with self.locks.hold_many(hardware_id, mapping.hardware_id):
            existing = self.assert_device(hardware_id)
            device = self.decode(EntityType.DEVICE, existing)
            if mapping.hardware_id == hardware_id:
                raise InvariantViolationError(
                    f"Device {hardware_id!r} cannot contain itself",
                    code=ErrorCode.DEVICE_PARENT_MAPPING_EXISTS,
                ).with_context(entity="device", key=hardware_id, path=mapping.path)

            child_document = self.assert_device(mapping.hardware_id, reference=True)
            child = self.decode(EntityType.DEVICE, child_document)
            if child.parent_hardware_id is not None:
                raise InvariantViolationError(
                    f"Device {child.hardware_id!r} is already mapped into "
                    f"{child.parent_hardware_id!r}",
                    code=ErrorCode.DEVICE_PARENT_MAPPING_EXISTS,
                ).with_context(entity="device", key=child.hardware_id)
            if any(m.path == mapping.path for m in device.device_element_mappings):
                raise DuplicateKeyError(
                    f"Path {mapping.path!r} of {hardware_id!r} is already mapped",
                    code=ErrorCode.DEVICE_ELEMENT_MAPPING_EXISTS,
                ).with_context(entity="device", key=hardware_id, path=mapping.path)

            device.device_element_mappings.append(
                DeviceElementMapping(path=mapping.path, hardware_id=mapping.hardware_id)
            )
            logic.stamp_updated(device, self.actor)
            updated = self.replace_entity(DEVICES, EntityType.DEVICE, existing, device)

            child.parent_hardware_id = hardware_id
            logic.stamp_updated(child, self.actor)
            self.replace_entity(DEVICES, EntityType.DEVICE, child_document, child)

        logger.info(
            "element_mapping_created",
            hardware_id=hardware_id,
            path=mapping.path,
            child_hardware_id=mapping.hardware_id,
        )
        return updated

    def delete_device_element_mapping(self, hardware_id: str, path: str) -> Device:
        """Remove the mapping at *path*; an unknown path leaves the device unchanged.

        The parent and every child mapped at *path* are locked together, so
        the children are read first and re-checked once the locks are held.
        """
        for _ in range(self.MAPPING_LOCK_ATTEMPTS):
            children = self._children_at(self.assert_device(hardware_id), path)
            with self.locks.hold_many(hardware_id, *children):
                existing = self.assert_device(hardware_id)
                if self._children_at(existing, path) != children:
                    continue
                device = self.decode(EntityType.DEVICE, existing)
                if not children:
                    return device

                device.device_element_mappings = [
                    m for m in device.device_element_mappings if m.path != path
                ]
                logic.stamp_updated(device, self.actor)
                updated = self.replace_entity(DEVICES, EntityType.DEVICE, existing, device)

                for child_hardware_id in children:
                    self._release_child(hardware_id, child_hardware_id)

            logger.info("element_mapping_deleted", hardware_id=hardware_id, path=path)
            return updated

        raise StoreUnavailableError(
            f"Mappings at {path!r} of {hardware_id!r} kept changing",
            code=ErrorCode.LOCK_TIMEOUT,
        ).with_context(entity="device", key=hardware_id, path=path)

    def _children_at(self, document, path: str) -> list[str]:
        device = self.decode(EntityType.DEVICE, document)
        return sorted(m.hardware_id for m in device.device_element_mappings if m.path == path)

    def _release_child(self, parent_hardware_id: str, child_hardware_id: str) -> None:
        """Clear the child's back-reference; the caller holds the child's lock."""
        child_document = self.find_document(DEVICES, {DeviceCodec.HARDWARE_ID: child_hardware_id})
        if child_document is None:
            logger.warning(
                "element_mapping_child_missing",
                hardware_id=parent_hardware_id,
                child_hardware_id=child_hardware_id,
            )
            return
        child = self.decode(EntityType.DEVICE, child_document)
        if child.parent_hardware_id != parent_hardware_id:
            return
        child.parent_hardware_id = None
        logic.stamp_updated(child, self.actor)
        self.replace_entity(DEVICES, EntityType.DEVICE, child_document, child)


__all__ = ["DeviceOperations"]
