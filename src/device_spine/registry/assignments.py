"""Device assignment lifecycle and assignment streams.

State machine::

    create ──► ACTIVE ──end_device_assignment──► RELEASED (terminal)
                 ▲ │
                 │ ▼   update_device_assignment_status (external monitor)
               MISSING ──end_device_assignment──► RELEASED

A device points at its current assignment through ``assignment_token``.
Every write to an assignment or to its device runs under the per-device
lock (keyed by the assignment's ``device_hardware_id``), so in-process
callers never interleave read-modify-replace cycles on one device. Separate
processes sharing a store are not serialized by that lock.
"""

from __future__ import annotations

from device_spine.codecs import DeviceAssignmentCodec, DeviceCodec, DeviceStreamCodec
from device_spine.codecs.base import CREATED_DATE, write_asset_reference
from device_spine.core.errors import ErrorCode, InvalidReferenceError, InvariantViolationError
from device_spine.core.logging import get_logger
from device_spine.core.timestamps import utc_now
from device_spine.model.entities import AssetReference, DeviceAssignment, DeviceStream
from device_spine.model.enums import AssignmentStatus, EntityType
from device_spine.model.requests import DeviceAssignmentCreateRequest, DeviceStreamCreateRequest
from device_spine.persistence import primitives
from device_spine.persistence.indexes import ASSIGNMENTS, DEVICES, STREAMS
from device_spine.persistence.search import (
    AssignmentSearchCriteria,
    AssignmentsForAssetSearchCriteria,
    SearchCriteria,
    SearchResults,
)
from device_spine.registry import logic
from device_spine.registry._base import RegistryRepository, live
from device_spine.store.protocols import DESCENDING

logger = get_logger(__name__)

_NEWEST_FIRST = [(DeviceAssignmentCodec.ACTIVE_DATE, DESCENDING)]


class AssignmentOperations(RegistryRepository):
    """Assignment create/end/status transitions, history queries and streams."""

    def assert_device_assignment(self, token: str | None, *, reference: bool = False):
        return self.assert_document(
            ASSIGNMENTS,
            {DeviceAssignmentCodec.TOKEN: token},
            entity="device_assignment",
            key=token,
            code=ErrorCode.INVALID_DEVICE_ASSIGNMENT_TOKEN,
            reference=reference,
        )

    def create_device_assignment(self, request: DeviceAssignmentCreateRequest) -> DeviceAssignment:
        """Assign a device; its site becomes the assignment's site.

        Raises:
            InvalidReferenceError: unknown device, or the device has no site.
            InvariantViolationError: the device is already assigned.
            DuplicateKeyError: the assignment token is taken.
        """
        hardware_id = request.device_hardware_id
        with self.locks.hold(hardware_id or ""):
            device_document = self.assert_device(hardware_id, reference=True)
            device = self.decode(EntityType.DEVICE, device_document)
            if device.assignment_token is not None:
                raise InvariantViolationError(
                    f"Device {hardware_id!r} is already assigned",
                    code=ErrorCode.DEVICE_ALREADY_ASSIGNED,
                ).with_context(
                    entity="device", key=hardware_id, assignment_token=device.assignment_token
                )
            if device.site_token is None:
                raise InvalidReferenceError(
                    f"Device {hardware_id!r} is not attached to a site",
                    code=ErrorCode.INVALID_SITE_TOKEN,
                ).with_context(entity="device", key=hardware_id)
            self.assert_site(device.site_token, reference=True)

            assignment = logic.assignment_create_logic(
                request, device, device.site_token, self.actor
            )
            created = self.insert_entity(
                ASSIGNMENTS,
                EntityType.DEVICE_ASSIGNMENT,
                assignment,
                ErrorCode.DUPLICATE_DEVICE_ASSIGNMENT,
            )

            device.assignment_token = created.token
            logic.stamp_updated(device, self.actor)
            self.replace_entity(DEVICES, EntityType.DEVICE, device_document, device)

        logger.info("assignment_created", token=created.token, hardware_id=hardware_id)
        return created

    def get_device_assignment_by_token(self, token: str) -> DeviceAssignment | None:
        document = self.find_document(ASSIGNMENTS, {DeviceAssignmentCodec.TOKEN: token})
        return self.decode(EntityType.DEVICE_ASSIGNMENT, document) if document else None

    def _assignment_device(self, token: str) -> str:
        """Hardware id whose lock guards writes to assignment *token*."""
        return self.decode(
            EntityType.DEVICE_ASSIGNMENT, self.assert_device_assignment(token)
        ).device_hardware_id

    def delete_device_assignment(self, token: str, force: bool = False) -> DeviceAssignment:
        """Delete a released assignment. A device's current assignment cannot be deleted."""
        with self.locks.hold(self._assignment_device(token)):
            existing = self.assert_device_assignment(token)
            assignment = self.decode(EntityType.DEVICE_ASSIGNMENT, existing)
            if assignment.status != AssignmentStatus.RELEASED:
                raise InvariantViolationError(
                    f"Assignment {token!r} is still {assignment.status.value}",
                    code=ErrorCode.ASSIGNMENT_STILL_ACTIVE,
                ).with_context(entity="device_assignment", key=token)
            return self.delete_entity(ASSIGNMENTS, EntityType.DEVICE_ASSIGNMENT, existing, force)

    def update_device_assignment_metadata(
        self, token: str, metadata: dict[str, str]
    ) -> DeviceAssignment:
        with self.locks.hold(self._assignment_device(token)):
            existing = self.assert_device_assignment(token)
            assignment = self.decode(EntityType.DEVICE_ASSIGNMENT, existing)
            assignment.metadata = dict(metadata)
            logic.stamp_updated(assignment, self.actor)
            return self.replace_entity(
                ASSIGNMENTS, EntityType.DEVICE_ASSIGNMENT, existing, assignment
            )

    def update_device_assignment_status(
        self, token: str, status: AssignmentStatus
    ) -> DeviceAssignment:
        """Move a current assignment between ACTIVE and MISSING.

        Presence monitoring lives outside the registry and reports through
        this operation. Releasing goes through :meth:`end_device_assignment`.
        """
        status = AssignmentStatus(status)
        with self.locks.hold(self._assignment_device(token)):
            existing = self.assert_device_assignment(token)
            assignment = self.decode(EntityType.DEVICE_ASSIGNMENT, existing)
            if (
                assignment.status == AssignmentStatus.RELEASED
                or status == AssignmentStatus.RELEASED
            ):
                raise InvariantViolationError(
                    f"Cannot change assignment {token!r} from {assignment.status.value} "
                    f"to {status.value}",
                    code=ErrorCode.INVALID_ASSIGNMENT_STATUS,
                ).with_context(entity="device_assignment", key=token)
            assignment.status = status
            logic.stamp_updated(assignment, self.actor)
            updated = self.replace_entity(
                ASSIGNMENTS, EntityType.DEVICE_ASSIGNMENT, existing, assignment
            )
        logger.info("assignment_status_updated", token=token, status=status.value)
        return updated

    def end_device_assignment(self, token: str) -> DeviceAssignment:
        """Release an assignment and clear the device's pointer to it."""
        hardware_id = self._assignment_device(token)
        with self.locks.hold(hardware_id):
            existing = self.assert_device_assignment(token)
            assignment = self.decode(EntityType.DEVICE_ASSIGNMENT, existing)
            if assignment.status == AssignmentStatus.RELEASED:
                raise InvariantViolationError(
                    f"Assignment {token!r} was already released",
                    code=ErrorCode.ASSIGNMENT_ALREADY_RELEASED,
                ).with_context(entity="device_assignment", key=token)

            assignment.released_date = utc_now()
            assignment.status = AssignmentStatus.RELEASED
            logic.stamp_updated(assignment, self.actor)
            ended = self.replace_entity(
                ASSIGNMENTS, EntityType.DEVICE_ASSIGNMENT, existing, assignment
            )

            device_document = self.find_document(DEVICES, {DeviceCodec.HARDWARE_ID: hardware_id})
            if device_document is None:
                logger.warning("assignment_device_missing", token=token, hardware_id=hardware_id)
            else:
                device = self.decode(EntityType.DEVICE, device_document)
                if device.assignment_token == token:
                    device.assignment_token = None
                    logic.stamp_updated(device, self.actor)
                    self.replace_entity(DEVICES, EntityType.DEVICE, device_document, device)

        logger.info("assignment_ended", token=token, hardware_id=hardware_id)
        return ended

    # -- Queries -----------------------------------------------------------

    def get_device_assignment_history(
        self, hardware_id: str, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceAssignment]:
        return primitives.search(
            EntityType.DEVICE_ASSIGNMENT,
            self.collection(ASSIGNMENTS),
            live({DeviceAssignmentCodec.DEVICE_HARDWARE_ID: hardware_id}),
            _NEWEST_FIRST,
            criteria,
            date_field=DeviceAssignmentCodec.ACTIVE_DATE,
        )

    def get_device_assignments_for_site(
        self, site_token: str, criteria: AssignmentSearchCriteria | None = None
    ) -> SearchResults[DeviceAssignment]:
        criteria = criteria or AssignmentSearchCriteria()
        query = live({DeviceAssignmentCodec.SITE_TOKEN: site_token})
        if criteria.status is not None:
            query[DeviceAssignmentCodec.STATUS] = AssignmentStatus(criteria.status).value
        return primitives.search(
            EntityType.DEVICE_ASSIGNMENT,
            self.collection(ASSIGNMENTS),
            query,
            _NEWEST_FIRST,
            criteria,
            date_field=DeviceAssignmentCodec.ACTIVE_DATE,
        )

    def get_device_assignments_for_asset(
        self,
        asset_reference: AssetReference,
        criteria: AssignmentsForAssetSearchCriteria | None = None,
    ) -> SearchResults[DeviceAssignment]:
        criteria = criteria or AssignmentsForAssetSearchCriteria()
        query = live(
            {DeviceAssignmentCodec.ASSET_REFERENCE: write_asset_reference(asset_reference)}
        )
        if criteria.site_token:
            query[DeviceAssignmentCodec.SITE_TOKEN] = criteria.site_token
        if criteria.status is not None:
            query[DeviceAssignmentCodec.STATUS] = AssignmentStatus(criteria.status).value
        return primitives.search(
            EntityType.DEVICE_ASSIGNMENT,
            self.collection(ASSIGNMENTS),
            query,
            _NEWEST_FIRST,
            criteria,
            date_field=DeviceAssignmentCodec.ACTIVE_DATE,
        )

    # -- Streams -----------------------------------------------------------

    def create_device_stream(
        self, assignment_token: str, request: DeviceStreamCreateRequest
    ) -> DeviceStream:
        self.assert_device_assignment(assignment_token, reference=True)
        stream = logic.stream_create_logic(assignment_token, request, self.actor)
        created = self.insert_entity(
            STREAMS, EntityType.DEVICE_STREAM, stream, ErrorCode.DUPLICATE_STREAM_ID
        )
        logger.info("stream_created", assignment_token=assignment_token, stream_id=created.stream_id)
        return created

    def get_device_stream(self, assignment_token: str, stream_id: str) -> DeviceStream | None:
        document = self.find_document(
            STREAMS,
            {
                DeviceStreamCodec.ASSIGNMENT_TOKEN: assignment_token,
                DeviceStreamCodec.STREAM_ID: stream_id,
            },
        )
        return self.decode(EntityType.DEVICE_STREAM, document) if document else None

    def list_device_streams(
        self, assignment_token: str, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceStream]:
        return primitives.search(
            EntityType.DEVICE_STREAM,
            self.collection(STREAMS),
            live({DeviceStreamCodec.ASSIGNMENT_TOKEN: assignment_token}),
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )


__all__ = ["AssignmentOperations"]
