"""Device self-registration.

A device announces itself with its hardware id and specification. Known
devices are returned as they are; unknown devices are created and given an
initial assignment, subject to the registration settings::

    DEVICE_SPINE_REGISTRATION__ALLOW_NEW_DEVICES=true
    DEVICE_SPINE_REGISTRATION__AUTO_ASSIGN_SITE=true
    DEVICE_SPINE_REGISTRATION__AUTO_ASSIGN_SITE_TOKEN=warehouse-1

Tags:
    device-spine, registration
"""

from __future__ import annotations

from dataclasses import dataclass

from device_spine.core.errors import (
    ErrorCode,
    InvalidReferenceError,
    InvariantViolationError,
    ValidationError,
)
from device_spine.core.logging import get_logger
from device_spine.core.settings import RegistrationSettings
from device_spine.model.entities import Device, DeviceAssignment
from device_spine.model.requests import (
    DeviceAssignmentCreateRequest,
    DeviceCreateRequest,
    DeviceRegistrationRequest,
)
from device_spine.registry.management import DeviceManagement

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    device: Device
    assignment: DeviceAssignment | None
    created: bool


class RegistrationManager:
    """Registers devices against a :class:`DeviceManagement`."""

    def __init__(
        self, management: DeviceManagement, settings: RegistrationSettings | None = None
    ) -> None:
        self.management = management
        self.settings = settings or RegistrationSettings()

    def _site_token_for(self, request: DeviceRegistrationRequest) -> str:
        if request.site_token:
            return request.site_token
        if self.settings.auto_assign_site and self.settings.auto_assign_site_token:
            return self.settings.auto_assign_site_token
        raise InvalidReferenceError(
            f"Registration of {request.hardware_id!r} carries no site token",
            code=ErrorCode.MISSING_SITE_TOKEN,
        ).with_context(entity="device", key=request.hardware_id)

    def register_device(self, request: DeviceRegistrationRequest) -> RegistrationResult:
        """Return the registered device, creating it and its assignment when new.

        Raises:
            ValidationError: no hardware id or specification token.
            InvariantViolationError: new devices are not allowed.
            InvalidReferenceError: no usable site, or unknown specification/site.
        """
        if not request.hardware_id:
            raise ValidationError(
                "hardware_id is required",
                field="hardware_id",
                code=ErrorCode.MISSING_REQUIRED_FIELD,
            )
        if not request.specification_token:
            raise ValidationError(
                "specification_token is required",
                field="specification_token",
                code=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        existing = self.management.get_device_by_hardware_id(request.hardware_id)
        if existing is not None and not existing.deleted:
            logger.debug("device_already_registered", hardware_id=request.hardware_id)
            return RegistrationResult(
                device=existing,
                assignment=self.management.get_current_device_assignment(request.hardware_id),
                created=False,
            )

        if not self.settings.allow_new_devices:
            raise InvariantViolationError(
                f"Device {request.hardware_id!r} is unknown and new devices are not allowed",
                code=ErrorCode.NEW_DEVICES_NOT_ALLOWED,
            ).with_context(entity="device", key=request.hardware_id)

        site_token = self._site_token_for(request)
        self.management.create_device(
            DeviceCreateRequest(
                hardware_id=request.hardware_id,
                specification_token=request.specification_token,
                site_token=site_token,
                metadata=request.metadata,
            )
        )
        assignment = self.management.create_device_assignment(
            DeviceAssignmentCreateRequest(
                device_hardware_id=request.hardware_id,
                asset_reference=request.asset_reference,
            )
        )
        device = self.management.get_device_by_hardware_id(request.hardware_id)
        logger.info(
            "device_registered",
            hardware_id=request.hardware_id,
            site_token=site_token,
            assignment_token=assignment.token,
        )
        return RegistrationResult(device=device, assignment=assignment, created=True)


__all__ = ["RegistrationManager", "RegistrationResult"]
