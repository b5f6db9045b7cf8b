"""Device specification, command and status operations.

Commands and statuses are namespaced by their specification. Their
per-specification keys are checked in memory against the non-deleted
siblings before insert; the compound unique index on
``(specToken, code)`` backs up the status check at the store level.
"""

from __future__ import annotations

from device_spine.codecs import (
    DeviceCommandCodec,
    DeviceSpecificationCodec,
    DeviceStatusCodec,
)
from device_spine.codecs.base import CREATED_DATE
from device_spine.core.errors import DuplicateKeyError, ErrorCode
from device_spine.core.logging import get_logger
from device_spine.model.entities import DeviceCommand, DeviceSpecification, DeviceStatus
from device_spine.model.enums import EntityType
from device_spine.model.requests import (
    DeviceCommandCreateRequest,
    DeviceSpecificationCreateRequest,
    DeviceStatusCreateRequest,
)
from device_spine.persistence import primitives
from device_spine.persistence.indexes import COMMANDS, SPECIFICATIONS, STATUSES
from device_spine.persistence.search import SearchCriteria, SearchResults
from device_spine.registry import logic
from device_spine.registry._base import RegistryRepository, live
from device_spine.store.protocols import ASCENDING, DESCENDING

logger = get_logger(__name__)


def _command_key(command: DeviceCommand) -> tuple[str | None, str]:
    return (command.namespace, command.name)


class SpecificationOperations(RegistryRepository):
    """Specifications and the commands and statuses they own."""

    # -- Specifications ----------------------------------------------------

    def assert_device_specification(self, token: str | None, *, reference: bool = False):
        return self.assert_document(
            SPECIFICATIONS,
            {DeviceSpecificationCodec.TOKEN: token},
            entity="device_specification",
            key=token,
            code=ErrorCode.INVALID_DEVICE_SPECIFICATION_TOKEN,
            reference=reference,
        )

    def create_device_specification(
        self, request: DeviceSpecificationCreateRequest
    ) -> DeviceSpecification:
        specification = logic.specification_create_logic(request, self.actor)
        created = self.insert_entity(
            SPECIFICATIONS,
            EntityType.DEVICE_SPECIFICATION,
            specification,
            ErrorCode.DUPLICATE_DEVICE_SPECIFICATION_TOKEN,
        )
        logger.info("specification_created", token=created.token)
        return created

    def get_device_specification_by_token(self, token: str) -> DeviceSpecification | None:
        document = self.find_document(SPECIFICATIONS, {DeviceSpecificationCodec.TOKEN: token})
        return self.decode(EntityType.DEVICE_SPECIFICATION, document) if document else None

    def update_device_specification(
        self, token: str, request: DeviceSpecificationCreateRequest
    ) -> DeviceSpecification:
        existing = self.assert_device_specification(token)
        specification = logic.specification_update_logic(
            self.decode(EntityType.DEVICE_SPECIFICATION, existing), request, self.actor
        )
        return self.replace_entity(
            SPECIFICATIONS, EntityType.DEVICE_SPECIFICATION, existing, specification
        )

    def list_device_specifications(
        self, include_deleted: bool = False, criteria: SearchCriteria | None = None
    ) -> SearchResults[DeviceSpecification]:
        return primitives.search(
            EntityType.DEVICE_SPECIFICATION,
            self.collection(SPECIFICATIONS),
            live({}, include_deleted),
            [(CREATED_DATE, DESCENDING)],
            criteria,
        )

    def delete_device_specification(self, token: str, force: bool = False) -> DeviceSpecification:
        existing = self.assert_device_specification(token)
        deleted = self.delete_entity(
            SPECIFICATIONS, EntityType.DEVICE_SPECIFICATION, existing, force
        )
        logger.info("specification_deleted", token=token, force=force)
        return deleted

    # -- Commands ----------------------------------------------------------

    def assert_device_command(self, token: str | None):
        return self.assert_document(
            COMMANDS,
            {DeviceCommandCodec.TOKEN: token},
            entity="device_command",
            key=token,
            code=ErrorCode.INVALID_DEVICE_COMMAND_TOKEN,
        )

    def _assert_command_unique(self, command: DeviceCommand, *, exclude_token: str | None = None):
        for existing in self.list_device_commands(command.spec_token):
            if existing.token == exclude_token:
                continue
            if _command_key(existing) == _command_key(command):
                raise DuplicateKeyError(
                    f"Command {command.namespace}:{command.name} already exists",
                    code=ErrorCode.DEVICE_COMMAND_EXISTS,
                ).with_context(entity="device_command", key=command.name)

    def create_device_command(
        self, spec_token: str, request: DeviceCommandCreateRequest
    ) -> DeviceCommand:
        self.assert_device_specification(spec_token, reference=True)
        command = logic.command_create_logic(spec_token, request, self.actor)
        self._assert_command_unique(command)
        created = self.insert_entity(
            COMMANDS, EntityType.DEVICE_COMMAND, command, ErrorCode.DEVICE_COMMAND_EXISTS
        )
        logger.info("command_created", token=created.token, spec_token=spec_token)
        return created

    def get_device_command_by_token(self, token: str) -> DeviceCommand | None:
        document = self.find_document(COMMANDS, {DeviceCommandCodec.TOKEN: token})
        return self.decode(EntityType.DEVICE_COMMAND, document) if document else None

    def update_device_command(
        self, token: str, request: DeviceCommandCreateRequest
    ) -> DeviceCommand:
        existing = self.assert_device_command(token)
        command = logic.command_update_logic(
            self.decode(EntityType.DEVICE_COMMAND, existing), request, self.actor
        )
        self._assert_command_unique(command, exclude_token=command.token)
        return self.replace_entity(COMMANDS, EntityType.DEVICE_COMMAND, existing, command)

    def list_device_commands(
        self, spec_token: str, include_deleted: bool = False
    ) -> list[DeviceCommand]:
        return primitives.list_entities(
            EntityType.DEVICE_COMMAND,
            self.collection(COMMANDS),
            live({DeviceCommandCodec.SPEC_TOKEN: spec_token}, include_deleted),
            [(DeviceCommandCodec.NAMESPACE, ASCENDING), (DeviceCommandCodec.NAME, ASCENDING)],
        )

    def delete_device_command(self, token: str, force: bool = False) -> DeviceCommand:
        existing = self.assert_device_command(token)
        return self.delete_entity(COMMANDS, EntityType.DEVICE_COMMAND, existing, force)

    # -- Statuses ----------------------------------------------------------

    def assert_device_status(self, spec_token: str, code: str | None):
        return self.assert_document(
            STATUSES,
            {DeviceStatusCodec.SPEC_TOKEN: spec_token, DeviceStatusCodec.CODE: code},
            entity="device_status",
            key=code,
            code=ErrorCode.INVALID_DEVICE_STATUS_CODE,
        )

    def _assert_status_unique(self, status: DeviceStatus, *, exclude_code: str | None = None):
        for existing in self.list_device_statuses(status.spec_token):
            if existing.code == exclude_code:
                continue
            if existing.code == status.code or (status.name and existing.name == status.name):
                raise DuplicateKeyError(
                    f"Status {status.code!r} ({status.name!r}) already exists",
                    code=ErrorCode.DEVICE_STATUS_EXISTS,
                ).with_context(entity="device_status", key=status.code)

    def create_device_status(
        self, spec_token: str, request: DeviceStatusCreateRequest
    ) -> DeviceStatus:
        self.assert_device_specification(spec_token, reference=True)
        status = logic.status_create_logic(spec_token, request, self.actor)
        self._assert_status_unique(status)
        created = self.insert_entity(
            STATUSES, EntityType.DEVICE_STATUS, status, ErrorCode.DEVICE_STATUS_EXISTS
        )
        logger.info("status_created", code=created.code, spec_token=spec_token)
        return created

    def get_device_status_by_code(self, spec_token: str, code: str) -> DeviceStatus | None:
        document = self.find_document(
            STATUSES, {DeviceStatusCodec.SPEC_TOKEN: spec_token, DeviceStatusCodec.CODE: code}
        )
        return self.decode(EntityType.DEVICE_STATUS, document) if document else None

    def update_device_status(
        self, spec_token: str, code: str, request: DeviceStatusCreateRequest
    ) -> DeviceStatus:
        existing = self.assert_device_status(spec_token, code)
        status = logic.status_update_logic(
            self.decode(EntityType.DEVICE_STATUS, existing), request, self.actor
        )
        self._assert_status_unique(status, exclude_code=code)
        return self.replace_entity(
            STATUSES, EntityType.DEVICE_STATUS, existing, status, ErrorCode.DEVICE_STATUS_EXISTS
        )

    def list_device_statuses(self, spec_token: str) -> list[DeviceStatus]:
        return primitives.list_entities(
            EntityType.DEVICE_STATUS,
            self.collection(STATUSES),
            live({DeviceStatusCodec.SPEC_TOKEN: spec_token}),
            [(DeviceStatusCodec.NAME, ASCENDING)],
        )

    def delete_device_status(self, spec_token: str, code: str) -> DeviceStatus:
        """Statuses have no soft delete; the document is removed."""
        existing = self.assert_device_status(spec_token, code)
        return self.delete_entity(STATUSES, EntityType.DEVICE_STATUS, existing, force=True)


__all__ = ["SpecificationOperations"]
