"""Tests for specifications and their commands and statuses."""

import pytest

from device_spine.core.errors import (
    DuplicateKeyError,
    ErrorCode,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from device_spine.model import (
    AssetReference,
    CommandParameter,
    ContainerPolicy,
    DeviceCommandCreateRequest,
    DeviceSpecificationCreateRequest,
    DeviceStatusCreateRequest,
)


class TestSpecifications:
    def test_create_defaults(self, management):
        spec = management.create_device_specification(DeviceSpecificationCreateRequest(name="x"))
        assert spec.token
        assert spec.container_policy == ContainerPolicy.STANDALONE
        assert spec.asset_reference is None

    def test_asset_reference_round_trips(self, management, specification):
        fetched = management.get_device_specification_by_token("SP1")
        assert fetched.asset_reference == AssetReference(module="devices", id="mt90")

    def test_duplicate_token(self, management, specification):
        with pytest.raises(DuplicateKeyError) as excinfo:
            management.create_device_specification(DeviceSpecificationCreateRequest(token="SP1"))
        assert excinfo.value.code == ErrorCode.DUPLICATE_DEVICE_SPECIFICATION_TOKEN

    def test_update(self, management, specification):
        updated = management.update_device_specification(
            "SP1",
            DeviceSpecificationCreateRequest(container_policy=ContainerPolicy.COMPOSITE),
        )
        assert updated.container_policy == ContainerPolicy.COMPOSITE
        assert updated.name == "Tracker"

    def test_soft_delete_hides_from_listing(self, management, specification):
        management.delete_device_specification("SP1")
        assert management.list_device_specifications().total == 0
        assert management.list_device_specifications(include_deleted=True).total == 1

    def test_unknown(self, management):
        assert management.get_device_specification_by_token("nope") is None
        with pytest.raises(NotFoundError) as excinfo:
            management.delete_device_specification("nope")
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_SPECIFICATION_TOKEN


class TestCommands:
    def test_create_and_list(self, management, specification):
        command = management.create_device_command(
            "SP1",
            DeviceCommandCreateRequest(
                namespace="http://x", name="ping", parameters=[CommandParameter(name="n")]
            ),
        )
        assert command.spec_token == "SP1"
        assert management.get_device_command_by_token(command.token).parameters == [
            CommandParameter(name="n")
        ]
        assert [c.name for c in management.list_device_commands("SP1")] == ["ping"]

    def test_unknown_specification(self, management):
        with pytest.raises(InvalidReferenceError) as excinfo:
            management.create_device_command("nope", DeviceCommandCreateRequest(name="ping"))
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_SPECIFICATION_TOKEN

    def test_name_required(self, management, specification):
        with pytest.raises(ValidationError):
            management.create_device_command("SP1", DeviceCommandCreateRequest())

    def test_namespace_and_name_unique(self, management, specification):
        management.create_device_command(
            "SP1", DeviceCommandCreateRequest(namespace="a", name="ping")
        )
        management.create_device_command(
            "SP1", DeviceCommandCreateRequest(namespace="b", name="ping")
        )
        with pytest.raises(DuplicateKeyError) as excinfo:
            management.create_device_command(
                "SP1", DeviceCommandCreateRequest(namespace="a", name="ping")
            )
        assert excinfo.value.code == ErrorCode.DEVICE_COMMAND_EXISTS

    def test_update_into_existing_key_rejected(self, management, specification):
        management.create_device_command("SP1", DeviceCommandCreateRequest(namespace="a", name="x"))
        other = management.create_device_command(
            "SP1", DeviceCommandCreateRequest(namespace="a", name="y")
        )
        with pytest.raises(DuplicateKeyError):
            management.update_device_command(other.token, DeviceCommandCreateRequest(name="x"))
        renamed = management.update_device_command(
            other.token, DeviceCommandCreateRequest(description="why")
        )
        assert renamed.description == "why"

    def test_deleted_command_frees_key(self, management, specification):
        command = management.create_device_command(
            "SP1", DeviceCommandCreateRequest(namespace="a", name="ping")
        )
        management.delete_device_command(command.token)
        management.create_device_command(
            "SP1", DeviceCommandCreateRequest(namespace="a", name="ping")
        )
        assert len(management.list_device_commands("SP1")) == 1
        assert len(management.list_device_commands("SP1", include_deleted=True)) == 2


class TestStatuses:
    def test_duplicate_code_rejected(self, management, specification):
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on", name="On"))
        with pytest.raises(DuplicateKeyError) as excinfo:
            management.create_device_status("SP1", DeviceStatusCreateRequest(code="on"))
        assert excinfo.value.code == ErrorCode.DEVICE_STATUS_EXISTS
        assert len(management.list_device_statuses("SP1")) == 1

    def test_duplicate_name_rejected(self, management, specification):
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on", name="On"))
        with pytest.raises(DuplicateKeyError):
            management.create_device_status("SP1", DeviceStatusCreateRequest(code="up", name="On"))

    def test_same_code_on_other_specification(self, management, specification):
        management.create_device_specification(DeviceSpecificationCreateRequest(token="SP2"))
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on"))
        management.create_device_status("SP2", DeviceStatusCreateRequest(code="on"))
        assert management.get_device_status_by_code("SP2", "on").spec_token == "SP2"

    def test_update_keeps_code(self, management, specification):
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on", name="On"))
        updated = management.update_device_status(
            "SP1", "on", DeviceStatusCreateRequest(code="off", icon="bolt")
        )
        assert updated.code == "on"
        assert updated.icon == "bolt"

    def test_delete_removes_document(self, management, specification):
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on"))
        management.delete_device_status("SP1", "on")
        assert management.get_device_status_by_code("SP1", "on") is None
        management.create_device_status("SP1", DeviceStatusCreateRequest(code="on"))

    def test_unknown_code(self, management, specification):
        with pytest.raises(NotFoundError) as excinfo:
            management.delete_device_status("SP1", "nope")
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_STATUS_CODE
