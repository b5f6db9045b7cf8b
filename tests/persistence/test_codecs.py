"""Tests for device_spine.codecs."""

from datetime import UTC, datetime

import pytest

from device_spine.codecs import CODECS, DeviceAssignmentCodec, DeviceCodec, codec_for
from device_spine.core.errors import ConfigError
from device_spine.model import (
    AssetReference,
    AssignmentStatus,
    Device,
    DeviceAssignment,
    DeviceElementMapping,
    DeviceGroupElement,
    EntityType,
    GroupElementType,
)


class TestCodecRegistry:
    def test_every_entity_type_has_a_codec(self):
        assert set(CODECS) == set(EntityType)
        for entity_type, codec in CODECS.items():
            assert codec.entity_type == entity_type

    def test_unknown_type(self):
        with pytest.raises(ConfigError):
            codec_for("gadget")


class TestDeviceCodec:
    def test_document_shape(self):
        device = Device(
            hardware_id="HW1",
            specification_token="SP1",
            site_token="S1",
            device_element_mappings=[DeviceElementMapping(path="/slot/1", hardware_id="HW2")],
            metadata={"color": "red"},
        )
        document = DeviceCodec().to_document(device)
        assert document["hardwareId"] == "HW1"
        assert document["specToken"] == "SP1"
        assert document["assignmentToken"] is None
        assert document["deviceElementMappings"] == [{"path": "/slot/1", "hardwareId": "HW2"}]
        assert document["deleted"] is False
        assert document["metadata"] == {"color": "red"}

    def test_decode_ignores_store_id_and_defaults_missing_fields(self):
        device = DeviceCodec().from_document({"_id": "x", "hardwareId": "HW1"})
        assert device.hardware_id == "HW1"
        assert device.device_element_mappings == []
        assert device.deleted is False


class TestAssignmentCodec:
    def test_status_and_naive_dates(self):
        document = DeviceAssignmentCodec().to_document(
            DeviceAssignment(
                token="A1",
                device_hardware_id="HW1",
                site_token="S1",
                asset_reference=AssetReference(module="people", id="bob"),
                status=AssignmentStatus.MISSING,
            )
        )
        assert document["status"] == "Missing"
        assert list(document["assetReference"]) == ["module", "id"]

        document["activeDate"] = datetime(2024, 5, 1, 12, 0)
        decoded = DeviceAssignmentCodec().from_document(document)
        assert decoded.status == AssignmentStatus.MISSING
        assert decoded.active_date.tzinfo == UTC
        assert decoded.asset_reference == AssetReference(module="people", id="bob")


class TestGroupElementCodec:
    def test_no_audit_fields(self):
        codec = codec_for(EntityType.DEVICE_GROUP_ELEMENT)
        element = DeviceGroupElement(
            group_token="G1", type=GroupElementType.GROUP, element_id="G2", index=3
        )
        document = codec.to_document(element)
        assert document == {
            "groupToken": "G1",
            "type": "Group",
            "elementId": "G2",
            "index": 3,
            "roles": [],
        }
        assert codec.from_document(document) == element
