"""Tests for the assignment lifecycle, history queries and streams."""

import pytest

from device_spine.core.errors import (
    DuplicateKeyError,
    ErrorCode,
    InvalidReferenceError,
    InvariantViolationError,
)
from device_spine.model import (
    AssetReference,
    AssignmentStatus,
    DeviceAssignmentCreateRequest,
    DeviceStreamCreateRequest,
    SiteCreateRequest,
)
from device_spine.persistence.search import (
    AssignmentSearchCriteria,
    AssignmentsForAssetSearchCriteria,
)

PERSON = AssetReference(module="people", id="alice")


def assign(management, hardware_id, **fields):
    return management.create_device_assignment(
        DeviceAssignmentCreateRequest(device_hardware_id=hardware_id, **fields)
    )


class TestAssignmentLifecycle:
    def test_assign_then_release(self, management, device_factory):
        device_factory("HW1")
        assignment = assign(management, "HW1", token="A1", asset_reference=PERSON)

        assert assignment.status == AssignmentStatus.ACTIVE
        assert assignment.site_token == "S1"
        assert assignment.active_date is not None
        assert management.get_device_by_hardware_id("HW1").assignment_token == "A1"

        ended = management.end_device_assignment("A1")
        assert ended.status == AssignmentStatus.RELEASED
        assert ended.released_date is not None
        assert management.get_device_by_hardware_id("HW1").assignment_token is None
        assert [a.token for a in management.get_device_assignment_history("HW1")] == ["A1"]

    def test_already_assigned(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1")
        with pytest.raises(InvariantViolationError) as excinfo:
            assign(management, "HW1")
        assert excinfo.value.code == ErrorCode.DEVICE_ALREADY_ASSIGNED

    def test_unknown_device(self, management):
        with pytest.raises(InvalidReferenceError) as excinfo:
            assign(management, "ghost")
        assert excinfo.value.code == ErrorCode.INVALID_HARDWARE_ID

    def test_device_without_site(self, management, device_factory):
        device_factory("HW1", site_token=None)
        with pytest.raises(InvalidReferenceError) as excinfo:
            assign(management, "HW1")
        assert excinfo.value.code == ErrorCode.INVALID_SITE_TOKEN

    def test_duplicate_token(self, management, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        assign(management, "HW1", token="A1")
        with pytest.raises(DuplicateKeyError) as excinfo:
            assign(management, "HW2", token="A1")
        assert excinfo.value.code == ErrorCode.DUPLICATE_DEVICE_ASSIGNMENT

    def test_release_twice(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.end_device_assignment("A1")
        with pytest.raises(InvariantViolationError) as excinfo:
            management.end_device_assignment("A1")
        assert excinfo.value.code == ErrorCode.ASSIGNMENT_ALREADY_RELEASED

    def test_reassign_after_release(self, management, device_factory, clock):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.end_device_assignment("A1")
        assign(management, "HW1", token="A2")

        history = management.get_device_assignment_history("HW1")
        assert [a.token for a in history] == ["A2", "A1"]
        assert management.get_current_device_assignment("HW1").token == "A2"


class TestAssignmentStatus:
    def test_active_missing_round_trip(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")

        missing = management.update_device_assignment_status("A1", AssignmentStatus.MISSING)
        assert missing.status == AssignmentStatus.MISSING
        active = management.update_device_assignment_status("A1", AssignmentStatus.ACTIVE)
        assert active.status == AssignmentStatus.ACTIVE

    def test_missing_assignment_can_be_released(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.update_device_assignment_status("A1", AssignmentStatus.MISSING)
        assert management.end_device_assignment("A1").status == AssignmentStatus.RELEASED

    def test_status_cannot_release(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        with pytest.raises(InvariantViolationError) as excinfo:
            management.update_device_assignment_status("A1", AssignmentStatus.RELEASED)
        assert excinfo.value.code == ErrorCode.INVALID_ASSIGNMENT_STATUS

    def test_released_is_terminal(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.end_device_assignment("A1")
        with pytest.raises(InvariantViolationError):
            management.update_device_assignment_status("A1", AssignmentStatus.ACTIVE)

    def test_metadata_update(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1", metadata={"a": "1"})
        updated = management.update_device_assignment_metadata("A1", {"b": "2"})
        assert updated.metadata == {"b": "2"}
        assert management.get_device_assignment_by_token("A1").updated_by == "tester"


class TestAssignmentDelete:
    def test_current_assignment_cannot_be_deleted(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        with pytest.raises(InvariantViolationError) as excinfo:
            management.delete_device_assignment("A1")
        assert excinfo.value.code == ErrorCode.ASSIGNMENT_STILL_ACTIVE

    def test_released_assignment_deleted(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.end_device_assignment("A1")

        management.delete_device_assignment("A1")
        assert management.get_device_assignment_history("HW1").total == 0
        management.delete_device_assignment("A1", force=True)
        assert management.get_device_assignment_by_token("A1") is None


class TestAssignmentQueries:
    @pytest.fixture
    def fleet(self, management, device_factory, clock):
        management.create_site(SiteCreateRequest(token="S2"))
        device_factory("HW1")
        device_factory("HW2")
        device_factory("HW3", site_token="S2")
        assign(management, "HW1", token="A1", asset_reference=PERSON)
        assign(management, "HW2", token="A2")
        assign(management, "HW3", token="A3", asset_reference=PERSON)
        management.end_device_assignment("A1")

    def test_for_site(self, management, fleet):
        assert [a.token for a in management.get_device_assignments_for_site("S1")] == ["A2", "A1"]
        active = management.get_device_assignments_for_site(
            "S1", AssignmentSearchCriteria(status=AssignmentStatus.ACTIVE)
        )
        assert [a.token for a in active] == ["A2"]

    def test_for_asset(self, management, fleet):
        results = management.get_device_assignments_for_asset(PERSON)
        assert [a.token for a in results] == ["A3", "A1"]
        on_site = management.get_device_assignments_for_asset(
            PERSON, AssignmentsForAssetSearchCriteria(site_token="S1")
        )
        assert [a.token for a in on_site] == ["A1"]
        released = management.get_device_assignments_for_asset(
            PERSON, AssignmentsForAssetSearchCriteria(status=AssignmentStatus.RELEASED)
        )
        assert [a.token for a in released] == ["A1"]

    def test_date_bounds_use_active_date(self, management, fleet):
        a2 = management.get_device_assignment_by_token("A2")
        results = management.get_device_assignments_for_site(
            "S1", AssignmentSearchCriteria(start_date=a2.active_date)
        )
        assert [a.token for a in results] == ["A2"]


class TestStreams:
    def test_create_and_fetch(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        stream = management.create_device_stream(
            "A1", DeviceStreamCreateRequest(stream_id="video", content_type="video/mp4")
        )
        assert stream.assignment_token == "A1"
        assert management.get_device_stream("A1", "video").content_type == "video/mp4"
        assert management.list_device_streams("A1").total == 1

    def test_unknown_stream_is_none(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        assert management.get_device_stream("A1", "audio") is None

    def test_duplicate_stream_id(self, management, device_factory):
        device_factory("HW1")
        assign(management, "HW1", token="A1")
        management.create_device_stream("A1", DeviceStreamCreateRequest(stream_id="video"))
        with pytest.raises(DuplicateKeyError) as excinfo:
            management.create_device_stream("A1", DeviceStreamCreateRequest(stream_id="video"))
        assert excinfo.value.code == ErrorCode.DUPLICATE_STREAM_ID

    def test_same_stream_id_on_other_assignment(self, management, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        assign(management, "HW1", token="A1")
        assign(management, "HW2", token="A2")
        management.create_device_stream("A1", DeviceStreamCreateRequest(stream_id="video"))
        management.create_device_stream("A2", DeviceStreamCreateRequest(stream_id="video"))

    def test_unknown_assignment(self, management):
        with pytest.raises(InvalidReferenceError) as excinfo:
            management.create_device_stream("nope", DeviceStreamCreateRequest(stream_id="x"))
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_ASSIGNMENT_TOKEN
