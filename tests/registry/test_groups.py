"""Tests for device groups and index allocation of group elements."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from device_spine.core.errors import (
    DuplicateKeyError,
    ErrorCode,
    InvalidReferenceError,
    NotFoundError,
)
from device_spine.model import (
    DeviceGroupCreateRequest,
    DeviceGroupElementCreateRequest,
    GroupElementType,
)


def device_element(hardware_id, *roles):
    return DeviceGroupElementCreateRequest(
        type=GroupElementType.DEVICE, element_id=hardware_id, roles=list(roles)
    )


@pytest.fixture
def group(management):
    return management.create_device_group(
        DeviceGroupCreateRequest(token="G1", name="Fleet", roles=["fleet"])
    )


class TestGroups:
    def test_create(self, group):
        assert group.token == "G1"
        assert group.last_index == 0
        assert group.roles == ["fleet"]

    def test_duplicate_token(self, management, group):
        with pytest.raises(DuplicateKeyError) as excinfo:
            management.create_device_group(DeviceGroupCreateRequest(token="G1"))
        assert excinfo.value.code == ErrorCode.DUPLICATE_DEVICE_GROUP_TOKEN

    def test_update_preserves_last_index(self, management, group, device_factory):
        device_factory("HW1")
        management.add_device_group_elements("G1", [device_element("HW1")])

        updated = management.update_device_group("G1", DeviceGroupCreateRequest(name="Renamed"))
        assert updated.name == "Renamed"
        assert updated.last_index == 1
        assert management.get_device_group("G1").last_index == 1

    def test_list_with_role(self, management, group):
        management.create_device_group(DeviceGroupCreateRequest(token="G2", roles=["other"]))
        management.create_device_group(DeviceGroupCreateRequest(token="G3", roles=["fleet", "x"]))

        tokens = {g.token for g in management.list_device_groups_with_role("fleet")}
        assert tokens == {"G1", "G3"}
        assert management.list_device_groups().total == 3

    def test_soft_delete(self, management, group):
        deleted = management.delete_device_group("G1")
        assert deleted.deleted is True
        assert management.list_device_groups().total == 0
        assert management.list_device_groups(include_deleted=True).total == 1
        assert management.list_device_groups_with_role("fleet").total == 0

    def test_force_delete_cascades_elements(self, management, group, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        management.add_device_group_elements("G1", [device_element("HW1"), device_element("HW2")])

        management.delete_device_group("G1", force=True)
        assert management.get_device_group("G1") is None
        assert management.list_device_group_elements("G1").total == 0

    def test_unknown_group(self, management):
        with pytest.raises(NotFoundError) as excinfo:
            management.update_device_group("nope", DeviceGroupCreateRequest(name="x"))
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_GROUP_TOKEN


class TestGroupElements:
    def test_indexes_follow_request_order(self, management, group, device_factory):
        for hardware_id in ("HW1", "HW2", "HW3"):
            device_factory(hardware_id)
        added = management.add_device_group_elements(
            "G1", [device_element("HW1", "lead"), device_element("HW2"), device_element("HW3")]
        )

        assert [(e.element_id, e.index) for e in added] == [("HW1", 0), ("HW2", 1), ("HW3", 2)]
        assert added[0].roles == ["lead"]
        assert management.get_device_group("G1").last_index == 3
        listed = management.list_device_group_elements("G1")
        assert [e.element_id for e in listed] == ["HW1", "HW2", "HW3"]

    def test_nested_group_element(self, management, group):
        management.create_device_group(DeviceGroupCreateRequest(token="G2"))
        added = management.add_device_group_elements(
            "G1", [DeviceGroupElementCreateRequest(type=GroupElementType.GROUP, element_id="G2")]
        )
        assert added[0].type == GroupElementType.GROUP

    def test_unknown_target(self, management, group):
        with pytest.raises(InvalidReferenceError) as excinfo:
            management.add_device_group_elements("G1", [device_element("ghost")])
        assert excinfo.value.code == ErrorCode.INVALID_HARDWARE_ID

    def test_duplicate_aborts_batch(self, management, group, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        management.add_device_group_elements("G1", [device_element("HW1")])

        with pytest.raises(DuplicateKeyError) as excinfo:
            management.add_device_group_elements("G1", [device_element("HW1"), device_element("HW2")])
        assert excinfo.value.code == ErrorCode.DUPLICATE_GROUP_ELEMENT
        assert management.list_device_group_elements("G1").total == 1
        assert management.get_device_group("G1").last_index == 1

    def test_ignore_duplicates(self, management, group, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        management.add_device_group_elements("G1", [device_element("HW1")])

        added = management.add_device_group_elements(
            "G1", [device_element("HW1"), device_element("HW2")], ignore_duplicates=True
        )
        assert [(e.element_id, e.index) for e in added] == [("HW2", 1)]
        assert management.get_device_group("G1").last_index == 2

    def test_deleted_group_rejects_elements(self, management, group, device_factory):
        device_factory("HW1")
        management.delete_device_group("G1")
        with pytest.raises(NotFoundError) as excinfo:
            management.add_device_group_elements("G1", [device_element("HW1")])
        assert excinfo.value.code == ErrorCode.INVALID_DEVICE_GROUP_TOKEN

    def test_removed_indexes_are_not_reused(self, management, group, device_factory):
        device_factory("HW1")
        device_factory("HW2")
        management.add_device_group_elements("G1", [device_element("HW1")])

        removed = management.remove_device_group_elements("G1", [device_element("HW1")])
        assert [e.element_id for e in removed] == ["HW1"]
        assert management.remove_device_group_elements("G1", [device_element("HW1")]) == []

        added = management.add_device_group_elements("G1", [device_element("HW1")])
        assert added[0].index == 1

    def test_concurrent_adds_get_distinct_indexes(self, management, group, device_factory):
        hardware_ids = [f"HW{n}" for n in range(20)]
        for hardware_id in hardware_ids:
            device_factory(hardware_id)

        def add(hardware_id):
            return management.add_device_group_elements("G1", [device_element(hardware_id)])[0]

        with ThreadPoolExecutor(max_workers=8) as pool:
            added = list(pool.map(add, hardware_ids))

        assert sorted(e.index for e in added) == list(range(len(hardware_ids)))
        assert management.get_device_group("G1").last_index == len(hardware_ids)

    def test_concurrent_duplicate_adds_write_once(self, management, group, device_factory):
        device_factory("HW1")

        def add(_):
            return management.add_device_group_elements(
                "G1", [device_element("HW1")], ignore_duplicates=True
            )

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(add, range(8)))

        assert sum(len(r) for r in results) == 1
        assert management.list_device_group_elements("G1").total == 1
        assert management.get_device_group("G1").last_index == 1

    def test_update_during_adds_keeps_counter(self, management, group, device_factory):
        hardware_ids = [f"HW{n}" for n in range(10)]
        for hardware_id in hardware_ids:
            device_factory(hardware_id)

        def work(n):
            if n % 2:
                management.update_device_group("G1", DeviceGroupCreateRequest(name=f"n{n}"))
            else:
                management.add_device_group_elements("G1", [device_element(hardware_ids[n // 2])])

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(work, range(10)))

        assert management.get_device_group("G1").last_index == 5
