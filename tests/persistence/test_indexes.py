"""Tests for device_spine.persistence.indexes."""

from device_spine.persistence.indexes import (
    DEVICES,
    GROUP_ELEMENTS,
    INDEX_LAYOUT,
    NOT_DELETED,
    STATUSES,
    ensure_indexes,
)
from device_spine.store import InMemoryDocumentStore


class TestIndexLayout:
    def test_unique_indexes_are_partial(self):
        for spec in INDEX_LAYOUT:
            assert spec.partial_filter == (NOT_DELETED if spec.unique else None)

    def test_ensure_indexes_is_idempotent(self):
        store = InMemoryDocumentStore()
        first = ensure_indexes(store)
        second = ensure_indexes(store)
        assert first == second
        assert first[DEVICES] == ["hardwareId_1"]
        assert first[STATUSES] == ["specToken_1_code_1"]
        assert first[GROUP_ELEMENTS] == ["groupToken_1_type_1_elementId_1", "groupToken_1_roles_1"]
        assert sum(len(names) for names in first.values()) == len(INDEX_LAYOUT)
