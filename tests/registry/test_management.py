"""Tests for the DeviceManagement facade."""

from device_spine.core.settings import RegistrySettings
from device_spine.model import SiteCreateRequest
from device_spine.registry import DeviceManagement
from device_spine.store import InMemoryDocumentStore, create_store


def test_from_settings_uses_actor():
    settings = RegistrySettings(actor="ops-bot", lock_timeout_seconds=3.0)
    management = DeviceManagement.from_settings(settings, create_store(settings))

    site = management.create_site(SiteCreateRequest(token="S1"))
    assert site.created_by == "ops-bot"
    assert management.locks._timeout == 3.0


def test_ensure_indexes_is_idempotent():
    management = DeviceManagement(InMemoryDocumentStore())
    first = management.ensure_indexes()
    second = management.ensure_indexes()
    assert first == second
    assert "devices" in first


def test_operations_share_one_store(management, device_factory):
    device_factory("HW1")
    assert management.get_site_by_token("S1") is not None
    assert management.list_devices().total == 1
