"""
Shared pytest fixtures for device-spine tests.

This module provides:
- an in-memory document store with the startup index layout applied
- a DeviceManagement over that store
- small builders for the site/specification/device graph most tests need

Usage:
    def test_something(management, device_factory):
        device = device_factory("HW1")
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure device_spine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from device_spine.core.settings import clear_settings_cache
from device_spine.model import (
    AssetReference,
    DeviceCreateRequest,
    DeviceSpecificationCreateRequest,
    SiteCreateRequest,
)
from device_spine.registry import DeviceManagement
from device_spine.store import InMemoryDocumentStore


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep DEVICE_SPINE_* variables of the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("DEVICE_SPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def store():
    return InMemoryDocumentStore(timeout_seconds=2.0)


@pytest.fixture
def management(store):
    management = DeviceManagement(store, actor="tester", lock_timeout=2.0)
    management.ensure_indexes()
    return management


@pytest.fixture
def site(management):
    return management.create_site(SiteCreateRequest(token="S1", name="Site One"))


@pytest.fixture
def specification(management):
    return management.create_device_specification(
        DeviceSpecificationCreateRequest(
            token="SP1",
            name="Tracker",
            asset_reference=AssetReference(module="devices", id="mt90"),
        )
    )


@pytest.fixture
def device_factory(management, site, specification):
    """Create devices attached to S1/SP1."""

    def _create(hardware_id: str, **overrides):
        fields = {
            "hardware_id": hardware_id,
            "specification_token": specification.token,
            "site_token": site.token,
        }
        fields.update(overrides)
        return management.create_device(DeviceCreateRequest(**fields))

    return _create
