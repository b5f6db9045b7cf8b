"""Hydration of registry entities into externally facing view models."""

from device_spine.marshaling.assets import Asset, AssetResolver, InMemoryAssetResolver
from device_spine.marshaling.assignment import DeviceAssignmentMarshalHelper
from device_spine.marshaling.device import DeviceMarshalHelper
from device_spine.marshaling.models import (
    AssetReferenceView,
    AssetView,
    DeviceAssignmentView,
    DeviceElementMappingView,
    DeviceSpecificationView,
    DeviceView,
    SiteView,
)
from device_spine.marshaling.specification import DeviceSpecificationMarshalHelper

__all__ = [
    "Asset",
    "AssetReferenceView",
    "AssetResolver",
    "AssetView",
    "DeviceAssignmentMarshalHelper",
    "DeviceAssignmentView",
    "DeviceElementMappingView",
    "DeviceMarshalHelper",
    "DeviceSpecificationMarshalHelper",
    "DeviceSpecificationView",
    "DeviceView",
    "InMemoryAssetResolver",
    "SiteView",
]
