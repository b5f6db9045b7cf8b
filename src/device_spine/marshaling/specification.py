"""Marshaling for device specifications."""

from __future__ import annotations

from typing import Any

from device_spine.core.errors import ErrorCode, InvalidReferenceError
from device_spine.marshaling.assets import AssetResolver
from device_spine.marshaling.models import AssetView, DeviceSpecificationView
from device_spine.model.entities import AssetReference, DeviceSpecification


def resolve_asset(
    asset_resolver: AssetResolver, reference: AssetReference, *, owner: str, key: str
) -> AssetView:
    """Resolve *reference* or fail with ``INVALID_ASSET_REFERENCE``."""
    asset = asset_resolver.resolve_asset(reference)
    if asset is None:
        raise InvalidReferenceError(
            f"{owner} {key!r} references non-existent asset {reference.module}:{reference.id}",
            code=ErrorCode.INVALID_ASSET_REFERENCE,
        ).with_context(entity=owner, key=key, module=reference.module, asset_id=reference.id)
    return AssetView.model_validate(asset)


class DeviceSpecificationMarshalHelper:
    """Builds :class:`DeviceSpecificationView`; *include_asset* resolves its asset."""

    def __init__(self, management: Any, *, include_asset: bool = True) -> None:
        self.management = management
        self.include_asset = include_asset

    def convert(
        self, specification: DeviceSpecification, asset_resolver: AssetResolver
    ) -> DeviceSpecificationView:
        view = DeviceSpecificationView.model_validate(specification)
        if self.include_asset and specification.asset_reference is not None:
            view.asset = resolve_asset(
                asset_resolver,
                specification.asset_reference,
                owner="device_specification",
                key=specification.token,
            )
        return view


__all__ = ["DeviceSpecificationMarshalHelper", "resolve_asset"]
