"""Marshaling for device assignments."""

from __future__ import annotations

from typing import Any

from device_spine.core.errors import ErrorCode, InvalidReferenceError
from device_spine.marshaling.assets import AssetResolver
from device_spine.marshaling.models import DeviceAssignmentView, SiteView
from device_spine.marshaling.specification import resolve_asset
from device_spine.model.entities import DeviceAssignment


class DeviceAssignmentMarshalHelper:
    """Builds :class:`DeviceAssignmentView`.

    Flags:
        include_asset:  resolve the assigned asset through the resolver
        include_device: hydrate the device (specification collapsed, no assignment)
        include_site:   attach the owning site
    """

    def __init__(
        self,
        management: Any,
        *,
        include_asset: bool = True,
        include_device: bool = False,
        include_site: bool = False,
    ) -> None:
        self.management = management
        self.include_asset = include_asset
        self.include_device = include_device
        self.include_site = include_site
        self._device_helper = None

    def _get_device_helper(self):
        if self._device_helper is None:
            from device_spine.marshaling.device import DeviceMarshalHelper

            self._device_helper = DeviceMarshalHelper(
                self.management, include_specification=False, include_assignment=False
            )
        return self._device_helper

    def convert(
        self, assignment: DeviceAssignment, asset_resolver: AssetResolver
    ) -> DeviceAssignmentView:
        view = DeviceAssignmentView.model_validate(assignment)

        if self.include_asset and assignment.asset_reference is not None:
            view.asset = resolve_asset(
                asset_resolver,
                assignment.asset_reference,
                owner="device_assignment",
                key=assignment.token,
            )

        if self.include_device:
            device = self.management.get_device_by_hardware_id(assignment.device_hardware_id)
            if device is None:
                raise InvalidReferenceError(
                    f"Assignment {assignment.token!r} references non-existent device",
                    code=ErrorCode.INVALID_HARDWARE_ID,
                ).with_context(
                    entity="device_assignment",
                    key=assignment.token,
                    hardware_id=assignment.device_hardware_id,
                )
            view.device = self._get_device_helper().convert(device, asset_resolver)

        if self.include_site:
            site = self.management.get_site_by_token(assignment.site_token)
            if site is None:
                raise InvalidReferenceError(
                    f"Assignment {assignment.token!r} references non-existent site",
                    code=ErrorCode.INVALID_SITE_TOKEN,
                ).with_context(
                    entity="device_assignment", key=assignment.token, site_token=assignment.site_token
                )
            view.site = SiteView.model_validate(site)

        return view


__all__ = ["DeviceAssignmentMarshalHelper"]
