"""Hydration of devices into :class:`DeviceView` aggregates.

Each inclusion flag controls one reference:

    include_specification  (True)   specification view; otherwise token plus
                                    denormalized asset id/name/image
    include_asset          (True)   resolve the specification asset; off skips
                                    both the nested asset and the denormalized fields
    include_assignment     (False)  current assignment view
    include_site           (False)  site view
    include_nested         (False)  child devices of element mappings,
                                    hydrated by a helper with the same flags

A dangling specification or site token fails the conversion with
``InvalidReferenceError``. A dangling assignment token is logged and the
device is rendered as unassigned.

Composition data is not guaranteed acyclic, so nested hydration tracks
the hardware ids on the current path and stops at a repeat.
"""

from __future__ import annotations

from typing import Any

from device_spine.core.errors import ErrorCode, InvalidReferenceError
from device_spine.core.logging import get_logger
from device_spine.marshaling.assets import AssetResolver
from device_spine.marshaling.assignment import DeviceAssignmentMarshalHelper
from device_spine.marshaling.models import DeviceElementMappingView, DeviceView, SiteView
from device_spine.marshaling.specification import (
    DeviceSpecificationMarshalHelper,
    resolve_asset,
)
from device_spine.model.entities import Device

logger = get_logger(__name__)


class DeviceMarshalHelper:
    """Converts :class:`Device` entities into :class:`DeviceView` aggregates.

    Example:
        >>> helper = DeviceMarshalHelper(management, include_site=True, include_nested=True)
        >>> view = helper.convert(management.get_device_by_hardware_id("HW1"), resolver)
        >>> view.site.token
        'S1'
    """

    def __init__(
        self,
        management: Any,
        *,
        include_specification: bool = True,
        include_asset: bool = True,
        include_assignment: bool = False,
        include_site: bool = False,
        include_nested: bool = False,
    ) -> None:
        self.management = management
        self.include_specification = include_specification
        self.include_asset = include_asset
        self.include_assignment = include_assignment
        self.include_site = include_site
        self.include_nested = include_nested
        self._specification_helper: DeviceSpecificationMarshalHelper | None = None
        self._assignment_helper: DeviceAssignmentMarshalHelper | None = None
        self._nested_helper: DeviceMarshalHelper | None = None

    # -- Sub-helpers -------------------------------------------------------

    def _get_specification_helper(self) -> DeviceSpecificationMarshalHelper:
        if self._specification_helper is None:
            self._specification_helper = DeviceSpecificationMarshalHelper(
                self.management, include_asset=self.include_asset
            )
        return self._specification_helper

    def _get_assignment_helper(self) -> DeviceAssignmentMarshalHelper:
        if self._assignment_helper is None:
            self._assignment_helper = DeviceAssignmentMarshalHelper(
                self.management, include_asset=False, include_device=False, include_site=False
            )
        return self._assignment_helper

    def _get_nested_helper(self) -> DeviceMarshalHelper:
        if self._nested_helper is None:
            self._nested_helper = DeviceMarshalHelper(
                self.management,
                include_specification=self.include_specification,
                include_asset=self.include_asset,
                include_assignment=self.include_assignment,
                include_site=self.include_site,
                include_nested=self.include_nested,
            )
        return self._nested_helper

    # -- Conversion --------------------------------------------------------

    def convert(self, device: Device, asset_resolver: AssetResolver) -> DeviceView:
        return self._convert(device, asset_resolver, frozenset())

    def _convert(
        self, device: Device, asset_resolver: AssetResolver, ancestors: frozenset[str]
    ) -> DeviceView:
        view = DeviceView(
            hardware_id=device.hardware_id,
            site_token=device.site_token,
            parent_hardware_id=device.parent_hardware_id,
            comments=device.comments,
            status=device.status,
            created_date=device.created_date,
            created_by=device.created_by,
            updated_date=device.updated_date,
            updated_by=device.updated_by,
            deleted=device.deleted,
            metadata=dict(device.metadata),
        )
        path = ancestors | {device.hardware_id}

        for mapping in device.device_element_mappings:
            mapping_view = DeviceElementMappingView(
                path=mapping.path, hardware_id=mapping.hardware_id
            )
            if self.include_nested:
                mapping_view.device = self._convert_child(
                    device, mapping.hardware_id, asset_resolver, path
                )
            view.device_element_mappings.append(mapping_view)

        if device.specification_token is not None:
            self._attach_specification(view, device, asset_resolver)

        if device.assignment_token is not None:
            if self.include_assignment:
                assignment = self.management.get_device_assignment_by_token(
                    device.assignment_token
                )
                if assignment is None:
                    logger.warning(
                        "dangling_assignment_reference",
                        hardware_id=device.hardware_id,
                        assignment_token=device.assignment_token,
                    )
                else:
                    view.assignment = self._get_assignment_helper().convert(
                        assignment, asset_resolver
                    )
            else:
                view.assignment_token = device.assignment_token

        if device.site_token is not None and self.include_site:
            site = self.management.get_site_by_token(device.site_token)
            if site is None:
                raise InvalidReferenceError(
                    f"Device {device.hardware_id!r} references non-existent site",
                    code=ErrorCode.INVALID_SITE_TOKEN,
                ).with_context(
                    entity="device", key=device.hardware_id, site_token=device.site_token
                )
            view.site = SiteView.model_validate(site)

        return view

    def _attach_specification(
        self, view: DeviceView, device: Device, asset_resolver: AssetResolver
    ) -> None:
        specification = self.management.get_device_specification_by_token(
            device.specification_token
        )
        if specification is None:
            raise InvalidReferenceError(
                f"Device {device.hardware_id!r} references non-existent specification",
                code=ErrorCode.INVALID_DEVICE_SPECIFICATION_TOKEN,
            ).with_context(
                entity="device",
                key=device.hardware_id,
                specification_token=device.specification_token,
            )

        if self.include_specification:
            view.specification = self._get_specification_helper().convert(
                specification, asset_resolver
            )
            return

        view.specification_token = device.specification_token
        if self.include_asset and specification.asset_reference is not None:
            asset = resolve_asset(
                asset_resolver,
                specification.asset_reference,
                owner="device_specification",
                key=specification.token,
            )
            view.asset_id = asset.id
            view.asset_name = asset.name
            view.asset_image_url = asset.image_url

    def _convert_child(
        self,
        parent: Device,
        hardware_id: str,
        asset_resolver: AssetResolver,
        ancestors: frozenset[str],
    ) -> DeviceView | None:
        if hardware_id in ancestors:
            logger.warning(
                "device_composition_cycle",
                hardware_id=parent.hardware_id,
                child_hardware_id=hardware_id,
            )
            return None
        child = self.management.get_device_by_hardware_id(hardware_id)
        if child is None:
            raise InvalidReferenceError(
                f"Device {parent.hardware_id!r} maps non-existent device {hardware_id!r}",
                code=ErrorCode.INVALID_HARDWARE_ID,
            ).with_context(entity="device", key=parent.hardware_id, child_hardware_id=hardware_id)
        return self._get_nested_helper()._convert(child, asset_resolver, ancestors)


__all__ = ["DeviceMarshalHelper"]
