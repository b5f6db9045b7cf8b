"""
Pydantic view models produced by the marshal helpers.

These mirror the registry dataclasses but as Pydantic models so hydrated
aggregates get JSON serialisation (``model_dump_json``) for the CLI and
any transport layered on top. Foreign keys are always present as tokens;
the matching nested view is filled only when the helper's inclusion flag
asks for it.

Tags:
    device-spine, marshaling, schemas, pydantic
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from device_spine.model.enums import AssignmentStatus, ContainerPolicy


class _View(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AuditView(_View):
    created_date: datetime | None = None
    created_by: str | None = None
    updated_date: datetime | None = None
    updated_by: str | None = None
    deleted: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)


# ── References ───────────────────────────────────────────────────────────


class AssetView(_View):
    """Resolved asset display fields."""

    id: str
    name: str
    image_url: str | None = None
    module_id: str | None = None


class AssetReferenceView(_View):
    module: str = ""
    id: str = ""


# ── Aggregates ───────────────────────────────────────────────────────────


class SiteView(AuditView):
    token: str
    name: str = ""
    description: str | None = None
    image_url: str | None = None
    map_type: str | None = None
    map_metadata: dict[str, str] = Field(default_factory=dict)


class DeviceSpecificationView(AuditView):
    token: str
    name: str = ""
    asset_reference: AssetReferenceView | None = None
    container_policy: ContainerPolicy = ContainerPolicy.STANDALONE
    asset: AssetView | None = Field(
        default=None,
        description="Resolved asset (include_asset)",
    )


class DeviceAssignmentView(AuditView):
    token: str
    device_hardware_id: str
    site_token: str
    asset_reference: AssetReferenceView | None = None
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    active_date: datetime | None = None
    released_date: datetime | None = None
    asset: AssetView | None = Field(default=None, description="Resolved asset (include_asset)")
    device: DeviceView | None = Field(default=None, description="Assigned device (include_device)")
    site: SiteView | None = Field(default=None, description="Owning site (include_site)")


class DeviceElementMappingView(_View):
    path: str
    hardware_id: str
    device: DeviceView | None = Field(
        default=None,
        description="Hydrated child device (include_nested); None on a composition cycle",
    )


class DeviceView(AuditView):
    """A device with its references resolved according to the helper's flags.

    UI Hints:
        When ``specification`` is collapsed, ``asset_id``/``asset_name``/
        ``asset_image_url`` carry the specification's asset for display.
    """

    hardware_id: str
    site_token: str | None = None
    parent_hardware_id: str | None = None
    comments: str | None = None
    status: str | None = None
    specification_token: str | None = None
    specification: DeviceSpecificationView | None = None
    asset_id: str | None = None
    asset_name: str | None = None
    asset_image_url: str | None = None
    assignment_token: str | None = None
    assignment: DeviceAssignmentView | None = None
    site: SiteView | None = None
    device_element_mappings: list[DeviceElementMappingView] = Field(default_factory=list)


DeviceAssignmentView.model_rebuild()
DeviceElementMappingView.model_rebuild()


__all__ = [
    "AssetReferenceView",
    "AssetView",
    "AuditView",
    "DeviceAssignmentView",
    "DeviceElementMappingView",
    "DeviceSpecificationView",
    "DeviceView",
    "SiteView",
]
