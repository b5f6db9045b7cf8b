"""Asset lookup used when hydrating specifications and assignments.

Assets live in an external asset module; the registry only stores
:class:`~device_spine.model.entities.AssetReference` pointers and resolves
them through an :class:`AssetResolver` at marshal time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from device_spine.model.entities import AssetReference


@dataclass(frozen=True)
class Asset:
    """Display fields of an asset as returned by an asset module."""

    id: str
    name: str
    image_url: str | None = None
    module_id: str | None = None


@runtime_checkable
class AssetResolver(Protocol):
    def resolve_asset(self, reference: AssetReference) -> Asset | None:
        """Return the asset for *reference*, or None when the module has no such asset."""
        ...


class InMemoryAssetResolver:
    """Dictionary-backed resolver for tests and single-process setups.

    Example:
        >>> resolver = InMemoryAssetResolver()
        >>> resolver.register(Asset(id="meitrack", name="MeiTrack MT-90", module_id="devices"))
        >>> resolver.resolve_asset(AssetReference(module="devices", id="meitrack")).name
        'MeiTrack MT-90'
    """

    def __init__(self, assets: list[Asset] | None = None) -> None:
        self._assets: dict[tuple[str, str], Asset] = {}
        for asset in assets or []:
            self.register(asset)

    def register(self, asset: Asset) -> None:
        self._assets[(asset.module_id or "", asset.id)] = asset

    def resolve_asset(self, reference: AssetReference) -> Asset | None:
        return self._assets.get((reference.module, reference.id))

    def __len__(self) -> int:
        return len(self._assets)


__all__ = ["Asset", "AssetResolver", "InMemoryAssetResolver"]
