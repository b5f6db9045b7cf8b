"""Centralized configuration for device-spine.

All fields can be set via ``DEVICE_SPINE_*`` environment variables (e.g.
``DEVICE_SPINE_STORE_BACKEND=mongodb``) or a ``.env`` file. Nested
registration options use the ``__`` delimiter
(``DEVICE_SPINE_REGISTRATION__AUTO_ASSIGN_SITE=true``).

Examples:
    >>> from device_spine.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.store_backend
    <StoreBackend.MEMORY: 'memory'>

Tags:
    settings, configuration, pydantic, environment, device-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    """Document store implementations."""

    MEMORY = "memory"
    MONGODB = "mongodb"


class RegistrationSettings(BaseModel):
    """Options for the device registration manager."""

    allow_new_devices: bool = Field(
        default=True,
        description="Whether unknown devices may register themselves",
    )
    auto_assign_site: bool = Field(
        default=False,
        description="Use auto_assign_site_token when a registration carries no site",
    )
    auto_assign_site_token: str | None = Field(
        default=None,
        description="Site used for new devices when auto-assign is enabled",
    )

    @model_validator(mode="after")
    def _site_token_required(self) -> RegistrationSettings:
        if self.auto_assign_site and not self.auto_assign_site_token:
            raise ValueError("auto_assign_site requires auto_assign_site_token")
        return self


class RegistrySettings(BaseSettings):
    """Device registry configuration.

    Fields
    ──────
    store_backend        : ``memory`` (single process) or ``mongodb``
    mongo_url            : MongoDB connection string
    mongo_database       : Database holding the registry collections
    store_timeout_ms     : Upper bound for every store operation
    lock_timeout_seconds : Wait limit for the per-device assignment lock
    actor                : Recorded as created_by / updated_by
    log_level            : Structlog log level
    log_format           : ``json`` or ``console``
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVICE_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Store ────────────────────────────────────────────────────
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY)
    mongo_url: str = Field(default="mongodb://localhost:27017")
    mongo_database: str = Field(default="device_registry")
    store_timeout_ms: int = Field(default=5000, ge=1)

    # ── Concurrency ──────────────────────────────────────────────
    lock_timeout_seconds: float = Field(default=10.0, gt=0)

    # ── Audit ────────────────────────────────────────────────────
    actor: str = Field(default="system")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    service_name: str = Field(default="device-spine")

    # ── Registration ─────────────────────────────────────────────
    registration: RegistrationSettings = Field(default_factory=RegistrationSettings)


_settings_cache: dict[str, RegistrySettings] = {}


def get_settings(*, _force_reload: bool = False) -> RegistrySettings:
    """Load, validate, and cache a :class:`RegistrySettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = RegistrySettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (used by tests)."""
    _settings_cache.clear()


__all__ = [
    "StoreBackend",
    "RegistrationSettings",
    "RegistrySettings",
    "get_settings",
    "clear_settings_cache",
]
