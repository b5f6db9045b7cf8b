"""Document store adapters.

Use :func:`create_store` to build the backend named by the settings::

    store = create_store(get_settings())
"""

from __future__ import annotations

from device_spine.core.errors import ConfigError
from device_spine.core.settings import RegistrySettings, StoreBackend
from device_spine.store.memory import InMemoryDocumentStore
from device_spine.store.protocols import (
    ASCENDING,
    DESCENDING,
    Document,
    DocumentCollection,
    DocumentStore,
)


def create_store(settings: RegistrySettings) -> DocumentStore:
    """Build the document store selected by ``settings.store_backend``."""
    timeout_seconds = settings.store_timeout_ms / 1000
    if settings.store_backend == StoreBackend.MEMORY:
        return InMemoryDocumentStore(timeout_seconds=timeout_seconds)
    if settings.store_backend == StoreBackend.MONGODB:
        from device_spine.store.mongodb import MongoDocumentStore

        return MongoDocumentStore(
            settings.mongo_url,
            settings.mongo_database,
            timeout_ms=settings.store_timeout_ms,
        )
    raise ConfigError(f"Unknown store backend: {settings.store_backend}")


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "Document",
    "DocumentCollection",
    "DocumentStore",
    "InMemoryDocumentStore",
    "create_store",
]
