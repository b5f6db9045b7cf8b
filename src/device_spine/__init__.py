"""
device-spine: persistence and referential-integrity core of a device registry.

Sites, zones, specifications (with their commands and statuses), devices,
assignments, streams and groups are stored in a schemaless document store.
The registry enforces what the store does not: uniqueness among live
documents, references between entities, one current assignment per device,
and monotonic group element indexes.

Packages::

    core/         errors, logging, settings, timestamps, locks
    store/        DocumentStore protocol, in-memory and MongoDB backends
    model/        entity and request dataclasses
    codecs/       entity <-> document conversion
    persistence/  insert/update/delete/search primitives, index layout
    registry/     lifecycle rules (DeviceManagement)
    marshaling/   hydrated views with inclusion flags
    cli/          ``device-spine`` command line
"""

__version__ = "0.1.0"

from device_spine.registration import RegistrationManager, RegistrationResult
from device_spine.registry import DeviceManagement
from device_spine.store import InMemoryDocumentStore, create_store

__all__ = [
    "DeviceManagement",
    "InMemoryDocumentStore",
    "RegistrationManager",
    "RegistrationResult",
    "__version__",
    "create_store",
]
