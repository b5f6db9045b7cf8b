"""
Structured error types for the device registry.

Every failure raised by the registry carries a stable, entity-specific
:class:`ErrorCode` so API consumers can branch on the failure kind instead
of parsing messages. Errors are grouped into a small taxonomy that mirrors
how the registry enforces its invariants on top of a document store that
has no referential constraints of its own.

Manifesto:
    - **Stable codes:** ``error.code`` never changes meaning between releases
    - **Typed taxonomy:** not-found, duplicate, dangling reference, invariant,
      store unavailable
    - **Explicit retry semantics:** only store unavailability is retryable
    - **Error chaining:** the translated store error is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       RegistryError                          │
        │            (code, category, retryable, context, cause)       │
        ├─────────────────────────────────────────────────────────────┤
        │  NotFoundError          DuplicateKeyError                    │
        │  (NOT_FOUND)            (CONFLICT)                           │
        │                                                              │
        │  InvalidReferenceError  InvariantViolationError              │
        │  (REFERENCE)            (INVARIANT)                          │
        │                                                              │
        │  ValidationError        ConfigError                          │
        │  (VALIDATION)           (CONFIG)                             │
        │                                                              │
        │  StorageError ──┬── StoreUnavailableError (retryable)        │
        │  (STORE)        └── DuplicateDocumentError (driver level)    │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = NotFoundError("Device not found", code=ErrorCode.INVALID_HARDWARE_ID)
    >>> error.code
    <ErrorCode.INVALID_HARDWARE_ID: 'INVALID_HARDWARE_ID'>
    >>> error.retryable
    False
    >>> error.with_context(hardware_id="HW-1").to_dict()["context"]
    {'hardware_id': 'HW-1'}

Guardrails:
    ❌ DON'T: Raise a bare Exception from registry code
    ✅ DO: Pick the taxonomy class and the entity-specific ErrorCode

    ❌ DON'T: Let a driver exception escape the persistence layer
    ✅ DO: Translate it and pass it as ``cause=``

Tags:
    error-handling, exception-hierarchy, error-codes, device-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Taxonomy buckets used for routing and retry decisions."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    REFERENCE = "REFERENCE"
    INVARIANT = "INVARIANT"
    VALIDATION = "VALIDATION"
    STORE = "STORE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


class ErrorCode(str, Enum):
    """Stable, entity-specific error codes."""

    # Sites and zones
    INVALID_SITE_TOKEN = "INVALID_SITE_TOKEN"
    DUPLICATE_SITE_TOKEN = "DUPLICATE_SITE_TOKEN"
    MISSING_SITE_TOKEN = "MISSING_SITE_TOKEN"
    INVALID_ZONE_TOKEN = "INVALID_ZONE_TOKEN"
    DUPLICATE_ZONE_TOKEN = "DUPLICATE_ZONE_TOKEN"

    # Specifications, commands, statuses
    INVALID_DEVICE_SPECIFICATION_TOKEN = "INVALID_DEVICE_SPECIFICATION_TOKEN"
    DUPLICATE_DEVICE_SPECIFICATION_TOKEN = "DUPLICATE_DEVICE_SPECIFICATION_TOKEN"
    INVALID_DEVICE_COMMAND_TOKEN = "INVALID_DEVICE_COMMAND_TOKEN"
    DEVICE_COMMAND_EXISTS = "DEVICE_COMMAND_EXISTS"
    INVALID_DEVICE_STATUS_CODE = "INVALID_DEVICE_STATUS_CODE"
    DEVICE_STATUS_EXISTS = "DEVICE_STATUS_EXISTS"

    # Devices
    INVALID_HARDWARE_ID = "INVALID_HARDWARE_ID"
    DUPLICATE_HARDWARE_ID = "DUPLICATE_HARDWARE_ID"
    DEVICE_CANNOT_BE_DELETED_IF_ASSIGNED = "DEVICE_CANNOT_BE_DELETED_IF_ASSIGNED"
    DEVICE_ELEMENT_MAPPING_EXISTS = "DEVICE_ELEMENT_MAPPING_EXISTS"
    DEVICE_PARENT_MAPPING_EXISTS = "DEVICE_PARENT_MAPPING_EXISTS"
    NEW_DEVICES_NOT_ALLOWED = "NEW_DEVICES_NOT_ALLOWED"

    # Assignments and streams
    INVALID_DEVICE_ASSIGNMENT_TOKEN = "INVALID_DEVICE_ASSIGNMENT_TOKEN"
    DUPLICATE_DEVICE_ASSIGNMENT = "DUPLICATE_DEVICE_ASSIGNMENT"
    DEVICE_ALREADY_ASSIGNED = "DEVICE_ALREADY_ASSIGNED"
    ASSIGNMENT_ALREADY_RELEASED = "ASSIGNMENT_ALREADY_RELEASED"
    ASSIGNMENT_STILL_ACTIVE = "ASSIGNMENT_STILL_ACTIVE"
    INVALID_ASSIGNMENT_STATUS = "INVALID_ASSIGNMENT_STATUS"
    DUPLICATE_STREAM_ID = "DUPLICATE_STREAM_ID"

    # Groups
    INVALID_DEVICE_GROUP_TOKEN = "INVALID_DEVICE_GROUP_TOKEN"
    DUPLICATE_DEVICE_GROUP_TOKEN = "DUPLICATE_DEVICE_GROUP_TOKEN"
    DUPLICATE_GROUP_ELEMENT = "DUPLICATE_GROUP_ELEMENT"

    # Assets
    INVALID_ASSET_REFERENCE = "INVALID_ASSET_REFERENCE"

    # Generic
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    INVALID_SEARCH_CRITERIA = "INVALID_SEARCH_CRITERIA"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging.

    Attributes:
        entity: Entity type involved (``device``, ``site``, ...)
        key: Key of the entity involved (token, hardware id, code)
        collection: Store collection that was being accessed
        operation: Registry operation name
        metadata: Additional key-value pairs
    """

    entity: str | None = None
    key: str | None = None
    collection: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["entity", "key", "collection", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RegistryError(Exception):
    """
    Base exception for all device registry errors.

    Subclasses set ``default_category``, ``default_retryable`` and
    ``default_code`` so that the common case only needs a message and an
    entity-specific ``code``.

    Examples:
        >>> error = RegistryError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["code"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    default_code: ErrorCode = ErrorCode.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RegistryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Missing", code=...).with_context(
                entity="device", key="HW-1"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code.value})"


# =============================================================================
# REGISTRY TAXONOMY
# =============================================================================


class NotFoundError(RegistryError):
    """Entity looked up by its key does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    default_code = ErrorCode.ENTITY_NOT_FOUND


class DuplicateKeyError(RegistryError):
    """Uniqueness violation, detected by the store or by a pre-check."""

    default_category = ErrorCategory.CONFLICT
    default_code = ErrorCode.DUPLICATE_KEY


class InvalidReferenceError(RegistryError):
    """A referenced entity (site, specification, assignment, asset) is missing."""

    default_category = ErrorCategory.REFERENCE
    default_code = ErrorCode.ENTITY_NOT_FOUND


class InvariantViolationError(RegistryError):
    """A business rule blocks the operation (delete-while-assigned, ...)."""

    default_category = ErrorCategory.INVARIANT


class ValidationError(RegistryError):
    """
    Invalid caller input.

    Never retryable - the request must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_code = ErrorCode.INVALID_SEARCH_CRITERIA

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class ConfigError(RegistryError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_code = ErrorCode.INVALID_CONFIGURATION


# =============================================================================
# STORE ERRORS
# =============================================================================


class StorageError(RegistryError):
    """Error reported by the document store adapter."""

    default_category = ErrorCategory.STORE


class StoreUnavailableError(StorageError):
    """Store timed out or is unreachable. Safe to retry reads only."""

    default_retryable = True
    default_code = ErrorCode.STORE_UNAVAILABLE


class DuplicateDocumentError(StorageError):
    """Raw uniqueness-index violation reported by a store adapter.

    Persistence primitives translate this into a :class:`DuplicateKeyError`
    carrying the caller's entity-specific code.
    """

    default_code = ErrorCode.DUPLICATE_KEY

    def __init__(self, message: str, *, index: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.index = index


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, RegistryError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorContext",
    "RegistryError",
    "NotFoundError",
    "DuplicateKeyError",
    "InvalidReferenceError",
    "InvariantViolationError",
    "ValidationError",
    "ConfigError",
    "StorageError",
    "StoreUnavailableError",
    "DuplicateDocumentError",
    "is_retryable",
]
