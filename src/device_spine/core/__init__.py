"""Device Spine Core -- shared primitives used by every registry layer.

Architecture::

    errors.py      Error taxonomy with stable ErrorCode values
    logging.py     structlog configuration + get_logger
    settings.py    pydantic-settings RegistrySettings
    timestamps.py  utc_now() and token generation (stdlib-only)
    locks.py       Per-key advisory locks (per-device serialization)
"""

from device_spine.core.errors import (
    ConfigError,
    DuplicateDocumentError,
    DuplicateKeyError,
    ErrorCategory,
    ErrorCode,
    InvalidReferenceError,
    InvariantViolationError,
    NotFoundError,
    RegistryError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "DuplicateDocumentError",
    "DuplicateKeyError",
    "ErrorCategory",
    "ErrorCode",
    "InvalidReferenceError",
    "InvariantViolationError",
    "NotFoundError",
    "RegistryError",
    "StoreUnavailableError",
    "ValidationError",
]
