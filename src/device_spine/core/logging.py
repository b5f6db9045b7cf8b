"""
Structured logging for device-spine.

Modules log through ``get_logger(__name__)`` with a snake_case event name
and keyword fields::

    logger.info("assignment_created", token="A1", hardware_id="HW1")
    logger.warning("dangling_assignment_reference", hardware_id="HW1", assignment_token="A9")

A registry error passed as ``error=`` is flattened into ``error.code``,
``error.category`` and the error's context fields, so failed operations
can be searched by code without parsing messages::

    except RegistryError as e:
        logger.error("registration_failed", error=e)

Processor chain (``configure_logging``):
    1. TimeStamper(iso)
    2. merge_contextvars            (LogContext / bind_context fields)
    3. add_log_level, add_logger_name
    4. _add_service_metadata
    5. _flatten_registry_error
    6. _ecs_field_names            (JSON mode only)
    7. JSONRenderer | ConsoleRenderer

Tags:
    logging, structlog, device-spine
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from device_spine.core.errors import RegistryError

_SERVICE_NAME = "device-spine"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _flatten_registry_error(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace an ``error=RegistryError`` field with its structured fields."""
    error = event_dict.get("error")
    if not isinstance(error, RegistryError):
        return event_dict
    del event_dict["error"]
    event_dict["error.type"] = type(error).__name__
    event_dict["error.code"] = error.code.value
    event_dict["error.category"] = error.category.value
    event_dict["error.message"] = error.message
    for key, value in error.context.to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def build_processors(json_format: bool) -> list[Processor]:
    """Processor chain used by :func:`configure_logging`."""
    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service_metadata,
        _flatten_registry_error,
    ]
    if json_format:
        processors += [
            _ecs_field_names,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "device-spine",
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        json_format: JSON lines when True, console rendering when False,
            JSON unless stdout is a terminal when None.
        service: Value of the ``service.name`` field.
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=build_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Bind fields to every log line emitted inside the ``with`` block.

    Example:
        with LogContext(command="devices.show", hardware_id="HW1"):
            management.get_device_by_hardware_id("HW1")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "build_processors",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
