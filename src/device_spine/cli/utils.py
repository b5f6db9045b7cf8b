"""
CLI utility helpers: output formatting and registry construction.
"""

from __future__ import annotations

from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from device_spine.core.errors import RegistryError
from device_spine.core.logging import get_logger
from device_spine.core.settings import get_settings
from device_spine.marshaling.assets import AssetResolver
from device_spine.registry.management import DeviceManagement
from device_spine.store import create_store

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


# ── Registry helpers ─────────────────────────────────────────────────────


def get_management() -> DeviceManagement:
    """Build a :class:`DeviceManagement` over the configured store."""
    settings = get_settings()
    return DeviceManagement.from_settings(settings, create_store(settings))


def get_asset_resolver() -> AssetResolver | None:
    """Asset lookups for hydration, or None when no asset module is wired in.

    Without a resolver, commands hydrate with ``include_asset=False``.
    """
    return None


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: RegistryError) -> NoReturn:
    """Log and print a registry error, then exit with status 1."""
    logger.error("cli_command_failed", error=error)
    err_console.print(f"[bold red]Error[/bold red] ({error.code.value}): {error.message}")
    raise typer.Exit(code=1)


def print_mapping(data: dict[str, Any], *, title: str = "") -> None:
    """Render a flat mapping as a two-column table."""
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value", overflow="fold")
    for key, value in data.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)
