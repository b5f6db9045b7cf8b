"""
CLI: ``device-spine indexes``: store index management.
"""

from __future__ import annotations

import typer
from rich.table import Table

from device_spine.cli import utils
from device_spine.core.errors import RegistryError

app = typer.Typer(no_args_is_help=True)


@app.command("ensure")
def ensure_indexes() -> None:
    """Create the registry's index layout (safe to re-run)."""
    try:
        created = utils.get_management().ensure_indexes()
    except RegistryError as e:
        utils.fail(e)

    table = Table(title="Indexes")
    table.add_column("Collection")
    table.add_column("Index")
    for collection, names in sorted(created.items()):
        for name in names:
            table.add_row(collection, name)
    utils.console.print(table)
