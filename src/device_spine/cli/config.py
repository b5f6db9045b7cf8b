"""
CLI: ``device-spine config``: configuration inspection.
"""

from __future__ import annotations

import typer

from device_spine.cli.utils import console, print_mapping

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
) -> None:
    """Show the effective registry configuration."""
    from device_spine.core.settings import get_settings

    settings = get_settings()

    if format == "json":
        console.print_json(settings.model_dump_json())
        return
    if format != "table":
        console.print(f"[red]Unknown format:[/red] {format}")
        raise typer.Exit(code=2)

    values = settings.model_dump(mode="json", exclude={"registration"})
    for key, value in settings.registration.model_dump(mode="json").items():
        values[f"registration.{key}"] = value
    print_mapping(values, title="device-spine settings")
