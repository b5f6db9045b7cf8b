"""
Root Typer application for the device-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from device_spine.core.logging import configure_logging

app = Typer(
    name="device-spine",
    help="device-spine: device registry persistence and integrity tools.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("device-spine")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"device-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """device-spine CLI: inspect configuration, indexes and devices."""
    from device_spine.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        service=settings.service_name,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from device_spine.cli.config import app as config_app  # noqa: E402
from device_spine.cli.devices import app as devices_app  # noqa: E402
from device_spine.cli.indexes import app as indexes_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration inspection.")
app.add_typer(indexes_app, name="indexes", help="Store index management.")
app.add_typer(devices_app, name="devices", help="Device inspection.")


if __name__ == "__main__":
    app()
