"""
CLI: ``device-spine devices``: device inspection.
"""

from __future__ import annotations

import typer

from device_spine.cli import utils
from device_spine.core.errors import ErrorCode, NotFoundError, RegistryError
from device_spine.core.logging import LogContext
from device_spine.marshaling.assets import InMemoryAssetResolver
from device_spine.marshaling.device import DeviceMarshalHelper

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_device(
    hardware_id: str = typer.Argument(..., help="Hardware id of the device"),
    nested: bool = typer.Option(False, "--nested", help="Hydrate mapped child devices"),
    site: bool = typer.Option(False, "--site", help="Include the device's site"),
    assignment: bool = typer.Option(False, "--assignment", help="Include the current assignment"),
    specification: bool = typer.Option(
        True, "--specification/--no-specification", help="Include the specification"
    ),
) -> None:
    """Print a hydrated device as JSON."""
    management = utils.get_management()
    with LogContext(command="devices.show", hardware_id=hardware_id):
        try:
            device = management.get_device_by_hardware_id(hardware_id)
            if device is None:
                raise NotFoundError(
                    f"device {hardware_id!r} does not exist", code=ErrorCode.INVALID_HARDWARE_ID
                )
            resolver = utils.get_asset_resolver()
            helper = DeviceMarshalHelper(
                management,
                include_specification=specification,
                include_asset=resolver is not None,
                include_assignment=assignment,
                include_site=site,
                include_nested=nested,
            )
            view = helper.convert(device, resolver or InMemoryAssetResolver())
        except RegistryError as e:
            utils.fail(e)
    utils.console.print_json(view.model_dump_json(exclude_none=True))
