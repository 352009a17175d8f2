"""Operator CLI for the device inventory store."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import NoReturn, Optional

import typer

from device_spine.bootstrap import open_store
from device_spine.errors import DeviceNotFoundError, DeviceSpineError
from device_spine.filters import BySerialNumber, ByUDID, ByUUID, ByWorkflow
from device_spine.logging import configure_logging, get_logger
from device_spine.settings import get_settings
from device_spine.store import DeviceStore

app = typer.Typer(
    name="device-spine",
    help="Device Spine - device inventory store",
    no_args_is_help=True,
)

logger = get_logger(__name__)


def setup() -> DeviceStore:
    """Configure logging and open the store."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")
    try:
        return open_store(settings.database_driver, settings.database_url, settings=settings)
    except DeviceSpineError as e:
        fail(e)


def fail(error: DeviceSpineError) -> NoReturn:
    """Report a store error and exit with status 1."""
    logger.error("device_command_failed", **error.to_dict())
    typer.echo(f"Error: {error.message}", err=True)
    raise typer.Exit(1)


# =============================================================================
# Database Commands
# =============================================================================

db_app = typer.Typer(help="Database operations")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init():
    """Wait for the database and ensure the devices schema exists."""
    store = setup()
    store.close()
    typer.echo("Schema ready")


# =============================================================================
# Device Commands
# =============================================================================

devices_app = typer.Typer(help="Device inventory")
app.add_typer(devices_app, name="devices")


@devices_app.command("list")
def devices_list(
    uuid: Optional[str] = typer.Option(None, "--uuid", help="Device UUID"),
    serial: Optional[str] = typer.Option(None, "--serial", help="Serial number"),
    udid: Optional[str] = typer.Option(None, "--udid", help="Device UDID"),
    workflow: Optional[str] = typer.Option(None, "--workflow", help="Workflow UUID"),
):
    """List devices."""
    filters = []
    if uuid:
        filters.append(ByUUID(uuid))
    if serial:
        filters.append(BySerialNumber(serial))
    if udid:
        filters.append(ByUDID(udid))
    if workflow:
        filters.append(ByWorkflow(workflow))

    with setup() as store:
        try:
            devices = store.list_devices(*filters)
        except DeviceSpineError as e:
            fail(e)

    if not devices:
        typer.echo("No devices found")
        return

    typer.echo(f"{'UUID':<38} {'SERIAL':<16} {'MODEL':<20} {'STATUS':<12} UDID")
    typer.echo("-" * 110)
    for device in devices:
        typer.echo(
            f"{device.device_uuid or '':<38} {device.serial_number or '':<16} "
            f"{device.model or '':<20} {device.dep_profile_status or '':<12} {device.udid}"
        )


@devices_app.command("show")
def devices_show(
    udid: str = typer.Argument(..., help="Device UDID"),
    field: Optional[list[str]] = typer.Option(None, "--field", "-f", help="Column to show"),
):
    """Show one device by UDID."""
    with setup() as store:
        try:
            device = store.get_by_udid(udid, *(field or []))
        except DeviceNotFoundError:
            typer.echo(f"Device not found: {udid}", err=True)
            raise typer.Exit(1)
        except DeviceSpineError as e:
            fail(e)

    data = asdict(device)
    if field:
        data = {name: data[name] for name in field}
    typer.echo(json.dumps(data, indent=2, default=str))


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
