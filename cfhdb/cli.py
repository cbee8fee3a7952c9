"""Typer CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from cfhdb import __version__
from cfhdb.core.config import load_settings
from cfhdb.core.device_match import group_by_class
from cfhdb.core.errors import CfhdbError
from cfhdb.core.installer import Outcome
from cfhdb.core.model import Bus
from cfhdb.core.service import HardwareService
from cfhdb.render import device_table, devices_to_json, profile_table, profiles_to_json

app = typer.Typer(
    help="Hardware device inventory and driver profile manager",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

_OUTCOME_MESSAGES = {
    Outcome.INSTALLED: "Profile '{codename}' installed successfully",
    Outcome.ALREADY_INSTALLED: "Profile '{codename}' is already installed",
    Outcome.REMOVED: "Profile '{codename}' removed successfully",
    Outcome.NOT_INSTALLED: "Profile '{codename}' is not installed",
    Outcome.NOTHING_TO_DO: "Profile '{codename}' has no packages or scripts to run",
}
_CONTROL_VERBS = {
    "enable": "Enabled",
    "disable": "Disabled",
    "start": "Started",
    "stop": "Stopped",
}


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )


def _build_service(config: Path | None) -> HardwareService:
    return HardwareService(load_settings(config))


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _list_devices(service: HardwareService, bus: Bus, json_output: bool) -> None:
    groups = group_by_class(service.list_devices(bus))
    if json_output:
        _print_json(devices_to_json(groups))
        return
    for group, devices in groups.items():
        console.print(device_table(group, devices))


def _list_profiles(service: HardwareService, bus: Bus, busid: str, json_output: bool) -> None:
    profiles = service.profiles_for_device(bus, busid)
    if not profiles:
        typer.echo(f"Error: No profiles available for {bus.value} device {busid}", err=True)
        raise typer.Exit(code=1)
    if json_output:
        _print_json(profiles_to_json(profiles))
        return
    console.print(profile_table(busid, profiles))


def _change_profile(service: HardwareService, bus: Bus, codename: str, install: bool, json_output: bool) -> None:
    outcome = service.install_profile(bus, codename) if install else service.uninstall_profile(bus, codename)
    if json_output:
        _print_json({"codename": codename, "outcome": outcome.value})
        return
    typer.echo(_OUTCOME_MESSAGES[outcome].format(codename=codename))


def _control_device(service: HardwareService, bus: Bus, busid: str, verb: str, json_output: bool) -> None:
    getattr(service, f"{verb}_device")(bus, busid)
    if json_output:
        _print_json({"sysfs_busid": busid, "action": verb, "ok": True})
        return
    typer.echo(f"{_CONTROL_VERBS[verb]} {bus.value} device {busid}")


@app.command()
def main(
    ctx: typer.Context,
    list_pci_devices: bool = typer.Option(False, "--list-pci-devices", "-lpd", help="List PCI devices"),
    list_pci_profiles: str | None = typer.Option(
        None, "--list-pci-profiles", "-lpp", metavar="BUSID", help="List profiles compatible with a PCI device"
    ),
    install_pci_profile: str | None = typer.Option(
        None, "--install-pci-profile", "-ipp", metavar="CODENAME", help="Install a PCI profile"
    ),
    uninstall_pci_profile: str | None = typer.Option(
        None, "--uninstall-pci-profile", "-upp", metavar="CODENAME", help="Uninstall a PCI profile"
    ),
    enable_pci_device: str | None = typer.Option(
        None, "--enable-pci-device", "-epd", metavar="BUSID", help="Remove a PCI device from the blacklist"
    ),
    disable_pci_device: str | None = typer.Option(
        None, "--disable-pci-device", "-dpd", metavar="BUSID", help="Add a PCI device to the blacklist"
    ),
    start_pci_device: str | None = typer.Option(
        None, "--start-pci-device", "-sspd", metavar="BUSID", help="Bind a PCI device to its kernel driver"
    ),
    stop_pci_device: str | None = typer.Option(
        None, "--stop-pci-device", "-srpd", metavar="BUSID", help="Unbind a PCI device from its kernel driver"
    ),
    list_usb_devices: bool = typer.Option(False, "--list-usb-devices", "-lud", help="List USB devices"),
    list_usb_profiles: str | None = typer.Option(
        None, "--list-usb-profiles", "-lup", metavar="BUSID", help="List profiles compatible with a USB device"
    ),
    install_usb_profile: str | None = typer.Option(
        None, "--install-usb-profile", "-iup", metavar="CODENAME", help="Install a USB profile"
    ),
    uninstall_usb_profile: str | None = typer.Option(
        None, "--uninstall-usb-profile", "-uup", metavar="CODENAME", help="Uninstall a USB profile"
    ),
    enable_usb_device: str | None = typer.Option(
        None, "--enable-usb-device", "-eud", metavar="BUSID", help="Remove a USB device from the blacklist"
    ),
    disable_usb_device: str | None = typer.Option(
        None, "--disable-usb-device", "-dud", metavar="BUSID", help="Add a USB device to the blacklist"
    ),
    start_usb_device: str | None = typer.Option(
        None, "--start-usb-device", "-ssud", metavar="BUSID", help="Bind a USB device to its kernel driver"
    ),
    stop_usb_device: str | None = typer.Option(
        None, "--stop-usb-device", "-srud", metavar="BUSID", help="Unbind a USB device from its kernel driver"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Print JSON instead of tables"),
    verbose: bool = typer.Option(False, "--verbose", help="Log catalog and script activity"),
    config: Path | None = typer.Option(None, "--config", help="Path to a YAML configuration file"),
    version: bool = typer.Option(
        False, "--version", "-v", callback=_version_callback, is_eager=True, help="Print the version and exit"
    ),
) -> None:
    """Enumerate PCI/USB devices and manage their driver profiles."""
    requested = [
        (action, bus, argument)
        for action, bus, argument in (
            ("list_devices", Bus.PCI, list_pci_devices),
            ("list_profiles", Bus.PCI, list_pci_profiles),
            ("install", Bus.PCI, install_pci_profile),
            ("uninstall", Bus.PCI, uninstall_pci_profile),
            ("enable", Bus.PCI, enable_pci_device),
            ("disable", Bus.PCI, disable_pci_device),
            ("start", Bus.PCI, start_pci_device),
            ("stop", Bus.PCI, stop_pci_device),
            ("list_devices", Bus.USB, list_usb_devices),
            ("list_profiles", Bus.USB, list_usb_profiles),
            ("install", Bus.USB, install_usb_profile),
            ("uninstall", Bus.USB, uninstall_usb_profile),
            ("enable", Bus.USB, enable_usb_device),
            ("disable", Bus.USB, disable_usb_device),
            ("start", Bus.USB, start_usb_device),
            ("stop", Bus.USB, stop_usb_device),
        )
        if argument
    ]
    if not requested:
        typer.echo(ctx.get_help())
        return
    if len(requested) > 1:
        typer.echo("Error: Only one action may be given at a time", err=True)
        raise typer.Exit(code=1)

    _configure_logging(verbose)
    action, bus, argument = requested[0]
    try:
        service = _build_service(config)
        if action == "list_devices":
            _list_devices(service, bus, json_output)
        elif action == "list_profiles":
            _list_profiles(service, bus, argument, json_output)
        elif action in ("install", "uninstall"):
            _change_profile(service, bus, argument, action == "install", json_output)
        else:
            _control_device(service, bus, argument, action, json_output)
    except CfhdbError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
