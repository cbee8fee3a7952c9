"""Table and JSON rendering of devices and profiles."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from typing import Any

from rich.table import Table

from cfhdb.core.model import UNKNOWN_DRIVER, Device, PciDevice, Profile


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[:width] + "..."


def device_to_dict(device: Device) -> dict[str, Any]:
    data = {
        field.name: getattr(device, field.name)
        for field in dataclasses.fields(device)
        if field.name != "available_profiles"
    }
    profiles = device.available_profiles
    data["available_profiles"] = None if profiles is None else [p.codename for p in profiles]
    return data


def devices_to_json(groups: dict[str, list[Device]]) -> dict[str, list[dict[str, Any]]]:
    return {key: [device_to_dict(d) for d in devices] for key, devices in groups.items()}


def profiles_to_json(profiles: Iterable[Profile]) -> list[str]:
    return [profile.codename for profile in profiles]


def _yes_no(value: bool | None, *, good: bool = True) -> str:
    if value is None:
        return "N/A"
    color = "green" if value == good else "red"
    return f"[{color}]{'Yes' if value else 'No'}[/]"


def device_table(group: str, devices: Sequence[Device]) -> Table:
    pci = bool(devices) and isinstance(devices[0], PciDevice)
    table = Table(title=f"{'PCI class' if pci else 'USB class'} {group}", title_style="bold green")
    table.add_column("Vendor", style="bold")
    table.add_column("Name")
    table.add_column("Bus ID", no_wrap=True)
    table.add_column("Driver", no_wrap=True)
    table.add_column("Enabled")
    table.add_column("Started")
    for device in devices:
        if isinstance(device, PciDevice):
            vendor, name = device.vendor_name, device.device_name
        else:
            vendor, name = device.manufacturer_name, device.product_name
        driver = device.kernel_driver
        table.add_row(
            _truncate(vendor, 18),
            _truncate(name, 36),
            device.sysfs_busid,
            "[yellow]Unknown[/]" if driver == UNKNOWN_DRIVER else driver,
            _yes_no(device.enabled),
            _yes_no(device.started),
        )
    return table


def profile_table(busid: str, profiles: Sequence[Profile]) -> Table:
    table = Table(title=busid, title_style="bold green")
    table.add_column("Codename", no_wrap=True)
    table.add_column("Description")
    table.add_column("Priority", justify="right")
    table.add_column("Experimental")
    for profile in profiles:
        table.add_row(
            profile.codename,
            _truncate(profile.i18n_desc, 36),
            str(profile.priority),
            _yes_no(profile.experimental, good=False),
        )
    return table
