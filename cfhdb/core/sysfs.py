"""Kernel-side device state read from sysfs and the cfhdb blacklist files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cfhdb.core.model import Bus

LOGGER = logging.getLogger(__name__)


def device_dir(sysfs_root: Path, bus: Bus, busid: str) -> Path:
    return sysfs_root / "bus" / bus.value / "devices" / busid


def _usb_interface_dir(sysfs_root: Path, busid: str) -> Path:
    # Drivers bind to interfaces, not to the USB device node itself.
    return device_dir(sysfs_root, Bus.USB, f"{busid}:1.0")


def pci_kernel_driver(sysfs_root: Path, busid: str) -> str | None:
    try:
        content = (device_dir(sysfs_root, Bus.PCI, busid) / "uevent").read_text(encoding="utf-8")
    except OSError:
        return None
    for line in content.splitlines():
        if line.startswith("DRIVER="):
            return line.split("=", 1)[1].strip() or None
    return None


def pci_started(sysfs_root: Path, busid: str) -> bool | None:
    try:
        value = (device_dir(sysfs_root, Bus.PCI, busid) / "enable").read_text(encoding="utf-8")
    except OSError:
        return None
    return value.strip() == "1"


def usb_kernel_driver(sysfs_root: Path, busid: str) -> str | None:
    driver_link = _usb_interface_dir(sysfs_root, busid) / "driver"
    if not driver_link.exists():
        return None
    try:
        return Path(os.readlink(driver_link)).name
    except OSError:
        return driver_link.resolve().name


def usb_started(sysfs_root: Path, busid: str) -> bool:
    return (_usb_interface_dir(sysfs_root, busid) / "driver").exists()


def kernel_driver(sysfs_root: Path, bus: Bus, busid: str) -> str | None:
    if bus is Bus.PCI:
        return pci_kernel_driver(sysfs_root, busid)
    return usb_kernel_driver(sysfs_root, busid)


def started(sysfs_root: Path, bus: Bus, busid: str) -> bool | None:
    if bus is Bus.PCI:
        return pci_started(sysfs_root, busid)
    return usb_started(sysfs_root, busid)


def modalias_path(sysfs_root: Path, bus: Bus, busid: str) -> Path:
    if bus is Bus.PCI:
        return device_dir(sysfs_root, Bus.PCI, busid) / "modalias"
    return _usb_interface_dir(sysfs_root, busid) / "modalias"


def read_blacklist(path: Path) -> frozenset[str]:
    """Return the bus ids listed in a blacklist file; a missing file lists none."""
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return frozenset()
    except OSError as exc:
        LOGGER.warning("Could not read blacklist %s: %s", path, exc)
        return frozenset()
    return frozenset(line.strip() for line in content.splitlines() if line.strip())
