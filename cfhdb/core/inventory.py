"""Turn raw enumeration records into devices carrying their derived state."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from cfhdb.backends.base import Enumerator
from cfhdb.core import sysfs
from cfhdb.core.config import Settings
from cfhdb.core.errors import EnumerationError
from cfhdb.core.model import UNKNOWN_DRIVER, Bus, Device, PciDevice, PciRecord, UsbDevice, UsbRecord


def _driver_state(sysfs_root: Path, bus: Bus, busid: str) -> tuple[str, bool | None]:
    driver = sysfs.kernel_driver(sysfs_root, bus, busid) or UNKNOWN_DRIVER
    if driver == UNKNOWN_DRIVER:
        return driver, None
    return driver, sysfs.started(sysfs_root, bus, busid)


def build_pci_device(record: PciRecord, sysfs_root: Path, blacklist: frozenset[str]) -> PciDevice:
    driver, started = _driver_state(sysfs_root, Bus.PCI, record.sysfs_busid)
    return PciDevice(
        class_name=record.class_name,
        vendor_name=record.vendor_name,
        device_name=record.device_name,
        class_id=record.class_id,
        vendor_id=record.vendor_id,
        device_id=record.device_id,
        sysfs_busid=record.sysfs_busid,
        kernel_driver=driver,
        started=started,
        enabled=record.sysfs_busid not in blacklist,
    )


def build_usb_device(record: UsbRecord, sysfs_root: Path, blacklist: frozenset[str]) -> UsbDevice:
    driver, started = _driver_state(sysfs_root, Bus.USB, record.sysfs_busid)
    return UsbDevice(
        manufacturer_name=record.manufacturer_name,
        product_name=record.product_name,
        serial=record.serial,
        class_code=record.class_code,
        vendor_id=record.vendor_id,
        product_id=record.product_id,
        protocol_code=record.protocol_code,
        usb_version=record.usb_version,
        speed=record.speed,
        bus_number=record.bus_number,
        port_number=record.port_number,
        address=record.address,
        sysfs_busid=record.sysfs_busid,
        kernel_driver=driver,
        started=started,
        enabled=record.sysfs_busid not in blacklist,
    )


def unique_by_busid(records: Iterable[PciRecord | UsbRecord]) -> list[PciRecord | UsbRecord]:
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.sysfs_busid in seen:
            continue
        seen.add(record.sysfs_busid)
        unique.append(record)
    return unique


def collect_devices(bus: Bus, enumerator: Enumerator, settings: Settings) -> list[Device]:
    """Enumerate one bus and build a fresh device snapshot."""
    try:
        records = enumerator.enumerate()
    except OSError as exc:
        raise EnumerationError(f"Could not enumerate {bus.value} devices: {exc}") from exc
    if not records:
        raise EnumerationError(f"Could not get {bus.value} devices")

    blacklist = sysfs.read_blacklist(settings.blacklist_path(bus))
    devices: list[Device] = []
    for record in unique_by_busid(records):
        if isinstance(record, PciRecord):
            devices.append(build_pci_device(record, settings.sysfs_root, blacklist))
        else:
            devices.append(build_usb_device(record, settings.sysfs_root, blacklist))
    return devices
