"""USB enumeration from sysfs."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from cfhdb.core.model import UsbRecord

LOGGER = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
# Device nodes only: "3-1.2" but not root hubs ("usb3") or interfaces ("3-1.2:1.0").
_DEVICE_DIR_RE = re.compile(r"^\d+-\d+(?:\.\d+)*$")
_SPEEDS = {
    "1.5": "1.0",
    "12": "1.1",
    "480": "2.0",
    "5000": "3.0",
    "10000": "3.1",
    "20000": "3.1",
}


def _read(path: Path) -> str | None:
    try:
        value = path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return None
    return value or None


def _read_int(path: Path) -> int:
    value = _read(path)
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def _port_number(devpath: str | None) -> int:
    if not devpath:
        return 0
    try:
        return int(devpath.rsplit(".", 1)[-1])
    except ValueError:
        return 0


class SysfsUsbEnumerator:
    def __init__(self, sysfs_root: Path = Path("/sys")) -> None:
        self.devices_dir = sysfs_root / "bus" / "usb" / "devices"

    def _record(self, entry: Path) -> UsbRecord | None:
        vendor = _read(entry / "idVendor")
        product = _read(entry / "idProduct")
        if not (vendor and product):
            return None

        interface_class = _read(entry.parent / f"{entry.name}:1.0" / "bInterfaceClass") or "00"
        protocol = _read(entry / "bDeviceProtocol") or "00"
        try:
            protocol_code = format(int(protocol, 16), "04x")
        except ValueError:
            protocol_code = "0000"

        return UsbRecord(
            manufacturer_name=_read(entry / "manufacturer") or UNKNOWN_NAME,
            product_name=_read(entry / "product") or UNKNOWN_NAME,
            serial=_read(entry / "serial") or UNKNOWN_NAME,
            class_code=interface_class.zfill(2).upper(),
            vendor_id=vendor.lower().zfill(4),
            product_id=product.lower().zfill(4),
            protocol_code=protocol_code,
            usb_version=_read(entry / "version") or UNKNOWN_NAME,
            speed=_SPEEDS.get(_read(entry / "speed") or "", UNKNOWN_NAME),
            bus_number=_read_int(entry / "busnum"),
            port_number=_port_number(_read(entry / "devpath")),
            address=_read_int(entry / "devnum"),
            sysfs_busid=entry.name,
        )

    def enumerate(self) -> list[UsbRecord]:
        if not self.devices_dir.is_dir():
            return []

        records: list[UsbRecord] = []
        for entry in sorted(self.devices_dir.iterdir(), key=lambda p: p.name):
            if not _DEVICE_DIR_RE.match(entry.name):
                continue
            record = self._record(entry)
            if record is None:
                LOGGER.debug("Skipping %s: missing idVendor/idProduct", entry.name)
                continue
            records.append(record)
        return records
