"""PCI enumeration from sysfs, with names from ``lspci`` when available."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from cfhdb.core.model import PciRecord

LOGGER = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def _read_hex(path: Path) -> str | None:
    try:
        value = path.read_text(encoding="utf-8").strip().lower()
    except OSError:
        return None
    return value.removeprefix("0x") or None


def parse_lspci_vmm(output: str) -> dict[str, tuple[str, str, str]]:
    """Map bus id to (class, vendor, device) names from ``lspci -vmm -D`` output."""
    names: dict[str, tuple[str, str, str]] = {}
    for block in output.split("\n\n"):
        fields: dict[str, str] = {}
        for line in block.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                fields.setdefault(key.strip(), value.strip())
        slot = fields.get("Slot")
        if not slot:
            continue
        names[slot] = (
            fields.get("Class", UNKNOWN_NAME),
            fields.get("Vendor", UNKNOWN_NAME),
            fields.get("Device", UNKNOWN_NAME),
        )
    return names


class SysfsPciEnumerator:
    def __init__(self, sysfs_root: Path = Path("/sys")) -> None:
        self.devices_dir = sysfs_root / "bus" / "pci" / "devices"

    def _names(self) -> dict[str, tuple[str, str, str]]:
        try:
            result = subprocess.run(
                ["lspci", "-vmm", "-D"],
                check=False,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            LOGGER.debug("lspci not installed; PCI names will be unknown")
            return {}
        if result.returncode != 0:
            LOGGER.warning("lspci failed: %s", (result.stderr or "").strip())
            return {}
        return parse_lspci_vmm(result.stdout)

    def enumerate(self) -> list[PciRecord]:
        if not self.devices_dir.is_dir():
            return []

        names = self._names()
        records: list[PciRecord] = []
        for entry in sorted(self.devices_dir.iterdir(), key=lambda p: p.name):
            pci_class = _read_hex(entry / "class")
            vendor = _read_hex(entry / "vendor")
            device = _read_hex(entry / "device")
            if not (pci_class and vendor and device):
                LOGGER.debug("Skipping %s: incomplete identifiers", entry.name)
                continue
            class_name, vendor_name, device_name = names.get(
                entry.name, (UNKNOWN_NAME, UNKNOWN_NAME, UNKNOWN_NAME)
            )
            records.append(
                PciRecord(
                    class_name=class_name,
                    vendor_name=vendor_name,
                    device_name=device_name,
                    # sysfs reports class/subclass/prog-if; profiles key on class/subclass.
                    class_id=pci_class.zfill(6)[:4].upper(),
                    vendor_id=vendor.zfill(4),
                    device_id=device.zfill(4),
                    sysfs_busid=entry.name,
                )
            )
        return records
