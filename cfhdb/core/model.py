"""Core data models used across catalog, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNKNOWN_DRIVER = "Unknown"
WILDCARD = "*"


class Bus(str, Enum):
    PCI = "pci"
    USB = "usb"


@dataclass(frozen=True)
class PciProfile:
    codename: str
    i18n_desc: str
    icon_name: str
    license: str
    class_ids: tuple[str, ...]
    vendor_ids: tuple[str, ...]
    device_ids: tuple[str, ...]
    blacklisted_class_ids: tuple[str, ...]
    blacklisted_vendor_ids: tuple[str, ...]
    blacklisted_device_ids: tuple[str, ...]
    packages: tuple[str, ...] | None
    check_script: str
    install_script: str | None = None
    remove_script: str | None = None
    experimental: bool = False
    removable: bool = False
    priority: int = 0

    def inclusion_sets(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
        return self.class_ids, self.vendor_ids, self.device_ids

    def exclusion_sets(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
        return self.blacklisted_class_ids, self.blacklisted_vendor_ids, self.blacklisted_device_ids


@dataclass(frozen=True)
class UsbProfile:
    codename: str
    i18n_desc: str
    icon_name: str
    license: str
    class_codes: tuple[str, ...]
    vendor_ids: tuple[str, ...]
    product_ids: tuple[str, ...]
    blacklisted_class_codes: tuple[str, ...]
    blacklisted_vendor_ids: tuple[str, ...]
    blacklisted_product_ids: tuple[str, ...]
    packages: tuple[str, ...] | None
    check_script: str
    install_script: str | None = None
    remove_script: str | None = None
    experimental: bool = False
    removable: bool = False
    priority: int = 0

    def inclusion_sets(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
        return self.class_codes, self.vendor_ids, self.product_ids

    def exclusion_sets(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
        return self.blacklisted_class_codes, self.blacklisted_vendor_ids, self.blacklisted_product_ids


Profile = PciProfile | UsbProfile


@dataclass(frozen=True)
class PciDevice:
    """A PCI function as seen in one enumeration snapshot.

    ``available_profiles`` is ``None`` until the device has been run through
    :func:`cfhdb.core.device_match.resolve_profiles`, which returns a copy
    holding the priority-sorted matches (an empty tuple when nothing matched).
    """

    class_name: str
    vendor_name: str
    device_name: str
    class_id: str
    vendor_id: str
    device_id: str
    sysfs_busid: str
    kernel_driver: str = UNKNOWN_DRIVER
    started: bool | None = None
    enabled: bool = True
    available_profiles: tuple[PciProfile, ...] | None = None

    def identifiers(self) -> tuple[str, str, str]:
        return self.class_id, self.vendor_id, self.device_id

    @property
    def group_key(self) -> str:
        return self.class_id


@dataclass(frozen=True)
class UsbDevice:
    """A USB device as seen in one enumeration snapshot."""

    manufacturer_name: str
    product_name: str
    serial: str
    class_code: str
    vendor_id: str
    product_id: str
    protocol_code: str
    usb_version: str
    speed: str
    bus_number: int
    port_number: int
    address: int
    sysfs_busid: str
    kernel_driver: str = UNKNOWN_DRIVER
    started: bool | None = None
    enabled: bool = True
    available_profiles: tuple[UsbProfile, ...] | None = None

    def identifiers(self) -> tuple[str, str, str]:
        return self.class_code, self.vendor_id, self.product_id

    @property
    def group_key(self) -> str:
        return self.class_code


Device = PciDevice | UsbDevice


@dataclass(frozen=True)
class PciRecord:
    """Raw PCI enumeration output, before driver/blacklist state is attached."""

    class_name: str
    vendor_name: str
    device_name: str
    class_id: str
    vendor_id: str
    device_id: str
    sysfs_busid: str


@dataclass(frozen=True)
class UsbRecord:
    """Raw USB enumeration output, before driver/blacklist state is attached."""

    manufacturer_name: str
    product_name: str
    serial: str
    class_code: str
    vendor_id: str
    product_id: str
    protocol_code: str
    usb_version: str
    speed: str
    bus_number: int
    port_number: int
    address: int
    sysfs_busid: str


@dataclass(frozen=True)
class LoadedCatalog:
    profiles: tuple[Profile, ...]
    source: str
