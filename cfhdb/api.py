"""Stable public API for building tooling on top of cfhdb.

This module is the supported integration surface for third-party callers
(GUI/TUI front ends, scripts). Avoid importing from internal modules unless
intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import requests

from cfhdb.backends.base import Enumerator
from cfhdb.core.config import Settings, load_settings
from cfhdb.core.device_match import group_by_class, matches, resolve_profiles
from cfhdb.core.errors import (
    CatalogParseError,
    CatalogUnavailableError,
    CfhdbError,
    ConfigError,
    DeviceControlError,
    DeviceNotFoundError,
    EnumerationError,
    InvalidDataError,
    NotFoundError,
    ParseFailureError,
    ProfileNotFoundError,
    ScriptFailureError,
)
from cfhdb.core.installer import Outcome, ProfileStatus
from cfhdb.core.model import Bus, Device, PciDevice, PciProfile, Profile, UsbDevice, UsbProfile
from cfhdb.core.scripts import Runner
from cfhdb.core.service import HardwareService

__all__ = [
    "CfhdbError",
    "NotFoundError",
    "DeviceNotFoundError",
    "ProfileNotFoundError",
    "CatalogUnavailableError",
    "InvalidDataError",
    "EnumerationError",
    "ScriptFailureError",
    "DeviceControlError",
    "ParseFailureError",
    "CatalogParseError",
    "ConfigError",
    "Bus",
    "PciDevice",
    "UsbDevice",
    "PciProfile",
    "UsbProfile",
    "Outcome",
    "ProfileStatus",
    "Settings",
    "load_settings",
    "matches",
    "resolve_profiles",
    "DeviceInventory",
    "Client",
]


@dataclass(frozen=True)
class DeviceInventory:
    """Resolved devices of one bus grouped by class id/code."""

    bus: Bus
    groups: dict[str, list[Device]]
    catalog_source: str


class Client:
    """Public client for interacting with cfhdb core capabilities.

    A `Client` wraps enumeration, catalog loading, profile resolution, the
    install/uninstall state machine and device control behind one object.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        runner: Runner | None = None,
        enumerators: Mapping[Bus, Enumerator] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._service = HardwareService(settings, runner=runner, enumerators=enumerators, session=session)

    @property
    def settings(self) -> Settings:
        return self._service.settings

    def list_devices(self, bus: Bus) -> list[Device]:
        return self._service.list_devices(bus)

    def get_inventory(self, bus: Bus) -> DeviceInventory:
        devices = self._service.list_devices(bus)
        return DeviceInventory(
            bus=bus,
            groups=group_by_class(devices),
            catalog_source=self._service.catalog(bus).source,
        )

    def list_profiles(self, bus: Bus) -> tuple[Profile, ...]:
        return self._service.load_profiles(bus)

    def profiles_for_device(self, bus: Bus, busid: str) -> tuple[Profile, ...]:
        return self._service.profiles_for_device(bus, busid)

    def profile_status(self, bus: Bus, codename: str) -> ProfileStatus:
        return self._service.profile_status(bus, codename)

    def install_profile(self, bus: Bus, codename: str) -> Outcome:
        return self._service.install_profile(bus, codename)

    def uninstall_profile(self, bus: Bus, codename: str) -> Outcome:
        return self._service.uninstall_profile(bus, codename)

    def enable_device(self, bus: Bus, busid: str) -> Device:
        return self._service.enable_device(bus, busid)

    def disable_device(self, bus: Bus, busid: str) -> Device:
        return self._service.disable_device(bus, busid)

    def start_device(self, bus: Bus, busid: str) -> Device:
        return self._service.start_device(bus, busid)

    def stop_device(self, bus: Bus, busid: str) -> Device:
        return self._service.stop_device(bus, busid)
