"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

from collections.abc import Mapping

import requests

from cfhdb.backends.base import Enumerator
from cfhdb.backends.pci import SysfsPciEnumerator
from cfhdb.backends.usb import SysfsUsbEnumerator
from cfhdb.core.catalog import load_catalog
from cfhdb.core.config import Settings, load_settings
from cfhdb.core.control import DeviceController
from cfhdb.core.device_match import find_device, find_profile, resolve_all, resolve_profiles
from cfhdb.core.installer import Outcome, ProfileInstaller, ProfileStatus
from cfhdb.core.inventory import collect_devices
from cfhdb.core.model import Bus, Device, LoadedCatalog, Profile
from cfhdb.core.scripts import Runner, ScriptRunner


class HardwareService:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        runner: Runner | None = None,
        enumerators: Mapping[Bus, Enumerator] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.runner = runner or ScriptRunner(self.settings)
        self.enumerators = dict(
            enumerators
            or {
                Bus.PCI: SysfsPciEnumerator(self.settings.sysfs_root),
                Bus.USB: SysfsUsbEnumerator(self.settings.sysfs_root),
            }
        )
        self.session = session
        self.installer = ProfileInstaller(self.runner, self.settings)
        self.controller = DeviceController(self.runner, self.settings)
        self._catalogs: dict[Bus, LoadedCatalog] = {}

    def catalog(self, bus: Bus) -> LoadedCatalog:
        # One catalog snapshot per bus for the lifetime of the service.
        if bus not in self._catalogs:
            self._catalogs[bus] = load_catalog(bus, self.settings, session=self.session)
        return self._catalogs[bus]

    def load_profiles(self, bus: Bus) -> tuple[Profile, ...]:
        return self.catalog(bus).profiles

    def list_devices(self, bus: Bus, *, resolve: bool = True) -> list[Device]:
        devices = collect_devices(bus, self.enumerators[bus], self.settings)
        if not resolve:
            return devices
        return resolve_all(self.load_profiles(bus), devices)

    def get_device(self, bus: Bus, busid: str) -> Device:
        return find_device(self.list_devices(bus, resolve=False), busid)

    def profiles_for_device(self, bus: Bus, busid: str) -> tuple[Profile, ...]:
        device = self.get_device(bus, busid)
        resolved = resolve_profiles(self.load_profiles(bus), device)
        return resolved.available_profiles or ()

    def get_profile(self, bus: Bus, codename: str) -> Profile:
        return find_profile(self.load_profiles(bus), codename)

    def profile_status(self, bus: Bus, codename: str) -> ProfileStatus:
        return self.installer.status(self.get_profile(bus, codename))

    def install_profile(self, bus: Bus, codename: str) -> Outcome:
        return self.installer.install(self.get_profile(bus, codename))

    def uninstall_profile(self, bus: Bus, codename: str) -> Outcome:
        return self.installer.uninstall(self.get_profile(bus, codename))

    def enable_device(self, bus: Bus, busid: str) -> Device:
        device = self.get_device(bus, busid)
        self.controller.enable(bus, device.sysfs_busid)
        return device

    def disable_device(self, bus: Bus, busid: str) -> Device:
        device = self.get_device(bus, busid)
        self.controller.disable(bus, device.sysfs_busid)
        return device

    def start_device(self, bus: Bus, busid: str) -> Device:
        device = self.get_device(bus, busid)
        self.controller.start(bus, device.sysfs_busid)
        return device

    def stop_device(self, bus: Bus, busid: str) -> Device:
        device = self.get_device(bus, busid)
        self.controller.stop(bus, device.sysfs_busid)
        return device
