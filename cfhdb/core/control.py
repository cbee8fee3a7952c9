"""Start/stop/enable/disable devices through the privileged sysfs helper."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from cfhdb.core import sysfs
from cfhdb.core.config import Settings
from cfhdb.core.errors import DeviceControlError, ScriptFailureError
from cfhdb.core.model import Bus
from cfhdb.core.scripts import Runner

LOGGER = logging.getLogger(__name__)

_MODINFO_NAME_RE = re.compile(r"name:\s+(\w+)")


def module_name_for(modalias_file: Path) -> str | None:
    """Look up the kernel module that claims the device behind ``modalias_file``."""
    try:
        modalias = modalias_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if not modalias:
        return None
    try:
        result = subprocess.run(
            ["modinfo", modalias],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        LOGGER.warning("modinfo not found; cannot resolve module for %s", modalias)
        return None
    if result.returncode != 0:
        return None
    for line in result.stdout.splitlines():
        match = _MODINFO_NAME_RE.search(line)
        if match:
            return match.group(1)
    return None


class DeviceController:
    def __init__(self, runner: Runner, settings: Settings) -> None:
        self.runner = runner
        self.settings = settings

    def _helper(self, action: str, bus: Bus, busid: str, *extra: str) -> None:
        # The helper edits the same blacklist and sysfs tree that device state is read from.
        argv = [
            "bash",
            str(self.settings.helper_path),
            action,
            bus.value,
            busid,
            str(self.settings.blacklist_path(bus)),
            str(self.settings.sysfs_root),
            *extra,
        ]
        LOGGER.info("%s %s device %s", action, bus.value, busid)
        try:
            self.runner.run_privileged(argv)
        except ScriptFailureError as exc:
            verb = action.removesuffix("_device")
            raise DeviceControlError(f"Could not {verb} {bus.value} device {busid}: {exc}") from exc

    def start(self, bus: Bus, busid: str) -> None:
        module = module_name_for(sysfs.modalias_path(self.settings.sysfs_root, bus, busid)) or ""
        self._helper("start_device", bus, busid, module)

    def stop(self, bus: Bus, busid: str) -> None:
        self._helper("stop_device", bus, busid)

    def enable(self, bus: Bus, busid: str) -> None:
        self._helper("enable_device", bus, busid)

    def disable(self, bus: Bus, busid: str) -> None:
        self._helper("disable_device", bus, busid)
