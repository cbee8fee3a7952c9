"""Install/uninstall state machine for driver profiles."""

from __future__ import annotations

import logging
import shlex
from enum import Enum

from cfhdb.core.config import Settings
from cfhdb.core.model import Profile
from cfhdb.core.scripts import Runner

LOGGER = logging.getLogger(__name__)


class ProfileStatus(str, Enum):
    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"


class Outcome(str, Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    REMOVED = "removed"
    NOT_INSTALLED = "not_installed"
    NOTHING_TO_DO = "nothing_to_do"


def _command_line(command: tuple[str, ...], packages: tuple[str, ...]) -> str:
    return shlex.join([*command, *packages])


class ProfileInstaller:
    """Drives a profile between NOT_INSTALLED and INSTALLED.

    The state is never stored: it is whatever the profile's check script
    reports at the time of the call. Failures propagate as
    :class:`~cfhdb.core.errors.ScriptFailureError` and nothing already done
    is rolled back.
    """

    def __init__(self, runner: Runner, settings: Settings) -> None:
        self.runner = runner
        self.settings = settings

    def status(self, profile: Profile) -> ProfileStatus:
        if self.runner.check(profile.check_script):
            return ProfileStatus.INSTALLED
        return ProfileStatus.NOT_INSTALLED

    def is_installed(self, profile: Profile) -> bool:
        return self.status(profile) is ProfileStatus.INSTALLED

    def _apply(self, command: tuple[str, ...], packages: tuple[str, ...] | None, script: str | None) -> bool:
        if script is not None:
            lines = [_command_line(command, packages)] if packages else []
            lines.append(script)
            self.runner.run_script("\n".join(lines))
            return True
        if packages:
            self.runner.run_privileged([*command, *packages])
            return True
        return False

    def install(self, profile: Profile) -> Outcome:
        if self.is_installed(profile):
            LOGGER.info("Profile %s is already installed", profile.codename)
            return Outcome.ALREADY_INSTALLED
        LOGGER.info("Installing profile %s", profile.codename)
        if not self._apply(self.settings.package_install_command, profile.packages, profile.install_script):
            return Outcome.NOTHING_TO_DO
        return Outcome.INSTALLED

    def uninstall(self, profile: Profile) -> Outcome:
        if not self.is_installed(profile):
            LOGGER.info("Profile %s is not installed", profile.codename)
            return Outcome.NOT_INSTALLED
        LOGGER.info("Removing profile %s", profile.codename)
        if not self._apply(self.settings.package_purge_command, profile.packages, profile.remove_script):
            return Outcome.NOTHING_TO_DO
        return Outcome.REMOVED
