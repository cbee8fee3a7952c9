from __future__ import annotations

import pytest

from cfhdb.core.config import Settings
from cfhdb.core.errors import ScriptFailureError
from cfhdb.core.installer import Outcome, ProfileInstaller, ProfileStatus
from cfhdb.core.model import PciProfile


class FakeRunner:
    def __init__(self, installed: list[bool] | bool = False, fail: bool = False) -> None:
        self.states = installed if isinstance(installed, list) else None
        self.installed = installed
        self.fail = fail
        self.commands: list[list[str]] = []
        self.scripts: list[str] = []
        self.checks: list[str] = []

    def check(self, check_script: str) -> bool:
        self.checks.append(check_script)
        if self.states is not None:
            return self.states.pop(0)
        return bool(self.installed)

    def run_privileged(self, argv: list[str]) -> str:
        self.commands.append(argv)
        if self.fail:
            raise ScriptFailureError("exit 1")
        return ""

    def run_script(self, body: str) -> None:
        self.scripts.append(body)
        if self.fail:
            raise ScriptFailureError("exit 1")


def _profile(
    packages: tuple[str, ...] | None = ("foo",),
    install_script: str | None = None,
    remove_script: str | None = None,
) -> PciProfile:
    return PciProfile(
        codename="foo-driver",
        i18n_desc="Foo driver",
        icon_name="package-x-generic",
        license="GPL",
        class_ids=("*",),
        vendor_ids=("*",),
        device_ids=("*",),
        blacklisted_class_ids=(),
        blacklisted_vendor_ids=(),
        blacklisted_device_ids=(),
        packages=packages,
        check_script="dpkg -s foo",
        install_script=install_script,
        remove_script=remove_script,
    )


SETTINGS = Settings(locale="en_US")


def test_install_packages_only_runs_exactly_the_installer() -> None:
    runner = FakeRunner(installed=False)

    outcome = ProfileInstaller(runner, SETTINGS).install(_profile())

    assert outcome is Outcome.INSTALLED
    assert runner.commands == [["pikman", "install", "foo"]]
    assert runner.scripts == []
    assert runner.checks == ["dpkg -s foo"]


def test_install_when_installed_is_noop() -> None:
    runner = FakeRunner(installed=True)

    outcome = ProfileInstaller(runner, SETTINGS).install(_profile(install_script="echo hi"))

    assert outcome is Outcome.ALREADY_INSTALLED
    assert runner.commands == []
    assert runner.scripts == []


def test_install_with_script_builds_one_composite_script() -> None:
    runner = FakeRunner(installed=False)

    ProfileInstaller(runner, SETTINGS).install(_profile(packages=("foo", "bar baz"), install_script="systemctl enable foo"))

    assert runner.commands == []
    assert runner.scripts == ["pikman install foo 'bar baz'\nsystemctl enable foo"]


def test_install_script_only() -> None:
    runner = FakeRunner(installed=False)

    ProfileInstaller(runner, SETTINGS).install(_profile(packages=None, install_script="make install"))

    assert runner.scripts == ["make install"]


def test_install_with_nothing_to_do() -> None:
    runner = FakeRunner(installed=False)

    outcome = ProfileInstaller(runner, SETTINGS).install(_profile(packages=None))

    assert outcome is Outcome.NOTHING_TO_DO
    assert runner.commands == [] and runner.scripts == []


def test_install_failure_propagates_without_rollback() -> None:
    runner = FakeRunner(installed=False, fail=True)

    with pytest.raises(ScriptFailureError):
        ProfileInstaller(runner, SETTINGS).install(_profile(install_script="echo hi"))

    assert len(runner.scripts) == 1
    assert runner.commands == []


def test_uninstall_when_not_installed_is_noop() -> None:
    runner = FakeRunner(installed=False)

    assert ProfileInstaller(runner, SETTINGS).uninstall(_profile()) is Outcome.NOT_INSTALLED
    assert runner.commands == []


def test_uninstall_purges_and_status_follows_check_script() -> None:
    runner = FakeRunner(installed=[True, True, False])
    installer = ProfileInstaller(runner, SETTINGS)
    profile = _profile(remove_script="rm -f /etc/foo.conf")

    assert installer.status(profile) is ProfileStatus.INSTALLED
    assert installer.uninstall(profile) is Outcome.REMOVED
    assert installer.status(profile) is ProfileStatus.NOT_INSTALLED
    assert runner.scripts == ["pikman purge foo\nrm -f /etc/foo.conf"]


def test_custom_package_commands() -> None:
    runner = FakeRunner(installed=True)
    settings = Settings(package_purge_command=("apt-get", "purge", "-y"), locale="en_US")

    ProfileInstaller(runner, settings).uninstall(_profile())

    assert runner.commands == [["apt-get", "purge", "-y", "foo"]]
