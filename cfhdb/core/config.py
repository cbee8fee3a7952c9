"""Process-wide settings, loaded once at startup and passed to collaborators."""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from cfhdb.core.errors import ConfigError
from cfhdb.core.model import Bus

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("/etc/cfhdb/config.yaml")
CONFIG_ENV_VAR = "CFHDB_CONFIG"

PCI_PROFILE_JSON_URL = "https://github.com/CosmicFusion/cfhdb/raw/refs/heads/master/data/profiles/pci.json"
USB_PROFILE_JSON_URL = "https://github.com/CosmicFusion/cfhdb/raw/refs/heads/master/data/profiles/usb.json"


def _locale_from_env() -> str:
    lang = os.environ.get("LANG", "")
    return lang.split(".", 1)[0] if lang else "en_US"


def _packaged_helper() -> Path:
    return Path(str(resources.files("cfhdb.scripts").joinpath("sysfs_helper.sh")))


@dataclass(frozen=True)
class Settings:
    pci_catalog_url: str = PCI_PROFILE_JSON_URL
    usb_catalog_url: str = USB_PROFILE_JSON_URL
    cache_dir: Path = Path("/var/cache/cfhdb")
    config_dir: Path = Path("/etc/cfhdb")
    sysfs_root: Path = Path("/sys")
    helper_path: Path = field(default_factory=_packaged_helper)
    fetch_timeout_s: float = 5.0
    package_install_command: tuple[str, ...] = ("pikman", "install")
    package_purge_command: tuple[str, ...] = ("pikman", "purge")
    elevation_command: tuple[str, ...] = ("pkexec",)
    locale: str = field(default_factory=_locale_from_env)

    def catalog_url(self, bus: Bus) -> str:
        return self.pci_catalog_url if bus is Bus.PCI else self.usb_catalog_url

    def cache_path(self, bus: Bus) -> Path:
        return self.cache_dir / f"{bus.value}.json"

    def blacklist_path(self, bus: Bus) -> Path:
        return self.config_dir / f"{bus.value}_blacklist"

    @property
    def script_path(self) -> Path:
        return self.cache_dir / "script_lock.sh"

    @property
    def check_script_path(self) -> Path:
        return self.cache_dir / "check_cmd.sh"


_PATH_FIELDS = {"cache_dir", "config_dir", "sysfs_root", "helper_path"}
_COMMAND_FIELDS = {"package_install_command", "package_purge_command", "elevation_command"}
_STR_FIELDS = {"pci_catalog_url", "usb_catalog_url", "locale"}


def _coerce(key: str, value: Any) -> Any:
    if key in _PATH_FIELDS:
        if not isinstance(value, str) or not value:
            raise ConfigError(f"'{key}' must be a non-empty path string")
        return Path(value)
    if key in _COMMAND_FIELDS:
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"'{key}' must be a command string or a list of strings")
        return tuple(value)
    if key in _STR_FIELDS:
        if not isinstance(value, str):
            raise ConfigError(f"'{key}' must be a string")
        return value
    if key == "fetch_timeout_s":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError("'fetch_timeout_s' must be a positive number")
        return float(value)
    raise ConfigError(f"Unknown configuration key '{key}'")


def _read_config(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def load_settings(path: Path | None = None) -> Settings:
    """Build settings from defaults overlaid with an optional YAML file.

    The file is looked up as ``path``, then ``$CFHDB_CONFIG``, then
    ``/etc/cfhdb/config.yaml``. Only the last may be absent.
    """
    explicit = path or (Path(os.environ[CONFIG_ENV_VAR]) if os.environ.get(CONFIG_ENV_VAR) else None)
    config_path = explicit or DEFAULT_CONFIG_PATH
    if explicit is None and not config_path.exists():
        return Settings()

    doc = _read_config(config_path)
    overrides = {str(key): _coerce(str(key), value) for key, value in doc.items()}
    LOGGER.debug("Loaded %d setting(s) from %s", len(overrides), config_path)
    return dataclasses.replace(Settings(), **overrides)
