from __future__ import annotations

from pathlib import Path

import pytest

from cfhdb.core import config
from cfhdb.core.config import Settings, load_settings
from cfhdb.core.errors import ConfigError
from cfhdb.core.model import Bus


def test_default_paths() -> None:
    settings = Settings(locale="en_US")
    assert settings.cache_path(Bus.PCI) == Path("/var/cache/cfhdb/pci.json")
    assert settings.cache_path(Bus.USB) == Path("/var/cache/cfhdb/usb.json")
    assert settings.blacklist_path(Bus.PCI) == Path("/etc/cfhdb/pci_blacklist")
    assert settings.blacklist_path(Bus.USB) == Path("/etc/cfhdb/usb_blacklist")
    assert settings.script_path == Path("/var/cache/cfhdb/script_lock.sh")
    assert settings.check_script_path == Path("/var/cache/cfhdb/check_cmd.sh")
    assert settings.fetch_timeout_s == 5.0
    assert settings.catalog_url(Bus.USB).endswith("/usb.json")


def test_locale_from_lang(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LANG", "fr_FR.UTF-8")
    assert Settings().locale == "fr_FR"


def test_missing_default_file_gives_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("CFHDB_CONFIG", raising=False)
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    assert load_settings().cache_dir == Path("/var/cache/cfhdb")


def test_yaml_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
cache_dir: /tmp/cfhdb-cache
fetch_timeout_s: 10
package_install_command: apt-get install -y
elevation_command: [sudo, -n]
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("CFHDB_CONFIG", str(path))

    settings = load_settings()

    assert settings.cache_dir == Path("/tmp/cfhdb-cache")
    assert settings.fetch_timeout_s == 10.0
    assert settings.package_install_command == ("apt-get", "install", "-y")
    assert settings.elevation_command == ("sudo", "-n")
    assert settings.package_purge_command == ("pikman", "purge")


def test_unknown_key_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("catalog: nope\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Unknown configuration key"):
        load_settings(path)


def test_explicit_missing_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.yaml")


@pytest.mark.parametrize("content", ["- a\n- b\n", "fetch_timeout_s: -1\n", "cache_dir: [1]\n", "a: [\n"])
def test_invalid_config_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)
