"""Profile catalog download, cache fallback, and schema validation."""

from __future__ import annotations

import json
import logging
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

import requests
from jsonschema import ValidationError, validators

from cfhdb.core.config import Settings
from cfhdb.core.device_match import sort_by_priority
from cfhdb.core.errors import CatalogParseError, CatalogUnavailableError
from cfhdb.core.model import Bus, LoadedCatalog, PciProfile, Profile, UsbProfile

LOGGER = logging.getLogger(__name__)

DEFAULT_ICON_NAME = "package-x-generic"
# Written by the upstream catalog generator in place of an absent script.
_NONE_SENTINEL = "Option::is_none"


@cache
def _load_schema_validator(bus: Bus) -> Any:
    schema_text = resources.files("cfhdb.schemas").joinpath(f"{bus.value}_profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def download_catalog_text(url: str, *, timeout_s: float, session: requests.Session | None = None) -> str:
    http = session or requests
    LOGGER.info("Downloading profile catalog from %s", url)
    response = http.get(url, timeout=timeout_s)
    response.raise_for_status()
    return response.text


def read_cached_catalog_text(cache_path: Path) -> str:
    LOGGER.info("Using cached profile catalog at %s", cache_path)
    try:
        return cache_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogUnavailableError(f"Could not read cached catalog {cache_path}: {exc}") from exc


def write_cached_catalog_text(cache_path: Path, text: str) -> None:
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("Could not update catalog cache %s: %s", cache_path, exc)


def _identifiers(doc: dict[str, Any], key: str) -> tuple[str, ...]:
    return tuple(value.strip() for value in doc.get(key) or ())


def _optional_script(value: str | None) -> str | None:
    if value is None or value.strip() in ("", _NONE_SENTINEL):
        return None
    return value


def _packages(value: Any) -> tuple[str, ...] | None:
    # A bare string (including the generator sentinel) means "no packages".
    if isinstance(value, list):
        return tuple(value)
    return None


def _description(doc: dict[str, Any], locale: str) -> str:
    localized = doc.get(f"i18n_desc[{locale}]")
    if isinstance(localized, str) and localized:
        return localized
    return doc.get("i18n_desc") or ""


def _build_profile(bus: Bus, doc: Any, locale: str, index: int) -> Profile:
    if not isinstance(doc, dict):
        raise CatalogParseError(f"Profile #{index} in the {bus.value} catalog is not an object")
    try:
        _load_schema_validator(bus).validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        name = doc.get("codename", f"#{index}")
        raise CatalogParseError(f"Schema validation failed for {bus.value} profile '{name}'{where}: {exc.message}") from exc

    common = {
        "codename": doc["codename"],
        "i18n_desc": _description(doc, locale),
        "icon_name": doc.get("icon_name") or DEFAULT_ICON_NAME,
        "license": doc.get("license") or "",
        "packages": _packages(doc.get("packages")),
        "check_script": doc["check_script"],
        "install_script": _optional_script(doc.get("install_script")),
        "remove_script": _optional_script(doc.get("remove_script")),
        "experimental": doc.get("experimental", False),
        "removable": doc.get("removable", False),
        "priority": int(doc.get("priority", 0)),
    }
    if bus is Bus.PCI:
        return PciProfile(
            class_ids=_identifiers(doc, "class_ids"),
            vendor_ids=_identifiers(doc, "vendor_ids"),
            device_ids=_identifiers(doc, "device_ids"),
            blacklisted_class_ids=_identifiers(doc, "blacklisted_class_ids"),
            blacklisted_vendor_ids=_identifiers(doc, "blacklisted_vendor_ids"),
            blacklisted_device_ids=_identifiers(doc, "blacklisted_device_ids"),
            **common,
        )
    return UsbProfile(
        class_codes=_identifiers(doc, "class_codes"),
        vendor_ids=_identifiers(doc, "vendor_ids"),
        product_ids=_identifiers(doc, "product_ids"),
        blacklisted_class_codes=_identifiers(doc, "blacklisted_class_codes"),
        blacklisted_vendor_ids=_identifiers(doc, "blacklisted_vendor_ids"),
        blacklisted_product_ids=_identifiers(doc, "blacklisted_product_ids"),
        **common,
    )


def parse_catalog(bus: Bus, text: str, *, locale: str = "en_US") -> tuple[Profile, ...]:
    """Parse catalog JSON into profiles sorted by priority."""
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogParseError(f"Invalid JSON in {bus.value} profile catalog: {exc}") from exc

    if not isinstance(loaded, dict) or not isinstance(loaded.get("profiles"), list):
        raise CatalogParseError(f"The {bus.value} profile catalog must contain a 'profiles' array")

    profiles = [_build_profile(bus, doc, locale, index) for index, doc in enumerate(loaded["profiles"])]
    return sort_by_priority(profiles)


def load_catalog(bus: Bus, settings: Settings, *, session: requests.Session | None = None) -> LoadedCatalog:
    """Download and parse the catalog for ``bus``, falling back to the cache.

    The cache is only rewritten once the downloaded body has parsed, so a bad
    response (an HTML error page served with status 200, say) never replaces
    a good cached copy.
    """
    url = settings.catalog_url(bus)
    cache_path = settings.cache_path(bus)
    try:
        text = download_catalog_text(url, timeout_s=settings.fetch_timeout_s, session=session)
        profiles = parse_catalog(bus, text, locale=settings.locale)
    except (requests.RequestException, CatalogParseError) as exc:
        LOGGER.warning("Downloaded profile catalog is unusable: %s", exc)
        if not cache_path.exists():
            if isinstance(exc, CatalogParseError):
                raise
            raise CatalogUnavailableError(
                f"Could not download profile catalog from {url} and no cache exists at {cache_path}"
            ) from exc
        profiles = parse_catalog(bus, read_cached_catalog_text(cache_path), locale=settings.locale)
        source = "cache"
    else:
        LOGGER.info("Profile catalog download successful")
        write_cached_catalog_text(cache_path, text)
        source = "network"
    LOGGER.debug("Loaded %d %s profile(s) from %s", len(profiles), bus.value, source)
    return LoadedCatalog(profiles=profiles, source=source)
