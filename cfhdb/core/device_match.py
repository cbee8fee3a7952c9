"""Device-to-profile matching logic."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from cfhdb.core.errors import DeviceNotFoundError, ProfileNotFoundError
from cfhdb.core.model import WILDCARD, Device, Profile

IdentifierSets = tuple[Sequence[str], Sequence[str], Sequence[str]]

DeviceT = TypeVar("DeviceT", bound=Device)
ProfileT = TypeVar("ProfileT", bound=Profile)


class MatchableProfile(Protocol):
    def inclusion_sets(self) -> IdentifierSets: ...

    def exclusion_sets(self) -> IdentifierSets: ...


def _axis_hit(values: Sequence[str], identifier: str) -> bool:
    return WILDCARD in values or identifier in values


def matches(profile: MatchableProfile, identifiers: tuple[str, str, str]) -> bool:
    """Return whether ``profile`` applies to a device with ``identifiers``.

    A hit on any exclusion axis rejects the profile outright. Otherwise every
    inclusion axis must hit; an empty inclusion set never does.
    """
    if any(_axis_hit(values, ident) for values, ident in zip(profile.exclusion_sets(), identifiers)):
        return False
    return all(_axis_hit(values, ident) for values, ident in zip(profile.inclusion_sets(), identifiers))


def sort_by_priority(profiles: Iterable[ProfileT]) -> tuple[ProfileT, ...]:
    # sorted() is stable, so catalog order survives among equal priorities.
    return tuple(sorted(profiles, key=lambda p: p.priority))


def matching_profiles(catalog: Iterable[ProfileT], device: Device) -> tuple[ProfileT, ...]:
    identifiers = device.identifiers()
    return sort_by_priority(p for p in catalog if matches(p, identifiers))


def resolve_profiles(catalog: Iterable[Profile], device: DeviceT) -> DeviceT:
    """Return a copy of ``device`` whose ``available_profiles`` is replaced by the matches."""
    return dataclasses.replace(device, available_profiles=matching_profiles(catalog, device))


def resolve_all(catalog: Sequence[Profile], devices: Iterable[DeviceT]) -> list[DeviceT]:
    return [resolve_profiles(catalog, device) for device in devices]


def find_device(devices: Iterable[DeviceT], busid: str) -> DeviceT:
    for device in devices:
        if device.sysfs_busid == busid:
            return device
    raise DeviceNotFoundError(f"No device with bus id '{busid}'")


def find_profile(profiles: Iterable[ProfileT], codename: str) -> ProfileT:
    for profile in profiles:
        if profile.codename == codename:
            return profile
    raise ProfileNotFoundError(f"No profile with codename '{codename}'")


def group_by_class(devices: Iterable[DeviceT]) -> dict[str, list[DeviceT]]:
    grouped: dict[str, list[DeviceT]] = {}
    for device in devices:
        grouped.setdefault(device.group_key, []).append(device)
    return grouped
