import pytest

from cfhdb.core.device_match import (
    find_device,
    find_profile,
    group_by_class,
    matches,
    resolve_all,
    resolve_profiles,
)
from cfhdb.core.errors import DeviceNotFoundError, ProfileNotFoundError
from cfhdb.core.model import PciDevice, PciProfile, UsbDevice, UsbProfile


def _profile(
    codename: str,
    *,
    class_ids: tuple[str, ...] = ("*",),
    vendor_ids: tuple[str, ...] = ("*",),
    device_ids: tuple[str, ...] = ("*",),
    blacklisted_class_ids: tuple[str, ...] = (),
    blacklisted_vendor_ids: tuple[str, ...] = (),
    blacklisted_device_ids: tuple[str, ...] = (),
    priority: int = 0,
) -> PciProfile:
    return PciProfile(
        codename=codename,
        i18n_desc=codename,
        icon_name="package-x-generic",
        license="GPL",
        class_ids=class_ids,
        vendor_ids=vendor_ids,
        device_ids=device_ids,
        blacklisted_class_ids=blacklisted_class_ids,
        blacklisted_vendor_ids=blacklisted_vendor_ids,
        blacklisted_device_ids=blacklisted_device_ids,
        packages=None,
        check_script="true",
        priority=priority,
    )


def _device(busid: str = "0000:01:00.0", class_id: str = "0300", vendor_id: str = "10de", device_id: str = "1234") -> PciDevice:
    return PciDevice(
        class_name="VGA compatible controller",
        vendor_name="NVIDIA Corporation",
        device_name="GA104",
        class_id=class_id,
        vendor_id=vendor_id,
        device_id=device_id,
        sysfs_busid=busid,
    )


def _usb_device() -> UsbDevice:
    return UsbDevice(
        manufacturer_name="Logitech",
        product_name="Receiver",
        serial="Unknown",
        class_code="03",
        vendor_id="046d",
        product_id="c52b",
        protocol_code="0000",
        usb_version="2.00",
        speed="1.1",
        bus_number=1,
        port_number=2,
        address=3,
        sysfs_busid="1-2",
    )


IDS = ("0300", "10de", "1234")


def test_all_inclusion_axes_satisfied_matches() -> None:
    assert matches(_profile("a", class_ids=("0300",), vendor_ids=("10de",), device_ids=("1234",)), IDS)


def test_wildcard_matches_any_identifier() -> None:
    assert matches(_profile("a"), IDS)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"blacklisted_class_ids": ("0300",)},
        {"blacklisted_vendor_ids": ("10de",)},
        {"blacklisted_device_ids": ("1234",)},
        {"blacklisted_class_ids": ("*",)},
        {"blacklisted_device_ids": ("*",)},
    ],
)
def test_any_blacklist_axis_rejects(kwargs: dict) -> None:
    assert not matches(_profile("a", **kwargs), IDS)


def test_blacklist_on_other_value_does_not_reject() -> None:
    assert matches(_profile("a", blacklisted_vendor_ids=("8086",)), IDS)


def test_non_matching_inclusion_axis_rejects() -> None:
    assert not matches(_profile("a", vendor_ids=("8086", "1002")), IDS)


def test_empty_inclusion_axis_never_matches() -> None:
    assert not matches(_profile("a", class_ids=("0300",), vendor_ids=("10de",), device_ids=()), IDS)


def test_identifier_comparison_is_case_sensitive() -> None:
    assert not matches(_profile("a", class_ids=("0300",), vendor_ids=("10DE",)), IDS)


def test_blacklist_beats_exact_inclusion() -> None:
    profile = _profile("b", blacklisted_vendor_ids=("10de",), priority=5)
    assert not matches(profile, IDS)


def test_resolve_scenario_excludes_blacklisted_profile() -> None:
    a = _profile("a", class_ids=("0300",), vendor_ids=("10de",), priority=10)
    b = _profile("b", blacklisted_vendor_ids=("10de",), priority=5)

    resolved = resolve_profiles([a, b], _device())

    assert resolved.available_profiles == (a,)


def test_resolve_sorts_by_priority_and_keeps_catalog_order_on_ties() -> None:
    first = _profile("first", priority=5)
    second = _profile("second", priority=5)
    low = _profile("low", priority=-3)
    high = _profile("high", priority=40)

    resolved = resolve_profiles([high, first, second, low], _device())

    assert [p.codename for p in resolved.available_profiles] == ["low", "first", "second", "high"]


def test_resolve_is_idempotent_and_replaces() -> None:
    catalog = [_profile("a", priority=2), _profile("b", priority=1)]
    once = resolve_profiles(catalog, _device())
    twice = resolve_profiles(catalog, once)
    assert once.available_profiles == twice.available_profiles
    assert len(twice.available_profiles) == 2


def test_resolve_with_no_matches_sets_empty_tuple() -> None:
    device = resolve_profiles([_profile("a")], _device())
    cleared = resolve_profiles([_profile("x", vendor_ids=("8086",))], device)
    assert cleared.available_profiles == ()


def test_unresolved_device_has_none_and_is_not_mutated() -> None:
    device = _device()
    resolve_profiles([_profile("a")], device)
    assert device.available_profiles is None


def test_usb_axes_use_class_code_and_product_id() -> None:
    profile = UsbProfile(
        codename="logi",
        i18n_desc="Logitech receiver",
        icon_name="input-mouse",
        license="MIT",
        class_codes=("03",),
        vendor_ids=("046d",),
        product_ids=("*",),
        blacklisted_class_codes=(),
        blacklisted_vendor_ids=(),
        blacklisted_product_ids=("c52b",),
        packages=("solaar",),
        check_script="true",
    )
    assert not matches(profile, _usb_device().identifiers())
    assert resolve_profiles([profile], _usb_device()).available_profiles == ()


def test_resolve_all_and_group_by_class() -> None:
    devices = [_device("0000:00:02.0", class_id="0300"), _device("0000:00:1f.3", class_id="0403")]
    resolved = resolve_all([_profile("a", class_ids=("0403",))], devices)
    groups = group_by_class(resolved)
    assert list(groups) == ["0300", "0403"]
    assert groups["0403"][0].available_profiles[0].codename == "a"
    assert groups["0300"][0].available_profiles == ()


def test_find_device_and_profile_raise_not_found() -> None:
    devices = [_device("0000:01:00.0")]
    assert find_device(devices, "0000:01:00.0").sysfs_busid == "0000:01:00.0"
    with pytest.raises(DeviceNotFoundError):
        find_device(devices, "0000:02:00.0")
    with pytest.raises(ProfileNotFoundError):
        find_profile([_profile("a")], "missing")
