from __future__ import annotations

import pytest

from bt_access.attribution.walker import (
    SOURCE_LOOKUP_FAILED,
    SOURCE_MANIFEST,
    SOURCE_RENOUNCED,
    AttributionChainWalker,
)
from bt_access.errors import IdentityMismatchError
from bt_access.types import (
    ACCESS_FINE_LOCATION,
    BLUETOOTH_SCAN,
    RENOUNCE_PERMISSIONS,
    REQUESTED_PERMISSION_NEVER_FOR_LOCATION,
)

from fakes import (
    PKG_A,
    PKG_B,
    PKG_C,
    UID_A,
    UID_B,
    UID_C,
    chain,
    link,
    make_capabilities,
    make_packages,
)


def _three_links():
    return chain(
        link(PKG_A, UID_A),
        link(PKG_B, UID_B, BLUETOOTH_SCAN),
        link(PKG_C, UID_C),
    )


def test_authorized_middle_renunciation_disavows() -> None:
    caps = make_capabilities({UID_B: {RENOUNCE_PERMISSIONS: "granted"}})
    walker = AttributionChainWalker(caps, make_packages())

    result = walker.is_disavowed(BLUETOOTH_SCAN, _three_links())
    assert result
    assert result.source == SOURCE_RENOUNCED
    assert result.link_index == 1
    assert (RENOUNCE_PERMISSIONS, UID_B) in caps.permission_checks


def test_unauthorized_renunciation_is_ignored() -> None:
    walker = AttributionChainWalker(make_capabilities(), make_packages())
    assert not walker.is_disavowed(BLUETOOTH_SCAN, _three_links())


def test_test_mode_skips_renounce_authorization() -> None:
    caps = make_capabilities()
    walker = AttributionChainWalker(caps, make_packages(), in_test_mode=True)
    assert walker.is_disavowed(BLUETOOTH_SCAN, _three_links())
    assert caps.permission_checks == []


def test_manifest_flag_on_last_link_disavows() -> None:
    packages = make_packages(
        {PKG_C: {"uid": UID_C, "requested_permissions": {BLUETOOTH_SCAN: REQUESTED_PERMISSION_NEVER_FOR_LOCATION}}}
    )
    walker = AttributionChainWalker(make_capabilities(), packages)
    c = chain(link(PKG_A, UID_A), link(PKG_C, UID_C))

    result = walker.has_disavowed_location_for_scan(c)
    assert result.source == SOURCE_MANIFEST
    assert result.link_index == 1


def test_manifest_flag_on_head_only_does_not_count() -> None:
    packages = make_packages({PKG_A: {"uid": UID_A, "never_for_location": ["scan"]}})
    walker = AttributionChainWalker(make_capabilities(), packages)
    c = chain(link(PKG_A, UID_A), link(PKG_B, UID_B))
    assert not walker.has_disavowed_location_for_scan(c)


def test_renounced_fine_location_disavows_scan_location() -> None:
    caps = make_capabilities({UID_A: {RENOUNCE_PERMISSIONS: "granted"}})
    walker = AttributionChainWalker(caps, make_packages())
    c = chain(link(PKG_A, UID_A, ACCESS_FINE_LOCATION))
    assert walker.has_disavowed_location_for_scan(c).source == SOURCE_RENOUNCED


def test_unknown_last_package_fails_open(caplog) -> None:
    walker = AttributionChainWalker(make_capabilities(), make_packages())
    c = chain(link(PKG_A, UID_A), link("com.example.gone", 10_099))

    result = walker.has_disavowed_location_for_scan(c)
    assert not result
    assert result.source == SOURCE_LOOKUP_FAILED
    assert "Could not find package for disavowal check" in caplog.text


def test_unknown_last_package_fails_closed_when_strict() -> None:
    walker = AttributionChainWalker(
        make_capabilities(), make_packages(), strict_location_disavowal=True
    )
    c = chain(link(PKG_A, UID_A), link("com.example.gone", 10_099))
    with pytest.raises(IdentityMismatchError):
        walker.has_disavowed_location_for_scan(c)
