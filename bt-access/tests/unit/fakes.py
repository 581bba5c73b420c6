from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

from bt_access.attribution.chain import AttributionChain, AttributionLink
from bt_access.config import AccessConfig
from bt_access.foreground import ForegroundIdentity, ForegroundState
from bt_access.identity import BLUETOOTH_UID
from bt_access.oracles.static import (
    StaticCapabilityOracle,
    StaticCompanionOracle,
    StaticLocationOracle,
    StaticPackageOracle,
    StaticUserProfileOracle,
)
from bt_access.permissions.evaluator import PermissionEvaluator
from bt_access.types import CapabilityDecision

PKG_A = "com.example.a"
PKG_B = "com.example.b"
PKG_C = "com.example.c"
UID_A = 10_001
UID_B = 10_002
UID_C = 10_003

DEFAULT_PACKAGES: Dict[str, Dict[str, Any]] = {
    PKG_A: {"uid": UID_A, "target_sdk": 33},
    PKG_B: {"uid": UID_B, "target_sdk": 30},
    PKG_C: {"uid": UID_C, "target_sdk": 31},
    "com.android.bluetooth": {"uid": BLUETOOTH_UID},
}


def link(package: str, uid: int, *renounced: str) -> AttributionLink:
    return AttributionLink(package_name=package, uid=uid, renounced_permissions=frozenset(renounced))


def chain(*links: AttributionLink) -> AttributionChain:
    return AttributionChain.of(*links)


def make_capabilities(
    grants: Optional[Mapping[int, Mapping[str, Any]]] = None,
    *,
    default: Any = "soft_denied",
) -> StaticCapabilityOracle:
    # The service's own uid is always trusted unless a test says otherwise.
    table: Dict[int, Mapping[str, Any]] = {BLUETOOTH_UID: {"*": "granted"}}
    table.update(grants or {})
    return StaticCapabilityOracle(grants=table, default=default)


def make_packages(extra: Optional[Mapping[str, Mapping[str, Any]]] = None) -> StaticPackageOracle:
    packages = {k: dict(v) for k, v in DEFAULT_PACKAGES.items()}
    for name, entry in (extra or {}).items():
        packages[name] = dict(entry)
    return StaticPackageOracle(packages)


class SlowCapabilityOracle(StaticCapabilityOracle):
    """Blocks in `check()` until released, to exercise the timeout guard."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.release = threading.Event()

    def check(self, capability, attribution, *, for_delivery, message):
        self.release.wait(timeout=5)
        return super().check(
            capability, attribution, for_delivery=for_delivery, message=message
        )


class FailingProfileOracle:
    def __init__(self) -> None:
        self.lookups: List[int] = []

    def get_profile_parent(self, user_id: int, *, on_behalf_of_uid: int) -> Optional[int]:
        self.lookups.append(int(user_id))
        raise RuntimeError("user manager unavailable")


def make_evaluator(
    *,
    config: Optional[AccessConfig] = None,
    capabilities: Optional[StaticCapabilityOracle] = None,
    packages: Optional[StaticPackageOracle] = None,
    location: Optional[StaticLocationOracle] = None,
    profiles: Any = None,
    companions: Optional[StaticCompanionOracle] = None,
    foreground: Optional[ForegroundIdentity] = None,
    events: Optional[List[Dict[str, Any]]] = None,
) -> PermissionEvaluator:
    return PermissionEvaluator(
        config=config or AccessConfig(),
        capabilities=capabilities if capabilities is not None else make_capabilities(),
        packages=packages if packages is not None else make_packages(),
        location=location,
        profiles=profiles if profiles is not None else StaticUserProfileOracle(),
        companions=companions,
        foreground=ForegroundState(foreground),
        audit_sink=events.append if events is not None else None,
    )


GRANTED = CapabilityDecision.GRANTED
SOFT_DENIED = CapabilityDecision.SOFT_DENIED
HARD_DENIED = CapabilityDecision.HARD_DENIED
