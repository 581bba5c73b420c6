"""In-memory oracles.

Configured from plain mappings (usually a scenario YAML file), these stand in
for the platform services when evaluating scenarios offline and in tests.
They record the calls they receive so callers can audit what was asked.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bt_access.attribution.chain import AttributionChain
from bt_access.errors import PackageNotFoundError
from bt_access.identity import app_id_of, uid_for, user_id_of
from bt_access.oracles.registry import register_oracle
from bt_access.types import (
    REQUESTED_PERMISSION_NEVER_FOR_LOCATION,
    CapabilityDecision,
    CompanionAssociation,
    resolve_capability,
)

_WILDCARD = "*"

_SEVERITY = {
    CapabilityDecision.GRANTED: 0,
    CapabilityDecision.SOFT_DENIED: 1,
    CapabilityDecision.HARD_DENIED: 2,
}


def _coerce_decision(value: Any) -> CapabilityDecision:
    if isinstance(value, CapabilityDecision):
        return value
    if isinstance(value, bool):
        return CapabilityDecision.GRANTED if value else CapabilityDecision.SOFT_DENIED
    text = str(value or "").strip().lower()
    aliases = {
        "granted": CapabilityDecision.GRANTED,
        "allow": CapabilityDecision.GRANTED,
        "soft_denied": CapabilityDecision.SOFT_DENIED,
        "soft": CapabilityDecision.SOFT_DENIED,
        "denied": CapabilityDecision.SOFT_DENIED,
        "hard_denied": CapabilityDecision.HARD_DENIED,
        "hard": CapabilityDecision.HARD_DENIED,
    }
    if text not in aliases:
        raise ValueError(f"unknown capability decision: {value!r}")
    return aliases[text]


@dataclass(frozen=True)
class OracleCall:
    capability: str
    attribution_digest: str
    chain_length: int
    for_delivery: bool
    message: str


class StaticCapabilityOracle:
    """Per-uid capability table.

    A chain is decided link by link; the most severe outcome wins, so a single
    hard-denied identity anywhere in the chain hard-denies the whole request.
    """

    def __init__(
        self,
        *,
        grants: Optional[Mapping[int, Mapping[str, Any]]] = None,
        default: Any = CapabilityDecision.SOFT_DENIED,
    ) -> None:
        self._grants: Dict[int, Dict[str, CapabilityDecision]] = {}
        for uid, table in (grants or {}).items():
            self._grants[int(uid)] = {
                (p if p == _WILDCARD else resolve_capability(p)): _coerce_decision(d)
                for p, d in table.items()
            }
        self._default = _coerce_decision(default)
        self.calls: List[OracleCall] = []
        self.noted: List[OracleCall] = []
        self.permission_checks: List[tuple[str, int]] = []

    def _decide_uid(self, capability: str, uid: int) -> CapabilityDecision:
        table = self._grants.get(int(uid), {})
        if capability in table:
            return table[capability]
        if _WILDCARD in table:
            return table[_WILDCARD]
        return self._default

    def check(
        self,
        capability: str,
        attribution: AttributionChain,
        *,
        for_delivery: bool,
        message: str,
    ) -> CapabilityDecision:
        capability = resolve_capability(capability)
        call = OracleCall(
            capability=capability,
            attribution_digest=attribution.digest(),
            chain_length=len(attribution),
            for_delivery=bool(for_delivery),
            message=str(message or ""),
        )
        self.calls.append(call)

        worst = CapabilityDecision.GRANTED
        for link in attribution:
            decision = self._decide_uid(capability, link.uid)
            if _SEVERITY[decision] > _SEVERITY[worst]:
                worst = decision
        if for_delivery and worst is CapabilityDecision.GRANTED:
            self.noted.append(call)
        return worst

    def check_permission(self, capability: str, uid: int) -> bool:
        capability = resolve_capability(capability)
        self.permission_checks.append((capability, int(uid)))
        return self._decide_uid(capability, uid) is CapabilityDecision.GRANTED


@dataclass(frozen=True)
class PackageRecord:
    package_name: str
    uid: int
    users: Optional[frozenset] = None
    requested_permissions: Mapping[str, int] = field(default_factory=dict)
    target_sdk: int = 0

    def installed_for(self, user_id: int) -> bool:
        return self.users is None or int(user_id) in self.users


def _requested_permissions(entry: Mapping[str, Any]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    raw = entry.get("requested_permissions") or {}
    if isinstance(raw, MappingABC):
        for perm, flags in raw.items():
            out[resolve_capability(perm)] = int(flags or 0)
    else:
        for perm in raw:
            out[resolve_capability(perm)] = 0
    for perm in entry.get("never_for_location") or ():
        name = resolve_capability(perm)
        out[name] = out.get(name, 0) | REQUESTED_PERMISSION_NEVER_FOR_LOCATION
    return out


class StaticPackageOracle:
    def __init__(self, packages: Mapping[str, Mapping[str, Any]]) -> None:
        self._packages: Dict[str, PackageRecord] = {}
        for name, entry in packages.items():
            users = entry.get("users")
            self._packages[name] = PackageRecord(
                package_name=name,
                uid=int(entry["uid"]),
                users=frozenset(int(u) for u in users) if users is not None else None,
                requested_permissions=_requested_permissions(entry),
                target_sdk=int(entry.get("target_sdk", 0)),
            )

    def _record(self, package_name: str) -> PackageRecord:
        record = self._packages.get(package_name)
        if record is None:
            raise PackageNotFoundError(package_name)
        return record

    def get_package_uid(self, package_name: str, user_id: int) -> int:
        record = self._record(package_name)
        if not record.installed_for(user_id):
            raise PackageNotFoundError(package_name)
        return uid_for(user_id, record.uid)

    def get_packages_for_uid(self, uid: int) -> Sequence[str]:
        user_id = user_id_of(uid)
        return [
            r.package_name
            for r in self._packages.values()
            if app_id_of(r.uid) == app_id_of(uid) and r.installed_for(user_id)
        ]

    def get_requested_permissions(self, package_name: str) -> Mapping[str, int]:
        return dict(self._record(package_name).requested_permissions)

    def get_target_sdk(self, package_name: str) -> int:
        return self._record(package_name).target_sdk


class StaticLocationOracle:
    def __init__(
        self,
        *,
        enabled: bool = True,
        enabled_users: Optional[Sequence[int]] = None,
    ) -> None:
        self._enabled = bool(enabled)
        self._enabled_users = (
            frozenset(int(u) for u in enabled_users) if enabled_users is not None else None
        )

    def is_enabled_for_user(self, user_id: int) -> bool:
        if self._enabled_users is not None:
            return int(user_id) in self._enabled_users
        return self._enabled


class StaticUserProfileOracle:
    def __init__(self, parents: Optional[Mapping[int, int]] = None) -> None:
        self._parents = {int(k): int(v) for k, v in (parents or {}).items()}
        self.lookups: List[tuple[int, int]] = []

    def get_profile_parent(self, user_id: int, *, on_behalf_of_uid: int) -> Optional[int]:
        self.lookups.append((int(user_id), int(on_behalf_of_uid)))
        return self._parents.get(int(user_id))


class StaticCompanionOracle:
    def __init__(self, associations: Sequence[CompanionAssociation] = ()) -> None:
        self._associations = list(associations)

    def associations(self) -> Sequence[CompanionAssociation]:
        return list(self._associations)


@register_oracle("static_capabilities")
def _make_static_capabilities(cfg: Mapping[str, Any]) -> StaticCapabilityOracle:
    return StaticCapabilityOracle(
        grants=cfg.get("grants") or {},
        default=cfg.get("default", "soft_denied"),
    )


@register_oracle("static_packages")
def _make_static_packages(cfg: Mapping[str, Any]) -> StaticPackageOracle:
    packages = cfg.get("packages") or {}
    if not isinstance(packages, MappingABC):
        raise ValueError("static_packages.packages must be an object")
    return StaticPackageOracle(packages)


@register_oracle("static_location")
def _make_static_location(cfg: Mapping[str, Any]) -> StaticLocationOracle:
    return StaticLocationOracle(
        enabled=bool(cfg.get("enabled", True)),
        enabled_users=cfg.get("enabled_users"),
    )


@register_oracle("static_profiles")
def _make_static_profiles(cfg: Mapping[str, Any]) -> StaticUserProfileOracle:
    return StaticUserProfileOracle(cfg.get("parents") or {})


@register_oracle("static_companions")
def _make_static_companions(cfg: Mapping[str, Any]) -> StaticCompanionOracle:
    return StaticCompanionOracle(
        [
            CompanionAssociation(
                package_name=str(a["package_name"]),
                device_address=a.get("device_address"),
                self_managed=bool(a.get("self_managed", False)),
            )
            for a in cfg.get("associations") or ()
        ]
    )
