"""Oracle interfaces consumed by the access checks.

Oracles are external collaborators: permission storage, package/identity
resolution, location settings, user profiles and companion associations all
live outside this package. Implementations only need to satisfy these
protocols; `bt_access.oracles.static` provides in-memory ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Protocol, Sequence, runtime_checkable

from bt_access.types import CapabilityDecision, CompanionAssociation, IdentityVerdict

if TYPE_CHECKING:
    from bt_access.attribution.chain import AttributionChain


@runtime_checkable
class PackageOracle(Protocol):
    def get_package_uid(self, package_name: str, user_id: int) -> int:
        """Return the uid of `package_name` for `user_id` or raise PackageNotFoundError."""
        ...

    def get_packages_for_uid(self, uid: int) -> Sequence[str]: ...

    def get_requested_permissions(self, package_name: str) -> Mapping[str, int]:
        """Requested permission name -> request flags."""
        ...

    def get_target_sdk(self, package_name: str) -> int: ...


@runtime_checkable
class IdentityOracle(Protocol):
    def verify(self, package_name: str, calling_uid: int, user_id: int) -> IdentityVerdict: ...


@runtime_checkable
class CapabilityOracle(Protocol):
    def check(
        self,
        capability: str,
        attribution: "AttributionChain",
        *,
        for_delivery: bool,
        message: str,
    ) -> CapabilityDecision:
        """Decide a capability for a full attribution chain.

        `for_delivery=True` records an access note; preflight probes pass False.
        """
        ...

    def check_permission(self, capability: str, uid: int) -> bool: ...


@runtime_checkable
class LocationOracle(Protocol):
    def is_enabled_for_user(self, user_id: int) -> bool: ...


@runtime_checkable
class UserProfileOracle(Protocol):
    def get_profile_parent(self, user_id: int, *, on_behalf_of_uid: int) -> Optional[int]: ...


@runtime_checkable
class CompanionOracle(Protocol):
    def associations(self) -> Sequence[CompanionAssociation]: ...
