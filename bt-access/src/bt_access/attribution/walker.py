"""Attribution chain walker.

Looks for a disavowal of a capability anywhere along an attribution chain:

1. a link that renounced the capability and is authorized to renounce
   (holds RENOUNCE_PERMISSIONS, or test mode is on);
2. failing that, the last link's installed manifest requesting the declared
   capability with the never-for-location flag.

`is_renounced` runs step 1 alone; step 2 only matters for location.

The walker is pure apart from its oracle lookups and can be shared between
concurrent callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bt_access.attribution.chain import AttributionChain
from bt_access.errors import IdentityMismatchError, PackageNotFoundError
from bt_access.oracles.base import CapabilityOracle, PackageOracle
from bt_access.types import (
    ACCESS_FINE_LOCATION,
    BLUETOOTH_SCAN,
    RENOUNCE_PERMISSIONS,
    REQUESTED_PERMISSION_NEVER_FOR_LOCATION,
)

logger = logging.getLogger(__name__)

SOURCE_RENOUNCED = "renounced"
SOURCE_MANIFEST = "manifest"
SOURCE_NONE = "none"
SOURCE_LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class Disavowal:
    disavowed: bool
    source: str = SOURCE_NONE
    link_index: Optional[int] = None

    def __bool__(self) -> bool:
        return self.disavowed


class AttributionChainWalker:
    def __init__(
        self,
        capabilities: CapabilityOracle,
        packages: PackageOracle,
        *,
        in_test_mode: bool = False,
        strict_location_disavowal: bool = False,
    ) -> None:
        self._capabilities = capabilities
        self._packages = packages
        self._in_test_mode = bool(in_test_mode)
        self._strict = bool(strict_location_disavowal)

    def _may_renounce(self, uid: int) -> bool:
        if self._in_test_mode:
            return True
        return bool(self._capabilities.check_permission(RENOUNCE_PERMISSIONS, uid))

    def is_renounced(self, capability: str, chain: AttributionChain) -> Disavowal:
        """Renunciation walk only; manifest flags are not consulted."""

        index: Optional[int] = 0
        while index is not None:
            link = chain.link(index)
            if link.renounces(capability) and self._may_renounce(link.uid):
                return Disavowal(True, SOURCE_RENOUNCED, index)
            index = chain.next_index(index)
        return Disavowal(False)

    def is_disavowed(
        self,
        renounced_capability: str,
        chain: AttributionChain,
        *,
        declared_capability: Optional[str] = None,
    ) -> Disavowal:
        renounced = self.is_renounced(renounced_capability, chain)
        if renounced:
            return renounced

        last_index = len(chain) - 1
        declared = declared_capability or renounced_capability
        package_name = chain.link(last_index).package_name
        try:
            if not package_name:
                raise PackageNotFoundError(str(package_name))
            requested = self._packages.get_requested_permissions(package_name)
        except PackageNotFoundError:
            if self._strict:
                raise IdentityMismatchError(
                    package_name,
                    chain.link(last_index).uid,
                    "cannot resolve package for disavowal check",
                ) from None
            logger.warning("Could not find package for disavowal check: %s", package_name)
            return Disavowal(False, SOURCE_LOOKUP_FAILED, last_index)

        flags = requested.get(declared)
        if flags is not None and int(flags) & REQUESTED_PERMISSION_NEVER_FOR_LOCATION:
            return Disavowal(True, SOURCE_MANIFEST, last_index)
        return Disavowal(False)

    def has_disavowed_location_for_scan(self, chain: AttributionChain) -> Disavowal:
        """True when fine location was renounced along the chain, or the last
        package declared BLUETOOTH_SCAN with neverForLocation."""

        return self.is_disavowed(
            ACCESS_FINE_LOCATION, chain, declared_capability=BLUETOOTH_SCAN
        )
