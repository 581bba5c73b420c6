"""Oracle interfaces (external collaborators) and in-memory implementations.

The stable entrypoint for interfaces is `bt_access.oracles.base`; scenario
files build implementations through `bt_access.oracles.registry.make_oracle`.
"""

from __future__ import annotations

from bt_access.oracles.base import (
    CapabilityOracle,
    CompanionOracle,
    IdentityOracle,
    LocationOracle,
    PackageOracle,
    UserProfileOracle,
)

__all__ = [
    "CapabilityOracle",
    "CompanionOracle",
    "IdentityOracle",
    "LocationOracle",
    "PackageOracle",
    "UserProfileOracle",
]
