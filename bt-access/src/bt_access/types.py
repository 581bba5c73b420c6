from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

ACCESS_COARSE_LOCATION = "android.permission.ACCESS_COARSE_LOCATION"
ACCESS_FINE_LOCATION = "android.permission.ACCESS_FINE_LOCATION"
BLUETOOTH_ADVERTISE = "android.permission.BLUETOOTH_ADVERTISE"
BLUETOOTH_CONNECT = "android.permission.BLUETOOTH_CONNECT"
BLUETOOTH_SCAN = "android.permission.BLUETOOTH_SCAN"
BLUETOOTH_PRIVILEGED = "android.permission.BLUETOOTH_PRIVILEGED"
LOCAL_MAC_ADDRESS = "android.permission.LOCAL_MAC_ADDRESS"
DUMP = "android.permission.DUMP"
RENOUNCE_PERMISSIONS = "android.permission.RENOUNCE_PERMISSIONS"

# PackageInfo.REQUESTED_PERMISSION_NEVER_FOR_LOCATION
REQUESTED_PERMISSION_NEVER_FOR_LOCATION = 0x00010000

CAPABILITY_ALIASES = {
    "scan": BLUETOOTH_SCAN,
    "connect": BLUETOOTH_CONNECT,
    "advertise": BLUETOOTH_ADVERTISE,
    "fine_location": ACCESS_FINE_LOCATION,
    "coarse_location": ACCESS_COARSE_LOCATION,
    "privileged": BLUETOOTH_PRIVILEGED,
}


def resolve_capability(name: str) -> str:
    """Map short capability names ("scan") to full permission names."""

    key = str(name or "").strip()
    if not key:
        raise ValueError("capability name must be a non-empty string")
    return CAPABILITY_ALIASES.get(key.lower(), key)


class CapabilityDecision(str, Enum):
    GRANTED = "granted"
    SOFT_DENIED = "soft_denied"
    HARD_DENIED = "hard_denied"


class IdentityVerdict(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class CompanionAssociation:
    package_name: str
    device_address: Optional[str]
    self_managed: bool = False
