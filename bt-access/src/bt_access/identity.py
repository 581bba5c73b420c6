"""Caller identity helpers.

Android multi-user uids encode both the user and the app:
`uid = user_id * PER_USER_RANGE + app_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bt_access.errors import PackageNotFoundError
from bt_access.oracles.base import PackageOracle
from bt_access.types import IdentityVerdict

logger = logging.getLogger(__name__)

PER_USER_RANGE = 100_000
ROOT_UID = 0
SYSTEM_UID = 1000
BLUETOOTH_UID = 1002
USER_NULL = -10_000


def user_id_of(uid: int) -> int:
    return int(uid) // PER_USER_RANGE


def app_id_of(uid: int) -> int:
    return int(uid) % PER_USER_RANGE


def uid_for(user_id: int, app_id: int) -> int:
    return int(user_id) * PER_USER_RANGE + app_id_of(app_id)


def normalize_calling_uid(uid: int) -> int:
    """Root callers are treated as the system server."""

    return SYSTEM_UID if int(uid) == ROOT_UID else int(uid)


@dataclass(frozen=True)
class CallerIdentity:
    uid: int
    pid: Optional[int] = None

    @property
    def user_id(self) -> int:
        return user_id_of(self.uid)

    @property
    def app_id(self) -> int:
        return app_id_of(self.uid)

    def uid_pid_string(self) -> str:
        pid = "" if self.pid is None else str(self.pid)
        return f"uid/pid={self.uid}/{pid}"


class IdentityVerifier:
    """IdentityOracle adapter over a PackageOracle.

    A package name is accurate for a uid when the package resolves, under the
    caller's own user, to exactly that uid.
    """

    def __init__(self, packages: PackageOracle) -> None:
        self._packages = packages

    def verify(self, package_name: str, calling_uid: int, user_id: int) -> IdentityVerdict:
        try:
            package_uid = self._packages.get_package_uid(package_name, user_id)
        except PackageNotFoundError:
            logger.error(
                "isPackageNameAccurate: App with package name %s does not exist", package_name
            )
            return IdentityVerdict.NOT_FOUND
        if int(package_uid) != int(calling_uid):
            logger.error(
                "isPackageNameAccurate: App with package name %s is UID %s but caller is %s",
                package_name,
                package_uid,
                calling_uid,
            )
            return IdentityVerdict.MISMATCH
        return IdentityVerdict.VERIFIED

    def is_accurate(self, package_name: Optional[str], calling_uid: int) -> bool:
        if not package_name:
            return False
        verdict = self.verify(package_name, calling_uid, user_id_of(calling_uid))
        return verdict is IdentityVerdict.VERIFIED
