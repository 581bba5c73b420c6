"""System / foreground caller gating.

Some operations are only allowed from the system server, System UI, or apps
running as the current foreground user (optionally including managed
profiles whose parent is the foreground user).
"""

from __future__ import annotations

import logging
from typing import Optional

from bt_access.config import AccessConfig
from bt_access.foreground import ForegroundIdentity, ForegroundState
from bt_access.identity import SYSTEM_UID, USER_NULL, app_id_of, user_id_of
from bt_access.oracles.base import UserProfileOracle

logger = logging.getLogger(__name__)


def _is_system_app(uid: int) -> bool:
    return app_id_of(SYSTEM_UID) == app_id_of(uid)


def _is_system_ui(uid: int, fg: ForegroundIdentity) -> bool:
    if fg.system_ui_uid == USER_NULL:
        return False
    return app_id_of(fg.system_ui_uid) == app_id_of(uid)


class CallerGate:
    def __init__(
        self,
        config: AccessConfig,
        foreground: ForegroundState,
        profiles: Optional[UserProfileOracle] = None,
    ) -> None:
        self._config = config
        self._foreground = foreground
        self._profiles = profiles

    def _system_or_active_user(self, uid: int, fg: ForegroundIdentity) -> bool:
        return (
            fg.foreground_user_id == user_id_of(uid)
            or _is_system_ui(uid, fg)
            or _is_system_app(uid)
        )

    def caller_is_system(self, uid: int, tag: str, method: str) -> bool:
        if self._config.instrumentation_mode:
            return True
        res = _is_system_app(uid)
        if not res:
            logger.warning("%s.%s() - Not allowed outside system server", tag, method)
        return res

    def caller_is_system_or_active_user(self, uid: int, tag: str, method: str) -> bool:
        res = self._system_or_active_user(uid, self._foreground.snapshot())
        if not res:
            logger.warning(
                "%s.%s() - Not allowed for non-active user and non-system user", tag, method
            )
        return res

    def _profile_parent(self, user_id: int) -> int:
        if self._profiles is None:
            return USER_NULL
        # Resolve with the service's own identity, not the caller's.
        parent = self._profiles.get_profile_parent(
            user_id, on_behalf_of_uid=self._config.service_uid
        )
        return USER_NULL if parent is None else int(parent)

    def caller_is_system_or_foreground_user(
        self,
        uid: int,
        tag: str,
        method: str,
        *,
        include_managed_profiles: bool = True,
    ) -> bool:
        if self._config.instrumentation_mode:
            return True

        fg = self._foreground.snapshot()
        if not include_managed_profiles:
            return self.caller_is_system_or_active_user(uid, tag, method)

        try:
            parent_user = self._profile_parent(user_id_of(uid))
            res = self._system_or_active_user(uid, fg) or (
                parent_user != USER_NULL and fg.foreground_user_id == parent_user
            )
        except Exception as e:
            logger.error("checkCallerAllowManagedProfiles: Exception ex=%r", e)
            res = False

        if not res:
            logger.warning(
                "%s.%s() - Not allowed for non-active user and non-system and non-managed user",
                tag,
                method,
            )
        return res
