"""Foreground user / system UI identity state.

Platform callbacks (startup, user switch) call `ForegroundState.update()`;
every caller-gating decision reads one `snapshot()`. Updates replace the whole
snapshot object, so readers never see a half-written pair. A stale snapshot
right after a switch is tolerated: the next decision sees the new one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from bt_access.identity import USER_NULL


@dataclass(frozen=True)
class ForegroundIdentity:
    foreground_user_id: int = USER_NULL
    system_ui_uid: int = USER_NULL

    @property
    def is_empty(self) -> bool:
        return self.foreground_user_id == USER_NULL and self.system_ui_uid == USER_NULL


class ForegroundState:
    def __init__(self, initial: Optional[ForegroundIdentity] = None) -> None:
        self._current = initial or ForegroundIdentity()

    def snapshot(self) -> ForegroundIdentity:
        return self._current

    def update(
        self,
        *,
        foreground_user_id: Optional[int] = None,
        system_ui_uid: Optional[int] = None,
    ) -> ForegroundIdentity:
        changes = {}
        if foreground_user_id is not None:
            changes["foreground_user_id"] = int(foreground_user_id)
        if system_ui_uid is not None:
            changes["system_ui_uid"] = int(system_ui_uid)
        # Single reference swap; readers hold either the old or the new snapshot.
        self._current = replace(self._current, **changes)
        return self._current

    def reset(self) -> None:
        self._current = ForegroundIdentity()
