from __future__ import annotations

from bt_access.config import AccessConfig
from bt_access.foreground import ForegroundIdentity
from bt_access.identity import BLUETOOTH_UID, SYSTEM_UID, uid_for
from bt_access.oracles.static import StaticUserProfileOracle

from fakes import FailingProfileOracle, make_evaluator

APP = 10_050
SYSUI_APP = 10_077


def test_system_app_id_is_granted_for_any_user() -> None:
    ev = make_evaluator()
    assert ev.caller_is_system(SYSTEM_UID, "Tag", "m")
    assert ev.caller_is_system(uid_for(10, SYSTEM_UID), "Tag", "m")
    assert ev.caller_is_system_or_active_user(SYSTEM_UID, "Tag", "m")
    assert ev.caller_is_system_or_foreground_user(SYSTEM_UID, "Tag", "m")


def test_caller_is_system_denies_apps(caplog) -> None:
    ev = make_evaluator()
    assert not ev.caller_is_system(APP, "AdapterService", "factoryReset")
    assert "AdapterService.factoryReset() - Not allowed outside system server" in caplog.text


def test_empty_foreground_denies_other_callers() -> None:
    ev = make_evaluator()
    assert ev.foreground.snapshot().is_empty
    assert not ev.caller_is_system_or_active_user(APP, "Tag", "m")
    assert not ev.caller_is_system_or_foreground_user(APP, "Tag", "m")


def test_foreground_user_is_granted() -> None:
    ev = make_evaluator(foreground=ForegroundIdentity(foreground_user_id=10))
    assert ev.caller_is_system_or_active_user(uid_for(10, APP), "Tag", "m")
    assert not ev.caller_is_system_or_active_user(uid_for(11, APP), "Tag", "m")


def test_system_ui_app_id_is_granted_in_any_user() -> None:
    ev = make_evaluator(foreground=ForegroundIdentity(foreground_user_id=0, system_ui_uid=SYSUI_APP))
    assert ev.caller_is_system_or_active_user(uid_for(11, SYSUI_APP), "Tag", "m")


def test_foreground_update_is_seen_by_next_decision() -> None:
    ev = make_evaluator(foreground=ForegroundIdentity(foreground_user_id=0))
    caller = uid_for(10, APP)
    assert not ev.caller_is_system_or_active_user(caller, "Tag", "m")
    ev.foreground.update(foreground_user_id=10)
    assert ev.caller_is_system_or_active_user(caller, "Tag", "m")
    ev.foreground.reset()
    assert not ev.caller_is_system_or_active_user(caller, "Tag", "m")


def test_managed_profile_of_foreground_user_is_granted() -> None:
    profiles = StaticUserProfileOracle({10: 0})
    ev = make_evaluator(profiles=profiles, foreground=ForegroundIdentity(foreground_user_id=0))
    caller = uid_for(10, APP)

    assert ev.caller_is_system_or_foreground_user(caller, "Tag", "m")
    assert profiles.lookups == [(10, BLUETOOTH_UID)]
    assert not ev.caller_is_system_or_foreground_user(
        caller, "Tag", "m", include_managed_profiles=False
    )


def test_profile_lookup_failure_denies(caplog) -> None:
    profiles = FailingProfileOracle()
    ev = make_evaluator(profiles=profiles, foreground=ForegroundIdentity(foreground_user_id=0))
    assert not ev.caller_is_system_or_foreground_user(uid_for(10, APP), "Tag", "m")
    assert profiles.lookups == [10]
    assert "Exception" in caplog.text


def test_instrumentation_mode_bypasses_system_checks_only() -> None:
    ev = make_evaluator(config=AccessConfig(instrumentation_mode=True))
    assert ev.caller_is_system(APP, "Tag", "m")
    assert ev.caller_is_system_or_foreground_user(APP, "Tag", "m")
    assert not ev.caller_is_system_or_active_user(APP, "Tag", "m")
