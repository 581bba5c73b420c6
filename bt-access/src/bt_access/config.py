"""Evaluator configuration.

`instrumentation_mode` is the single switch for the test/instrumentation
override: when set, capability checks and system-caller checks are granted
without consulting any oracle, and renounce authorization is not checked.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from bt_access.errors import AccessConfigError
from bt_access.identity import BLUETOOTH_UID
from bt_access.utils.loading import load_schema, load_yaml_or_json, validate_against_schema

CONFIG_SCHEMA = "access_config.schema.json"

_BOOL_TRUE = {"1", "true", "on", "yes"}
_BOOL_FALSE = {"0", "false", "off", "no"}


@dataclass(frozen=True)
class AccessConfig:
    instrumentation_mode: bool = False
    strict_location_disavowal: bool = False
    oracle_timeout_ms: Optional[int] = None
    service_uid: int = BLUETOOTH_UID
    service_package: str = "com.android.bluetooth"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _env_bool(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    text = raw.strip().lower()
    if text in _BOOL_TRUE:
        return True
    if text in _BOOL_FALSE:
        return False
    raise AccessConfigError(f"{name} must be a boolean (got {raw!r})")


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise AccessConfigError(f"{name} must be an integer (got {raw!r})") from e


def apply_env_overrides(cfg: AccessConfig) -> AccessConfig:
    changes: Dict[str, Any] = {}
    instrumentation = _env_bool("BT_ACCESS_INSTRUMENTATION_MODE")
    if instrumentation is not None:
        changes["instrumentation_mode"] = instrumentation
    strict = _env_bool("BT_ACCESS_STRICT_LOCATION_DISAVOWAL")
    if strict is not None:
        changes["strict_location_disavowal"] = strict
    timeout_ms = _env_int("BT_ACCESS_ORACLE_TIMEOUT_MS")
    if timeout_ms is not None:
        if timeout_ms <= 0:
            raise AccessConfigError("BT_ACCESS_ORACLE_TIMEOUT_MS must be > 0")
        changes["oracle_timeout_ms"] = timeout_ms
    return replace(cfg, **changes) if changes else cfg


def config_from_mapping(obj: Mapping[str, Any], *, where: str = "config") -> AccessConfig:
    validate_against_schema(
        obj, load_schema(CONFIG_SCHEMA), where=where, error_cls=AccessConfigError
    )
    known = {f.name for f in fields(AccessConfig)}
    return AccessConfig(**{k: v for k, v in obj.items() if k in known})


def load_access_config(path: Optional[Path] = None, *, use_env: bool = True) -> AccessConfig:
    if path is None:
        cfg = AccessConfig()
    else:
        data = load_yaml_or_json(Path(path), error_cls=AccessConfigError)
        cfg = config_from_mapping(data, where=str(path))
    return apply_env_overrides(cfg) if use_env else cfg
