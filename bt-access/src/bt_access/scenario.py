"""Offline evaluation scenarios.

A scenario file describes one access check: the evaluator config, the oracle
plugins to build (by registry id), the foreground state, the attribution chain
and the capability being requested. Used by `bt-access-evaluate` and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from bt_access.attribution.chain import AttributionChain
from bt_access.audit import AuditSink
from bt_access.config import AccessConfig, apply_env_overrides, config_from_mapping
from bt_access.errors import AccessConfigError, ScenarioValidationError
from bt_access.foreground import ForegroundIdentity, ForegroundState
from bt_access.oracles.registry import make_oracle
from bt_access.permissions.evaluator import PermissionEvaluator
from bt_access.utils.loading import load_schema, load_yaml_or_json, validate_against_schema

SCENARIO_SCHEMA = "scenario.schema.json"


@dataclass(frozen=True)
class Scenario:
    capability: str
    oracles: Mapping[str, Mapping[str, Any]]
    config: AccessConfig = field(default_factory=AccessConfig)
    scenario_id: Optional[str] = None
    preflight_only: bool = False
    message: str = ""
    foreground: ForegroundIdentity = field(default_factory=ForegroundIdentity)
    chain: Optional[AttributionChain] = None


def scenario_from_mapping(
    obj: Mapping[str, Any], *, where: str = "scenario", use_env: bool = True
) -> Scenario:
    validate_against_schema(
        obj, load_schema(SCENARIO_SCHEMA), where=where, error_cls=ScenarioValidationError
    )

    try:
        config = config_from_mapping(obj.get("config") or {}, where=f"{where}:config")
        if use_env:
            config = apply_env_overrides(config)
    except AccessConfigError as e:
        raise ScenarioValidationError(str(e)) from e

    fg = obj.get("foreground") or {}
    foreground = ForegroundIdentity(**{k: int(v) for k, v in fg.items()})

    records = obj.get("chain")
    chain = AttributionChain.from_records(records) if records else None

    return Scenario(
        capability=str(obj["capability"]),
        oracles={k: dict(v) for k, v in obj["oracles"].items()},
        config=config,
        scenario_id=obj.get("scenario_id"),
        preflight_only=bool(obj.get("preflight_only", False)),
        message=str(obj.get("message") or ""),
        foreground=foreground,
        chain=chain,
    )


def load_scenario(path: Path, *, use_env: bool = True) -> Scenario:
    data = load_yaml_or_json(Path(path), error_cls=ScenarioValidationError)
    return scenario_from_mapping(data, where=str(path), use_env=use_env)


def build_oracles(scenario: Scenario) -> Dict[str, Any]:
    built: Dict[str, Any] = {}
    for role, cfg in scenario.oracles.items():
        try:
            built[role] = make_oracle(cfg)
        except (KeyError, TypeError, ValueError) as e:
            raise ScenarioValidationError(f"oracles.{role}: {e}") from e
    return built


def build_evaluator(
    scenario: Scenario,
    *,
    audit_sink: Optional[AuditSink] = None,
    oracles: Optional[Mapping[str, Any]] = None,
) -> PermissionEvaluator:
    built = dict(oracles) if oracles is not None else build_oracles(scenario)
    return PermissionEvaluator(
        config=scenario.config,
        capabilities=built["capabilities"],
        packages=built["packages"],
        location=built.get("location"),
        profiles=built.get("profiles"),
        companions=built.get("companions"),
        foreground=ForegroundState(scenario.foreground),
        audit_sink=audit_sink,
    )
