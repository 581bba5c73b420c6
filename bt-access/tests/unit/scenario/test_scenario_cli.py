from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import yaml

from bt_access.errors import ScenarioValidationError
from bt_access.scenario import build_evaluator, load_scenario
from bt_access.types import CapabilityDecision

EXAMPLES = Path(__file__).resolve().parents[3] / "examples"


def _run_cli(module, argv: list[str]) -> int:
    old_argv = sys.argv
    try:
        sys.argv = argv
        return module.main()
    finally:
        sys.argv = old_argv


def _write(tmp_path: Path, data: dict) -> Path:
    p = tmp_path / "scenario.yaml"
    p.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return p


def _base_scenario() -> dict:
    return {
        "capability": "connect",
        "chain": [{"package_name": "com.example.a", "uid": 10001}],
        "oracles": {
            "capabilities": {
                "plugin": "static_capabilities",
                "grants": {1002: {"*": "granted"}, 10001: {"connect": "granted"}},
            },
            "packages": {
                "plugin": "static_packages",
                "packages": {"com.example.a": {"uid": 10001}},
            },
        },
    }


def test_example_scenarios_load() -> None:
    scenario = load_scenario(EXAMPLES / "scan_renounced_location.yaml", use_env=False)
    assert scenario.scenario_id == "scan_renounced_by_middle_app"
    assert len(scenario.chain) == 2
    assert scenario.foreground.foreground_user_id == 0

    evaluator = build_evaluator(scenario)
    decision = evaluator.evaluate(
        scenario.capability, scenario.chain, preflight_only=scenario.preflight_only
    )
    assert decision is CapabilityDecision.SOFT_DENIED

    scenario = load_scenario(EXAMPLES / "connect_granted.json", use_env=False)
    evaluator = build_evaluator(scenario)
    assert evaluator.evaluate("connect", scenario.chain, preflight_only=False) is CapabilityDecision.GRANTED


def test_invalid_scenario_is_rejected(tmp_path: Path) -> None:
    data = _base_scenario()
    del data["oracles"]["packages"]
    with pytest.raises(ScenarioValidationError, match="packages"):
        load_scenario(_write(tmp_path, data), use_env=False)


def test_invalid_embedded_config_is_rejected(tmp_path: Path) -> None:
    data = _base_scenario()
    data["config"] = {"oracle_timeout_ms": "fast"}
    with pytest.raises(ScenarioValidationError):
        load_scenario(_write(tmp_path, data), use_env=False)


def test_unknown_plugin_is_rejected(tmp_path: Path) -> None:
    data = _base_scenario()
    data["oracles"]["location"] = {"plugin": "gps_from_the_sky"}
    scenario = load_scenario(_write(tmp_path, data), use_env=False)
    with pytest.raises(ScenarioValidationError, match="oracles.location"):
        build_evaluator(scenario)


def test_evaluate_cli_exit_codes(tmp_path: Path, capsys) -> None:
    from bt_access.cli import evaluate

    granted = EXAMPLES / "connect_granted.json"
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(granted), "--no-env"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["decision"] == "granted"
    assert [e["decision"] for e in out["events"]] == ["granted"]

    denied = EXAMPLES / "scan_renounced_location.yaml"
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(denied), "--no-env"]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out["decision"] == "soft_denied"
    assert out["events"][0]["disavowal_source"] == "renounced"

    spoofed = _base_scenario()
    spoofed["chain"][0]["uid"] = 10002
    path = _write(tmp_path, spoofed)
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(path), "--no-env"]) == 2
    out = json.loads(capsys.readouterr().out)
    assert out["fault"] == "identity_mismatch"
    assert out["decision"] is None


def test_evaluate_cli_hard_denial(tmp_path: Path, capsys) -> None:
    from bt_access.cli import evaluate

    data = _base_scenario()
    data["oracles"]["capabilities"]["grants"][10001] = {"connect": "hard_denied"}
    path = _write(tmp_path, data)
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(path), "--no-env"]) == 2
    assert json.loads(capsys.readouterr().out)["fault"] == "hard_denied"


def test_evaluate_cli_instrumentation_env(tmp_path: Path, monkeypatch, capsys) -> None:
    from bt_access.cli import evaluate

    data = _base_scenario()
    data["oracles"]["capabilities"]["grants"][10001] = {"connect": "soft_denied"}
    path = _write(tmp_path, data)
    monkeypatch.setenv("BT_ACCESS_INSTRUMENTATION_MODE", "1")
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(path)]) == 0
    assert json.loads(capsys.readouterr().out)["events"][0]["reason"] == "instrumentation mode"


def test_evaluate_cli_invalid_scenario(tmp_path: Path, capsys) -> None:
    from bt_access.cli import evaluate

    path = _write(tmp_path, {"capability": "scan"})
    assert _run_cli(evaluate, ["bt-access-evaluate", "--scenario", str(path), "--no-env"]) == 3
    assert "invalid scenario" in capsys.readouterr().out


def test_address_cli(capsys) -> None:
    from bt_access.cli import address

    assert _run_cli(address, ["bt-access-address", "display", "001122aabbcc"]) == 0
    assert capsys.readouterr().out.strip() == "00:11:22:AA:BB:CC"

    assert _run_cli(address, ["bt-access-address", "redact", "00:11:22:aa:bb:cc"]) == 0
    assert capsys.readouterr().out.strip() == "XX:XX:XX:XX:BB:CC"

    assert _run_cli(address, ["bt-access-address", "display", "0011"]) == 1
    assert "length_mismatch" in capsys.readouterr().err

    battery = "0000180f-0000-1000-8000-00805f9b34fb"
    assert _run_cli(address, ["bt-access-address", "uuids", "--encode", battery]) == 0
    packed = capsys.readouterr().out.strip()
    assert packed == "0000180f00001000800000805f9b34fb"
    assert _run_cli(address, ["bt-access-address", "uuids", "--decode", packed]) == 0
    assert capsys.readouterr().out.strip() == battery
