from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from bt_access.errors import (
    AccessConfigError,
    HardDenialError,
    IdentityMismatchError,
    ScenarioValidationError,
    SecurityFault,
)
from bt_access.scenario import build_evaluator, load_scenario
from bt_access.types import CapabilityDecision

logger = logging.getLogger(__name__)

EXIT_GRANTED = 0
EXIT_SOFT_DENIED = 1
EXIT_SECURITY_FAULT = 2
EXIT_INVALID_SCENARIO = 3


def _fault_kind(e: SecurityFault) -> str:
    if isinstance(e, IdentityMismatchError):
        return "identity_mismatch"
    if isinstance(e, HardDenialError):
        return "hard_denied"
    return "security_fault"


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Evaluate one Bluetooth access check described by a scenario file."
    )
    parser.add_argument(
        "--scenario",
        type=Path,
        required=True,
        help="Path to a scenario YAML/JSON file.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--no-env",
        action="store_true",
        help="Ignore BT_ACCESS_* environment overrides.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        scenario = load_scenario(args.scenario, use_env=not args.no_env)
        events: List[Dict[str, Any]] = []
        evaluator = build_evaluator(scenario, audit_sink=events.append)
    except (FileNotFoundError, AccessConfigError, ScenarioValidationError) as e:
        print(f"ERROR: invalid scenario {args.scenario}:\n{e}")
        return EXIT_INVALID_SCENARIO

    result: Dict[str, Any] = {
        "scenario_id": scenario.scenario_id,
        "capability": scenario.capability,
        "preflight_only": scenario.preflight_only,
    }
    try:
        decision = evaluator.evaluate(
            scenario.capability,
            scenario.chain,
            preflight_only=scenario.preflight_only,
            message=scenario.message,
        )
    except SecurityFault as e:
        logger.error("security fault: %s", e)
        result.update({"decision": None, "fault": _fault_kind(e), "error": str(e)})
        exit_code = EXIT_SECURITY_FAULT
    else:
        result["decision"] = decision.value
        exit_code = EXIT_GRANTED if decision is CapabilityDecision.GRANTED else EXIT_SOFT_DENIED
    finally:
        evaluator.close()

    result["events"] = events
    print(json.dumps(result, indent=2, sort_keys=True))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
