"""Access audit events (v0 contract).

Every evaluator decision can be reported to an audit sink as a flat,
JSON-serializable event. Events never contain the attribution chain itself,
only its stable digest, and never contain hardware addresses.
"""

from __future__ import annotations

import time
from collections.abc import Mapping as MappingABC
from typing import Any, Callable, Dict, List, Mapping, Optional

from bt_access.attribution.chain import AttributionChain
from bt_access.types import CapabilityDecision

ACCESS_EVENT_SCHEMA_VERSION = "0"

ALLOWED_PHASES_V0 = {"preflight", "delivery"}
ALLOWED_DECISIONS_V0 = {d.value for d in CapabilityDecision}

AuditSink = Callable[[Dict[str, Any]], None]


def now_ms() -> int:
    return int(time.time() * 1000)


def make_access_event(
    *,
    capability: str,
    decision: CapabilityDecision,
    preflight_only: bool,
    reason: str,
    chain: Optional[AttributionChain],
    disavowal_source: Optional[str] = None,
    ts_ms: Optional[int] = None,
    **extra: Any,
) -> Dict[str, Any]:
    event: Dict[str, Any] = {
        "capability": capability,
        "decision": decision.value,
        "phase": "preflight" if preflight_only else "delivery",
        "reason": reason,
        "attribution_digest": chain.digest() if chain is not None else None,
        "chain_length": len(chain) if chain is not None else 0,
        "disavowal_source": disavowal_source,
        "ts_ms": int(ts_ms) if ts_ms is not None else now_ms(),
        "event_schema_version": ACCESS_EVENT_SCHEMA_VERSION,
    }
    if extra:
        event.update(extra)
    return event


def access_event_v0_errors(event: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []

    required = [
        "capability",
        "decision",
        "phase",
        "reason",
        "attribution_digest",
        "chain_length",
        "ts_ms",
        "event_schema_version",
    ]
    for key in required:
        if key not in event:
            errors.append(f"missing field: {key}")

    capability = event.get("capability")
    if not isinstance(capability, str) or not capability:
        errors.append("capability must be a non-empty string")

    if event.get("decision") not in ALLOWED_DECISIONS_V0:
        errors.append(f"decision must be one of {sorted(ALLOWED_DECISIONS_V0)}")

    if event.get("phase") not in ALLOWED_PHASES_V0:
        errors.append("phase must be 'preflight' or 'delivery'")

    reason = event.get("reason")
    if not isinstance(reason, str) or not reason:
        errors.append("reason must be a non-empty string")

    digest = event.get("attribution_digest")
    if digest is not None and (not isinstance(digest, str) or len(digest) != 64):
        errors.append("attribution_digest must be a sha256 hex string or null")

    chain_length = event.get("chain_length")
    if not isinstance(chain_length, int) or chain_length < 0:
        errors.append("chain_length must be an int >= 0")

    ts_ms = event.get("ts_ms")
    if not isinstance(ts_ms, int) or ts_ms < 0:
        errors.append("ts_ms must be an int >= 0")

    if event.get("event_schema_version") != ACCESS_EVENT_SCHEMA_VERSION:
        errors.append(f"event_schema_version must be '{ACCESS_EVENT_SCHEMA_VERSION}'")

    return errors


def assert_access_event_v0(event: Mapping[str, Any]) -> None:
    if not isinstance(event, MappingABC):
        raise ValueError("access event must be an object")
    errors = access_event_v0_errors(event)
    if errors:
        raise ValueError("AccessEvent v0 contract violation: " + "; ".join(errors))
