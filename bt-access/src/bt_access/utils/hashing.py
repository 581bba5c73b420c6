"""Stable digests for audit events.

Access events carry a digest of the attribution chain instead of the chain
itself; the digest must not depend on dict ordering, the run or the host.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def json_dumps_canonical(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def stable_sha256(obj: Any) -> str:
    return hashlib.sha256(json_dumps_canonical(obj).encode("utf-8")).hexdigest()
