"""Error taxonomy for access checks and wire codecs.

Two families matter to callers:

* recoverable errors (`DecodeError`, `OracleUnavailableError`): the request is
  malformed or a collaborator is slow; degrade and continue.
* `SecurityFault` subclasses: the caller is not allowed to do this; the
  in-flight request must be aborted and the fault must never be swallowed.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DecodeErrorKind(str, Enum):
    LENGTH_MISMATCH = "length_mismatch"
    MALFORMED = "malformed"


class DecodeError(ValueError):
    """Raised when wire bytes or address text cannot be decoded."""

    def __init__(
        self,
        kind: DecodeErrorKind,
        detail: str,
        *,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.expected = expected
        self.actual = actual
        super().__init__(f"[{kind.value}] {detail}")


class SecurityFault(RuntimeError):
    """Base class for faults that abort the in-flight request."""


class IdentityMismatchError(SecurityFault):
    def __init__(self, package_name: Optional[str], uid: Optional[int], detail: str = "") -> None:
        self.package_name = package_name
        self.uid = uid
        msg = f"identity spoofing suspected: package {package_name!r} is inaccurate for uid {uid}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class HardDenialError(SecurityFault):
    def __init__(self, capability: str, message: str) -> None:
        self.capability = capability
        self.message = message
        super().__init__(message)


class OracleUnavailableError(RuntimeError):
    """An oracle did not answer in time or could not be reached."""

    def __init__(self, oracle: str, detail: str) -> None:
        self.oracle = oracle
        self.detail = detail
        super().__init__(f"{oracle} unavailable: {detail}")


class PackageNotFoundError(LookupError):
    def __init__(self, package_name: str) -> None:
        self.package_name = package_name
        super().__init__(f"package not found: {package_name}")


class AccessConfigError(RuntimeError):
    pass


class ScenarioValidationError(RuntimeError):
    pass
