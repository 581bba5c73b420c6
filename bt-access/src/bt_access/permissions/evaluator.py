"""Permission evaluator.

Central decision entry point for delegated-identity capability checks.

A single `evaluate()` call runs:

    START -> instrumentation_mode          -> GRANTED (no oracle consulted)
    START -> CHECK_IDENTITY (chain head)   -> IdentityMismatchError
          -> CHECK_RENOUNCED (chain walk)  -> SOFT_DENIED
          -> QUERY_ORACLE                  -> GRANTED | SOFT_DENIED | HardDenialError
                                             (timeout -> SOFT_DENIED)

There are no retries; a denial is final for that call.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from bt_access.attribution.chain import AttributionChain, AttributionLink
from bt_access.attribution.walker import AttributionChainWalker, Disavowal
from bt_access.audit import AuditSink, make_access_event
from bt_access.codec.address import HardwareAddress, addresses_equal, to_display_string
from bt_access.config import AccessConfig
from bt_access.errors import (
    HardDenialError,
    IdentityMismatchError,
    OracleUnavailableError,
    PackageNotFoundError,
)
from bt_access.foreground import ForegroundState
from bt_access.identity import IdentityVerifier, normalize_calling_uid, user_id_of
from bt_access.oracles.base import (
    CapabilityOracle,
    CompanionOracle,
    LocationOracle,
    PackageOracle,
    UserProfileOracle,
)
from bt_access.oracles.guard import OracleGuard
from bt_access.permissions.callers import CallerGate
from bt_access.types import (
    ACCESS_COARSE_LOCATION,
    ACCESS_FINE_LOCATION,
    BLUETOOTH_ADVERTISE,
    BLUETOOTH_CONNECT,
    BLUETOOTH_PRIVILEGED,
    BLUETOOTH_SCAN,
    DUMP,
    LOCAL_MAC_ADDRESS,
    CapabilityDecision,
    IdentityVerdict,
    resolve_capability,
)

logger = logging.getLogger(__name__)

LOCATION_CHECK_MESSAGE = "Bluetooth location check"


class PermissionEvaluator:
    def __init__(
        self,
        *,
        config: AccessConfig,
        capabilities: CapabilityOracle,
        packages: PackageOracle,
        location: Optional[LocationOracle] = None,
        profiles: Optional[UserProfileOracle] = None,
        companions: Optional[CompanionOracle] = None,
        foreground: Optional[ForegroundState] = None,
        audit_sink: Optional[AuditSink] = None,
    ) -> None:
        self._config = config
        self._capabilities = capabilities
        self._packages = packages
        self._location = location
        self._companions = companions
        self._foreground = foreground or ForegroundState()
        self._audit_sink = audit_sink
        self._guard = OracleGuard(config.oracle_timeout_ms)
        self._identity = IdentityVerifier(packages)
        self._walker = AttributionChainWalker(
            capabilities,
            packages,
            in_test_mode=config.instrumentation_mode,
            strict_location_disavowal=config.strict_location_disavowal,
        )
        self._callers = CallerGate(config, self._foreground, profiles)

    @property
    def config(self) -> AccessConfig:
        return self._config

    @property
    def foreground(self) -> ForegroundState:
        return self._foreground

    @property
    def walker(self) -> AttributionChainWalker:
        return self._walker

    def service_link(self) -> AttributionLink:
        return AttributionLink(
            package_name=self._config.service_package, uid=self._config.service_uid
        )

    def effective_attribution(self, chain: Optional[AttributionChain]) -> AttributionChain:
        """The service's own identity acting on behalf of `chain`."""

        if chain is None:
            return AttributionChain.of(self.service_link())
        return chain.compose(self.service_link())

    # ------------------------------------------------------------------
    # core decision

    def _emit(
        self,
        capability: str,
        decision: CapabilityDecision,
        *,
        preflight_only: bool,
        reason: str,
        chain: Optional[AttributionChain],
        disavowal: Optional[Disavowal] = None,
    ) -> None:
        if self._audit_sink is None:
            return
        self._audit_sink(
            make_access_event(
                capability=capability,
                decision=decision,
                preflight_only=preflight_only,
                reason=reason,
                chain=chain,
                disavowal_source=disavowal.source if disavowal is not None else None,
            )
        )

    def evaluate(
        self,
        capability: str,
        chain: Optional[AttributionChain] = None,
        *,
        preflight_only: bool,
        message: str = "",
    ) -> CapabilityDecision:
        capability = resolve_capability(capability)

        if self._config.instrumentation_mode:
            self._emit(
                capability,
                CapabilityDecision.GRANTED,
                preflight_only=preflight_only,
                reason="instrumentation mode",
                chain=chain,
            )
            return CapabilityDecision.GRANTED

        if chain is not None:
            head = chain.head
            if not self._identity.is_accurate(head.package_name, head.uid):
                self._emit(
                    capability,
                    CapabilityDecision.HARD_DENIED,
                    preflight_only=preflight_only,
                    reason="identity mismatch",
                    chain=chain,
                )
                raise IdentityMismatchError(head.package_name, head.uid)

            disavowal = self._walker.is_renounced(capability, chain)
            if disavowal:
                logger.warning(
                    "%s disavowed (%s) by %s", capability, disavowal.source, chain.describe()
                )
                self._emit(
                    capability,
                    CapabilityDecision.SOFT_DENIED,
                    preflight_only=preflight_only,
                    reason="disavowed",
                    chain=chain,
                    disavowal=disavowal,
                )
                return CapabilityDecision.SOFT_DENIED

        attribution = self.effective_attribution(chain)
        try:
            result = self._guard.call(
                "capability oracle",
                lambda: self._capabilities.check(
                    capability,
                    attribution,
                    for_delivery=not preflight_only,
                    message=message,
                ),
            )
        except OracleUnavailableError as e:
            logger.warning("Need %s permission: %s", capability, e)
            self._emit(
                capability,
                CapabilityDecision.SOFT_DENIED,
                preflight_only=preflight_only,
                reason="oracle unavailable",
                chain=chain,
            )
            return CapabilityDecision.SOFT_DENIED

        result = CapabilityDecision(result)
        if result is CapabilityDecision.GRANTED:
            self._emit(
                capability, result, preflight_only=preflight_only, reason="granted", chain=chain
            )
            return result

        msg = f"Need {capability} permission"
        if chain is not None:
            msg = f"{msg} for {chain.describe()}: {message}"
        if result is CapabilityDecision.HARD_DENIED:
            logger.error(msg)
            self._emit(
                capability, result, preflight_only=preflight_only, reason="hard denied", chain=chain
            )
            raise HardDenialError(capability, msg)

        logger.warning(msg)
        self._emit(
            capability, result, preflight_only=preflight_only, reason="soft denied", chain=chain
        )
        return CapabilityDecision.SOFT_DENIED

    def _granted(
        self,
        capability: str,
        chain: Optional[AttributionChain],
        *,
        preflight_only: bool,
        message: str = "",
    ) -> bool:
        decision = self.evaluate(
            capability, chain, preflight_only=preflight_only, message=message
        )
        return decision is CapabilityDecision.GRANTED

    # ------------------------------------------------------------------
    # named capability checks: True granted, False soft denial, raise on hard denial

    def check_connect_for_preflight(self) -> bool:
        return self._granted(BLUETOOTH_CONNECT, None, preflight_only=True)

    def check_connect_for_data_delivery(self, chain: AttributionChain, message: str) -> bool:
        return self._granted(BLUETOOTH_CONNECT, chain, preflight_only=False, message=message)

    def check_scan_for_preflight(self) -> bool:
        return self._granted(BLUETOOTH_SCAN, None, preflight_only=True)

    def check_scan_for_data_delivery(self, chain: AttributionChain, message: str) -> bool:
        return self._granted(BLUETOOTH_SCAN, chain, preflight_only=False, message=message)

    def check_advertise_for_preflight(self) -> bool:
        return self._granted(BLUETOOTH_ADVERTISE, None, preflight_only=True)

    def check_advertise_for_data_delivery(self, chain: AttributionChain, message: str) -> bool:
        return self._granted(BLUETOOTH_ADVERTISE, chain, preflight_only=False, message=message)

    def has_disavowed_location_for_scan(self, chain: AttributionChain) -> bool:
        return bool(self._walker.has_disavowed_location_for_scan(chain))

    # ------------------------------------------------------------------
    # location

    def blocked_by_location_off(self, user_id: int) -> bool:
        if self._location is None:
            return False
        return not self._location.is_enabled_for_user(user_id)

    def _location_granted(self, permission: str, chain: AttributionChain) -> bool:
        attribution = self.effective_attribution(chain)
        try:
            result = self._guard.call(
                "capability oracle",
                lambda: self._capabilities.check(
                    permission, attribution, for_delivery=True, message=LOCATION_CHECK_MESSAGE
                ),
            )
        except OracleUnavailableError as e:
            logger.warning("Location check for %s unavailable: %s", permission, e)
            return False
        return CapabilityDecision(result) is CapabilityDecision.GRANTED

    def _check_location(
        self, permissions: Sequence[str], chain: AttributionChain, user_id: int
    ) -> bool:
        if self.blocked_by_location_off(user_id):
            logger.error("Permission denial: Location is off.")
            return False
        for permission in permissions:
            if self._location_granted(permission, chain):
                return True
        names = " or ".join(p.rsplit(".", 1)[-1] for p in permissions)
        logger.error("Permission denial: Need %s permission to get scan results", names)
        return False

    def check_caller_has_coarse_location(self, chain: AttributionChain, user_id: int) -> bool:
        return self._check_location([ACCESS_COARSE_LOCATION], chain, user_id)

    def check_caller_has_coarse_or_fine_location(
        self, chain: AttributionChain, user_id: int
    ) -> bool:
        return self._check_location([ACCESS_FINE_LOCATION, ACCESS_COARSE_LOCATION], chain, user_id)

    def check_caller_has_fine_location(self, chain: AttributionChain, user_id: int) -> bool:
        return self._check_location([ACCESS_FINE_LOCATION], chain, user_id)

    # ------------------------------------------------------------------
    # identity

    def is_package_name_accurate(self, package_name: Optional[str], uid: int) -> bool:
        return self._identity.is_accurate(package_name, uid)

    def verify_identity(self, package_name: str, uid: int) -> IdentityVerdict:
        return self._identity.verify(package_name, uid, user_id_of(uid))

    def enforce_package_name_accurate(self, package_name: Optional[str], uid: int) -> None:
        if not self._identity.is_accurate(package_name, uid):
            raise IdentityMismatchError(package_name, uid)

    def calling_attribution(self, calling_uid: int) -> AttributionChain:
        uid = normalize_calling_uid(calling_uid)
        packages = list(self._packages.get_packages_for_uid(uid))
        if not packages:
            raise PackageNotFoundError(f"<uid {uid}>")
        return AttributionChain.of(AttributionLink(package_name=packages[0], uid=uid))

    def enforce_cdm_association(
        self, package_name: str, uid: int, device: HardwareAddress
    ) -> bool:
        """Require a companion device association between the app and the device."""

        if not self._identity.is_accurate(package_name, uid):
            raise IdentityMismatchError(package_name, uid, "hasCdmAssociation")

        associations = self._companions.associations() if self._companions is not None else ()
        device_text = to_display_string(device)
        for association in associations:
            if (
                association.package_name == package_name
                and not association.self_managed
                and addresses_equal(association.device_address, device_text)
            ):
                return True
        raise HardDenialError(
            "companion_association",
            f"The application with package name {package_name} does not have a CDM "
            "association with the Bluetooth Device",
        )

    def check_caller_target_sdk(self, package_name: str, minimum_target_sdk: int) -> bool:
        try:
            return self._packages.get_target_sdk(package_name) >= int(minimum_target_sdk)
        except PackageNotFoundError:
            # Unknown packages are assumed to be new enough.
            return True

    # ------------------------------------------------------------------
    # calling-or-self permissions

    def has_privileged_permission(self, uid: int) -> bool:
        return bool(self._capabilities.check_permission(BLUETOOTH_PRIVILEGED, uid))

    def _enforce(self, permission: str, uid: int, message: str) -> None:
        if not self._capabilities.check_permission(permission, uid):
            logger.error("%s (uid=%s)", message, uid)
            raise HardDenialError(permission, message)

    def enforce_privileged_permission(self, uid: int) -> None:
        self._enforce(BLUETOOTH_PRIVILEGED, uid, "Need BLUETOOTH PRIVILEGED permission")

    def enforce_local_mac_address_permission(self, uid: int) -> None:
        self._enforce(LOCAL_MAC_ADDRESS, uid, "Need LOCAL_MAC_ADDRESS permission")

    def enforce_dump_permission(self, uid: int) -> None:
        self._enforce(DUMP, uid, "Need DUMP permission")

    def enforce_instrumentation_mode(self) -> None:
        """For test-only entry points."""

        if not self._config.instrumentation_mode:
            raise RuntimeError("Not in instrumentation test mode")

    # ------------------------------------------------------------------
    # caller gating

    def caller_is_system(self, uid: int, tag: str, method: str) -> bool:
        return self._callers.caller_is_system(uid, tag, method)

    def caller_is_system_or_active_user(self, uid: int, tag: str, method: str) -> bool:
        return self._callers.caller_is_system_or_active_user(uid, tag, method)

    def caller_is_system_or_foreground_user(
        self,
        uid: int,
        tag: str,
        method: str,
        *,
        include_managed_profiles: bool = True,
    ) -> bool:
        return self._callers.caller_is_system_or_foreground_user(
            uid, tag, method, include_managed_profiles=include_managed_profiles
        )

    def close(self) -> None:
        self._guard.shutdown()
