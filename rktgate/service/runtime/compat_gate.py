"""
rkt Runtime Compatibility Gate
==============================

Decides whether the rkt integration may be used, by checking that
systemd, the rkt binary, the appc spec it implements and the rkt API
service all meet minimum versions.

Check order (first failure wins, later checks never run):
1. systemd version        >= min_service_manager
2. rkt binary version     >= min_binary
3. rkt binary version     == recommended_binary (advisory only)
4. appc spec version      >= min_spec
5. rkt API version        >= min_api

systemd is checked before the API service is contacted, so a host
problem is reported even when rkt is unreachable.

Usage:
    from rktgate.service.runtime.compat_gate import (
        CompatibilityGate,
        get_compatibility_gate,
    )

    gate = get_compatibility_gate()
    result = gate.check_version("1.6.0", "1.6.0", "0.8.1", "1.0.0-alpha", "219")

    if result.advisories:
        print(result.advisories[0])
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import (
    ApiTooOld,
    BinaryTooOld,
    CompatibilityError,
    ServiceManagerTooOld,
    SpecTooOld,
    TransportError,
)
from .providers import (
    HttpInfoProvider,
    InfoProvider,
    ServiceManagerProvider,
    SystemctlVersionProvider,
)
from .semver import SemanticVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeCompatibilityState:
    """Versions committed by the last successful check. All unset until then."""

    binary_version: Optional[SemanticVersion] = None
    spec_version: Optional[SemanticVersion] = None
    api_version: Optional[SemanticVersion] = None
    service_manager_version: Optional[SemanticVersion] = None
    checked_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.checked_at is not None

    def to_dict(self) -> Dict[str, Any]:
        def _s(v: Optional[SemanticVersion]) -> Optional[str]:
            return str(v) if v is not None else None

        return {
            "verified": self.is_verified,
            "binary_version": _s(self.binary_version),
            "spec_version": _s(self.spec_version),
            "api_version": _s(self.api_version),
            "service_manager_version": _s(self.service_manager_version),
            "checked_at": self.checked_at.isoformat() if self.checked_at else None,
        }


@dataclass
class CompatibilityCheckResult:
    """Outcome of a successful check."""

    state: RuntimeCompatibilityState
    recommended_binary: str
    binary_matches_recommended: bool
    advisories: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compatible": True,
            "state": self.state.to_dict(),
            "recommended_binary": self.recommended_binary,
            "binary_matches_recommended": self.binary_matches_recommended,
            "advisories": self.advisories,
        }


class CompatibilityGate:
    """
    Admission check in front of the rkt runtime.

    Owns a RuntimeCompatibilityState that only a fully successful
    check_version() replaces. check_version() holds the gate's lock
    from the first query to the commit, so concurrent checks never
    interleave.
    """

    def __init__(
        self,
        info_provider: InfoProvider,
        service_manager: ServiceManagerProvider,
    ):
        """
        Args:
            info_provider: Source of rkt binary/appc/API versions
            service_manager: Source of the systemd version
        """
        self._info_provider = info_provider
        self._service_manager = service_manager
        self._state = RuntimeCompatibilityState()
        self._lock = threading.Lock()

        # Statistics
        self._total_checks = 0
        self._successful_checks = 0
        self._failed_checks = 0
        self._last_error: Optional[str] = None
        self._last_advisory: Optional[str] = None

    @property
    def state(self) -> RuntimeCompatibilityState:
        """Snapshot of the committed versions."""
        return self._state

    def binary_version(self) -> Optional[SemanticVersion]:
        """rkt binary version from the last successful check."""
        return self._state.binary_version

    def api_version(self) -> Optional[SemanticVersion]:
        """rkt API service version from the last successful check."""
        return self._state.api_version

    def check_version(
        self,
        min_binary: str,
        recommended_binary: str,
        min_spec: str,
        min_api: str,
        min_service_manager: str,
    ) -> CompatibilityCheckResult:
        """
        Verify every rkt dependency meets its minimum version.

        Args:
            min_binary: Minimum rkt binary version
            recommended_binary: rkt binary version the integration was tested with
            min_spec: Minimum appc spec version
            min_api: Minimum rkt API service version
            min_service_manager: Minimum systemd version

        Returns:
            CompatibilityCheckResult (state is committed before returning)

        Raises:
            TransportError: a provider could not be queried
            VersionParseError: a threshold or reported version is malformed
            CompatibilityError: a component is too old
        """
        with self._lock:
            self._total_checks += 1
            try:
                result = self._run_checks(
                    min_binary,
                    recommended_binary,
                    min_spec,
                    min_api,
                    min_service_manager,
                )
            except CompatibilityError as e:
                self._failed_checks += 1
                self._last_error = str(e)
                logger.warning(str(e))
                raise
            except Exception as e:
                self._failed_checks += 1
                self._last_error = str(e)
                raise

            self._successful_checks += 1
            self._last_error = None
            return result

    def check_requirements(self, requirements) -> CompatibilityCheckResult:
        """Run check_version() with a VersionRequirements object."""
        return self.check_version(
            requirements.min_binary,
            requirements.recommended_binary,
            requirements.min_spec,
            requirements.min_api,
            requirements.min_service_manager,
        )

    def _run_checks(
        self,
        min_binary: str,
        recommended_binary: str,
        min_spec: str,
        min_api: str,
        min_service_manager: str,
    ) -> CompatibilityCheckResult:
        # systemd reports a bare integer; compare it leniently.
        systemd_raw = self._service_manager.version()
        systemd_version = SemanticVersion.coerce(systemd_raw)
        if systemd_version.compare(SemanticVersion.coerce(min_service_manager)) < 0:
            raise ServiceManagerTooOld(systemd_raw, min_service_manager)

        # e.g. rktVersion "0.10.0+gitb7349b1", appcVersion "0.7.1", apiVersion "1.0.0-alpha"
        info = self._info_provider.get_info()

        binary_version = SemanticVersion.parse(info.binary_version)
        if binary_version.compare(min_binary) < 0:
            raise BinaryTooOld(info.binary_version, min_binary)

        advisories = []
        matches_recommended = binary_version.compare(recommended_binary) == 0
        if not matches_recommended:
            advisory = (
                f"rkt: current binary version {info.binary_version!r} is not recommended "
                f"(recommended version {recommended_binary!r})"
            )
            logger.warning(advisory)
            advisories.append(advisory)
            self._last_advisory = advisory

        spec_version = SemanticVersion.parse(info.spec_version)
        if spec_version.compare(min_spec) < 0:
            raise SpecTooOld(info.spec_version, min_spec)

        api_version = SemanticVersion.parse(info.api_version)
        if api_version.compare(min_api) < 0:
            raise ApiTooOld(info.api_version, min_api)

        state = RuntimeCompatibilityState(
            binary_version=binary_version,
            spec_version=spec_version,
            api_version=api_version,
            service_manager_version=systemd_version,
            checked_at=datetime.utcnow(),
        )
        self._state = state

        logger.info(
            f"rkt compatibility verified: binary={binary_version}, appc={spec_version}, "
            f"api={api_version}, systemd={systemd_raw}"
        )

        return CompatibilityCheckResult(
            state=state,
            recommended_binary=recommended_binary,
            binary_matches_recommended=matches_recommended,
            advisories=advisories,
        )

    def get_statistics(self) -> Dict[str, Any]:
        """Get check statistics."""
        return {
            "total_checks": self._total_checks,
            "successful_checks": self._successful_checks,
            "failed_checks": self._failed_checks,
            "last_error": self._last_error,
            "last_advisory": self._last_advisory,
            "state": self._state.to_dict(),
        }


# Global singleton instance
_compatibility_gate: Optional[CompatibilityGate] = None


def get_compatibility_gate() -> CompatibilityGate:
    """Get or create the global gate, wired to the live providers."""
    global _compatibility_gate
    if _compatibility_gate is None:
        from ...config.gate_config import ProviderSettings

        settings = ProviderSettings.from_env()
        _compatibility_gate = CompatibilityGate(
            info_provider=HttpInfoProvider(
                base_url=settings.api_url,
                timeout=settings.api_timeout_seconds,
            ),
            service_manager=SystemctlVersionProvider(systemctl=settings.systemctl),
        )
    return _compatibility_gate


def reset_compatibility_gate(
    info_provider: Optional[InfoProvider] = None,
    service_manager: Optional[ServiceManagerProvider] = None,
) -> Optional[CompatibilityGate]:
    """
    Replace the global gate.

    With both providers given, installs a gate using them; otherwise
    clears it so the next get_compatibility_gate() builds a live one.
    """
    global _compatibility_gate
    if info_provider is not None and service_manager is not None:
        _compatibility_gate = CompatibilityGate(info_provider, service_manager)
    else:
        _compatibility_gate = None
    return _compatibility_gate


# FastAPI integration
def create_compatibility_routes():
    """Create FastAPI routes for the compatibility gate."""
    from fastapi import APIRouter, HTTPException
    from pydantic import BaseModel

    from ...config.gate_config import load_requirements

    router = APIRouter(prefix="/api/v1/rkt/compat", tags=["compatibility"])

    class CheckRequest(BaseModel):
        min_binary: Optional[str] = None
        recommended_binary: Optional[str] = None
        min_spec: Optional[str] = None
        min_api: Optional[str] = None
        min_service_manager: Optional[str] = None

    @router.get("/status")
    async def get_status():
        """Get committed versions and check statistics."""
        return get_compatibility_gate().get_statistics()

    @router.post("/check")
    def run_check(request: Optional[CheckRequest] = None):
        """Run a compatibility check against the configured requirements."""
        gate = get_compatibility_gate()

        try:
            requirements = load_requirements()
            if request is not None:
                requirements = requirements.merged(request.model_dump())
            result = gate.check_requirements(requirements)
        except CompatibilityError as e:
            raise HTTPException(status_code=409, detail=e.to_dict())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except TransportError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return result.to_dict()

    return router
