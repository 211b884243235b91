"""
Errors raised by the runtime compatibility gate.

Three families:
- VersionParseError: a version string does not follow the semver grammar
- TransportError: a collaborator (rkt API service, systemd) could not be queried
- CompatibilityError: a queried version is below its required minimum
"""

from enum import Enum
from typing import Any, Dict, Optional


class VersionParseError(ValueError):
    """A version string does not conform to MAJOR.MINOR.PATCH[-PRE][+BUILD]."""

    def __init__(self, version_string: str, reason: Optional[str] = None):
        self.version_string = version_string
        self.reason = reason
        message = f"Invalid version string: {version_string!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class TransportError(Exception):
    """A collaborator call could not complete."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class CompatibilityKind(Enum):
    """Which requirement was not met."""

    SERVICE_MANAGER_TOO_OLD = "service_manager_too_old"
    BINARY_TOO_OLD = "binary_too_old"
    SPEC_TOO_OLD = "spec_too_old"
    API_TOO_OLD = "api_too_old"


class CompatibilityError(Exception):
    """A runtime component is older than the minimum the integration needs."""

    kind: CompatibilityKind
    component: str

    def __init__(self, actual: str, required: str):
        self.actual = actual
        self.required = required
        super().__init__(self.format_message())

    def format_message(self) -> str:
        return (
            f"rkt: {self.component} version is too old({self.actual}), "
            f"requires at least {self.required}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "component": self.component,
            "actual": self.actual,
            "required": self.required,
            "message": str(self),
        }


class ServiceManagerTooOld(CompatibilityError):
    kind = CompatibilityKind.SERVICE_MANAGER_TOO_OLD
    component = "systemd"

    def format_message(self) -> str:
        return (
            f"rkt: {self.component} version({self.actual}) is too old, "
            f"requires at least {self.required}"
        )


class BinaryTooOld(CompatibilityError):
    kind = CompatibilityKind.BINARY_TOO_OLD
    component = "binary"


class SpecTooOld(CompatibilityError):
    kind = CompatibilityKind.SPEC_TOO_OLD
    component = "Appc"


class ApiTooOld(CompatibilityError):
    kind = CompatibilityKind.API_TOO_OLD
    component = "API"
