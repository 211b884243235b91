"""
Runtime modules.
"""

from .compat_gate import (
    CompatibilityCheckResult,
    CompatibilityGate,
    RuntimeCompatibilityState,
    create_compatibility_routes,
    get_compatibility_gate,
    reset_compatibility_gate,
)
from .errors import (
    ApiTooOld,
    BinaryTooOld,
    CompatibilityError,
    CompatibilityKind,
    ServiceManagerTooOld,
    SpecTooOld,
    TransportError,
    VersionParseError,
)
from .providers import (
    HttpInfoProvider,
    InfoProvider,
    RuntimeInfo,
    ServiceManagerProvider,
    StaticInfoProvider,
    StaticServiceManagerProvider,
    SystemctlVersionProvider,
)
from .semver import SemanticVersion, compare_versions

__all__ = [
    "CompatibilityCheckResult",
    "CompatibilityGate",
    "RuntimeCompatibilityState",
    "create_compatibility_routes",
    "get_compatibility_gate",
    "reset_compatibility_gate",
    "ApiTooOld",
    "BinaryTooOld",
    "CompatibilityError",
    "CompatibilityKind",
    "ServiceManagerTooOld",
    "SpecTooOld",
    "TransportError",
    "VersionParseError",
    "HttpInfoProvider",
    "InfoProvider",
    "RuntimeInfo",
    "ServiceManagerProvider",
    "StaticInfoProvider",
    "StaticServiceManagerProvider",
    "SystemctlVersionProvider",
    "SemanticVersion",
    "compare_versions",
]
