"""
rktgate - Version Requirement Configuration

Minimum (and recommended) versions the rkt integration needs.

Resolution order (later wins):
  1. Built-in defaults below
  2. YAML file (``requirements:`` mapping), if a path is given or
     RKTGATE_CONFIG points at one
  3. Environment variables

Environment Variables:
  RKTGATE_CONFIG                      - Path to a YAML requirements file
  RKTGATE_MIN_BINARY_VERSION          - Minimum rkt binary version
  RKTGATE_RECOMMENDED_BINARY_VERSION  - rkt binary version tested against
  RKTGATE_MIN_APPC_VERSION            - Minimum appc spec version
  RKTGATE_MIN_API_VERSION             - Minimum rkt API service version
  RKTGATE_MIN_SYSTEMD_VERSION         - Minimum systemd version
  RKTGATE_API_URL                     - rkt API service JSON gateway URL
  RKTGATE_API_TIMEOUT                 - API request timeout (seconds)
  RKTGATE_SYSTEMCTL                   - systemctl binary to query
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..service.runtime.providers import DEFAULT_API_URL
from ..service.runtime.semver import SemanticVersion

logger = logging.getLogger(__name__)

MINIMUM_RKT_BIN_VERSION = "1.6.0"
RECOMMENDED_RKT_BIN_VERSION = "1.6.0"
MINIMUM_APPC_VERSION = "0.8.1"
MINIMUM_RKT_API_VERSION = "1.0.0-alpha"
MINIMUM_SYSTEMD_VERSION = "219"

_ENV_KEYS = {
    "min_binary": "RKTGATE_MIN_BINARY_VERSION",
    "recommended_binary": "RKTGATE_RECOMMENDED_BINARY_VERSION",
    "min_spec": "RKTGATE_MIN_APPC_VERSION",
    "min_api": "RKTGATE_MIN_API_VERSION",
    "min_service_manager": "RKTGATE_MIN_SYSTEMD_VERSION",
}


@dataclass
class VersionRequirements:
    """Version thresholds passed to CompatibilityGate.check_version."""

    min_binary: str = MINIMUM_RKT_BIN_VERSION
    recommended_binary: str = RECOMMENDED_RKT_BIN_VERSION
    min_spec: str = MINIMUM_APPC_VERSION
    min_api: str = MINIMUM_RKT_API_VERSION
    min_service_manager: str = MINIMUM_SYSTEMD_VERSION

    def validate(self) -> None:
        """Raise VersionParseError if any threshold is malformed."""
        SemanticVersion.parse(self.min_binary)
        SemanticVersion.parse(self.recommended_binary)
        SemanticVersion.parse(self.min_spec)
        SemanticVersion.parse(self.min_api)
        SemanticVersion.coerce(self.min_service_manager)

    def merged(self, overrides: Dict[str, Any]) -> "VersionRequirements":
        """Return a copy with the non-empty overrides applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown requirement keys: {', '.join(sorted(unknown))}")

        values = asdict(self)
        values.update({k: str(v) for k, v in overrides.items() if v is not None})
        return VersionRequirements(**values)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class ProviderSettings:
    """Where the gate's collaborators live."""

    api_url: str = DEFAULT_API_URL
    api_timeout_seconds: float = 10.0
    systemctl: str = "systemctl"

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        """Load provider settings from environment variables."""
        return cls(
            api_url=os.getenv("RKTGATE_API_URL", DEFAULT_API_URL),
            api_timeout_seconds=float(os.getenv("RKTGATE_API_TIMEOUT", "10")),
            systemctl=os.getenv("RKTGATE_SYSTEMCTL", "systemctl"),
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")

    section = data.get("requirements", {}) or {}
    if not isinstance(section, dict):
        raise ValueError(f"{path}: 'requirements' must be a mapping")
    return section


def load_requirements(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
) -> VersionRequirements:
    """
    Resolve the effective version requirements.

    Args:
        path: YAML file to read (default: $RKTGATE_CONFIG, if set)
        env: Environment mapping (default: os.environ)

    Returns:
        Validated VersionRequirements
    """
    env = os.environ if env is None else env
    requirements = VersionRequirements()

    config_path = path or env.get("RKTGATE_CONFIG")
    if config_path:
        config_path = Path(config_path)
        requirements = requirements.merged(_load_yaml(config_path))
        logger.info(f"Loaded version requirements from {config_path}")

    overrides = {key: env[var] for key, var in _ENV_KEYS.items() if env.get(var)}
    if overrides:
        logger.debug(f"Environment overrides: {sorted(overrides)}")
        requirements = requirements.merged(overrides)

    requirements.validate()
    return requirements
