"""Configuration for the rkt compatibility gate."""

from .gate_config import (
    ProviderSettings,
    VersionRequirements,
    load_requirements,
)

__all__ = [
    "ProviderSettings",
    "VersionRequirements",
    "load_requirements",
]
