"""
Semantic Version Parsing and Ordering
=====================================

Parses runtime version strings (rkt binary, appc spec, rkt API service,
systemd) into ordered values.

Grammar: MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]

Ordering:
- MAJOR, MINOR, PATCH compared numerically
- A pre-release sorts below the same triple without one
- Pre-release identifiers compared field by field (numeric < alphanumeric)
- Build metadata is carried along but never affects ordering

Usage:
    from rktgate.service.runtime.semver import SemanticVersion, compare_versions

    version = SemanticVersion.parse("1.2.3+git")
    version.compare("1.2.4")          # -1
    compare_versions("1.2.6-alpha", "1.2.6")  # -1
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

from .errors import VersionParseError

_NUM = r"0|[1-9][0-9]*"
# Numeric pre-release identifiers carry no leading zeros; build identifiers may.
_PRE_IDENT = rf"(?:{_NUM}|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_IDENT = r"[0-9A-Za-z-]+"
_VERSION_RE = re.compile(
    rf"({_NUM})\.({_NUM})\.({_NUM})"
    rf"(?:-({_PRE_IDENT}(?:\.{_PRE_IDENT})*))?"
    rf"(?:\+({_BUILD_IDENT}(?:\.{_BUILD_IDENT})*))?"
)
_SHORT_RE = re.compile(rf"({_NUM})(?:\.({_NUM}))?")


def _prerelease_key(prerelease: Tuple[str, ...]) -> Tuple[Tuple[int, Union[int, str]], ...]:
    # Numeric identifiers sort before alphanumeric ones.
    return tuple((0, int(p)) if p.isdigit() else (1, p) for p in prerelease)


@dataclass(frozen=True)
class SemanticVersion:
    """Parsed semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: str = field(default="", compare=False)

    @classmethod
    def parse(cls, version_string: str) -> "SemanticVersion":
        """Parse a version string, raising VersionParseError if malformed."""
        if not isinstance(version_string, str):
            raise VersionParseError(str(version_string), "not a string")

        match = _VERSION_RE.fullmatch(version_string)
        if not match:
            raise VersionParseError(version_string)

        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
            prerelease=tuple(match.group(4).split(".")) if match.group(4) else (),
            build=match.group(5) or "",
        )

    @classmethod
    def coerce(cls, version_string: str) -> "SemanticVersion":
        """
        Parse leniently: "249" -> 249.0.0, "249.11" -> 249.11.0.

        systemd reports a bare integer, so the service-manager version
        and its threshold go through here. Anything that is not a short
        numeric form must satisfy the full grammar.
        """
        if isinstance(version_string, str):
            short = _SHORT_RE.fullmatch(version_string)
            if short:
                return cls(
                    major=int(short.group(1)),
                    minor=int(short.group(2) or 0),
                    patch=0,
                )
        return cls.parse(version_string)

    def _key(self) -> Tuple[Any, ...]:
        # A release (no pre-release) outranks every pre-release of its triple.
        return (
            self.major,
            self.minor,
            self.patch,
            0 if self.prerelease else 1,
            _prerelease_key(self.prerelease),
        )

    def compare(self, other: Union[str, "SemanticVersion"]) -> int:
        """
        Three-way comparison against another version.

        Returns:
            -1 if self < other, 0 if equal, 1 if self > other
        """
        if not isinstance(other, SemanticVersion):
            other = SemanticVersion.parse(other)

        mine, theirs = self._key(), other._key()
        if mine < theirs:
            return -1
        if mine > theirs:
            return 1
        return 0

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() >= other._key()

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += "-" + ".".join(self.prerelease)
        if self.build:
            version += f"+{self.build}"
        return version

    def to_dict(self) -> Dict[str, Any]:
        return {
            "major": self.major,
            "minor": self.minor,
            "patch": self.patch,
            "prerelease": ".".join(self.prerelease),
            "build": self.build,
            "string": str(self),
        }


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two semantic version strings.
    Returns: -1 if v1 < v2, 0 if equal, 1 if v1 > v2
    """
    return SemanticVersion.parse(v1).compare(v2)
