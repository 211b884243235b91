"""
Version providers for the rkt compatibility gate.

Two collaborator contracts:
- InfoProvider: rkt binary, appc spec and rkt API service versions
- ServiceManagerProvider: host systemd version

Implementations:
- HttpInfoProvider: queries the rkt API service's JSON gateway
- SystemctlVersionProvider: parses `systemctl --version`
- StaticInfoProvider / StaticServiceManagerProvider: fixed values

Every transport problem surfaces as TransportError; callers never see
httpx or subprocess exceptions.
"""

import logging
import os
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:15441"
INFO_PATH = "/v1alpha/info"

_SYSTEMD_VERSION_RE = re.compile(r"^systemd\s+(\d+)", re.MULTILINE)


@dataclass(frozen=True)
class RuntimeInfo:
    """Raw version strings reported by the rkt API service."""

    binary_version: str
    spec_version: str
    api_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "binary_version": self.binary_version,
            "spec_version": self.spec_version,
            "api_version": self.api_version,
        }


class InfoProvider(ABC):
    """Source of rkt runtime version information."""

    name: str = "rkt-api"

    @abstractmethod
    def get_info(self) -> RuntimeInfo:
        """
        Fetch runtime info.

        Raises:
            TransportError: if the API service cannot be reached
        """
        pass


class ServiceManagerProvider(ABC):
    """Source of the host service manager (systemd) version."""

    name: str = "systemd"

    @abstractmethod
    def version(self) -> str:
        """
        Return the raw service manager version string, e.g. "219".

        Raises:
            TransportError: if the version cannot be determined
        """
        pass


class StaticInfoProvider(InfoProvider):
    """Returns fixed version strings."""

    name = "static"

    def __init__(self, binary_version: str, spec_version: str, api_version: str):
        self._info = RuntimeInfo(
            binary_version=binary_version,
            spec_version=spec_version,
            api_version=api_version,
        )

    def get_info(self) -> RuntimeInfo:
        return self._info


class StaticServiceManagerProvider(ServiceManagerProvider):
    """Returns a fixed service manager version."""

    name = "static"

    def __init__(self, version: str):
        self._version = version

    def version(self) -> str:
        return self._version


class HttpInfoProvider(InfoProvider):
    """
    Reads runtime info from the rkt API service over HTTP.

    Expects the JSON mapping of GetInfoResponse:
        {"info": {"rktVersion": "1.6.0", "appcVersion": "0.8.1",
                  "apiVersion": "1.0.0-alpha"}}
    snake_case keys (rkt_version, ...) are accepted as well.
    """

    name = "rkt-api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            base_url: API service URL (default: RKTGATE_API_URL or localhost)
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests inject a MockTransport)
        """
        self.base_url = base_url or os.environ.get("RKTGATE_API_URL", DEFAULT_API_URL)
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def get_info(self) -> RuntimeInfo:
        try:
            response = self._client.get(INFO_PATH)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to query rkt API service at {self.base_url}: {e}")
            raise TransportError(self.name, str(e)) from e
        except ValueError as e:
            raise TransportError(self.name, f"invalid JSON response: {e}") from e

        info = payload.get("info") if isinstance(payload, dict) else None
        if not isinstance(info, dict):
            raise TransportError(self.name, "response has no 'info' object")

        try:
            return RuntimeInfo(
                binary_version=_pick(info, "rktVersion", "rkt_version"),
                spec_version=_pick(info, "appcVersion", "appc_version"),
                api_version=_pick(info, "apiVersion", "api_version"),
            )
        except KeyError as e:
            raise TransportError(self.name, f"response is missing {e.args[0]}") from e

    def close(self) -> None:
        self._client.close()


def _pick(info: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = info.get(key)
        if isinstance(value, str):
            return value
    raise KeyError(keys[0])


class SystemctlVersionProvider(ServiceManagerProvider):
    """Reads the systemd version from `systemctl --version`."""

    name = "systemd"

    def __init__(self, systemctl: Optional[str] = None, timeout: float = 5.0):
        self.systemctl = systemctl or os.environ.get("RKTGATE_SYSTEMCTL", "systemctl")
        self.timeout = timeout

    def version(self) -> str:
        try:
            result = subprocess.run(
                [self.systemctl, "--version"],
                capture_output=True,
                timeout=self.timeout,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise TransportError(self.name, f"cannot run {self.systemctl}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise TransportError(
                self.name,
                f"{self.systemctl} --version exited with {result.returncode}: {stderr}",
            )

        output = result.stdout.decode(errors="replace")
        match = _SYSTEMD_VERSION_RE.search(output)
        if not match:
            raise TransportError(self.name, f"unexpected output: {output.strip()[:80]!r}")

        return match.group(1)
