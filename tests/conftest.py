"""
Shared fixtures for rktgate tests.
"""

import pytest

from rktgate.service.runtime.errors import TransportError
from rktgate.service.runtime.providers import (
    InfoProvider,
    RuntimeInfo,
    ServiceManagerProvider,
)
from rktgate.service.runtime.compat_gate import CompatibilityGate, reset_compatibility_gate


class FakeInfoProvider(InfoProvider):
    """Info provider with settable versions that counts calls."""

    def __init__(self, binary="1.2.3+git", spec="1.2.4+git", api="1.2.6-alpha"):
        self.info = RuntimeInfo(binary_version=binary, spec_version=spec, api_version=api)
        self.error = None
        self.calls = 0

    def get_info(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.info


class FakeServiceManager(ServiceManagerProvider):
    """systemd provider with a settable version that counts calls."""

    def __init__(self, version="100"):
        self._version = version
        self.error = None
        self.calls = 0

    def version(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self._version


@pytest.fixture
def info_provider():
    return FakeInfoProvider()


@pytest.fixture
def systemd():
    return FakeServiceManager()


@pytest.fixture
def gate(info_provider, systemd):
    return CompatibilityGate(info_provider=info_provider, service_manager=systemd)


@pytest.fixture
def transport_error():
    return TransportError("rkt-api", "connection refused")


@pytest.fixture(autouse=True)
def _clear_global_gate():
    yield
    reset_compatibility_gate()
