"""
Tests for the rkt API and systemd version providers.
"""

import subprocess

import httpx
import pytest

from rktgate.service.runtime import providers
from rktgate.service.runtime.errors import TransportError
from rktgate.service.runtime.providers import (
    HttpInfoProvider,
    RuntimeInfo,
    StaticInfoProvider,
    StaticServiceManagerProvider,
    SystemctlVersionProvider,
)

SYSTEMCTL_OUTPUT = b"""systemd 249 (249.11-0ubuntu3.12)
+PAM +AUDIT +SELINUX +APPARMOR +IMA +SMACK +SECCOMP +GCRYPT +GNUTLS +OPENSSL
"""


def make_http_provider(handler):
    client = httpx.Client(
        base_url="http://rkt.test",
        transport=httpx.MockTransport(handler),
    )
    return HttpInfoProvider(base_url="http://rkt.test", client=client)


class TestHttpInfoProvider:
    """Tests for the rkt API service client."""

    def test_camel_case_response(self):
        """Test parsing protobuf JSON field names."""
        def handler(request):
            assert request.url.path == "/v1alpha/info"
            return httpx.Response(
                200,
                json={
                    "info": {
                        "rktVersion": "0.10.0+gitb7349b1",
                        "appcVersion": "0.7.1",
                        "apiVersion": "1.0.0-alpha",
                    }
                },
            )

        info = make_http_provider(handler).get_info()

        assert info == RuntimeInfo("0.10.0+gitb7349b1", "0.7.1", "1.0.0-alpha")

    def test_snake_case_response(self):
        """Test parsing original proto field names."""
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "info": {
                        "rkt_version": "1.6.0",
                        "appc_version": "0.8.1",
                        "api_version": "1.0.0-alpha",
                    }
                },
            )

        info = make_http_provider(handler).get_info()

        assert info.binary_version == "1.6.0"
        assert info.spec_version == "0.8.1"

    def test_http_error_status(self):
        """Test that an error status is a transport error."""
        provider = make_http_provider(lambda request: httpx.Response(503))

        with pytest.raises(TransportError) as exc:
            provider.get_info()

        assert exc.value.source == "rkt-api"

    def test_connection_error(self):
        """Test that a connection failure is a transport error."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            make_http_provider(handler).get_info()

    def test_invalid_json(self):
        """Test that a non-JSON body is a transport error."""
        provider = make_http_provider(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(TransportError):
            provider.get_info()

    @pytest.mark.parametrize(
        "body",
        [{}, {"info": "x"}, {"info": {"rktVersion": "1.6.0", "appcVersion": "0.8.1"}}, []],
    )
    def test_malformed_body(self, body):
        """Test that a body without the info fields is a transport error."""
        provider = make_http_provider(lambda request: httpx.Response(200, json=body))

        with pytest.raises(TransportError):
            provider.get_info()

    def test_base_url_from_env(self, monkeypatch):
        """Test that RKTGATE_API_URL sets the base URL."""
        monkeypatch.setenv("RKTGATE_API_URL", "http://10.0.0.1:15441")

        provider = HttpInfoProvider()

        assert provider.base_url == "http://10.0.0.1:15441"
        provider.close()


class TestSystemctlVersionProvider:
    """Tests for reading the systemd version."""

    @pytest.fixture
    def fake_run(self, monkeypatch):
        calls = []

        def install(stdout=b"", stderr=b"", returncode=0, error=None):
            def run(cmd, **kwargs):
                calls.append(cmd)
                if error:
                    raise error
                return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

            monkeypatch.setattr(providers.subprocess, "run", run)
            return calls

        return install

    def test_parses_version(self, fake_run):
        """Test reading the version from systemctl output."""
        calls = fake_run(stdout=SYSTEMCTL_OUTPUT)

        assert SystemctlVersionProvider().version() == "249"
        assert calls == [["systemctl", "--version"]]

    def test_custom_binary(self, fake_run):
        """Test running a configured systemctl path."""
        calls = fake_run(stdout=b"systemd 219\n")

        assert SystemctlVersionProvider(systemctl="/usr/bin/systemctl").version() == "219"
        assert calls[0][0] == "/usr/bin/systemctl"

    def test_missing_binary(self, fake_run):
        """Test that a missing systemctl is a transport error."""
        fake_run(error=FileNotFoundError("systemctl"))

        with pytest.raises(TransportError) as exc:
            SystemctlVersionProvider().version()

        assert exc.value.source == "systemd"

    def test_timeout(self, fake_run):
        """Test that a hung systemctl is a transport error."""
        fake_run(error=subprocess.TimeoutExpired("systemctl", 5))

        with pytest.raises(TransportError):
            SystemctlVersionProvider().version()

    def test_nonzero_exit(self, fake_run):
        """Test that a failing systemctl is a transport error."""
        fake_run(returncode=1, stderr=b"System has not been booted with systemd")

        with pytest.raises(TransportError) as exc:
            SystemctlVersionProvider().version()

        assert "exited with 1" in str(exc.value)

    def test_unexpected_output(self, fake_run):
        """Test that output without a systemd version is a transport error."""
        fake_run(stdout=b"upstart 1.13\n")

        with pytest.raises(TransportError):
            SystemctlVersionProvider().version()


class TestStaticProviders:
    """Tests for fixed-value providers."""

    def test_static_values(self):
        """Test that static providers return their fixed values."""
        assert StaticInfoProvider("1.6.0", "0.8.1", "1.0.0-alpha").get_info().to_dict() == {
            "binary_version": "1.6.0",
            "spec_version": "0.8.1",
            "api_version": "1.0.0-alpha",
        }
        assert StaticServiceManagerProvider("219").version() == "219"
