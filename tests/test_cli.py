"""
Tests for the rktgate CLI.
"""

import json

import pytest

from rktgate import cli

STATIC_OK = ["--static", "1.6.0", "0.8.1", "1.0.0-alpha", "219"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in [
        "RKTGATE_CONFIG",
        "RKTGATE_MIN_BINARY_VERSION",
        "RKTGATE_RECOMMENDED_BINARY_VERSION",
        "RKTGATE_MIN_APPC_VERSION",
        "RKTGATE_MIN_API_VERSION",
        "RKTGATE_MIN_SYSTEMD_VERSION",
    ]:
        monkeypatch.delenv(var, raising=False)


def run_cli(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestCheckCommand:
    """Tests for `rktgate check`."""

    def test_compatible(self, capsys):
        """Test that a compatible runtime exits 0 and prints the versions."""
        assert run_cli(["check", *STATIC_OK]) == cli.EXIT_OK

        out = capsys.readouterr().out
        assert "compatible" in out
        assert "1.0.0-alpha" in out

    def test_advisory_printed(self, capsys):
        """Test that a binary other than the recommended one prints an advisory."""
        assert run_cli(["check", "--static", "1.7.0", "0.8.1", "1.0.0-alpha", "219"]) == 0

        assert "not recommended" in capsys.readouterr().out

    def test_incompatible(self, capsys):
        """Test that an old systemd exits with the incompatible code."""
        code = run_cli(["check", "--static", "1.6.0", "0.8.1", "1.0.0-alpha", "218"])

        assert code == cli.EXIT_INCOMPATIBLE
        assert "systemd version(218) is too old" in capsys.readouterr().out

    def test_incompatible_json(self, capsys):
        """Test the JSON output of a failed check."""
        code = run_cli(["check", "--json", "--static", "1.5.0", "0.8.1", "1.0.0-alpha", "219"])

        assert code == cli.EXIT_INCOMPATIBLE
        body = json.loads(capsys.readouterr().out)
        assert body["compatible"] is False
        assert body["error"]["kind"] == "binary_too_old"

    def test_compatible_json(self, capsys):
        """Test the JSON output of a successful check."""
        assert run_cli(["check", "--json", *STATIC_OK]) == cli.EXIT_OK

        body = json.loads(capsys.readouterr().out)
        assert body["state"]["api_version"] == "1.0.0-alpha"

    def test_malformed_reported_version(self, capsys):
        """Test that an unparsable reported version is a check failure."""
        code = run_cli(["check", "--static", "latest", "0.8.1", "1.0.0-alpha", "219"])

        assert code == cli.EXIT_CHECK_FAILED

    def test_config_file(self, tmp_path, capsys):
        """Test that --config thresholds are applied."""
        path = tmp_path / "rktgate.yaml"
        path.write_text("requirements:\n  min_binary: 1.9.1\n")

        code = run_cli(["check", "--config", str(path), *STATIC_OK])

        assert code == cli.EXIT_INCOMPATIBLE

    def test_missing_config_file(self, tmp_path, capsys):
        """Test that a missing --config file is reported, not raised."""
        code = run_cli(["check", "--config", str(tmp_path / "missing.yaml"), *STATIC_OK])

        assert code == cli.EXIT_CHECK_FAILED
        assert "Invalid configuration" in capsys.readouterr().out

    @pytest.mark.parametrize("command", [["requirements"], ["check", *STATIC_OK]])
    def test_malformed_yaml_config(self, tmp_path, capsys, command):
        """Test that an unparsable --config file is reported, not raised."""
        path = tmp_path / "rktgate.yaml"
        path.write_text("requirements: [unclosed\n")

        code = run_cli([*command[:1], "--config", str(path), *command[1:]])

        assert code == cli.EXIT_CHECK_FAILED
        assert "Invalid configuration" in capsys.readouterr().out


class TestOtherCommands:
    """Tests for requirements and compare."""

    def test_requirements_json(self, capsys):
        """Test the JSON listing of the effective requirements."""
        assert run_cli(["requirements", "--json"]) == 0

        assert json.loads(capsys.readouterr().out)["min_service_manager"] == "219"

    def test_requirements_text(self, capsys):
        """Test the text listing of the effective requirements."""
        assert run_cli(["requirements"]) == 0

        assert ">= 1.0.0-alpha" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "v1,v2,symbol",
        [("1.2.6-alpha", "1.2.6", "<"), ("1.2.3+git", "1.2.3", "=="), ("1.10.0", "1.9.0", ">")],
    )
    def test_compare(self, capsys, v1, v2, symbol):
        """Test the relation printed by compare."""
        assert run_cli(["compare", v1, v2]) == 0

        assert capsys.readouterr().out.strip() == f"{v1} {symbol} {v2}"

    def test_compare_malformed(self, capsys):
        """Test that compare rejects a short version."""
        assert run_cli(["compare", "1.2", "1.2.3"]) == cli.EXIT_CHECK_FAILED

    def test_no_command(self, capsys):
        """Test that running without a subcommand exits 1."""
        assert run_cli([]) == 1
