#!/usr/bin/env python3
"""
rktgate CLI

Command-line interface for the rkt compatibility gate.
"""

import argparse
import json
import os
import sys

import httpx

from .config.gate_config import load_requirements
from .service.runtime.compat_gate import CompatibilityGate
from .service.runtime.errors import CompatibilityError, TransportError
from .service.runtime.providers import (
    HttpInfoProvider,
    StaticInfoProvider,
    StaticServiceManagerProvider,
    SystemctlVersionProvider,
)
from .service.runtime.semver import compare_versions

RKTGATE_URL = os.getenv("RKTGATE_URL", "http://127.0.0.1:8766")

EXIT_OK = 0
EXIT_INCOMPATIBLE = 1
EXIT_CHECK_FAILED = 2


def get_client():
    """Get HTTP client for the rktgate daemon."""
    return httpx.Client(base_url=RKTGATE_URL, timeout=10)


def build_gate(args) -> CompatibilityGate:
    """Build a gate from CLI arguments."""
    if args.static:
        binary, spec, api, systemd = args.static
        return CompatibilityGate(
            info_provider=StaticInfoProvider(binary, spec, api),
            service_manager=StaticServiceManagerProvider(systemd),
        )
    return CompatibilityGate(
        info_provider=HttpInfoProvider(base_url=args.api_url),
        service_manager=SystemctlVersionProvider(),
    )


def cmd_check(args):
    """Run the compatibility check and exit with its verdict."""
    try:
        requirements = load_requirements(args.config)
    except (OSError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}")
        return EXIT_CHECK_FAILED

    gate = build_gate(args)
    try:
        result = gate.check_requirements(requirements)
    except CompatibilityError as e:
        if args.json:
            print(json.dumps({"compatible": False, "error": e.to_dict()}, indent=2))
        else:
            print(f"❌ {e}")
        return EXIT_INCOMPATIBLE
    except (TransportError, ValueError) as e:
        print(f"❌ Check could not run: {e}")
        return EXIT_CHECK_FAILED

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return EXIT_OK

    state = result.state
    print("✅ rkt integration is compatible")
    print(f"   rkt binary: {state.binary_version}")
    print(f"   appc spec:  {state.spec_version}")
    print(f"   rkt API:    {state.api_version}")
    print(f"   systemd:    {state.service_manager_version}")
    for advisory in result.advisories:
        print(f"⚠️  {advisory}")
    return EXIT_OK


def cmd_requirements(args):
    """Show effective version requirements."""
    try:
        requirements = load_requirements(args.config)
    except (OSError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}")
        return EXIT_CHECK_FAILED

    if args.json:
        print(json.dumps(requirements.to_dict(), indent=2))
        return EXIT_OK

    print("📋 Version requirements")
    print(f"   rkt binary:   >= {requirements.min_binary}")
    print(f"   recommended:  {requirements.recommended_binary}")
    print(f"   appc spec:    >= {requirements.min_spec}")
    print(f"   rkt API:      >= {requirements.min_api}")
    print(f"   systemd:      >= {requirements.min_service_manager}")
    return EXIT_OK


def cmd_compare(args):
    """Compare two semantic versions."""
    try:
        result = compare_versions(args.v1, args.v2)
    except ValueError as e:
        print(f"❌ {e}")
        return EXIT_CHECK_FAILED

    symbol = {-1: "<", 0: "==", 1: ">"}[result]
    print(f"{args.v1} {symbol} {args.v2}")
    return EXIT_OK


def cmd_status(args):
    """Show what the running daemon has verified."""
    try:
        status = get_client().get("/api/v1/rkt/compat/status").json()
    except httpx.HTTPError:
        print("❌ rktgate daemon not running")
        print("Start with: python -m rktgate.main")
        return EXIT_CHECK_FAILED

    state = status["state"]
    print("🛡️  rktgate Status")
    print("=" * 40)
    print(f"Verified: {state['verified']}")
    if state["verified"]:
        print(f"rkt binary: {state['binary_version']}")
        print(f"appc spec:  {state['spec_version']}")
        print(f"rkt API:    {state['api_version']}")
        print(f"systemd:    {state['service_manager_version']}")
        print(f"Checked at: {state['checked_at']}")
    print()
    print(
        f"Checks: {status['total_checks']} total, "
        f"{status['successful_checks']} ok, {status['failed_checks']} failed"
    )
    if status["last_error"]:
        print(f"Last error: {status['last_error']}")
    if status["last_advisory"]:
        print(f"Last advisory: {status['last_advisory']}")
    return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(
        prog="rktgate",
        description="rktgate CLI - rkt runtime version compatibility gate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rktgate check                          Check live rkt + systemd
  rktgate check --static 1.6.0 0.8.1 1.0.0-alpha 219
  rktgate requirements --json            Show effective thresholds
  rktgate compare 1.2.6-alpha 1.2.6      Compare two versions
  rktgate status                         Query the running daemon
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # check
    check_parser = subparsers.add_parser("check", help="Run the compatibility check")
    check_parser.add_argument("--config", help="YAML requirements file")
    check_parser.add_argument("--api-url", help="rkt API service URL")
    check_parser.add_argument(
        "--static",
        nargs=4,
        metavar=("BINARY", "APPC", "API", "SYSTEMD"),
        help="Check fixed versions instead of querying the host",
    )
    check_parser.add_argument("--json", action="store_true", help="JSON output")
    check_parser.set_defaults(func=cmd_check)

    # requirements
    req_parser = subparsers.add_parser("requirements", help="Show version requirements")
    req_parser.add_argument("--config", help="YAML requirements file")
    req_parser.add_argument("--json", action="store_true", help="JSON output")
    req_parser.set_defaults(func=cmd_requirements)

    # compare
    compare_parser = subparsers.add_parser("compare", help="Compare two versions")
    compare_parser.add_argument("v1")
    compare_parser.add_argument("v2")
    compare_parser.set_defaults(func=cmd_compare)

    # status
    status_parser = subparsers.add_parser("status", help="Show daemon status")
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
