#!/usr/bin/env python3
"""Command-line utility to validate ipban list configuration.

Usage:
    python -m ipban <config.yaml> [--strict] [--no-dns] [--no-expressions]
    python -m ipban <config.yaml> --dump-lists
    python -m ipban <config.yaml> --check 10.0.0.5 --user admin

Exit codes:
    0 - Valid configuration
    1 - Invalid list or expression pattern (or skipped host names in strict mode)
    2 - File not found, invalid YAML or malformed configuration
"""

import argparse
import json
import platform
import sys
from pathlib import Path

import yaml

from . import logging as ipban_logging
from .config import DEFAULT_CONFIG_PATH, ConfigError, Settings, load_config
from .lists import ListMatcher, NullResolver, PatternError, SocketResolver
from .lists.types import AddressList


def list_to_dict(address_list: AddressList) -> dict:
    """Convert an AddressList to a JSON-friendly dictionary."""
    return {
        "entries": sorted(address_list.entries),
        "pattern": address_list.pattern.pattern if address_list.pattern else None,
        "skipped": [
            {"token": s.token, "reason": s.reason, "detail": s.detail}
            for s in address_list.skipped
        ],
    }


def dump_lists(matcher: ListMatcher) -> dict:
    """All normalized lists of a matcher."""
    return {
        "allow": list_to_dict(matcher.allow),
        "deny": list_to_dict(matcher.deny),
        "user_names": sorted(matcher.user_names),
        "max_edit_distance": matcher.max_edit_distance,
    }


def check_identity(matcher: ListMatcher, value: str) -> dict:
    """Answer the address/identity queries for one value."""
    return {
        "value": value,
        "allowed": matcher.is_allowed(value),
        "denied": matcher.is_denied(value),
    }


def check_user_name(matcher: ListMatcher, user_name: str) -> dict:
    """Answer the user name queries for one value."""
    return {
        "user_name": user_name,
        "allowed": matcher.is_user_name_allowed(user_name),
        "near_allowed": matcher.is_within_edit_distance_of_allowed_user_names(user_name),
        "denied": matcher.is_denied(user_name),
    }


def count_dns_failures(matcher: ListMatcher) -> int:
    """Number of host names that could not be resolved, across both lists."""
    return sum(
        1
        for address_list in (matcher.allow, matcher.deny)
        for skipped in address_list.skipped
        if skipped.reason == "dns"
    )


def print_skipped(matcher: ListMatcher) -> None:
    """Print entries dropped during normalization."""
    for name, address_list in (("allow", matcher.allow), ("deny", matcher.deny)):
        for skipped in address_list.skipped:
            detail = f" ({skipped.detail})" if skipped.detail else ""
            print(f"  {name} list: skipped {skipped.token}: {skipped.reason}{detail}")


def yes_no(value: bool) -> str:
    return "yes" if value else "no"


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Validate ipban allow/deny lists and query them.",
        epilog="Exit codes: 0=valid, 1=invalid pattern (or DNS failures with --strict), 2=file error",
    )
    parser.add_argument(
        "config",
        type=Path,
        nargs="?",
        default=Path(DEFAULT_CONFIG_PATH),
        help=f"Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat host names that fail to resolve as errors",
    )
    parser.add_argument(
        "--no-dns",
        action="store_true",
        help="Do not resolve host names (every host name entry is skipped)",
    )
    parser.add_argument(
        "--no-expressions",
        action="store_true",
        help="Skip compiling the event log expression groups",
    )
    parser.add_argument(
        "--dump-lists",
        action="store_true",
        help="Output the normalized lists as JSON to stdout",
    )
    parser.add_argument(
        "--check",
        action="append",
        default=[],
        metavar="IDENTITY",
        help="Check an address or host name against the lists (repeatable)",
    )
    parser.add_argument(
        "--user",
        action="append",
        default=[],
        metavar="USER_NAME",
        help="Check a user name against the lists (repeatable)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log normalization details"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only output errors, no summary"
    )

    args = parser.parse_args(argv)
    ipban_logging.init_logging(verbose=args.verbose)

    if not args.config.exists():
        print(f"Error: File not found: {args.config}", file=sys.stderr)
        sys.exit(2)

    try:
        snapshot = load_config(args.config, expressions_supported=not args.no_expressions)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML: {e}", file=sys.stderr)
        sys.exit(2)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    resolver = NullResolver() if args.no_dns else SocketResolver()
    try:
        settings = Settings.from_snapshot(snapshot)
        matcher = ListMatcher.from_config(snapshot, resolver)
    except PatternError as e:
        print(f"\n{args.config}: {e}")
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.dump_lists:
        print(json.dumps(dump_lists(matcher), indent=2))
        sys.exit(0)

    for value in args.check:
        result = check_identity(matcher, value)
        print(f"{value}: allowed={yes_no(result['allowed'])} denied={yes_no(result['denied'])}")

    for user_name in args.user:
        result = check_user_name(matcher, user_name)
        print(
            f"{user_name}: allowed={yes_no(result['allowed'])} "
            f"near_allowed={yes_no(result['near_allowed'])} denied={yes_no(result['denied'])}"
        )

    if not args.quiet:
        print_skipped(matcher)
        print(
            f"\nLists loaded: {len(matcher.allow.entries)} allowed, "
            f"{len(matcher.deny.entries)} denied, {len(matcher.user_names)} user name(s), "
            f"{len(settings.expression_groups)} expression group(s)"
        )
        firewall_type = settings.firewall_type_for(platform.system())
        if firewall_type:
            print(f"Firewall type for {platform.system()}: {firewall_type}")

    dns_failures = count_dns_failures(matcher)
    if args.strict and dns_failures:
        print(f"\nValidation failed (strict mode): {dns_failures} unresolved host name(s)")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
