#!/usr/bin/env python3
"""
Package CLI entrypoint used by the 'radius-vlan' console script.

Subcommands:
    serve           run the server (default)
    check-config    validate the configuration and print a summary
    hash-password   print the SHA-512 hex digest for a [user:...] hash entry
"""

from __future__ import annotations

import argparse
import getpass
import sys

from radius_vlan import __version__
from radius_vlan.auth.engine import password_digest
from radius_vlan.config.settings import IdentityKind, load_settings
from radius_vlan.exceptions import ConfigError
from radius_vlan.utils.logger import configure, get_logger

logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    from radius_vlan.main import RadiusVlanServerManager

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(
            "Could not start radius-vlan: invalid configuration",
            event="service.config_invalid",
            error=e.message,
            field=e.details.get("field"),
        )
        return 1
    configure(level=args.log_level or settings.log_level)
    manager = RadiusVlanServerManager(settings)
    return 0 if manager.start() else 1


def cmd_check_config(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print("Configuration validation failed:")
        print(f"  - {e.message}")
        return 1
    mac_users = sum(
        1 for u in settings.users.values() if u.kind is IdentityKind.MAC_ADDRESS
    )
    print("Configuration is valid")
    print(f"  Listen:  {settings.listen_address}:{settings.listen_port}")
    print(f"  Servers: {len(settings.servers)}")
    for ip, entry in settings.servers.items():
        fallback = entry.fallback_vlan
        print(f"    {ip}  default VLAN: {fallback if fallback is not None else '-'}")
    print(
        f"  Users:   {len(settings.users)} "
        f"({len(settings.users) - mac_users} password, {mac_users} MAC)"
    )
    return 0


def cmd_hash_password(args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        if args.stdin:
            password = sys.stdin.readline().rstrip("\n")
        else:
            password = getpass.getpass("Enter password: ")
            confirm = getpass.getpass("Confirm password: ")
            if password != confirm:
                print("Passwords do not match", file=sys.stderr)
                return 1
    print(password_digest(password))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="radius-vlan", description="RADIUS server with VLAN assignment"
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Configuration file path (default: $RADIUS_VLAN_CONFIG or config/radius-vlan.conf)",
    )
    parser.add_argument("--log-level", default=None, help="Override [radius] log_level")
    parser.add_argument(
        "--version", action="version", version=f"radius-vlan {__version__}"
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Run the RADIUS server").set_defaults(func=cmd_serve)
    sub.add_parser(
        "check-config", help="Validate configuration and exit"
    ).set_defaults(func=cmd_check_config)

    hp = sub.add_parser("hash-password", help="Print the SHA-512 hash for a user entry")
    hp.add_argument("password", nargs="?", default=None)
    hp.add_argument(
        "--stdin", action="store_true", help="Read the password from stdin"
    )
    hp.set_defaults(func=cmd_hash_password)

    parser.set_defaults(func=cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure(level=args.log_level or "INFO")
    try:
        return args.func(args)
    except Exception:
        logger.error("Could not run radius-vlan", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
