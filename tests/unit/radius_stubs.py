"""Shared test doubles and a representative user directory."""

from __future__ import annotations

import ipaddress
import threading
from typing import Any

from radius_vlan.auth.engine import password_digest
from radius_vlan.config.settings import (
    IdentityKind,
    ServerEntry,
    Settings,
    UserEntry,
)
from radius_vlan.radius.handlers import AccessRequestHandler
from radius_vlan.radius.secret import StaticSecretProvider

SECRET = b"testing123"

ALICE_PASSWORD = "hunter2"
ALICE_VLAN = 10
BOB_PASSWORD = "correct horse"
PRINTER_MAC = "aa:bb:cc:dd:ee:ff"
PRINTER_VLAN = 20

# Whitelisted, no default VLAN
SWITCH_IP = "10.0.0.1"
# Whitelisted, default VLAN 99
LOBBY_AP_IP = "10.0.0.2"
LOBBY_VLAN = 99
# Not whitelisted
ROGUE_IP = "192.0.2.50"


def make_settings(
    servers: dict[str, ServerEntry] | None = None,
    users: dict[str, UserEntry] | None = None,
    **kwargs: Any,
) -> Settings:
    """Build a Settings snapshot keyed by parsed IP addresses."""
    if servers is None:
        servers = {
            SWITCH_IP: ServerEntry(),
            LOBBY_AP_IP: ServerEntry(default_vlan_enabled=True, default_vlan=LOBBY_VLAN),
            "127.0.0.1": ServerEntry(),
        }
    if users is None:
        users = {
            "alice": UserEntry(
                IdentityKind.PASSWORD_HASH,
                password_digest(ALICE_PASSWORD),
                vlan_enabled=True,
                vlan=ALICE_VLAN,
            ),
            "bob": UserEntry(IdentityKind.PASSWORD_HASH, password_digest(BOB_PASSWORD)),
            PRINTER_MAC: UserEntry(
                IdentityKind.MAC_ADDRESS,
                PRINTER_MAC,
                vlan_enabled=True,
                vlan=PRINTER_VLAN,
            ),
        }
    kwargs.setdefault("secret", SECRET)
    return Settings(
        servers={ipaddress.ip_address(ip): entry for ip, entry in servers.items()},
        users=users,
        **kwargs,
    )


class RecordingSocket:
    """Stands in for the UDP socket; keeps every datagram sent."""

    def __init__(self, fail: bool = False):
        self.sent: list[tuple[bytes, tuple[str, int]]] = []
        self.fail = fail

    def sendto(self, data: bytes, addr: tuple[str, int]) -> int:
        if self.fail:
            raise OSError("network unreachable")
        self.sent.append((data, addr))
        return len(data)


class FakeServer:
    """The attributes ``handle_auth_request`` needs from a server."""

    def __init__(self, settings: Settings, sock: RecordingSocket | None = None):
        self.request_handler = AccessRequestHandler(settings)
        self.secret_provider = StaticSecretProvider(settings.secret)
        self.auth_socket = sock if sock is not None else RecordingSocket()
        self.stats: dict[str, int] = {}
        self._lock = threading.Lock()

    def _inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self.stats[key] = self.stats.get(key, 0) + amount
