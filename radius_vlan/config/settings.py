"""Validated, immutable settings snapshot.

Built once at startup from the configuration schema and then shared
read-only by every request worker. Nothing in here is mutated after
:func:`build_settings` returns, so no locking is needed.
"""

from __future__ import annotations

import binascii
import ipaddress
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from radius_vlan.exceptions import ConfigValidationError
from radius_vlan.utils.logger import get_logger

from .constants import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_LISTEN_PORT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_METRICS_ADDRESS,
    DEFAULT_SOCKET_TIMEOUT,
    DEFAULT_WORKERS,
    VLAN_ID_MAX,
    VLAN_ID_MIN,
)
from .loader import load_schema, resolve_config_path
from .schema import RadiusVlanConfigSchema, ServerEntrySchema, UserEntrySchema

logger = get_logger(__name__, component="config")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class IdentityKind(Enum):
    PASSWORD_HASH = "password_hash"
    MAC_ADDRESS = "mac_address"


@dataclass(frozen=True)
class ServerEntry:
    """Whitelisted RADIUS client and its default VLAN policy."""

    default_vlan_enabled: bool = False
    default_vlan: int = 0

    @property
    def fallback_vlan(self) -> int | None:
        return self.default_vlan if self.default_vlan_enabled else None


@dataclass(frozen=True)
class UserEntry:
    """Directory entry for one identity (username or MAC address)."""

    kind: IdentityKind
    credential: str = field(repr=False)
    vlan_enabled: bool = False
    vlan: int = 0

    @property
    def assigned_vlan(self) -> int | None:
        return self.vlan if self.vlan_enabled else None


def valid_vlan(vlan_id: int) -> bool:
    return VLAN_ID_MIN <= vlan_id <= VLAN_ID_MAX


def decode_hex_hash(value: str) -> bytes:
    """Strict hex decode of a configured hash.

    Unlike ``bytes.fromhex`` this rejects embedded whitespace.

    Raises:
        ValueError: when ``value`` is not a plain hex string.
    """
    return binascii.unhexlify(value)


def _unmap(ip: IPAddress) -> IPAddress:
    # Dual-stack sockets report IPv4 peers as ::ffff:a.b.c.d
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _client_ip(address: Any) -> IPAddress | None:
    """Normalise an address (str, ipaddress object or (host, port)) to an IP."""
    if isinstance(address, tuple):
        address = address[0]
    if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return _unmap(address)
    try:
        return _unmap(ipaddress.ip_address(str(address)))
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    """Read-only view of everything the request decision needs."""

    secret: bytes = field(repr=False)
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    listen_port: int = DEFAULT_LISTEN_PORT
    servers: Mapping[IPAddress, ServerEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )
    users: Mapping[str, UserEntry] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    log_level: str = DEFAULT_LOG_LEVEL
    workers: int = DEFAULT_WORKERS
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT
    metrics_address: str = DEFAULT_METRICS_ADDRESS
    metrics_port: int = 0

    def __post_init__(self) -> None:
        # Freeze caller-supplied dicts so shared instances stay read-only
        if not isinstance(self.servers, MappingProxyType):
            object.__setattr__(self, "servers", MappingProxyType(dict(self.servers)))
        if not isinstance(self.users, MappingProxyType):
            object.__setattr__(self, "users", MappingProxyType(dict(self.users)))

    def is_whitelisted(self, address: Any) -> bool:
        ip = _client_ip(address)
        return ip is not None and ip in self.servers

    def server_default_vlan(self, address: Any) -> int | None:
        ip = _client_ip(address)
        entry = self.servers.get(ip) if ip is not None else None
        if entry is None:
            logger.warning(
                "No server entry for address expected to be whitelisted",
                event="radius.settings.server_missing",
                client_ip=str(address),
            )
            return None
        return entry.fallback_vlan

    def lookup_user(self, identity: str) -> UserEntry | None:
        return self.users.get(identity)


def _parse_listen_address(value: str) -> str:
    if not value:
        return DEFAULT_LISTEN_ADDRESS
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        logger.warning(
            "Unable to parse listen address, falling back to default",
            event="radius.config.listen_address_invalid",
            listen_address=value,
            fallback=DEFAULT_LISTEN_ADDRESS,
        )
        return DEFAULT_LISTEN_ADDRESS


def build_server_entry(entry: ServerEntrySchema) -> tuple[IPAddress, ServerEntry]:
    """Resolve one server section; an unparseable IP is fatal."""
    try:
        ip = _unmap(ipaddress.ip_address(entry.ip.strip()))
    except ValueError as exc:
        raise ConfigValidationError(
            f"Unable to parse IP address for server '{entry.name}': {entry.ip!r}",
            field=f"server:{entry.name}.ip",
            value=entry.ip,
        ) from exc

    enabled = entry.default_vlan_enabled
    if enabled and not valid_vlan(entry.vlan_id):
        logger.warning(
            "Invalid default VLAN id for server entry; default VLAN disabled",
            event="radius.config.server_vlan_invalid",
            server=entry.name,
            client_ip=str(ip),
            vlan_id=entry.vlan_id,
        )
        enabled = False

    return ip, ServerEntry(
        default_vlan_enabled=enabled,
        default_vlan=entry.vlan_id if enabled else 0,
    )


def build_user_entry(entry: UserEntrySchema) -> tuple[str, UserEntry]:
    """Resolve one user section to its identity key and directory entry.

    ``mac_address`` takes precedence; otherwise both ``username`` and
    ``hash`` are required.
    """
    if entry.mac_address:
        key = entry.mac_address
        kind = IdentityKind.MAC_ADDRESS
        credential = entry.mac_address
    elif entry.username and entry.hash:
        key = entry.username
        kind = IdentityKind.PASSWORD_HASH
        credential = entry.hash
        try:
            decode_hex_hash(credential)
        except ValueError:
            logger.warning(
                "User hash is not valid hex; this user can never authenticate",
                event="radius.config.user_hash_invalid",
                user=entry.name,
            )
    else:
        raise ConfigValidationError(
            f"No username, user hash, or mac_address for user entry '{entry.name}'",
            field=f"user:{entry.name}",
        )

    if entry.vlan_id > VLAN_ID_MAX:
        raise ConfigValidationError(
            f"Invalid VLAN id {entry.vlan_id} for user entry '{entry.name}'",
            field=f"user:{entry.name}.vlan_id",
            value=entry.vlan_id,
        )

    vlan_enabled = entry.vlan_enabled
    if vlan_enabled and entry.vlan_id == 0:
        logger.info(
            "VLAN not defined for user entry; disabling VLAN",
            event="radius.config.user_vlan_unset",
            user=entry.name,
        )
        vlan_enabled = False

    return key, UserEntry(
        kind=kind,
        credential=credential,
        vlan_enabled=vlan_enabled,
        vlan=entry.vlan_id if vlan_enabled else 0,
    )


def _collect(items: Iterable[tuple[Any, Any]], what: str) -> dict[Any, Any]:
    collected: dict[Any, Any] = {}
    for key, value in items:
        if key in collected:
            logger.warning(
                "Duplicate configuration key; later entry replaces earlier one",
                event="radius.config.duplicate_key",
                kind=what,
                key=str(key),
            )
        collected[key] = value
    return collected


def build_settings(schema: RadiusVlanConfigSchema) -> Settings:
    """Apply the load-time validation policy and freeze the result."""
    radius = schema.radius
    servers = _collect(
        (build_server_entry(entry) for entry in schema.servers), "server"
    )
    users = _collect((build_user_entry(entry) for entry in schema.users), "user")

    settings = Settings(
        secret=radius.secret.encode("utf-8"),
        listen_address=_parse_listen_address(radius.listen_address.strip()),
        listen_port=radius.listen_port or DEFAULT_LISTEN_PORT,
        servers=servers,
        users=users,
        log_level=radius.log_level,
        workers=radius.workers,
        socket_timeout=radius.socket_timeout,
        metrics_address=schema.monitoring.metrics_address,
        metrics_port=schema.monitoring.metrics_port,
    )
    logger.debug(
        "Loaded settings",
        event="radius.config.loaded",
        listen_address=settings.listen_address,
        listen_port=settings.listen_port,
        servers=len(servers),
        users=len(users),
    )
    return settings


def load_settings(path: str | None = None) -> Settings:
    """Resolve, read and validate the configuration into :class:`Settings`.

    Raises:
        ConfigValidationError: for any fatal configuration problem.
    """
    return build_settings(load_schema(resolve_config_path(path)))


__all__ = [
    "IdentityKind",
    "ServerEntry",
    "UserEntry",
    "Settings",
    "valid_vlan",
    "decode_hex_hash",
    "build_server_entry",
    "build_user_entry",
    "build_settings",
    "load_settings",
]
