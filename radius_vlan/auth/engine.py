"""Credential verification against the configured user directory."""

import hashlib
import hmac
from dataclasses import dataclass

from radius_vlan.config.settings import (
    IdentityKind,
    Settings,
    UserEntry,
    decode_hex_hash,
)
from radius_vlan.utils.logger import get_logger

logger = get_logger("radius_vlan.auth.engine", component="auth")


@dataclass(frozen=True)
class AuthenticationOutcome:
    """Result of one credential check. ``vlan`` is only set on success."""

    authenticated: bool
    vlan: int | None = None


REJECTED = AuthenticationOutcome(authenticated=False)


def password_digest(password: str) -> str:
    """Hex SHA-512 digest of a password, as stored in ``hash`` entries."""
    return hashlib.sha512(password.encode("utf-8")).hexdigest()


def _verify_mac(entry: UserEntry, presented: str) -> bool:
    return hmac.compare_digest(
        entry.credential.encode("utf-8"), presented.encode("utf-8")
    )


def _verify_password_hash(identity: str, entry: UserEntry, presented: str) -> bool:
    try:
        expected = decode_hex_hash(entry.credential)
    except ValueError as exc:
        logger.info(
            "Could not decode configured hash as hex",
            event="radius.auth.config_hash_invalid",
            username=identity,
            error=str(exc),
        )
        return False
    digest = hashlib.sha512(presented.encode("utf-8")).digest()
    return hmac.compare_digest(digest, expected)


def verify_credential(identity: str, entry: UserEntry, presented: str) -> bool:
    """Apply the comparison rule belonging to the entry's identity kind."""
    if entry.kind is IdentityKind.MAC_ADDRESS:
        return _verify_mac(entry, presented)
    if entry.kind is IdentityKind.PASSWORD_HASH:
        return _verify_password_hash(identity, entry, presented)
    raise ValueError(f"Unsupported identity kind: {entry.kind!r}")


def authenticate(
    settings: Settings, identity: str, presented_credential: str
) -> AuthenticationOutcome:
    """Resolve an identity/credential pair to an outcome.

    Touches no shared mutable state; safe to call from any number of
    request workers at once.
    """
    entry = settings.lookup_user(identity)
    if entry is None:
        logger.debug(
            "Unknown identity",
            event="radius.auth.unknown_identity",
            username=identity,
        )
        return REJECTED

    if not verify_credential(identity, entry, presented_credential):
        logger.debug(
            "Credential mismatch",
            event="radius.auth.credential_mismatch",
            username=identity,
            kind=entry.kind.value,
        )
        return REJECTED

    return AuthenticationOutcome(authenticated=True, vlan=entry.assigned_vlan)


__all__ = [
    "AuthenticationOutcome",
    "authenticate",
    "password_digest",
    "verify_credential",
]
