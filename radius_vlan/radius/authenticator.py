import hashlib
import hmac
import struct
import warnings

from .constants import (
    ATTR_MESSAGE_AUTHENTICATOR,
    MAX_RADIUS_PACKET_LENGTH,
    RADIUS_ACCESS_REQUEST,
    RADIUS_HEADER_LENGTH,
)

# RFC 2865 §5.2: User-Password is 16..128 octets on the wire
MAX_PASSWORD_LENGTH = 128


def md5_digest(data: bytes) -> bytes:
    """MD5 as mandated by RFC 2865; not used for general crypto."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        return hashlib.md5(data, usedforsecurity=False).digest()


def hmac_md5(secret: bytes, data: bytes) -> bytes:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        return hmac.new(secret, data, digestmod=hashlib.md5).digest()


def encrypt_password_value(
    password: bytes, secret: bytes, authenticator: bytes
) -> bytes:
    """Encrypt User-Password per RFC 2865 §5.2 (MD5-based obfuscation)."""
    auth = authenticator
    if len(auth) != 16:
        auth = (auth or b"")[:16].ljust(16, b"\x00")
    padded = password + b"\x00" * ((-len(password)) % 16)
    if not padded:
        padded = b"\x00" * 16
    encrypted = b""
    prev = auth
    for i in range(0, len(padded), 16):
        block = padded[i : i + 16]
        digest = md5_digest(secret + prev)
        enc = bytes(a ^ b for a, b in zip(block, digest))
        encrypted += enc
        prev = enc
    return encrypted


def decrypt_password_value(
    encrypted: bytes, secret: bytes, authenticator: bytes
) -> bytes | None:
    """Reverse :func:`encrypt_password_value`.

    Returns ``None`` when the ciphertext length is not a multiple of 16
    or exceeds 128 octets.
    """
    if not encrypted or len(encrypted) % 16 or len(encrypted) > MAX_PASSWORD_LENGTH:
        return None
    # c(1) = p(1) XOR MD5(secret + RA), c(n) = p(n) XOR MD5(secret + c(n-1))
    decrypted = b""
    prev = authenticator
    for i in range(0, len(encrypted), 16):
        chunk = encrypted[i : i + 16]
        key = md5_digest(secret + prev)
        decrypted += bytes(a ^ b for a, b in zip(chunk, key))
        prev = chunk
    return decrypted.rstrip(b"\x00")


def verify_message_authenticator(data: bytes, secret: bytes) -> bool:
    """
    Verify Message-Authenticator (Attr 80) on Access-Request.
    Steps (RFC 2869 §5.14):
      - Locate the Message-Authenticator attribute.
      - Set its 16-byte value to zero.
      - Compute HMAC-MD5 over the entire packet (Code..end) keyed by the shared secret.
      - Compare to the received value (constant-time).
    A request without the attribute passes; nothing in this server mandates it.
    """
    if len(data) < RADIUS_HEADER_LENGTH:
        return False
    code, _identifier, length = struct.unpack("!BBH", data[:4])
    if (
        length > MAX_RADIUS_PACKET_LENGTH
        or length < RADIUS_HEADER_LENGTH
        or len(data) < length
    ):
        return False
    if code != RADIUS_ACCESS_REQUEST:
        return True

    attrs = data[RADIUS_HEADER_LENGTH:length]
    mutable = bytearray(data[:length])
    idx = 0
    recv_mac: bytes | None = None
    while idx + 2 <= len(attrs):
        atype = attrs[idx]
        alen = attrs[idx + 1]
        if alen < 2 or idx + alen > len(attrs):
            return False
        if atype == ATTR_MESSAGE_AUTHENTICATOR:
            if alen != 18:
                return False
            offset_in_packet = RADIUS_HEADER_LENGTH + idx + 2
            recv_mac = bytes(mutable[offset_in_packet : offset_in_packet + 16])
            mutable[offset_in_packet : offset_in_packet + 16] = b"\x00" * 16
            break
        idx += alen

    if recv_mac is None:
        return True
    return hmac.compare_digest(hmac_md5(secret, bytes(mutable)), recv_mac)


__all__ = [
    "md5_digest",
    "hmac_md5",
    "encrypt_password_value",
    "decrypt_password_value",
    "verify_message_authenticator",
]
