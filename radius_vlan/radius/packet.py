import struct
from dataclasses import dataclass

from radius_vlan.exceptions import ProtocolError
from radius_vlan.utils.logger import get_logger

from .authenticator import (
    decrypt_password_value,
    encrypt_password_value,
    hmac_md5,
    md5_digest,
)
from .constants import (
    ATTR_MESSAGE_AUTHENTICATOR,
    ATTR_USER_PASSWORD,
    CODE_NAMES,
    MAX_RADIUS_PACKET_LENGTH,
    RADIUS_ACCESS_REQUEST,
    RADIUS_HEADER_LENGTH,
    TAG_MAX,
    TAG_MIN,
)

logger = get_logger("radius_vlan.radius.packet", component="radius")


@dataclass
class RADIUSAttribute:
    """RADIUS attribute"""

    attr_type: int
    value: bytes

    def pack(self) -> bytes:
        """Pack attribute into bytes"""
        length = len(self.value) + 2
        if length > 255:
            raise ProtocolError(f"Attribute too long: {length} bytes")
        return struct.pack("BB", self.attr_type, length) + self.value

    @classmethod
    def unpack(cls, data: bytes) -> tuple["RADIUSAttribute", int]:
        """Unpack attribute from bytes"""
        if len(data) < 2:
            raise ProtocolError("Incomplete attribute header")

        attr_type, length = struct.unpack("BB", data[:2])
        if length < 2 or length > len(data):
            raise ProtocolError(f"Invalid attribute length: {length}")

        return cls(attr_type, data[2:length]), length

    def as_string(self) -> str:
        """Get value as string"""
        return self.value.decode("utf-8", errors="replace")

    def as_int(self) -> int:
        """Get value as integer"""
        if len(self.value) == 4:
            return int(struct.unpack("!I", self.value)[0])
        raise ProtocolError("Attribute is not an integer")

    def as_tagged_int(self) -> tuple[int, int]:
        """Split an RFC 2868 tagged integer into ``(tag, value)``.

        One tag octet followed by a 24-bit value.
        """
        if len(self.value) != 4:
            raise ProtocolError("Attribute is not a tagged integer")
        return self.value[0], int.from_bytes(self.value[1:], "big")

    def as_tagged_string(self) -> tuple[int, str]:
        """Split an RFC 2868 tagged string into ``(tag, text)``.

        A first octet above 0x1F is data, not a tag (tag 0).
        """
        if self.value and TAG_MIN <= self.value[0] <= TAG_MAX:
            return self.value[0], self.value[1:].decode("utf-8", errors="replace")
        return 0, self.as_string()


def _check_tag(tag: int) -> None:
    if not TAG_MIN <= tag <= TAG_MAX:
        raise ProtocolError(f"Invalid tunnel tag: {tag} (must be 1-31)")


class RADIUSPacket:
    """RADIUS packet structure"""

    def __init__(
        self,
        code: int,
        identifier: int,
        authenticator: bytes,
        attributes: list[RADIUSAttribute] | None = None,
    ):
        self.code = code
        self.identifier = identifier
        self.authenticator = authenticator  # 16 bytes
        self.attributes = attributes or []

    def make_response(self, code: int) -> "RADIUSPacket":
        """Create an empty response correlated with this request.

        The identifier is copied; the request authenticator is kept so
        :meth:`pack` can derive the Response Authenticator from it.
        """
        return RADIUSPacket(
            code=code,
            identifier=self.identifier,
            authenticator=self.authenticator,
        )

    def pack(
        self, secret: bytes | None = None, request_auth: bytes | None = None
    ) -> bytes:
        """Pack RADIUS packet into bytes with proper authenticator calculation.

        Args:
            secret: Shared secret for password obfuscation and authenticators
            request_auth: Request authenticator; given for response packets

        Returns:
            Complete RADIUS packet as bytes

        A Message-Authenticator attribute, if present, is recomputed: over
        the packet carrying the request authenticator (RFC 3579 §3.2), before
        the Response Authenticator is derived.
        """
        raw_attrs: list[bytes] = []
        msg_auth_idx = None
        for attr in self.attributes:
            if attr.attr_type == ATTR_MESSAGE_AUTHENTICATOR:
                msg_auth_idx = len(raw_attrs)
                raw_attrs.append(
                    RADIUSAttribute(ATTR_MESSAGE_AUTHENTICATOR, b"\x00" * 16).pack()
                )
            elif (
                attr.attr_type == ATTR_USER_PASSWORD
                and secret
                and self.code == RADIUS_ACCESS_REQUEST
            ):
                encrypted = encrypt_password_value(
                    attr.value, secret, self.authenticator
                )
                raw_attrs.append(RADIUSAttribute(ATTR_USER_PASSWORD, encrypted).pack())
            else:
                raw_attrs.append(attr.pack())

        length = RADIUS_HEADER_LENGTH + sum(len(raw) for raw in raw_attrs)
        if length > MAX_RADIUS_PACKET_LENGTH:
            raise ProtocolError(f"Packet too large: {length} bytes")
        header = struct.pack("!BBH", self.code, self.identifier, length)

        is_response = (
            secret is not None
            and request_auth is not None
            and self.code != RADIUS_ACCESS_REQUEST
        )
        seed = request_auth if is_response else self.authenticator

        if msg_auth_idx is not None and secret:
            mac = hmac_md5(secret, header + seed + b"".join(raw_attrs))
            raw_attrs[msg_auth_idx] = bytes([ATTR_MESSAGE_AUTHENTICATOR, 18]) + mac

        attrs_data = b"".join(raw_attrs)
        if is_response:
            # Response Authenticator = MD5(Code+ID+Length+RequestAuth+Attributes+Secret)
            authenticator = md5_digest(header + request_auth + attrs_data + secret)
        else:
            authenticator = self.authenticator
        return header + authenticator + attrs_data

    @classmethod
    def unpack(cls, data: bytes, secret: bytes | None = None) -> "RADIUSPacket":
        """Unpack RADIUS packet from bytes.

        With a secret, an Access-Request's User-Password is decrypted in
        place; an undecryptable one is dropped from the attribute list.
        """
        if len(data) < RADIUS_HEADER_LENGTH:
            raise ProtocolError(f"Packet too short: {len(data)} bytes")

        code, identifier, length = struct.unpack("!BBH", data[:4])

        if length > MAX_RADIUS_PACKET_LENGTH:
            raise ProtocolError(f"Packet too large: {length} bytes")
        if length < RADIUS_HEADER_LENGTH:
            raise ProtocolError(f"Invalid packet length field: {length}")
        if len(data) < length:
            raise ProtocolError(
                f"Incomplete packet: got {len(data)}, expected {length}"
            )
        if code not in CODE_NAMES:
            raise ProtocolError(f"Invalid RADIUS code: {code}")

        authenticator = data[4:RADIUS_HEADER_LENGTH]

        # Octets beyond the length field are padding and ignored (RFC 2865 §3)
        attributes = []
        offset = RADIUS_HEADER_LENGTH
        while offset < length:
            try:
                attr, consumed = RADIUSAttribute.unpack(data[offset:length])
            except ProtocolError as e:
                logger.warning(
                    "Error parsing attribute at offset",
                    offset=offset,
                    error=str(e),
                    event="radius.packet.parse_failed",
                )
                raise ProtocolError(f"Invalid attribute at offset {offset}: {e}") from e
            attributes.append(attr)
            offset += consumed

        packet = cls(code, identifier, authenticator, attributes)
        if secret and code == RADIUS_ACCESS_REQUEST:
            packet._decrypt_password(secret)
        return packet

    def _decrypt_password(self, secret: bytes) -> None:
        decoded: list[RADIUSAttribute] = []
        for attr in self.attributes:
            if attr.attr_type != ATTR_USER_PASSWORD:
                decoded.append(attr)
                continue
            plain = decrypt_password_value(attr.value, secret, self.authenticator)
            if plain is None:
                logger.warning(
                    "Invalid encrypted password length; attribute ignored",
                    event="radius.packet.password_length_invalid",
                    length=len(attr.value),
                )
                continue
            decoded.append(RADIUSAttribute(ATTR_USER_PASSWORD, plain))
        self.attributes = decoded

    def add_attribute(self, attr_type: int, value: bytes):
        """Add attribute to packet"""
        self.attributes.append(RADIUSAttribute(attr_type, value))

    def add_string(self, attr_type: int, value: str):
        """Add string attribute"""
        self.add_attribute(attr_type, value.encode("utf-8"))

    def add_integer(self, attr_type: int, value: int):
        """Add integer attribute"""
        self.add_attribute(attr_type, struct.pack("!I", value))

    def add_tagged_integer(self, attr_type: int, tag: int, value: int):
        """Add RFC 2868 tagged integer: tag octet + 24-bit value."""
        _check_tag(tag)
        if not 0 <= value <= 0xFFFFFF:
            raise ProtocolError(f"Tagged integer out of range: {value}")
        self.add_attribute(attr_type, bytes([tag]) + value.to_bytes(3, "big"))

    def add_tagged_string(self, attr_type: int, tag: int, value: str):
        """Add RFC 2868 tagged string: tag octet + text."""
        _check_tag(tag)
        self.add_attribute(attr_type, bytes([tag]) + value.encode("utf-8"))

    def remove_attributes(self, *attr_types: int) -> int:
        """Drop every attribute of the given types; returns how many went."""
        kept = [a for a in self.attributes if a.attr_type not in attr_types]
        removed = len(self.attributes) - len(kept)
        self.attributes = kept
        return removed

    def get_attribute(self, attr_type: int) -> RADIUSAttribute | None:
        """Get first attribute of given type"""
        for attr in self.attributes:
            if attr.attr_type == attr_type:
                return attr
        return None

    def get_attributes(self, attr_type: int) -> list[RADIUSAttribute]:
        return [attr for attr in self.attributes if attr.attr_type == attr_type]

    def get_string(self, attr_type: int) -> str | None:
        """Get string attribute value"""
        attr = self.get_attribute(attr_type)
        return attr.as_string() if attr else None

    def get_integer(self, attr_type: int) -> int | None:
        """Get integer attribute value"""
        attr = self.get_attribute(attr_type)
        try:
            return attr.as_int() if attr else None
        except ProtocolError:
            return None

    def __str__(self) -> str:
        """String representation for debugging"""
        return (
            f"RADIUSPacket(code={CODE_NAMES.get(self.code, self.code)}, "
            f"id={self.identifier}, attrs={len(self.attributes)})"
        )


__all__ = ["RADIUSAttribute", "RADIUSPacket"]
