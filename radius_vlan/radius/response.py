from radius_vlan.utils.logger import get_logger

from .constants import (
    ATTR_MESSAGE_AUTHENTICATOR,
    ATTR_TUNNEL_MEDIUM_TYPE,
    ATTR_TUNNEL_PRIVATE_GROUP_ID,
    ATTR_TUNNEL_TYPE,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REJECT,
    TUNNEL_ATTRIBUTES,
    TUNNEL_MEDIUM_TYPE_IEEE_802,
    TUNNEL_TYPE_VLAN,
    VLAN_TUNNEL_TAG,
)
from .packet import RADIUSPacket

logger = get_logger("radius_vlan.radius.response", component="radius")


def strip_tunnel_attributes(packet: RADIUSPacket) -> int:
    """Remove Tunnel-Type, Tunnel-Medium-Type and Tunnel-Private-Group-Id."""
    removed = packet.remove_attributes(*TUNNEL_ATTRIBUTES)
    if removed:
        logger.warning(
            "Stripped client-supplied tunnel attributes",
            event="radius.response.tunnel_stripped",
            removed=removed,
        )
    return removed


def add_vlan_attributes(response: RADIUSPacket, vlan: int) -> None:
    """Attach the VLAN assignment as one tagged tunnel (RFC 3580 §3.31)."""
    response.add_tagged_integer(ATTR_TUNNEL_TYPE, VLAN_TUNNEL_TAG, TUNNEL_TYPE_VLAN)
    response.add_tagged_integer(
        ATTR_TUNNEL_MEDIUM_TYPE, VLAN_TUNNEL_TAG, TUNNEL_MEDIUM_TYPE_IEEE_802
    )
    response.add_tagged_string(ATTR_TUNNEL_PRIVATE_GROUP_ID, VLAN_TUNNEL_TAG, str(vlan))


class ResponseBuilder:
    """Builder for RADIUS Access-Accept/Reject packets."""

    @staticmethod
    def _finish(request: RADIUSPacket, response: RADIUSPacket) -> RADIUSPacket:
        # Answer a signed request with a signed response; pack() fills the value
        if request.get_attribute(ATTR_MESSAGE_AUTHENTICATOR):
            response.add_attribute(ATTR_MESSAGE_AUTHENTICATOR, b"\x00" * 16)
        return response

    def create_access_accept(
        self, request: RADIUSPacket, vlan: int | None = None
    ) -> RADIUSPacket:
        response = request.make_response(RADIUS_ACCESS_ACCEPT)
        if vlan is not None:
            add_vlan_attributes(response, vlan)
        return self._finish(request, response)

    def create_access_reject(self, request: RADIUSPacket) -> RADIUSPacket:
        return self._finish(request, request.make_response(RADIUS_ACCESS_REJECT))


def send_response(
    sock,
    response: RADIUSPacket,
    addr: tuple[str, int],
    secret: bytes,
    request_auth: bytes,
) -> None:
    """Encode a response and send it to ``addr``.

    Raises:
        OSError: when the datagram cannot be sent; callers decide whether
            to log and carry on.
    """
    if sock is None:
        raise OSError("RADIUS socket is not open")
    sock.sendto(response.pack(secret, request_auth), addr)


__all__ = [
    "ResponseBuilder",
    "add_vlan_attributes",
    "send_response",
    "strip_tunnel_attributes",
]
