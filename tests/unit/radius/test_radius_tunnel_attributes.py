"""RFC 2868 tagged tunnel attributes used for VLAN assignment."""

import os

import pytest

from radius_vlan.exceptions import ProtocolError
from radius_vlan.radius.constants import (
    ATTR_MESSAGE_AUTHENTICATOR,
    ATTR_TUNNEL_MEDIUM_TYPE,
    ATTR_TUNNEL_PRIVATE_GROUP_ID,
    ATTR_TUNNEL_TYPE,
    ATTR_USER_NAME,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REJECT,
    RADIUS_ACCESS_REQUEST,
)
from radius_vlan.radius.packet import RADIUSAttribute, RADIUSPacket
from radius_vlan.radius.response import (
    ResponseBuilder,
    add_vlan_attributes,
    strip_tunnel_attributes,
)


def _request(*attrs: RADIUSAttribute) -> RADIUSPacket:
    return RADIUSPacket(RADIUS_ACCESS_REQUEST, 5, os.urandom(16), list(attrs))


def test_vlan_attribute_wire_format():
    resp = RADIUSPacket(RADIUS_ACCESS_ACCEPT, 1, os.urandom(16))
    add_vlan_attributes(resp, 42)

    assert [(a.attr_type, a.value) for a in resp.attributes] == [
        (ATTR_TUNNEL_TYPE, b"\x01\x00\x00\x0d"),
        (ATTR_TUNNEL_MEDIUM_TYPE, b"\x01\x00\x00\x06"),
        (ATTR_TUNNEL_PRIVATE_GROUP_ID, b"\x0142"),
    ]


def test_vlan_attributes_decode_as_tagged():
    resp = RADIUSPacket(RADIUS_ACCESS_ACCEPT, 1, os.urandom(16))
    add_vlan_attributes(resp, 4094)

    assert resp.get_attribute(ATTR_TUNNEL_TYPE).as_tagged_int() == (1, 13)
    assert resp.get_attribute(ATTR_TUNNEL_MEDIUM_TYPE).as_tagged_int() == (1, 6)
    assert resp.get_attribute(ATTR_TUNNEL_PRIVATE_GROUP_ID).as_tagged_string() == (
        1,
        "4094",
    )


def test_untagged_string_reads_as_tag_zero():
    attr = RADIUSAttribute(ATTR_TUNNEL_PRIVATE_GROUP_ID, b"100")
    assert attr.as_tagged_string() == (0, "100")


@pytest.mark.parametrize("tag", [0, 32, 255])
def test_invalid_tag_rejected(tag):
    pkt = RADIUSPacket(RADIUS_ACCESS_ACCEPT, 1, os.urandom(16))
    with pytest.raises(ProtocolError):
        pkt.add_tagged_integer(ATTR_TUNNEL_TYPE, tag, 13)
    with pytest.raises(ProtocolError):
        pkt.add_tagged_string(ATTR_TUNNEL_PRIVATE_GROUP_ID, tag, "10")


def test_tagged_integer_out_of_range():
    pkt = RADIUSPacket(RADIUS_ACCESS_ACCEPT, 1, os.urandom(16))
    with pytest.raises(ProtocolError):
        pkt.add_tagged_integer(ATTR_TUNNEL_TYPE, 1, 1 << 24)


def test_strip_removes_every_tunnel_attribute():
    req = _request(
        RADIUSAttribute(ATTR_USER_NAME, b"alice"),
        RADIUSAttribute(ATTR_TUNNEL_TYPE, b"\x01\x00\x00\x0d"),
        RADIUSAttribute(ATTR_TUNNEL_PRIVATE_GROUP_ID, b"\x01666"),
        RADIUSAttribute(ATTR_TUNNEL_MEDIUM_TYPE, b"\x01\x00\x00\x06"),
        RADIUSAttribute(ATTR_TUNNEL_PRIVATE_GROUP_ID, b"\x02777"),
    )

    assert strip_tunnel_attributes(req) == 4
    assert [a.attr_type for a in req.attributes] == [ATTR_USER_NAME]
    assert strip_tunnel_attributes(req) == 0


def test_accept_without_vlan_has_no_tunnel_attributes():
    resp = ResponseBuilder().create_access_accept(_request(), None)
    assert resp.code == RADIUS_ACCESS_ACCEPT
    assert resp.attributes == []


def test_reject_has_no_attributes():
    resp = ResponseBuilder().create_access_reject(_request())
    assert resp.code == RADIUS_ACCESS_REJECT
    assert resp.identifier == 5
    assert resp.attributes == []


def test_signed_request_gets_message_authenticator_slot():
    req = _request(RADIUSAttribute(ATTR_MESSAGE_AUTHENTICATOR, b"\x00" * 16))

    accept = ResponseBuilder().create_access_accept(req, 10)
    reject = ResponseBuilder().create_access_reject(req)

    assert accept.attributes[-1].attr_type == ATTR_MESSAGE_AUTHENTICATOR
    assert [a.attr_type for a in reject.attributes] == [ATTR_MESSAGE_AUTHENTICATOR]
