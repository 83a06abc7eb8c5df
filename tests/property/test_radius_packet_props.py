import os

import pytest
from hypothesis import given
from hypothesis import strategies as st

from radius_vlan.exceptions import ProtocolError
from radius_vlan.radius.constants import (
    ATTR_TUNNEL_PRIVATE_GROUP_ID,
    ATTR_USER_PASSWORD,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REQUEST,
    TUNNEL_ATTRIBUTES,
)
from radius_vlan.radius.packet import RADIUSPacket
from radius_vlan.radius.response import add_vlan_attributes, strip_tunnel_attributes

SECRET = b"testing123"


@given(password=st.binary(min_size=1, max_size=128).filter(lambda b: not b.endswith(b"\x00")))
def test_password_survives_encryption(password):
    req = RADIUSPacket(RADIUS_ACCESS_REQUEST, 1, os.urandom(16))
    req.add_attribute(ATTR_USER_PASSWORD, password)
    back = RADIUSPacket.unpack(req.pack(SECRET), SECRET)
    assert back.get_attribute(ATTR_USER_PASSWORD).value == password


@given(vlan=st.integers(min_value=1, max_value=4094))
def test_vlan_group_id_is_decimal_text(vlan):
    resp = RADIUSPacket(RADIUS_ACCESS_ACCEPT, 1, os.urandom(16))
    add_vlan_attributes(resp, vlan)
    attr = resp.get_attribute(ATTR_TUNNEL_PRIVATE_GROUP_ID)
    assert attr.value == b"\x01" + str(vlan).encode("ascii")


@given(
    types=st.lists(
        st.sampled_from([1, 4, 5, 31, 32, *TUNNEL_ATTRIBUTES]), max_size=20
    )
)
def test_strip_leaves_only_non_tunnel_attributes(types):
    pkt = RADIUSPacket(RADIUS_ACCESS_REQUEST, 1, os.urandom(16))
    for t in types:
        pkt.add_attribute(t, b"\x01\x00\x00\x01")
    removed = strip_tunnel_attributes(pkt)
    assert removed == sum(1 for t in types if t in TUNNEL_ATTRIBUTES)
    assert [a.attr_type for a in pkt.attributes] == [
        t for t in types if t not in TUNNEL_ATTRIBUTES
    ]


@given(data=st.binary(max_size=64))
def test_unpack_never_raises_anything_but_protocol_error(data):
    try:
        RADIUSPacket.unpack(data, SECRET)
    except ProtocolError:
        pass


def test_empty_password_padded_to_one_block():
    req = RADIUSPacket(RADIUS_ACCESS_REQUEST, 1, os.urandom(16))
    req.add_attribute(ATTR_USER_PASSWORD, b"")
    raw = req.pack(SECRET)
    back = RADIUSPacket.unpack(raw, SECRET)
    assert back.get_attribute(ATTR_USER_PASSWORD).value == b""
    with pytest.raises(ProtocolError):
        RADIUSPacket.unpack(raw[:-1], SECRET)
