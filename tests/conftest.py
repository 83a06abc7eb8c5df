"""
Shared fixtures: a representative settings snapshot, an in-process fake
server for driving the request handler directly, and a live UDP server
bound to an ephemeral localhost port.
"""

from __future__ import annotations

import pytest

from radius_vlan.radius.server import RADIUSServer
from tests.unit.radius_stubs import FakeServer, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fake_server(settings):
    return FakeServer(settings)


@pytest.fixture
def live_server():
    """A RADIUS server on 127.0.0.1 with an OS-assigned port."""
    srv = RADIUSServer(
        make_settings(listen_address="127.0.0.1", listen_port=0, workers=2)
    )
    srv.start()
    try:
        yield srv
    finally:
        srv.stop()
