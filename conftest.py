"""
Early pytest configuration plugin.

Loaded before any test module is imported so that configuration read by
the tests never picks up ``RADIUS_VLAN_*`` variables from the developer's
shell.
"""

import os

import pytest

ENV_PREFIX = "RADIUS_VLAN_"


def pytest_configure(config):
    """Strip inherited overrides before collection."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            del os.environ[key]


@pytest.fixture(autouse=True)
def _isolated_radius_env(monkeypatch):
    """Each test starts without ``RADIUS_VLAN_*`` overrides."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield
