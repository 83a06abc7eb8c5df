"""RADIUS VLAN configuration package

- INI file loading with environment variable overrides
- Pydantic schema validation
- Immutable settings model with the VLAN/identity validation policy
"""

from .schema import RadiusVlanConfigSchema
from .settings import (
    IdentityKind,
    ServerEntry,
    Settings,
    UserEntry,
    build_settings,
    load_settings,
)

__all__ = [
    "RadiusVlanConfigSchema",
    "IdentityKind",
    "ServerEntry",
    "Settings",
    "UserEntry",
    "build_settings",
    "load_settings",
]
