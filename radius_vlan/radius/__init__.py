"""
RADIUS Server Module

Access-Request decision handling with VLAN assignment, plus the packet
codec and UDP server it runs on.
"""

from .handlers import AccessDecision, AccessRequestHandler
from .packet import RADIUSAttribute, RADIUSPacket
from .secret import SecretProvider, StaticSecretProvider
from .server import RADIUSServer

__all__ = [
    "AccessDecision",
    "AccessRequestHandler",
    "RADIUSAttribute",
    "RADIUSPacket",
    "RADIUSServer",
    "SecretProvider",
    "StaticSecretProvider",
]
