"""RADIUS Protocol Constants and Definitions.

Packet codes and attribute types from RFC 2865 (Authentication), the
tunnel attributes from RFC 2868 used for VLAN assignment, and the
Message-Authenticator from RFC 2869.
"""

# Standard RADIUS Packet Codes (RFC 2865 §4.1)
# These values represent the first octet of a RADIUS packet
RADIUS_ACCESS_REQUEST = 1  #: Access-Request packet code
RADIUS_ACCESS_ACCEPT = 2  #: Access-Accept packet code
RADIUS_ACCESS_REJECT = 3  #: Access-Reject packet code
RADIUS_ACCOUNTING_REQUEST = 4  #: Accounting-Request packet code
RADIUS_ACCOUNTING_RESPONSE = 5  #: Accounting-Response packet code
RADIUS_ACCESS_CHALLENGE = 11  #: Access-Challenge packet code

CODE_NAMES = {
    RADIUS_ACCESS_REQUEST: "Access-Request",
    RADIUS_ACCESS_ACCEPT: "Access-Accept",
    RADIUS_ACCESS_REJECT: "Access-Reject",
    RADIUS_ACCOUNTING_REQUEST: "Accounting-Request",
    RADIUS_ACCOUNTING_RESPONSE: "Accounting-Response",
    RADIUS_ACCESS_CHALLENGE: "Access-Challenge",
}

# Packet limits
RADIUS_HEADER_LENGTH = 20
MAX_RADIUS_PACKET_LENGTH = 4096  # RFC 2865 maximum

# Standard RADIUS Attribute Types (RFC 2865 §5)
ATTR_USER_NAME = 1
ATTR_USER_PASSWORD = 2
ATTR_NAS_IP_ADDRESS = 4
ATTR_NAS_PORT = 5
ATTR_REPLY_MESSAGE = 18
ATTR_CALLING_STATION_ID = 31
ATTR_NAS_IDENTIFIER = 32

# Tunnel attributes (RFC 2868 §3)
ATTR_TUNNEL_TYPE = 64
ATTR_TUNNEL_MEDIUM_TYPE = 65
ATTR_TUNNEL_PRIVATE_GROUP_ID = 81

TUNNEL_ATTRIBUTES = (
    ATTR_TUNNEL_TYPE,
    ATTR_TUNNEL_MEDIUM_TYPE,
    ATTR_TUNNEL_PRIVATE_GROUP_ID,
)

# Message-Authenticator (RFC 2869 §5.14)
ATTR_MESSAGE_AUTHENTICATOR = 80

# Tunnel-Type values (RFC 3580 §3.31)
TUNNEL_TYPE_VLAN = 13

# Tunnel-Medium-Type values (RFC 2868 §3.2)
TUNNEL_MEDIUM_TYPE_IEEE_802 = 6

# Tag grouping the three VLAN attributes into one tunnel
VLAN_TUNNEL_TAG = 1

# Valid RFC 2868 tag range; 0 means "no tag"
TAG_MIN = 0x01
TAG_MAX = 0x1F
