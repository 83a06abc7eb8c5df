"""Configuration constants and defaults.

Section names, section prefixes, environment variable names and default
values used by the configuration loader and the settings model.
"""

# Section names
SECTION_RADIUS = "radius"
SECTION_MONITORING = "monitoring"

# Repeated sections: [server:<name>] and [user:<name>]
SERVER_SECTION_PREFIX = "server:"
USER_SECTION_PREFIX = "user:"

# Environment variable prefixes
ENV_PREFIX = "RADIUS_VLAN_"

# Meta-configuration
ENV_CONFIG_PATH = "RADIUS_VLAN_CONFIG"

# Keys that may be overridden from the environment, per section
ENV_OVERRIDABLE_KEYS = {
    SECTION_RADIUS: [
        "listen_address",
        "listen_port",
        "secret",
        "log_level",
        "workers",
        "socket_timeout",
    ],
    SECTION_MONITORING: [
        "metrics_address",
        "metrics_port",
    ],
}

# Config files tried in order when no explicit path is given
DEFAULT_CONFIG_PATHS = (
    "config/radius-vlan.conf",
    "/etc/radius-vlan/radius-vlan.conf",
)

# Default values
DEFAULT_LISTEN_ADDRESS = "0.0.0.0"
DEFAULT_LISTEN_PORT = 1812
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_WORKERS = 8
DEFAULT_SOCKET_TIMEOUT = 1.0
DEFAULT_METRICS_ADDRESS = "0.0.0.0"

# IEEE 802.1Q usable VLAN ids
VLAN_ID_MIN = 1
VLAN_ID_MAX = 4094
