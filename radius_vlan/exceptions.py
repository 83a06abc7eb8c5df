# radius_vlan/exceptions.py
"""
Custom exceptions for the RADIUS VLAN server.
"""

from typing import Any


class RadiusVlanError(Exception):
    """Base exception for all RADIUS VLAN server errors."""

    error_code = "server_error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Config exceptions
class ConfigError(RadiusVlanError):
    """Base exception for configuration-related errors."""

    error_code = "config_error"


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails.

    Always fatal: the server must not start with a configuration that
    raised this error.
    """

    error_code = "config_validation_error"

    def __init__(
        self, message: str, field: str | None = None, value: Any = None, **kwargs: Any
    ):
        details = {"field": field, "value": value, **kwargs}
        super().__init__(message, details)
        self.field = field
        self.value = value


# Protocol exceptions
class ProtocolError(RadiusVlanError, ValueError):
    """RADIUS packet parsing/validation error.

    Subclasses ValueError so low-level codec callers can catch either.
    """

    error_code = "protocol_error"
