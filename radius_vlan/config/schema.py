"""Pydantic schema for RADIUS VLAN configuration validation.

The schema only checks types and ranges of the raw values. The
VLAN/identity policy (coercions, fatal combinations) lives in
:mod:`radius_vlan.config.settings`.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_METRICS_ADDRESS,
    DEFAULT_SOCKET_TIMEOUT,
    DEFAULT_WORKERS,
)


class RadiusSectionSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")
    # Empty address / zero port mean "use the default"
    listen_address: str = Field(default="")
    listen_port: int = Field(default=0, ge=0, le=65535)
    secret: str = Field(..., min_length=1, description="Shared RADIUS secret")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)
    workers: int = Field(default=DEFAULT_WORKERS, ge=1, le=64)
    socket_timeout: float = Field(default=DEFAULT_SOCKET_TIMEOUT, gt=0, le=60)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


class MonitoringSectionSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")
    metrics_address: str = Field(default=DEFAULT_METRICS_ADDRESS)
    # 0 disables the Prometheus endpoint
    metrics_port: int = Field(default=0, ge=0, le=65535)


class ServerEntrySchema(BaseModel):
    """One ``[server:<name>]`` section (a whitelisted RADIUS client)."""

    model_config = ConfigDict(extra="ignore")
    name: str
    ip: str
    default_vlan_enabled: bool = False
    # Out-of-range values only disable the default VLAN (see build_server_entry)
    vlan_id: int = 0


class UserEntrySchema(BaseModel):
    """One ``[user:<name>]`` section.

    Either ``mac_address`` or the ``username``/``hash`` pair identifies the
    user; which one applies is decided when the settings are built.
    """

    model_config = ConfigDict(extra="ignore")
    name: str
    username: str = ""
    hash: str = ""
    mac_address: str = ""
    vlan_enabled: bool = False
    vlan_id: int = Field(default=0, ge=0, le=65535)


class RadiusVlanConfigSchema(BaseModel):
    radius: RadiusSectionSchema
    monitoring: MonitoringSectionSchema = Field(default_factory=MonitoringSectionSchema)
    servers: list[ServerEntrySchema] = Field(default_factory=list)
    users: list[UserEntrySchema] = Field(default_factory=list)


def validate_config_payload(payload: dict) -> RadiusVlanConfigSchema:
    """Validate configuration payload with Pydantic schema."""

    return RadiusVlanConfigSchema(**payload)
