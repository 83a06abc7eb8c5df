"""Configuration file loading.

Load order: defaults → config file → environment variables.
The shared secret may come from the file or from ``RADIUS_VLAN_SECRET``.
"""

import configparser
import os
from typing import Any

from pydantic import ValidationError

from radius_vlan.exceptions import ConfigValidationError
from radius_vlan.utils.logger import get_logger

from .constants import (
    DEFAULT_CONFIG_PATHS,
    ENV_CONFIG_PATH,
    ENV_OVERRIDABLE_KEYS,
    ENV_PREFIX,
    SECTION_MONITORING,
    SECTION_RADIUS,
    SERVER_SECTION_PREFIX,
    USER_SECTION_PREFIX,
)
from .schema import RadiusVlanConfigSchema, validate_config_payload

logger = get_logger(__name__, component="config")


def resolve_config_path(path: str | None = None) -> str | None:
    """Pick the configuration file to read.

    An explicit path (or ``RADIUS_VLAN_CONFIG``) is returned as-is even when
    it does not exist, so the caller reports it. Otherwise the first existing
    default location wins; ``None`` means "environment only".
    """
    explicit = path or os.environ.get(ENV_CONFIG_PATH)
    if explicit:
        return explicit
    for candidate in DEFAULT_CONFIG_PATHS:
        if os.path.exists(candidate):
            return candidate
    return None


def apply_env_overrides(
    config: configparser.ConfigParser,
    section: str,
    key: str,
    env_var: str | None = None,
) -> None:
    """Apply environment variable override to a config value.

    Args:
        config: ConfigParser instance
        section: Section name
        key: Key name
        env_var: Optional custom environment variable name.
                If None, derives from the RADIUS_VLAN_KEY pattern.
    """
    if env_var is None:
        env_var = f"{ENV_PREFIX}{key.upper()}"

    value = os.environ.get(env_var)
    if value is None:
        return
    if not config.has_section(section):
        config.add_section(section)
    if config.has_option(section, key):
        logger.debug(
            "Environment overrides config file value",
            event="radius.config.env_override_replaced",
            section=section,
            key=key,
            env_var=env_var,
        )
    else:
        logger.debug(
            "Applied environment override for config key",
            event="radius.config.env_override_applied",
            section=section,
            key=key,
            env_var=env_var,
        )
    config.set(section, key, value)


def apply_all_env_overrides(config: configparser.ConfigParser) -> None:
    """Apply every supported ``RADIUS_VLAN_<KEY>`` override."""
    for section, keys in ENV_OVERRIDABLE_KEYS.items():
        for key in keys:
            apply_env_overrides(config, section, key)


def load_config(path: str | None = None) -> configparser.ConfigParser:
    """Read the INI file (if any) and apply environment overrides."""
    config = configparser.ConfigParser(interpolation=None)
    if path:
        if not os.path.exists(path):
            raise ConfigValidationError(
                f"Configuration file not found: {path}", field="path", value=path
            )
        try:
            with open(path, encoding="utf-8") as fh:
                config.read_file(fh, source=path)
        except configparser.Error as exc:
            raise ConfigValidationError(
                f"Unable to parse configuration file {path}: {exc}",
                field="path",
                value=path,
            ) from exc
        logger.debug(
            "Loaded configuration file",
            event="radius.config.file_loaded",
            path=path,
            sections=len(config.sections()),
        )
    else:
        logger.info(
            "No configuration file found; using environment only",
            event="radius.config.no_file",
        )

    apply_all_env_overrides(config)
    return config


def _entries(
    config: configparser.ConfigParser, prefix: str
) -> list[dict[str, Any]]:
    entries = []
    for section in config.sections():
        if not section.startswith(prefix):
            continue
        entry: dict[str, Any] = dict(config.items(section))
        entry["name"] = section[len(prefix) :].strip() or section
        entries.append(entry)
    return entries


def config_to_payload(config: configparser.ConfigParser) -> dict[str, Any]:
    """Flatten the parser into the dict shape the schema expects.

    Section order is file order, which is what makes the
    last-entry-wins rule for duplicate keys deterministic.
    """
    payload: dict[str, Any] = {
        "radius": dict(config.items(SECTION_RADIUS))
        if config.has_section(SECTION_RADIUS)
        else {},
        "servers": _entries(config, SERVER_SECTION_PREFIX),
        "users": _entries(config, USER_SECTION_PREFIX),
    }
    if config.has_section(SECTION_MONITORING):
        payload["monitoring"] = dict(config.items(SECTION_MONITORING))
    return payload


def _describe_validation_error(exc: ValidationError) -> tuple[str, str]:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return location, f"Invalid configuration at {location or '<root>'}: {first.get('msg')}"


def load_schema(path: str | None = None) -> RadiusVlanConfigSchema:
    """Load, overlay and type-check the configuration.

    Raises:
        ConfigValidationError: on unreadable files or schema violations.
    """
    config = load_config(path)
    try:
        return validate_config_payload(config_to_payload(config))
    except ValidationError as exc:
        location, message = _describe_validation_error(exc)
        logger.error(
            "Configuration validation failed",
            event="radius.config.validation_failed",
            field=location,
            error=message,
        )
        raise ConfigValidationError(message, field=location) from exc


__all__ = [
    "resolve_config_path",
    "apply_env_overrides",
    "apply_all_env_overrides",
    "load_config",
    "config_to_payload",
    "load_schema",
]
