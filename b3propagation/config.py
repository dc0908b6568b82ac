"""Configuration loading for b3propagation.

Sources, lowest priority first:
- defaults (the pydantic models below)
- TOML config file (``b3propagation.toml``)
- environment variables (``B3_PROPAGATION_*``)
- explicit overrides passed to ``init()``
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pydantic
from pydantic import BaseModel, Field, field_validator

from b3propagation.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "b3propagation.toml"

# flat name -> (section, field); shared by env vars and init() overrides
_FLAT_KEYS: Dict[str, Tuple[str, str]] = {
    "lowercase_keys": ("propagation", "lowercase_keys"),
    "log_level": ("logging", "level"),
    "install_otel_propagator": ("otel", "install_global_propagator"),
}

ENV_PREFIX = "B3_PROPAGATION_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class PropagationSection(BaseModel):
    """Carrier key naming."""

    lowercase_keys: bool = False


class LoggingSection(BaseModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return level


class OTelSection(BaseModel):
    """OpenTelemetry integration."""

    install_global_propagator: bool = False


class B3Config(BaseModel):
    propagation: PropagationSection = Field(default_factory=PropagationSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
    otel: OTelSection = Field(default_factory=OTelSection)


def find_config_file() -> Optional[str]:
    """
    Look for a config file in the current directory, then the user's home.

    Returns:
        Path of the first file found, or None
    """
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".config" / "b3propagation" / CONFIG_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            logger.debug(f"Found config file {candidate}")
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Read a TOML config file.

    Returns:
        Parsed nested dict, or an empty dict when the file does not exist

    Raises:
        ConfigError: If the file is not valid TOML
    """
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("Invalid TOML config file", {"path": path, "error": e}) from e
    logger.debug(f"Loaded config file {path}")
    return data


def _parse_bool(name: str, raw: str) -> Optional[bool]:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring {name}={raw!r}: expected a boolean")
    return None


def load_env_config() -> Dict[str, Any]:
    """Read ``B3_PROPAGATION_*`` environment variables into a nested dict."""
    flat: Dict[str, Any] = {}

    lowercase = os.getenv(ENV_PREFIX + "LOWERCASE_KEYS")
    if lowercase is not None:
        parsed = _parse_bool(ENV_PREFIX + "LOWERCASE_KEYS", lowercase)
        if parsed is not None:
            flat["lowercase_keys"] = parsed

    level = os.getenv(ENV_PREFIX + "LOG_LEVEL")
    if level:
        flat["log_level"] = level

    install = os.getenv(ENV_PREFIX + "INSTALL_OTEL_PROPAGATOR")
    if install is not None:
        parsed = _parse_bool(ENV_PREFIX + "INSTALL_OTEL_PROPAGATOR", install)
        if parsed is not None:
            flat["install_otel_propagator"] = parsed

    return _nest(flat)


def _nest(flat: Dict[str, Any]) -> Dict[str, Any]:
    nested: Dict[str, Any] = {}
    for name, value in flat.items():
        if name not in _FLAT_KEYS:
            raise ConfigError("Unknown config option", {"option": name})
        section, key = _FLAT_KEYS[name]
        nested.setdefault(section, {})[key] = value
    return nested


def _merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config_with_priority(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Merge file, environment and explicit settings into one nested dict.

    Args:
        config_file: Path to a TOML file; discovered with find_config_file()
            when omitted
        overrides: Flat options (``lowercase_keys``, ``log_level``,
            ``install_otel_propagator``) that win over everything else

    Returns:
        Nested dict keyed by section
    """
    path = config_file or find_config_file()
    merged = load_toml_config(path) if path else {}
    merged = _merge(merged, load_env_config())
    if overrides:
        merged = _merge(merged, _nest({k: v for k, v in overrides.items() if v is not None}))
    return merged


def validate_config(data: Dict[str, Any]) -> B3Config:
    """
    Validate a nested config dict.

    Raises:
        ConfigError: If any value is invalid
    """
    try:
        return B3Config.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigError("Invalid configuration", {"errors": e.error_count()}) from e


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> B3Config:
    """Load and validate configuration from every source."""
    return validate_config(load_config_with_priority(config_file, overrides))
