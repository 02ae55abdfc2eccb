"""Runtime configuration model for tagstore.

This module owns all environment variable and YAML config parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
import socket
from typing import Mapping, cast

from core.constants import (
    DEFAULT_CODEC_NAME,
    DEFAULT_LOCATOR,
    DEFAULT_LOG_LEVEL,
    SUPPORTED_CODEC_NAMES,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import TagStoreConfigError, TagStoreDependencyError

_CONFIG_KEYS = ("locator", "codec", "source", "log_level")


@dataclass(frozen=True)
class StoreConfig:
    """Validated runtime configuration.

    Attributes:
        locator: Storage locator selecting and configuring a backend.
        codec: Default codec name for file-backed stores.
        source: Identity stamped into ``_source`` on new records.
        log_level: Minimum level for emitted log events.
    """

    locator: str
    codec: str
    source: str
    log_level: str

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TagStoreConfigError: If environment values are invalid.
        """
        return cls(
            locator=os.getenv("TAGSTORE_LOCATOR", DEFAULT_LOCATOR),
            codec=_parse_codec(os.getenv("TAGSTORE_CODEC", DEFAULT_CODEC_NAME)),
            source=os.getenv("TAGSTORE_SOURCE") or socket.gethostname(),
            log_level=_parse_log_level(os.getenv("TAGSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "StoreConfig":
        """Build config from a YAML file, using the environment for defaults.

        Args:
            config_path: Path to a YAML mapping with config keys.

        Returns:
            A validated config object.

        Raises:
            TagStoreDependencyError: If PyYAML is unavailable.
            TagStoreConfigError: If the file is unreadable or invalid.
        """
        payload = _load_yaml_mapping(Path(config_path))
        unknown_keys = sorted(set(payload) - set(_CONFIG_KEYS))
        if unknown_keys:
            raise TagStoreConfigError(
                f"Unknown config keys in {config_path}: {', '.join(unknown_keys)}. "
                f"Supported keys: {', '.join(_CONFIG_KEYS)}."
            )
        config = cls.from_env()
        overrides = {key: str(value) for key, value in payload.items() if value is not None}
        if "codec" in overrides:
            overrides["codec"] = _parse_codec(overrides["codec"])
        if "log_level" in overrides:
            overrides["log_level"] = _parse_log_level(overrides["log_level"])
        return replace(config, **overrides)


def _parse_codec(raw_value: str) -> str:
    """Normalize and validate a codec name.

    Args:
        raw_value: Raw codec name.

    Returns:
        Lowercase codec name.

    Raises:
        TagStoreConfigError: If the codec is not supported.
    """
    codec_name = raw_value.strip().lower()
    if codec_name not in SUPPORTED_CODEC_NAMES:
        raise TagStoreConfigError(
            f"Unsupported codec '{raw_value}'. "
            f"Set TAGSTORE_CODEC to one of: {', '.join(SUPPORTED_CODEC_NAMES)}."
        )
    return codec_name


def _parse_log_level(raw_value: str) -> str:
    """Normalize and validate a log level name.

    Args:
        raw_value: Raw level string.

    Returns:
        Uppercase level name.

    Raises:
        TagStoreConfigError: If the level is not supported.
    """
    level = raw_value.strip().upper()
    if level not in SUPPORTED_LOG_LEVELS:
        raise TagStoreConfigError(
            f"Invalid TAGSTORE_LOG_LEVEL value '{raw_value}'. "
            f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    return level


def _load_yaml_mapping(config_path: Path) -> Mapping[str, object]:
    """Load a YAML config file and require a top-level mapping."""
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:
        raise TagStoreDependencyError(
            "YAML config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    try:
        payload = cast(object, yaml.safe_load(config_path.read_text(encoding="utf-8")))
    except OSError as error:
        raise TagStoreConfigError(
            f"Failed to read config file at {config_path}: {error}. "
            "Check the path and file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise TagStoreConfigError(
            f"Failed to parse YAML config at {config_path}: {error}. "
            "Fix the YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise TagStoreConfigError(
            f"Invalid config at {config_path}: expected a YAML mapping at top level."
        )
    return cast(Mapping[str, object], payload)
