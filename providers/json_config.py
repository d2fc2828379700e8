"""Configuration provider that imports and exports plugin JSON files."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from core.configuration import ConfigurationError, PluginConfiguration, apply_default_timezone, validation_summary

logger = logging.getLogger(__name__)

_CONFIG_PATH_ENV = "NAME_BUILDER_CONFIG_PATH"
_TIMEZONE_OFFSET_ENV = "NAME_BUILDER_DEFAULT_TIMEZONE_OFFSET"


def configuration_from_mapping(data: Any, *, source: str = "configuration") -> PluginConfiguration:
    """Validate a decoded JSON document as a plugin configuration."""

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{source} must contain a JSON object at the top level.")

    try:
        configuration = PluginConfiguration.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigurationError(f"{source} is invalid: {validation_summary(exc)}") from exc

    if not configuration.fields and not (configuration.pattern and configuration.pattern.strip()):
        raise ConfigurationError(f"{source} must define 'fields' or 'pattern'.")
    return configuration


def parse_configuration(text: str, *, source: str = "configuration") -> PluginConfiguration:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{source} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    return configuration_from_mapping(data, source=source)


def load_configuration(path: str | Path) -> PluginConfiguration:
    """Read a configuration file exported by the configurator or the plugin step."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration path '{config_path}' does not exist.")
    configuration = parse_configuration(config_path.read_text(encoding="utf-8"), source=f"'{config_path}'")
    logger.info("[json_config] Loaded %d field(s) from %s", len(configuration.fields), config_path)
    return configuration


def dump_configuration(configuration: PluginConfiguration, indent: Optional[int] = 2) -> str:
    """Serialise to the sparse camelCase wire format."""

    return json.dumps(configuration.to_wire(), indent=indent, ensure_ascii=False)


def save_configuration(
    configuration: PluginConfiguration,
    path: str | Path,
    *,
    default_timezone_offset: Optional[float] = None,
) -> Path:
    """Write ``configuration`` to ``path``; date fields inherit the default offset."""

    if default_timezone_offset is None:
        default_timezone_offset = default_timezone_offset_from_env()
    configuration = apply_default_timezone(configuration, default_timezone_offset)

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dump_configuration(configuration) + "\n", encoding="utf-8")
    logger.info("[json_config] Saved configuration for %s to %s", configuration.entity or "record", target)
    return target


def default_timezone_offset_from_env() -> Optional[float]:
    raw = os.environ.get(_TIMEZONE_OFFSET_ENV)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{_TIMEZONE_OFFSET_ENV} must be a number of hours, got '{raw}'.") from exc


def _resolve_config_path() -> Optional[Path]:
    override = os.environ.get(_CONFIG_PATH_ENV)
    if override:
        return Path(override)
    return None


def load_default_configuration() -> Optional[PluginConfiguration]:
    """Load the configuration named by ``NAME_BUILDER_CONFIG_PATH``, if any."""

    path = _resolve_config_path()
    if path is None:
        return None
    configuration = load_configuration(path)
    return apply_default_timezone(configuration, default_timezone_offset_from_env())


__all__ = [
    "configuration_from_mapping",
    "default_timezone_offset_from_env",
    "dump_configuration",
    "load_configuration",
    "load_default_configuration",
    "parse_configuration",
    "save_configuration",
]
