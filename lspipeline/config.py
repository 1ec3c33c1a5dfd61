# Copyright 2025 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Config file support for lspipeline.

This module handles loading persistent settings from ~/.lspipeline.conf.
Supports both YAML and INI formats.

Priority order: CLI args > ~/.lspipeline.conf > hardcoded defaults
"""

import configparser
import logging
import os
from typing import Any, Dict, Optional

import yaml

from lspipeline.status import validate_color_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.lspipeline.conf")

# Mapping of config field names to their expected Python types
_CONFIG_FIELD_TYPES: Dict[str, type] = {
    "interval": float,
    "row_height": int,
    "base_offset": int,
    "renderer": str,
    "ascii_borders": bool,
    "timezone": str,
    "region": str,
    "profile": str,
    "log_level": str,
    "log_file": str,
}

_CHOICES: Dict[str, frozenset] = {
    "renderer": frozenset(("dashboard", "tabular")),
    "log_level": frozenset(("DEBUG", "INFO", "WARNING", "ERROR")),
}

_BOOL_TRUE_VALUES = frozenset(("true", "yes", "1", "on"))
_BOOL_FALSE_VALUES = frozenset(("false", "no", "0", "off"))


def _parse_bool(value: str) -> bool:
    """Parse a boolean value from a string representation."""
    lower = value.lower()
    if lower in _BOOL_TRUE_VALUES:
        return True
    if lower in _BOOL_FALSE_VALUES:
        return False
    raise ValueError(f"Cannot parse '{value}' as a boolean. Use true/false, yes/no, 1/0, or on/off.")


def _coerce_field(key: str, raw_value: Any) -> Any:
    """Coerce a raw config value to the expected type for the given field name."""
    field_type = _CONFIG_FIELD_TYPES[key]
    try:
        if field_type is bool:
            value = raw_value if isinstance(raw_value, bool) else _parse_bool(str(raw_value))
        elif isinstance(raw_value, bool):
            # YAML turns bare yes/no into bools; those are never valid here
            raise TypeError(raw_value)
        else:
            value = field_type(raw_value)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Invalid value for config field '{key}': expected {field_type.__name__}, got {raw_value!r}") from exc

    if key == "log_level":
        value = value.upper()
    if key in _CHOICES and value not in _CHOICES[key]:
        allowed = ", ".join(sorted(_CHOICES[key]))
        raise ValueError(f"Invalid value for config field '{key}': {value!r} (expected one of {allowed})")
    if key in ("interval", "row_height") and value <= 0:
        raise ValueError(f"Invalid value for config field '{key}': must be positive, got {value!r}")
    if key == "base_offset" and value < 0:
        raise ValueError(f"Invalid value for config field '{key}': must not be negative, got {value!r}")
    return value


def _merge_default_section(items: Any, path: str, result: Dict[str, Any]) -> None:
    for key, raw_value in items:
        if key not in _CONFIG_FIELD_TYPES:
            logger.warning("Unknown config key '%s' in default section of '%s'; ignoring.", key, path)
            continue
        if raw_value is None:
            logger.warning("Config key '%s' has no value in '%s'; ignoring.", key, path)
            continue
        result[key] = _coerce_field(key, raw_value)


def _merge_colors_section(items: Any, path: str, result: Dict[str, Any]) -> None:
    colors: Dict[str, str] = {}
    for status, color in items:
        if color is None:
            logger.warning("Color for status '%s' has no value in '%s'; ignoring.", status, path)
            continue
        colors[str(status)] = validate_color_name(color)
    if colors:
        result["colors"] = colors


def load_ini_config(path: str) -> Dict[str, Any]:
    """
    Load and parse an INI-format config file.

    Reads the ``[default]`` section for settings and the ``[colors]`` section
    for ``status = color`` overrides.

    Args:
        path: Path to the INI config file.

    Returns:
        Dictionary of config values.

    Raises:
        ValueError: On parse errors or invalid field values.
    """
    parser = configparser.ConfigParser(allow_no_value=True, delimiters=("=", ":"))
    try:
        read_files = parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise ValueError(f"Invalid config file '{path}': {exc}") from exc

    if not read_files:
        raise ValueError(f"Config file '{path}' could not be read.")

    result: Dict[str, Any] = {}
    if parser.has_section("default"):
        _merge_default_section(parser.items("default"), path, result)
    if parser.has_section("colors"):
        _merge_colors_section(parser.items("colors"), path, result)
    return result


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load and parse a YAML-format config file.

    Uses ``yaml.safe_load`` to prevent arbitrary code execution.

    Args:
        path: Path to the YAML config file.

    Returns:
        Dictionary of config values.

    Raises:
        ValueError: On parse errors or invalid file content.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file '{path}': {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must contain a YAML mapping at the top level, got {type(data).__name__}.")

    result: Dict[str, Any] = {}
    for section, merge in (("default", _merge_default_section), ("colors", _merge_colors_section)):
        content = data.get(section) or {}
        if not isinstance(content, dict):
            raise ValueError(f"The '{section}' section in '{path}' must be a YAML mapping.")
        merge(content.items(), path, result)
    return result


def _is_yaml_file(path: str) -> bool:
    """
    Heuristically determine whether a config file uses YAML or INI format.

    INI files begin with a ``[section]`` header on the first non-blank,
    non-comment line.  Anything else is treated as YAML.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                stripped = line.strip()
                if stripped and not stripped.startswith(("#", ";")):
                    return not stripped.startswith("[")
    except OSError:
        pass
    return False


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load persistent settings from a config file.

    Auto-detects whether the file uses YAML or INI format.
    Returns an empty dict if the config file does not exist.

    Args:
        path: Path to the config file.  Defaults to ``~/.lspipeline.conf``.

    Raises:
        ValueError: If the file exists but cannot be parsed.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        return {}

    if _is_yaml_file(path):
        logger.debug("Loading YAML config from '%s'.", path)
        return load_yaml_config(path)

    logger.debug("Loading INI config from '%s'.", path)
    return load_ini_config(path)
