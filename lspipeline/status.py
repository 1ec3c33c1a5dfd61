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
Stage status to display color mapping.

The color table is built once at startup (hardcoded defaults overlaid with
any config overrides) and handed to the renderers as a read-only mapping.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

# SGR foreground codes for the color names accepted in config files
COLOR_CODES: Mapping[str, str] = MappingProxyType(
    {
        "default": "\x1b[39m",
        "black": "\x1b[30m",
        "red": "\x1b[31m",
        "green": "\x1b[32m",
        "yellow": "\x1b[33m",
        "brown": "\x1b[33m",  # classic 8-color terminals render yellow as brown
        "blue": "\x1b[34m",
        "magenta": "\x1b[35m",
        "cyan": "\x1b[36m",
        "white": "\x1b[37m",
        "gray": "\x1b[90m",
    }
)

FALLBACK_COLOR = "default"


class StageStatus(str, Enum):
    """Execution statuses reported for a stage's latest run."""

    SUCCEEDED = "Succeeded"
    IN_PROGRESS = "InProgress"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    STOPPED = "Stopped"
    STOPPING = "Stopping"
    UNKNOWN = "Unknown"


DEFAULT_STATUS_COLORS: Mapping[str, str] = MappingProxyType(
    {
        StageStatus.SUCCEEDED.value: "green",
        StageStatus.IN_PROGRESS.value: "blue",
        StageStatus.FAILED.value: "red",
        StageStatus.CANCELLED.value: "gray",
        StageStatus.STOPPED.value: "brown",
        StageStatus.STOPPING.value: "cyan",
    }
)


def validate_color_name(name: str) -> str:
    """Normalize a color name and reject names the terminal layer cannot draw."""
    normalized = str(name).strip().lower()
    if normalized == "grey":
        normalized = "gray"
    if normalized not in COLOR_CODES:
        known = ", ".join(sorted(COLOR_CODES))
        raise ValueError(f"Unknown color '{name}'. Expected one of: {known}.")
    return normalized


class StatusColorMap:
    """Read-only lookup from execution status to color name."""

    def __init__(self, colors: Mapping[str, str], fallback: str = FALLBACK_COLOR) -> None:
        self._colors = MappingProxyType(dict(colors))
        self.fallback = fallback

    @property
    def colors(self) -> Mapping[str, str]:
        return self._colors

    def color_for(self, status: Optional[str]) -> str:
        """Return the color for ``status``, or the fallback when it is unmapped."""
        if status is None:
            return self.fallback
        return self._colors.get(status, self.fallback)

    def __repr__(self) -> str:
        return f"StatusColorMap({dict(self._colors)!r}, fallback={self.fallback!r})"


def build_status_colors(overrides: Optional[Mapping[str, str]] = None) -> StatusColorMap:
    """
    Build the status color table from the defaults plus config overrides.

    Args:
        overrides: Mapping of status name to color name. Status names are
            matched case-insensitively against the known statuses; other
            names are added as-is.

    Raises:
        ValueError: If an override names an unknown color.
    """
    colors: Dict[str, str] = dict(DEFAULT_STATUS_COLORS)
    fallback = FALLBACK_COLOR
    known = {status.value.lower(): status.value for status in StageStatus}
    for status, color in (overrides or {}).items():
        key = known.get(str(status).lower(), str(status))
        if key == StageStatus.UNKNOWN.value:
            fallback = validate_color_name(color)
            continue
        colors[key] = validate_color_name(color)
    return StatusColorMap(colors, fallback=fallback)


DEFAULT_COLOR_MAP = build_status_colors()


def color_for(status: Optional[str], colors: StatusColorMap = DEFAULT_COLOR_MAP) -> str:
    """Module-level shortcut for ``StatusColorMap.color_for``."""
    return colors.color_for(status)
