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
Human-relative timestamp formatting for stage status changes.
"""

from datetime import datetime, tzinfo
from typing import Optional

ABSOLUTE_FORMAT = "%H:%M:%S %d-%m-%Y"
ABSOLUTE_THRESHOLD_MINUTES = 30
NEVER_LABEL = "never"


def _as_aware(value: datetime) -> datetime:
    """Attach the local zone to naive datetimes."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def format_timezone_label(moment: datetime, display_tz: Optional[tzinfo] = None) -> str:
    """Return the zone abbreviation for ``moment`` rendered in ``display_tz``."""
    localized = _as_aware(moment).astimezone(display_tz)
    tz_name = localized.tzname()
    if tz_name:
        return tz_name
    tz_key = getattr(display_tz, "key", None)
    if isinstance(tz_key, str):
        return tz_key
    return "UTC"


def format_timestamp(moment: datetime, display_tz: Optional[tzinfo] = None) -> str:
    """
    Format an absolute timestamp as ``HH:MM:SS DD-MM-YYYY <zone>``.

    Args:
        moment: The instant to format. Naive values are treated as local time.
        display_tz: Zone to render in. ``None`` means the process-local zone.
    """
    localized = _as_aware(moment).astimezone(display_tz)
    return f"{localized.strftime(ABSOLUTE_FORMAT)} {format_timezone_label(localized, display_tz)}"


def pretty_print_time(now: datetime, t: Optional[datetime], display_tz: Optional[tzinfo] = None) -> str:
    """
    Pretty print time ``t`` relative to ``now``.

    Differences of 30 minutes or more are shown as an absolute timestamp,
    differences of at least one minute as ``"<M> minutes, <S> seconds ago"``
    and anything shorter as ``"<S> seconds ago"``. Timestamps in the future
    are clamped to zero elapsed seconds.

    Args:
        now: Reference instant.
        t: Instant of the last status change, or ``None`` if there was none.
        display_tz: Zone for the absolute branch. ``None`` means local time.

    Returns:
        The formatted string.
    """
    if t is None:
        return NEVER_LABEL
    elapsed = int((_as_aware(now) - _as_aware(t)).total_seconds())
    elapsed = max(0, elapsed)
    minutes, seconds = divmod(elapsed, 60)

    if minutes >= ABSOLUTE_THRESHOLD_MINUTES:
        return format_timestamp(t, display_tz)
    if minutes > 0:
        return f"{minutes} minutes, {seconds} seconds ago"
    return f"{seconds} seconds ago"
