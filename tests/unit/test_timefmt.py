#!/usr/bin/env python3
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
Unit tests for relative and absolute timestamp formatting.
"""

import os
import sys
import unittest
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from lspipeline.timefmt import (  # noqa: E402
    format_timestamp,
    format_timezone_label,
    pretty_print_time,
)

PDT = timezone(timedelta(hours=-7), "PDT")
NOW = datetime(2026, 10, 16, 12, 0, 30, tzinfo=timezone.utc)


class TestPrettyPrintTime(unittest.TestCase):
    """Test pretty_print_time branches and boundaries."""

    def test_seconds_ago(self):
        t = datetime(2026, 10, 16, 12, 0, 5, tzinfo=timezone.utc)
        self.assertEqual(pretty_print_time(NOW, t), "25 seconds ago")

    def test_every_second_below_one_minute(self):
        for elapsed in range(60):
            with self.subTest(elapsed=elapsed):
                t = NOW - timedelta(seconds=elapsed)
                self.assertEqual(pretty_print_time(NOW, t), f"{elapsed} seconds ago")

    def test_fractional_seconds_truncate(self):
        t = NOW - timedelta(seconds=4, milliseconds=900)
        self.assertEqual(pretty_print_time(NOW, t), "4 seconds ago")

    def test_minutes_and_seconds(self):
        t = NOW - timedelta(seconds=90)
        self.assertEqual(pretty_print_time(NOW, t), "1 minutes, 30 seconds ago")

    def test_just_below_absolute_threshold(self):
        t = NOW - timedelta(minutes=29, seconds=59)
        self.assertEqual(pretty_print_time(NOW, t), "29 minutes, 59 seconds ago")

    def test_exactly_thirty_minutes_is_absolute(self):
        t = NOW - timedelta(minutes=30)
        self.assertEqual(pretty_print_time(NOW, t, timezone.utc), "11:30:30 16-10-2026 UTC")

    def test_thirty_one_minutes_uses_display_zone(self):
        t = NOW - timedelta(minutes=31)
        self.assertEqual(pretty_print_time(NOW, t, PDT), "04:29:30 16-10-2026 PDT")

    def test_absolute_defaults_to_local_time(self):
        t = NOW - timedelta(hours=2)
        local = t.astimezone()
        expected = f"{local.strftime('%H:%M:%S %d-%m-%Y')} {local.tzname()}"
        self.assertEqual(pretty_print_time(NOW, t), expected)

    def test_future_timestamp_is_zero_seconds(self):
        t = NOW + timedelta(seconds=12)
        self.assertEqual(pretty_print_time(NOW, t), "0 seconds ago")

    def test_missing_timestamp(self):
        self.assertEqual(pretty_print_time(NOW, None), "never")

    def test_naive_datetimes_are_local(self):
        now = datetime(2026, 1, 1, 10, 0, 0)
        t = datetime(2026, 1, 1, 9, 59, 20)
        self.assertEqual(pretty_print_time(now, t), "40 seconds ago")


class TestFormatTimestamp(unittest.TestCase):
    """Test absolute timestamp helpers."""

    def test_format_timestamp_utc(self):
        self.assertEqual(format_timestamp(NOW, timezone.utc), "12:00:30 16-10-2026 UTC")

    def test_timezone_label_named_offset(self):
        self.assertEqual(format_timezone_label(NOW, PDT), "PDT")


if __name__ == "__main__":
    unittest.main()
