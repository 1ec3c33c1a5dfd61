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
Unit tests for the refresh loop, interval ticker and input listener.
"""

import io
import os
import sys
import threading
import unittest
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from lspipeline.input_keys import ESCAPE  # noqa: E402
from lspipeline.pipeline_api import PipelineState, RemoteError  # noqa: E402
from lspipeline.refresh import InputListener, IntervalTicker, RefreshLoop  # noqa: E402
from lspipeline.screen import EXIT_ALT_SCREEN, RenderError, Screen  # noqa: E402

NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start=100.0):
        self.value = start

    def __call__(self):
        return self.value


class FakeTicker:
    """Fires ``ticks`` times, then blocks until cancelled."""

    def __init__(self, ticks):
        self.remaining = ticks
        self.exhausted = threading.Event()

    def wait(self, cancel_event):
        if self.remaining > 0:
            self.remaining -= 1
            return True
        self.exhausted.set()
        return not cancel_event.wait(5.0)


class RecordingRenderer:
    def __init__(self):
        self.calls = []

    def render(self, state, now):
        self.calls.append((state, now))


def make_screen(stream):
    return Screen(stream=stream, size_provider=lambda: os.terminal_size((40, 10)), require_tty=False)


def idle_reader(timeout):
    threading.Event().wait(min(timeout, 0.01))
    return None


class TestIntervalTicker(unittest.TestCase):
    """Fixed-interval scheduling."""

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            IntervalTicker(0)

    def test_fires_after_interval(self):
        ticker = IntervalTicker(0.01)
        self.assertTrue(ticker.wait(threading.Event()))

    def test_cancel_wins(self):
        cancel = threading.Event()
        cancel.set()
        self.assertFalse(IntervalTicker(60.0).wait(cancel))

    def test_missed_ticks_are_not_replayed(self):
        clock = FakeClock()
        ticker = IntervalTicker(5.0, clock=clock)
        ticker._next = clock.value  # due now
        clock.value += 17.0  # a slow poll overran several ticks
        self.assertTrue(ticker.wait(threading.Event()))
        self.assertEqual(ticker._next, clock.value + 5.0)


class TestInputListener(unittest.TestCase):
    """Escape sets the cancellation event."""

    def test_escape_sets_cancel(self):
        keys = iter(["a", None, ESCAPE, "b"])
        cancel = threading.Event()
        listener = InputListener(cancel, lambda timeout: next(keys))
        listener.start()
        listener.join(2.0)
        self.assertTrue(cancel.is_set())
        self.assertFalse(listener.is_alive())

    def test_stop_without_escape(self):
        cancel = threading.Event()
        listener = InputListener(cancel, idle_reader)
        listener.start()
        listener.stop()
        self.assertFalse(listener.is_alive())
        self.assertFalse(cancel.is_set())

    def test_eof_ends_listener(self):
        def closed(timeout):
            raise EOFError("input closed")

        cancel = threading.Event()
        listener = InputListener(cancel, closed)
        listener.start()
        listener.join(2.0)
        self.assertFalse(listener.is_alive())
        self.assertFalse(cancel.is_set())


class TestRefreshLoop(unittest.TestCase):
    """End-to-end loop behaviour with simulated ticker and keys."""

    def setUp(self):
        self.stream = io.StringIO()
        self.screen = make_screen(self.stream)
        self.renderer = RecordingRenderer()
        self.polls = 0

    def fetch(self):
        self.polls += 1
        return PipelineState(name="web-app", updated=NOW)

    def test_two_ticks_then_cancel(self):
        ticker = FakeTicker(2)

        def reader(timeout):
            if ticker.exhausted.wait(timeout):
                return ESCAPE
            return None

        loop = RefreshLoop(self.fetch, self.renderer, self.screen, ticker, reader, clock=lambda: NOW)
        frames = loop.run()

        # First frame is immediate, then one per tick
        self.assertEqual(frames, 3)
        self.assertEqual(len(self.renderer.calls) - 1, 2)
        self.assertEqual(self.polls, 3)
        self.assertTrue(loop.cancel_event.is_set())
        self.assertFalse(self.screen.active)
        self.assertEqual(self.screen.finalize_count, 1)
        self.assertEqual(self.stream.getvalue().count(EXIT_ALT_SCREEN), 1)

    def test_cancel_before_tick_renders_first_frame_only(self):
        cancel = threading.Event()

        def reader(timeout):
            return ESCAPE

        loop = RefreshLoop(self.fetch, self.renderer, self.screen, IntervalTicker(60.0), reader, cancel_event=cancel)
        self.assertEqual(loop.run(), 1)
        self.assertEqual(self.screen.finalize_count, 1)

    def test_cancellation_checked_before_render(self):
        cancel = threading.Event()

        class CancellingTicker:
            def wait(self, cancel_event):
                cancel_event.set()
                return True

        loop = RefreshLoop(self.fetch, self.renderer, self.screen, CancellingTicker(), idle_reader, cancel_event=cancel)
        self.assertEqual(loop.run(), 1)

    def test_remote_error_propagates_and_restores_screen(self):
        def failing():
            raise RemoteError("boom")

        loop = RefreshLoop(failing, self.renderer, self.screen, FakeTicker(1), idle_reader)
        with self.assertRaises(RemoteError):
            loop.run()
        self.assertEqual(self.screen.finalize_count, 1)
        self.assertFalse(self.screen.active)
        self.assertEqual(self.renderer.calls, [])

    def test_remote_error_on_later_poll(self):
        results = [PipelineState(name="p"), RemoteError("gone")]

        def fetch():
            item = results.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        loop = RefreshLoop(fetch, self.renderer, self.screen, FakeTicker(3), idle_reader)
        with self.assertRaises(RemoteError):
            loop.run()
        self.assertEqual(len(self.renderer.calls), 1)
        self.assertEqual(self.screen.finalize_count, 1)

    def test_keyboard_interrupt_cancels_cleanly(self):
        class InterruptingTicker:
            def wait(self, cancel_event):
                raise KeyboardInterrupt

        loop = RefreshLoop(self.fetch, self.renderer, self.screen, InterruptingTicker(), idle_reader)
        self.assertEqual(loop.run(), 1)
        self.assertTrue(loop.cancel_event.is_set())
        self.assertEqual(self.screen.finalize_count, 1)

    def test_render_error_on_init_skips_rendering(self):
        screen = Screen(stream=io.StringIO(), size_provider=lambda: os.terminal_size((40, 10)))
        loop = RefreshLoop(self.fetch, self.renderer, screen, FakeTicker(1), idle_reader)
        with self.assertRaises(RenderError):
            loop.run()
        self.assertEqual(self.polls, 0)
        self.assertEqual(screen.finalize_count, 0)


if __name__ == "__main__":
    unittest.main()
