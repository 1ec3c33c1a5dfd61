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
Refresh loop for the live dashboard.

Two tasks cooperate: the main thread polls and renders on a fixed interval,
and an input listener thread waits for the Escape key. The only thing they
share is a one-shot cancellation event; the listener never touches the
screen.
"""

import logging
import sys
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from lspipeline.input_keys import ESCAPE, read_key, terminal_cbreak_mode
from lspipeline.pipeline_api import PipelineState
from lspipeline.screen import Screen
from lspipeline.ui_render import Renderer

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0
KEY_POLL_SECONDS = 0.1

KeyReader = Callable[[float], Optional[str]]


class IntervalTicker:
    """
    Fixed-interval ticker driven by a monotonic clock.

    Ticks missed while a slow poll was running are not replayed; the next
    tick is scheduled one interval after the late one.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.interval = interval
        self.clock = clock
        self._next: Optional[float] = None

    def wait(self, cancel_event: threading.Event) -> bool:
        """Block until the next tick. Returns False if cancelled first."""
        now = self.clock()
        if self._next is None:
            self._next = now + self.interval
        if cancel_event.wait(max(0.0, self._next - now)):
            return False
        self._next += self.interval
        if self._next <= self.clock():
            self._next = self.clock() + self.interval
        return True


def stdin_key_reader(fd: Optional[int] = None) -> KeyReader:
    """Return a key reader bound to ``fd`` (stdin by default)."""
    if fd is None:
        fd = sys.stdin.fileno()

    def _read(timeout: float) -> Optional[str]:
        return read_key(fd, timeout)

    return _read


class InputListener(threading.Thread):
    """Daemon thread that sets ``cancel_event`` when Escape is pressed."""

    def __init__(
        self,
        cancel_event: threading.Event,
        key_reader: KeyReader,
        cbreak_fd: Optional[int] = None,
        poll_timeout: float = KEY_POLL_SECONDS,
    ) -> None:
        super().__init__(name="lspipeline-input", daemon=True)
        self.cancel_event = cancel_event
        self.key_reader = key_reader
        self.cbreak_fd = cbreak_fd
        self.poll_timeout = poll_timeout
        self.stop_event = threading.Event()

    def run(self) -> None:
        if self.cbreak_fd is None:
            self._listen()
            return
        with terminal_cbreak_mode(self.cbreak_fd):
            self._listen()

    def _listen(self) -> None:
        while not self.stop_event.is_set() and not self.cancel_event.is_set():
            try:
                key = self.key_reader(self.poll_timeout)
            except (EOFError, OSError) as exc:
                logger.debug("Input listener stopped: %s", exc)
                return
            if key == ESCAPE:
                logger.debug("Escape pressed; cancelling refresh loop")
                self.cancel_event.set()
                return

    def stop(self, timeout: float = 1.0) -> None:
        self.stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=timeout)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefreshLoop:
    """
    Poll, render, wait for the next tick or cancellation, repeat.

    Args:
        fetch_state: Returns a fresh PipelineState; may raise RemoteError.
        renderer: Draws one state snapshot.
        screen: Terminal surface, initialized on entry and finalized on exit.
        ticker: Object with ``wait(cancel_event) -> bool``.
        key_reader: Callable taking a timeout and returning a key name or None.
        cancel_event: One-shot cancellation signal. Created when omitted.
        cbreak_fd: Terminal descriptor the listener puts into cbreak mode.
        clock: Returns the "now" used for relative timestamps.
    """

    def __init__(
        self,
        fetch_state: Callable[[], PipelineState],
        renderer: Renderer,
        screen: Screen,
        ticker: IntervalTicker,
        key_reader: KeyReader,
        cancel_event: Optional[threading.Event] = None,
        cbreak_fd: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.fetch_state = fetch_state
        self.renderer = renderer
        self.screen = screen
        self.ticker = ticker
        self.key_reader = key_reader
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.cbreak_fd = cbreak_fd
        self.clock = clock
        self.frames = 0

    def render_cycle(self) -> None:
        state = self.fetch_state()
        self.renderer.render(state, self.clock())
        self.frames += 1

    def run(self) -> int:
        """Run until cancelled. Returns the number of frames rendered."""
        self.screen.init()
        listener = InputListener(self.cancel_event, self.key_reader, cbreak_fd=self.cbreak_fd)
        listener.start()
        try:
            self.render_cycle()
            while not self.cancel_event.is_set():
                if not self.ticker.wait(self.cancel_event):
                    break
                if self.cancel_event.is_set():
                    break
                self.render_cycle()
        except KeyboardInterrupt:
            logger.debug("Interrupted; cancelling refresh loop")
            self.cancel_event.set()
        finally:
            listener.stop()
            self.screen.close()
        logger.debug("Refresh loop finished after %d frame(s)", self.frames)
        return self.frames
