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
Keyboard input handling for the dashboard.

Keys are read straight from the terminal file descriptor so that a bare
Escape press can be told apart from the escape sequences sent by arrow and
function keys. Key names follow the readchar library's constants.
"""

import contextlib
import os
import select
import sys
import termios
import tty
from typing import Generator, Optional

import readchar.key

from lspipeline.escape_buffering import ESC, read_sequence_after_esc

ESCAPE = "escape"

_KEY_NAMES = {
    readchar.key.ESC: ESCAPE,
    readchar.key.UP: "arrow_up",
    readchar.key.DOWN: "arrow_down",
    readchar.key.LEFT: "arrow_left",
    readchar.key.RIGHT: "arrow_right",
    readchar.key.CTRL_C: "ctrl_c",
}


@contextlib.contextmanager
def terminal_cbreak_mode(fd: Optional[int] = None) -> Generator[None, None, None]:
    """Context manager that puts a terminal into cbreak mode and restores it on exit.

    cbreak mode delivers keys without waiting for Enter while keeping signal
    keys (Ctrl-C) working. Non-terminal descriptors are left untouched.

    Args:
        fd: Terminal file descriptor to configure.  Defaults to ``sys.stdin.fileno()``.
    """
    if fd is None:
        fd = sys.stdin.fileno()
    try:
        old_settings = termios.tcgetattr(fd)
    except termios.error:
        # Not a real terminal (e.g. a pipe or test mock) - skip setup.
        yield
        return
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


def parse_escape_sequence(seq: str) -> Optional[str]:
    """
    Parse ANSI escape sequence to identify arrow keys.

    Args:
        seq: The escape sequence string (without the leading ESC)

    Returns:
        'arrow_up', 'arrow_down', 'arrow_right', 'arrow_left' or None
    """
    arrow_map = {
        "A": "arrow_up",
        "B": "arrow_down",
        "C": "arrow_right",
        "D": "arrow_left",
    }
    if not seq:
        return None
    if seq[0] in ("[", "O") and seq[-1] in arrow_map:
        return arrow_map[seq[-1]]
    return None


def map_key(key_value: str) -> str:
    """
    Map a raw key string to a key name.

    Known readchar constants map to names (``escape``, ``arrow_up`` ...);
    other escape sequences are parsed for arrows; anything else is returned as-is.
    """
    if key_value in _KEY_NAMES:
        return _KEY_NAMES[key_value]
    if key_value and key_value[0] == "\x1b" and len(key_value) > 1:
        parsed = parse_escape_sequence(key_value[1:])
        if parsed:
            return parsed
    return key_value


def read_key(fd: int, timeout: Optional[float] = None) -> Optional[str]:
    """
    Wait up to ``timeout`` seconds for a key on ``fd`` and return its name.

    Returns:
        ``escape`` for a bare Escape press, arrow key names, the character
        for ordinary keys, or None when nothing arrived before the timeout.

    Raises:
        EOFError: When the input stream has been closed.
    """
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return None
    first = os.read(fd, 1)
    if not first:
        raise EOFError("input closed")
    if first == ESC:
        sequence, _ = read_sequence_after_esc(first, fd)
        return map_key(sequence.decode("utf-8", errors="replace"))
    data = first
    # Complete a multi-byte UTF-8 character
    while True:
        try:
            return map_key(data.decode("utf-8"))
        except UnicodeDecodeError:
            if len(data) >= 4:
                return map_key(data.decode("utf-8", errors="replace"))
            more = os.read(fd, 1)
            if not more:
                return map_key(data.decode("utf-8", errors="replace"))
            data += more
