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
ESC-aware buffering helper for escape sequence reconstruction.

A lone ESC byte is the dashboard's quit key, while arrow and function keys
arrive as ESC followed by more bytes. After reading an ESC, the input
listener calls read_sequence_after_esc() to collect whatever follows within
a short inter-byte gap. An empty tail means the user pressed Escape.
"""

import logging
import os
import select
from time import monotonic
from typing import Tuple

logger = logging.getLogger(__name__)

ESC = b"\x1b"
T_GAP_SECONDS = 0.03  # 30 ms inter-byte gap
T_TOTAL_SECONDS = 0.5  # 500 ms max accumulation


def looks_like_complete_sequence(buf: bytes) -> bool:
    """
    Determine if a byte buffer looks like a complete escape sequence.

    Recognizes CSI sequences (ESC [ ... final byte 64-126), SS3 sequences
    (ESC O x) and function keys ending in ``~``.
    """
    if not buf:
        return False

    if buf.startswith(ESC + b"[") and len(buf) >= 3:
        if 64 <= buf[-1] <= 126:
            return True

    if buf.startswith(ESC + b"O") and len(buf) >= 3:
        return True

    if buf.startswith(ESC + b"[") and buf.endswith(b"~"):
        return True

    return False


def read_sequence_after_esc(first_byte: bytes, stdin_fd: int) -> Tuple[bytes, float]:
    """
    Read bytes following an initial ESC to reconstruct an escape sequence.

    Args:
        first_byte: The initial ESC byte (must be b'\\x1b')
        stdin_fd: File descriptor to read from

    Returns:
        Tuple of (sequence including the leading ESC, elapsed seconds)
    """
    if first_byte != ESC:
        raise ValueError(f"Expected ESC byte, got {first_byte!r}")

    start = monotonic()
    buf = bytearray(first_byte)

    while monotonic() - start < T_TOTAL_SECONDS:
        rlist, _, _ = select.select([stdin_fd], [], [], T_GAP_SECONDS)
        if not rlist:
            break
        try:
            chunk = os.read(stdin_fd, 1024)
        except OSError:
            break
        if not chunk:
            break
        buf.extend(chunk)
        if looks_like_complete_sequence(bytes(buf)):
            break

    elapsed = monotonic() - start
    logger.debug("ESC sequence %s buffered in %.1f ms", bytes(buf).hex(), elapsed * 1000)
    return bytes(buf), elapsed
