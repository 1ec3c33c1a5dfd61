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
Terminal cell surface for the live dashboard.

The screen keeps a back buffer of cells addressed by (column, row). Text is
written into the buffer with ``emit_string`` and pushed to the terminal in one
write by ``flush``. Cell widths come from ``rich.cells`` so wide characters
take two columns and combining marks stay attached to the preceding cell.
"""

import atexit
import logging
import os
import sys
import unicodedata
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO, Tuple

from rich.cells import get_character_cell_size

from lspipeline.status import COLOR_CODES, FALLBACK_COLOR

logger = logging.getLogger(__name__)

ANSI_RESET = "\x1b[0m"
ANSI_BOLD = "\x1b[1m"
ENTER_ALT_SCREEN = "\x1b[?1049h"
EXIT_ALT_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_SCREEN = "\x1b[2J"


class RenderError(RuntimeError):
    """Raised when the terminal surface cannot be initialized or written."""


@dataclass(frozen=True)
class Style:
    """Foreground styling applied to a run of cells."""

    fg: str = FALLBACK_COLOR
    bold: bool = False

    def sgr(self) -> str:
        """Return the SGR escape sequence that selects this style."""
        code = COLOR_CODES.get(self.fg, COLOR_CODES[FALLBACK_COLOR])
        return f"{ANSI_RESET}{ANSI_BOLD}{code}" if self.bold else f"{ANSI_RESET}{code}"


DEFAULT_STYLE = Style()


@dataclass
class Cell:
    """One terminal cell. ``text`` is empty for the trailing half of a wide character."""

    text: str = " "
    style: Style = DEFAULT_STYLE
    continuation: bool = False


def get_terminal_size(fallback: Tuple[int, int] = (80, 24)) -> os.terminal_size:
    """
    Get the terminal size by directly querying the terminal.

    Queries stdout, then stderr, then stdin, instead of trusting the
    COLUMNS/LINES environment variables, so the size follows resizes.

    Args:
        fallback: Tuple of (columns, lines) to use if no stream is a terminal.

    Returns:
        os.terminal_size with columns and lines attributes
    """
    for stream in (sys.stdout, sys.stderr, sys.stdin):
        try:
            if stream.isatty():
                return os.get_terminal_size(stream.fileno())
        except (AttributeError, ValueError, OSError):
            continue
    return os.terminal_size(fallback)


def char_width(char: str) -> int:
    """Display width of a single character: 0 (combining), 1 or 2. Control characters return -1."""
    if unicodedata.category(char) == "Cc":
        return -1
    return get_character_cell_size(char)


def display_width(text: str) -> int:
    """Number of terminal columns ``text`` occupies."""
    return sum(max(0, char_width(char)) for char in text)


class Screen:
    """
    Back-buffered terminal surface.

    Args:
        stream: Output stream. Defaults to ``sys.stdout``.
        size_provider: Callable returning an object with ``columns``/``lines``.
        require_tty: Raise ``RenderError`` from ``init`` when ``stream`` is not a terminal.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        size_provider: Callable[[], os.terminal_size] = get_terminal_size,
        require_tty: bool = True,
    ) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.size_provider = size_provider
        self.require_tty = require_tty
        self.active = False
        self.finalize_count = 0
        self.width = 0
        self.height = 0
        self._cells: List[List[Cell]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Enter the alternate screen and hide the cursor. No-op when already active."""
        if self.active:
            return
        if self.require_tty:
            try:
                is_tty = self.stream.isatty()
            except (AttributeError, ValueError) as exc:
                raise RenderError(f"Cannot inspect output stream: {exc}") from exc
            if not is_tty:
                raise RenderError("The dashboard needs an interactive terminal; try --renderer tabular.")
        self.resize()
        self._write(ENTER_ALT_SCREEN + HIDE_CURSOR + CLEAR_SCREEN)
        self.active = True
        logger.debug("Screen initialized at %dx%d", self.width, self.height)

    def close(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self.finalize_count += 1
        try:
            self._write(ANSI_RESET + SHOW_CURSOR + EXIT_ALT_SCREEN)
        except RenderError:
            logger.debug("Terminal went away before it could be restored", exc_info=True)

    # ------------------------------------------------------------------
    # Buffer
    # ------------------------------------------------------------------

    def resize(self) -> None:
        """Re-read the terminal size and reallocate an empty buffer."""
        try:
            size = self.size_provider()
            width, height = int(size.columns), int(size.lines)
        except (AttributeError, TypeError, ValueError, OSError) as exc:
            raise RenderError(f"Cannot determine terminal size: {exc}") from exc
        self.width = max(1, width)
        self.height = max(1, height)
        self.clear()

    def clear(self) -> None:
        """Blank every cell of the back buffer."""
        self._cells = [[Cell() for _ in range(self.width)] for _ in range(self.height)]

    def cell(self, x: int, y: int) -> Cell:
        """Return the cell at column ``x`` of row ``y``."""
        return self._cells[y][x]

    def set_cell(self, x: int, y: int, text: str, style: Style, width: int = 1) -> None:
        """Store ``text`` at (x, y). Width-2 text also claims the next column."""
        if not (0 <= y < self.height and 0 <= x < self.width):
            return
        if width == 2 and x + 1 >= self.width:
            # A wide character cannot be split across the right edge
            text, width = " ", 1
        row = self._cells[y]
        # Overwriting either half of a wide character blanks the other half
        if row[x].continuation and x > 0:
            row[x - 1] = Cell(" ", row[x - 1].style)
        after = x + width
        if after < self.width and row[after].continuation:
            row[after] = Cell(" ", row[after].style)
        row[x] = Cell(text, style)
        if width == 2:
            row[x + 1] = Cell("", style, continuation=True)

    def clear_row(self, y: int) -> None:
        """Blank every cell of row ``y``."""
        if 0 <= y < self.height:
            self._cells[y] = [Cell() for _ in range(self.width)]

    def emit_string(self, x: int, y: int, style: Style, text: str) -> int:
        """
        Write ``text`` into consecutive cells starting at (x, y).

        Each character advances the cursor by its display width. Zero-width
        characters (combining marks) are appended to the preceding cell and
        control characters are dropped. Cells outside the surface are clipped.

        Returns:
            The column following the last written character.
        """
        cursor = x
        last: Optional[Tuple[int, int]] = None
        for char in text:
            width = char_width(char)
            if width < 0:
                continue
            if width == 0:
                if last is not None:
                    lx, ly = last
                    target = self._cells[ly][lx]
                    target.text += char
                continue
            self.set_cell(cursor, y, char, style, width)
            last = (cursor, y) if (0 <= y < self.height and 0 <= cursor < self.width) else None
            cursor += width
        return cursor

    def row_text(self, y: int) -> str:
        """Plain text of row ``y`` as it would appear on the terminal."""
        return "".join(cell.text for cell in self._cells[y])

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def render_frame(self) -> str:
        """Serialize the back buffer into one ANSI string."""
        parts: List[str] = []
        for y, row in enumerate(self._cells):
            parts.append(f"\x1b[{y + 1};1H")
            current: Optional[Style] = None
            for cell in row:
                if cell.continuation:
                    continue
                if cell.style != current:
                    parts.append(cell.style.sgr())
                    current = cell.style
                parts.append(cell.text)
        parts.append(ANSI_RESET)
        return "".join(parts)

    def flush(self) -> None:
        """Push the back buffer to the terminal."""
        self._write(self.render_frame())

    def _write(self, data: str) -> None:
        try:
            self.stream.write(data)
            self.stream.flush()
        except (OSError, ValueError) as exc:
            raise RenderError(f"Cannot write to terminal: {exc}") from exc


_SCREEN: Optional[Screen] = None


def get_screen() -> Screen:
    """Return the process-wide screen, creating it on first use."""
    global _SCREEN
    if _SCREEN is None:
        _SCREEN = Screen()
        atexit.register(_SCREEN.close)
    return _SCREEN
