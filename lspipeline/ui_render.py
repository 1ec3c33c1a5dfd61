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
lspipeline UI Rendering Module

This module contains the box layout helpers and the two renderers: the
full-screen dashboard that draws one bordered box per stage, and the tabular
renderer that prints a one-shot table.
"""

import logging
from datetime import datetime, tzinfo
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from lspipeline.pipeline_api import PipelineState, StageState
from lspipeline.screen import Screen, Style, display_width
from lspipeline.status import StatusColorMap
from lspipeline.timefmt import format_timestamp, pretty_print_time

logger = logging.getLogger(__name__)

# Border plus one space of padding on each side
BOX_SIDE_PADDING = 4
DEFAULT_ROW_HEIGHT = 6
DEFAULT_BASE_OFFSET = 2
QUIT_HINT = "Press ESC to quit"

# rich style names for the color names used by the status map
RICH_STYLES = {
    "default": "default",
    "black": "black",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "brown": "yellow",
    "blue": "blue",
    "magenta": "magenta",
    "cyan": "cyan",
    "white": "white",
    "gray": "bright_black",
}


class BoxGlyphs(NamedTuple):
    """Characters used to draw a box border."""

    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


UNICODE_GLYPHS = BoxGlyphs("┌", "┐", "└", "┘", "─", "│")
ASCII_GLYPHS = BoxGlyphs("+", "+", "+", "+", "-", "|")


# ============================================================================
# Box Layout
# ============================================================================


def compute_box_size(lines: Sequence[str]) -> Tuple[int, int]:
    """Return (width, height) of the box that frames ``lines``."""
    interior = max((display_width(line) for line in lines), default=0)
    return interior + BOX_SIDE_PADDING, len(lines) + 2


def center_line(line: str, interior: int) -> Tuple[int, int]:
    """
    Compute (left, right) padding that centers ``line`` in ``interior`` columns.

    An odd remainder goes to the right, so the text leans left.
    """
    remainder = max(0, interior - display_width(line))
    left = remainder // 2
    return left, remainder - left


def build_message_box(lines: Sequence[str], glyphs: BoxGlyphs = UNICODE_GLYPHS) -> List[str]:
    """Draw a box around ``lines``, centering each line inside it."""
    width, _ = compute_box_size(lines)
    interior = width - BOX_SIDE_PADDING
    border = glyphs.horizontal * (width - 2)
    rows = [f"{glyphs.top_left}{border}{glyphs.top_right}"]
    for line in lines:
        left, right = center_line(line, interior)
        rows.append(f"{glyphs.vertical} {' ' * left}{line}{' ' * right} {glyphs.vertical}")
    rows.append(f"{glyphs.bottom_left}{border}{glyphs.bottom_right}")
    return rows


def render_message_box(
    screen: Screen,
    lines: Sequence[str],
    left: int,
    top: int,
    style: Style,
    glyphs: BoxGlyphs = UNICODE_GLYPHS,
) -> Tuple[int, int]:
    """
    Emit a centered, bordered box onto ``screen``.

    Rows are written at ``top`` (border), ``top + 1`` .. ``top + N`` (content)
    and ``top + N + 1`` (border). Callers are responsible for choosing
    offsets that keep boxes from overlapping.

    Returns:
        Tuple of (width, height) of the emitted box.
    """
    rows = build_message_box(lines, glyphs)
    for index, row in enumerate(rows):
        screen.emit_string(left, top + index, style, row)
    return compute_box_size(lines)


def centered_left(term_width: int, box_width: int) -> int:
    """Left column that centers a box horizontally, clamped at zero."""
    return max(0, (term_width - box_width) // 2)


def stage_box_top(index: int, row_height: int = DEFAULT_ROW_HEIGHT, base_offset: int = DEFAULT_BASE_OFFSET) -> int:
    """Top row of the box for the stage at ``index``."""
    return index * row_height + base_offset


def stage_lines(stage: StageState, now: datetime, display_tz: Optional[tzinfo] = None) -> List[str]:
    """Text lines shown inside a stage box."""
    return [stage.name, stage.status, pretty_print_time(now, stage.last_status_change, display_tz)]


# ============================================================================
# Renderers
# ============================================================================


class Renderer(Protocol):
    """Something that can present one pipeline state snapshot."""

    def render(self, state: PipelineState, now: datetime) -> None:
        ...


class DashboardRenderer:
    """Full-screen renderer that draws one box per stage."""

    def __init__(
        self,
        screen: Screen,
        colors: StatusColorMap,
        row_height: int = DEFAULT_ROW_HEIGHT,
        base_offset: int = DEFAULT_BASE_OFFSET,
        glyphs: BoxGlyphs = UNICODE_GLYPHS,
        display_tz: Optional[tzinfo] = None,
    ) -> None:
        self.screen = screen
        self.colors = colors
        self.row_height = row_height
        self.base_offset = base_offset
        self.glyphs = glyphs
        self.display_tz = display_tz

    def render(self, state: PipelineState, now: datetime) -> None:
        screen = self.screen
        screen.resize()
        header = f"{state.name}  ({QUIT_HINT})"
        screen.emit_string(centered_left(screen.width, display_width(header)), 0, Style(bold=True), header)

        footer_row = screen.height - 1
        hidden = 0
        for index, stage in enumerate(state.stages):
            lines = stage_lines(stage, now, self.display_tz)
            width, height = compute_box_size(lines)
            top = stage_box_top(index, self.row_height, self.base_offset)
            if top + height > footer_row:
                hidden += 1
                continue
            style = Style(fg=self.colors.color_for(stage.status))
            render_message_box(
                screen,
                lines,
                centered_left(screen.width, width),
                top,
                style,
                self.glyphs,
            )

        updated = state.updated or now
        footer = f"Last updated: {format_timestamp(updated, self.display_tz)}"
        if hidden:
            footer += f"  (+{hidden} stage(s) below)"
        screen.clear_row(footer_row)
        screen.emit_string(0, footer_row, Style(), footer)
        screen.flush()
        logger.debug("Rendered %d stage(s) of %s", len(state.stages), state.name)


class TabularRenderer:
    """Prints the pipeline state once as a table."""

    def __init__(self, console: Console, colors: StatusColorMap, display_tz: Optional[tzinfo] = None) -> None:
        self.console = console
        self.colors = colors
        self.display_tz = display_tz

    def build_table(self, state: PipelineState, now: datetime) -> Table:
        table = Table(box=box.SQUARE, show_header=True, header_style="bold")
        table.add_column("Stage Name")
        table.add_column("Status")
        table.add_column("Last Change")
        for stage in state.stages:
            style = RICH_STYLES.get(self.colors.color_for(stage.status), "default")
            table.add_row(
                stage.name,
                Text(stage.status, style=style),
                pretty_print_time(now, stage.last_status_change, self.display_tz),
            )
        return table

    def render(self, state: PipelineState, now: datetime) -> None:
        self.console.print(self.build_table(state, now))
