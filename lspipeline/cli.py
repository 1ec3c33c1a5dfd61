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
Command-line interface for lspipeline.

This module contains the main entry point and command-line argument handling.
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional, TextIO
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rich.console import Console

from lspipeline import __version__
from lspipeline.config import load_config
from lspipeline.pipeline_api import CodePipelineClient, PipelineAPI, RemoteError
from lspipeline.refresh import DEFAULT_INTERVAL_SECONDS, IntervalTicker, RefreshLoop, stdin_key_reader
from lspipeline.screen import RenderError, get_screen
from lspipeline.status import build_status_colors
from lspipeline.ui_render import (
    ASCII_GLYPHS,
    DEFAULT_BASE_OFFSET,
    DEFAULT_ROW_HEIGHT,
    UNICODE_GLYPHS,
    DashboardRenderer,
    TabularRenderer,
)

logger = logging.getLogger(__name__)

PIPELINES_HEADER = "====== PIPELINES ======"

USAGE_BANNER = """USAGE:

\t// Show pipeline status
\t{prog} <pipeline-name>

\t// List all pipeline names (no arguments)
\t{prog}
"""


def _configure_logging(log_level: str, log_file: Optional[str]) -> None:
    """Configure logging handlers for CLI execution."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


# Hardcoded defaults for config-overridable fields.
# Applied after config merging for any field still set to None.
_HARDCODED_DEFAULTS: Dict[str, Any] = {
    "interval": DEFAULT_INTERVAL_SECONDS,
    "row_height": DEFAULT_ROW_HEIGHT,
    "base_offset": DEFAULT_BASE_OFFSET,
    "renderer": "dashboard",
    "ascii_borders": False,
    "log_level": "INFO",
}


def _apply_config_to_args(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """
    Overlay config file values onto a parsed argument namespace.

    Only fields that are still ``None`` (i.e. not explicitly set on the CLI)
    are updated.  Status colors always come from the config file.
    """
    for key, value in config.items():
        if key == "colors":
            args.colors = dict(value)
        elif getattr(args, key, None) is None:
            setattr(args, key, value)


def _resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Resolve an IANA zone name. ``None`` or ``local`` selects the process-local zone."""
    if not name or name.lower() == "local":
        return None
    if name.lower() == "utc":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lspipeline",
        description="lspipeline - Live terminal dashboard for a delivery pipeline",
    )
    parser.add_argument("pipeline", nargs="?", help="Pipeline to monitor. Omit to list pipeline names.")
    parser.add_argument(
        "-i",
        "--interval",
        type=_positive_float,
        default=None,
        help=f"Refresh interval in seconds (default: {DEFAULT_INTERVAL_SECONDS})",
    )
    parser.add_argument(
        "-r",
        "--renderer",
        choices=["dashboard", "tabular"],
        default=None,
        help="dashboard: live boxes refreshed until ESC; tabular: print a table once (default: dashboard)",
    )
    parser.add_argument(
        "--ascii",
        dest="ascii_borders",
        action="store_const",
        const=True,
        default=None,
        help="Draw box borders with ASCII characters",
    )
    parser.add_argument("--timezone", default=None, help="IANA zone for absolute timestamps (default: local)")
    parser.add_argument("--region", default=None, help="AWS region override")
    parser.add_argument("--profile", default=None, help="AWS profile name")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also write log messages to this file")
    parser.add_argument("--config", default=None, help="Config file path (default: ~/.lspipeline.conf)")
    parser.add_argument("--no-config", action="store_true", help="Ignore the config file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def handle_options(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse and validate command-line arguments, merged with the config file."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.colors = {}
    args.row_height = None
    args.base_offset = None

    if not args.no_config:
        try:
            config = load_config(args.config)
        except ValueError as exc:
            parser.error(str(exc))
        _apply_config_to_args(args, config)

    for key, value in _HARDCODED_DEFAULTS.items():
        if getattr(args, key, None) is None:
            setattr(args, key, value)

    try:
        args.display_tz = _resolve_timezone(args.timezone)
        args.status_colors = build_status_colors(args.colors)
    except ValueError as exc:
        parser.error(str(exc))
    return args


def print_usage_banner(prog: str, out: Optional[TextIO] = None) -> None:
    print(USAGE_BANNER.format(prog=prog), file=out or sys.stdout)


def print_pipeline_names(api: PipelineAPI, out: Optional[TextIO] = None) -> None:
    """Print the pipelines header followed by one name per line."""
    out = out or sys.stdout
    names = api.list_pipeline_names()
    print(PIPELINES_HEADER, file=out)
    for name in names:
        print(name, file=out)


def show_pipeline(args: argparse.Namespace, api: PipelineAPI) -> int:
    """Render the pipeline with the selected renderer."""
    if args.renderer == "tabular":
        renderer = TabularRenderer(Console(), args.status_colors, args.display_tz)
        renderer.render(api.get_pipeline_state(args.pipeline), datetime.now(timezone.utc))
        return 0

    screen = get_screen()
    renderer = DashboardRenderer(
        screen,
        args.status_colors,
        row_height=args.row_height,
        base_offset=args.base_offset,
        glyphs=ASCII_GLYPHS if args.ascii_borders else UNICODE_GLYPHS,
        display_tz=args.display_tz,
    )
    cbreak_fd = sys.stdin.fileno() if sys.stdin.isatty() else None
    loop = RefreshLoop(
        fetch_state=lambda: api.get_pipeline_state(args.pipeline),
        renderer=renderer,
        screen=screen,
        ticker=IntervalTicker(args.interval),
        key_reader=stdin_key_reader(),
        cbreak_fd=cbreak_fd,
    )
    logger.debug("Monitoring %s every %ss", args.pipeline, args.interval)
    loop.run()
    return 0


def run(args: argparse.Namespace, api: Optional[PipelineAPI] = None) -> int:
    """Run lspipeline with parsed arguments and return the exit status."""
    _configure_logging(args.log_level, getattr(args, "log_file", None))
    try:
        if api is None:
            api = CodePipelineClient(profile=args.profile, region=args.region)
        if not args.pipeline:
            print_usage_banner(os.path.basename(sys.argv[0]) or "lspipeline")
            print_pipeline_names(api)
            return 0
        return show_pipeline(args, api)
    except (RemoteError, RenderError) as exc:
        logger.error("Error: %s", exc)
        return 1


def main(argv: Optional[List[str]] = None) -> None:
    """Main entrypoint for the CLI - parses arguments and runs the application."""
    args = handle_options(argv)
    sys.exit(run(args))
