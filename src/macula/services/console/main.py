#!/usr/bin/env python3
"""
Macula Operator Console - entry point.

Terminal console for monitoring and managing a Macula node over NATS.

Usage:
    macula-console                     # connect to nats://localhost:4222
    macula-console --nats <url>        # connect to a specific NATS server
    macula-console --debug             # enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from macula import __version__
from macula.services.console.app import run_console
from macula.services.console.errors import ConsoleError
from macula.services.console.logger import logger, setup_logging
from macula.shared.config.console import (
    ConsoleSettings,
    default_config_dir,
    default_log_file,
    default_nats_url,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="macula-console",
        description="TUI management console for MaculaOS",
    )
    parser.add_argument("--nats", default=default_nats_url(), help="NATS server URL")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=default_config_dir(),
        help="Configuration directory written by macula-wizard",
    )
    parser.add_argument("--log-file", type=Path, default=default_log_file(), help="Write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(args: argparse.Namespace) -> ConsoleSettings:
    return ConsoleSettings(
        nats_url=args.nats,
        debug=args.debug,
        config_dir=args.config_dir,
        log_file=args.log_file,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    setup_logging(debug=settings.debug, log_file=settings.log_file)
    logger.info("Starting Macula operator console")

    if not settings.is_configured():
        print("MaculaOS is not configured. Run macula-wizard first.", file=sys.stderr)
        return EXIT_FAILURE

    try:
        asyncio.run(run_console(settings))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except (ConsoleError, OSError) as exc:
        logger.error("Console terminated: %s", exc)
        print(f"macula-console: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
