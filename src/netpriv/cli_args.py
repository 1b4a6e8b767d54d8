"""Command line argument parsing for netpriv."""

from __future__ import annotations

import argparse
from logging import getLevelName
from pathlib import Path
from typing import Optional

from .program_constants import (
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEOUT_OPS,
    DEFAULT_USER_PLATFORM_DIR,
    PROGRAM_CONSTANTS,
)


def parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments for the CLI.

    Args:
        args: List of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="netpriv",
        description="Inspect and exercise network device privilege level definitions",
        epilog=f"Extra platform definitions are read from {DEFAULT_USER_PLATFORM_DIR}.",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=DEFAULT_LOG_LEVEL,
        help=f"Set the logging level (default: {getLevelName(DEFAULT_LOG_LEVEL)})",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=str(DEFAULT_LOG_FILE),
        help="Path to log file, empty to disable (default: %(default)s)",
    )

    parser.add_argument(
        "--no-console-log",
        action="store_true",
        help="Disable console logging (only log to file)",
    )

    parser.add_argument(
        "--console-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Level for console logging (default: WARNING, DEBUG with --log-level DEBUG)",
    )

    parser.add_argument(
        "--platform-dir",
        type=Path,
        default=DEFAULT_USER_PLATFORM_DIR,
        help="Directory of extra platform definitions (default: %(default)s)",
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {PROGRAM_CONSTANTS().VERSION}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("platforms", help="List the known platforms")

    validate = sub.add_parser("validate", help="Validate platform definition files")
    validate.add_argument("files", nargs="+", type=Path, help="YAML definition files")

    path = sub.add_parser("path", help="Show the steps between two privilege levels")
    path.add_argument("platform")
    path.add_argument("current", help="Privilege level to start from")
    path.add_argument("target", nargs="?", help="Target level (default: platform default)")

    detect = sub.add_parser("detect", help="Tell which privilege level a prompt belongs to")
    detect.add_argument("platform")
    detect.add_argument("prompt", help="Prompt text, '\\n' separates lines")

    simulate = sub.add_parser("simulate", help="Run a session against an emulated device")
    simulate.add_argument("platform")
    simulate.add_argument("--start", help="Level the emulated device starts in")
    simulate.add_argument("--target", help="Level to acquire after opening")
    simulate.add_argument("--password", default="secret", help="Escalation password")
    simulate.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_OPS)

    return parser.parse_args(args)


def setup_logging_from_args(args: argparse.Namespace) -> None:
    """Set up logging based on parsed command line arguments.

    Args:
        args: Parsed arguments from parse_args()
    """
    from .program_logging import setup_logging

    setup_logging(
        level=args.log_level,
        log_file=args.log_file or None,
        console_output=not args.no_console_log,
        console_level=args.console_level,
    )
