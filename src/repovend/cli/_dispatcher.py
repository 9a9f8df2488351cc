"""
Auto-discovery CLI dispatcher for repovend.

Scans ``repovend/cli/commands`` for command modules and registers each as a
subcommand. Adding a command = adding a .py file with ``SUMMARY``,
``register_args`` and ``main``.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from repovend import __version__
from repovend.cli._utils import get_root_dir
from repovend.core.config import VendConfig
from repovend.core.exceptions import VendConfigError
from repovend.core.logging import configure_logging


@lru_cache(maxsize=1)
def discover_commands() -> dict[str, dict[str, Any]]:
    """
    Discover command modules under ``repovend.cli.commands``.

    Returns:
        Dict mapping command name to command info dict
    """
    commands_dir = Path(__file__).parent / "commands"
    commands: dict[str, dict[str, Any]] = {}

    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        cmd_name = item.stem
        module = importlib.import_module(f"repovend.cli.commands.{cmd_name}")
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", cmd_name),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }
    return commands


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with auto-discovered commands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="repovend",
        description="Pin and restore vendored git/Mercurial repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        help="Log level for diagnostics on stderr (default: from configuration, WARNING)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )
    for cmd_name, cmd_info in discover_commands().items():
        cmd_parser = subparsers.add_parser(cmd_name, help=cmd_info["summary"])
        if cmd_info["register_args"]:
            cmd_info["register_args"](cmd_parser)
        if cmd_info["main"]:
            cmd_parser.set_defaults(_func=cmd_info["main"])
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    config = VendConfig(get_root_dir(args))
    configure_logging(args.log_level or config.log_level, log_file=config.log_file)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the repovend CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    func: Callable[[argparse.Namespace], int] | None = getattr(args, "_func", None)
    if func is None:
        parser.print_help()
        return 1

    try:
        _configure_logging(args)
    except VendConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return int(func(args) or 0)


__all__ = ["build_parser", "discover_commands", "main"]
