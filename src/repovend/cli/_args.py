"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_root_dir_flag(parser: argparse.ArgumentParser) -> None:
    """Add -d/--dir flag for the vendoring root.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "-d",
        "--dir",
        dest="root_dir",
        default=".",
        help="Directory to vendor into (default: current directory)",
    )


def add_snapshot_arg(parser: argparse.ArgumentParser) -> None:
    """Add positional snapshot file argument."""
    parser.add_argument(
        "snapshot",
        help="Snapshot file (JSON)",
    )


__all__ = ["add_json_flag", "add_root_dir_flag", "add_snapshot_arg"]
