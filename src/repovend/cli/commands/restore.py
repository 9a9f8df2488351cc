"""
repovend restore command.

SUMMARY: Bring every recorded repository to its pinned origin and revision
"""
from __future__ import annotations

import argparse
from pathlib import Path

from repovend.cli import OutputFormatter, add_json_flag, add_root_dir_flag, add_snapshot_arg, get_root_dir

SUMMARY = "Bring every recorded repository to its pinned origin and revision"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_root_dir_flag(parser)
    add_json_flag(parser)
    add_snapshot_arg(parser)


def main(args: argparse.Namespace) -> int:
    """Restore repositories from a snapshot.

    Per-repository failures are reported but do not change the exit status;
    only an unreadable or invalid snapshot does.
    """
    from repovend.core.config import VendConfig
    from repovend.core.exceptions import VendError
    from repovend.core.restore import RestoreEngine

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        root = get_root_dir(args)
        engine = RestoreEngine(root, config=VendConfig(root))
        result = engine.restore(Path(args.snapshot))
    except VendError as e:
        formatter.error(e, error_code="restore_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({
            "snapshot": str(args.snapshot),
            "restored": list(result.restored),
            "unchanged": list(result.unchanged),
            "failures": [f.to_dict() for f in result.failures],
        })
        return 0

    formatter.failures(result.failures)
    formatter.paths(result.restored)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
