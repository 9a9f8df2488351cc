"""
repovend save command.

SUMMARY: Record origin and revision of every repository under the root
"""
from __future__ import annotations

import argparse
from pathlib import Path

from repovend.cli import OutputFormatter, add_json_flag, add_root_dir_flag, add_snapshot_arg, get_root_dir

SUMMARY = "Record origin and revision of every repository under the root"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_root_dir_flag(parser)
    parser.add_argument(
        "-x",
        "--extend",
        action="store_true",
        help="Extend the existing snapshot instead of overwriting it",
    )
    parser.add_argument(
        "-a",
        "--add",
        dest="overrides",
        action="append",
        default=[],
        metavar="PATH=REPO",
        help="Capture the repository at REPO and record it as PATH (repeatable)",
    )
    parser.add_argument(
        "--git",
        "-rgit",
        dest="pinned_git",
        action="append",
        default=[],
        metavar="PATH=URI@REV",
        help="Record a git repository without probing it (repeatable)",
    )
    parser.add_argument(
        "--hg",
        "-rhg",
        dest="pinned_hg",
        action="append",
        default=[],
        metavar="PATH=URI@REV",
        help="Record a Mercurial repository without probing it (repeatable)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATH",
        help="Root-relative directory to skip during discovery (repeatable)",
    )
    add_json_flag(parser)
    add_snapshot_arg(parser)


def main(args: argparse.Namespace) -> int:
    """Save a snapshot."""
    from repovend.core.builder import SnapshotBuilder
    from repovend.core.config import VendConfig
    from repovend.core.exceptions import ManualEntryError, VendError
    from repovend.core.models import PinnedRepo, RepoKind, RepoOverride, normalize_repo_path

    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        root = get_root_dir(args)
        overrides = [RepoOverride.parse(text) for text in args.overrides]
        pinned = [PinnedRepo.parse(RepoKind.GIT, text) for text in args.pinned_git]
        pinned += [PinnedRepo.parse(RepoKind.MERCURIAL, text) for text in args.pinned_hg]
        try:
            ignore = [normalize_repo_path(p) for p in args.ignore]
        except ValueError as exc:
            raise ManualEntryError(f"Invalid --ignore path: {exc}") from exc

        builder = SnapshotBuilder(root, config=VendConfig(root), ignore=ignore)
        result = builder.save(
            Path(args.snapshot),
            overrides=overrides,
            pinned=pinned,
            extend=args.extend,
        )
    except VendError as e:
        formatter.error(e, error_code="save_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({
            "snapshot": str(args.snapshot),
            "repos": len(result.snapshot),
            "changed": [c.to_dict() for c in result.changes],
            "failures": [f.to_dict() for f in result.failures],
        })
        return 0

    formatter.failures(result.failures)
    for change in result.changes:
        formatter.paths([change.path])
        if change.transition:
            formatter.note(change.transition)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    parsed = parser.parse_args()
    exit(main(parsed))
