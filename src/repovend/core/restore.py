"""Restore engine.

Converges every working tree recorded in a snapshot to its pinned origin and
revision. Entries are reconciled concurrently. An entry recorded inside
another entry's directory is reconciled only after that outer entry, so a
re-clone of the outer tree never races the inner one.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from repovend.core.config import VendConfig
from repovend.core.fanout import TaskOutcome, fan_out
from repovend.core.models import (
    RepoFailure,
    RepoKind,
    RepoRecord,
    RestoreResult,
    Snapshot,
    normalize_repo_path,
)
from repovend.core.probe import RepoProbe, build_probes
from repovend.core.snapshot import SnapshotFile

logger = logging.getLogger(__name__)

Entry = tuple[RepoKind, str, RepoRecord]


def nesting_waves(entries: list[Entry]) -> list[list[Entry]]:
    """Group entries by how many other recorded paths contain them.

    Wave 0 holds entries with no recorded ancestor, wave 1 entries nested in
    exactly one, and so on. Order within a wave is preserved.
    """
    paths = {path for _, path, _ in entries}
    waves: dict[int, list[Entry]] = {}
    for entry in entries:
        parts = entry[1].split("/")
        depth = sum(1 for i in range(1, len(parts)) if "/".join(parts[:i]) in paths)
        waves.setdefault(depth, []).append(entry)
    return [waves[depth] for depth in sorted(waves)]


class RestoreEngine:
    """Restores the repositories recorded in a snapshot under a root."""

    def __init__(
        self,
        root: Path,
        *,
        probes: Mapping[RepoKind, RepoProbe] | None = None,
        max_workers: int | None = None,
        config: VendConfig | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            root: Vendoring root the snapshot paths are relative to
            probes: Probes per kind (built from ``config`` when omitted)
            max_workers: Concurrent reconcile cap (``config.workers`` when omitted)
            config: Settings for ``root`` (loaded when omitted)
        """
        self.root = Path(root)
        self.config = config or VendConfig(self.root)
        self.probes = dict(probes) if probes is not None else build_probes(self.config)
        self.max_workers = max_workers if max_workers is not None else self.config.workers

    def restore(self, snapshot_path: Path) -> RestoreResult:
        """Load ``snapshot_path`` and reconcile every entry.

        Raises:
            SnapshotIOError: If the snapshot is missing or unreadable
            SnapshotFormatError: If the snapshot is invalid
        """
        snapshot = SnapshotFile(snapshot_path).load()
        return self.restore_snapshot(snapshot)

    def restore_snapshot(self, snapshot: Snapshot) -> RestoreResult:
        """Reconcile every entry of an already loaded snapshot."""
        failures: list[RepoFailure] = []
        entries: list[Entry] = []
        for kind, path, record in snapshot.entries():
            try:
                normalized = normalize_repo_path(path)
            except ValueError as exc:
                failures.append(RepoFailure(path=path, message=f"Refusing path: {exc}", kind=kind))
                continue
            entries.append((kind, normalized, record))

        outcomes: list[TaskOutcome[bool]] = []
        for wave in nesting_waves(entries):
            outcomes.extend(
                fan_out(
                    wave,
                    self._reconcile,
                    key=lambda entry: (entry[1], entry[0]),
                    max_workers=self.max_workers,
                )
            )

        restored: list[str] = []
        unchanged: list[str] = []
        for outcome in outcomes:
            path, kind = outcome.key
            if not outcome.ok:
                failures.append(RepoFailure(path=path, message=str(outcome.error), kind=kind))
            elif outcome.value:
                restored.append(path)
            else:
                unchanged.append(path)

        logger.info(
            "Restore finished: %d restored, %d unchanged, %d failed",
            len(restored),
            len(unchanged),
            len(failures),
        )
        return RestoreResult(
            restored=tuple(sorted(restored)),
            unchanged=tuple(sorted(unchanged)),
            failures=tuple(sorted(failures, key=lambda f: f.path)),
        )

    def _reconcile(self, entry: Entry) -> bool:
        kind, path, record = entry
        return self.probes[kind].reconcile(self.root / path, record)


__all__ = ["RestoreEngine", "nesting_waves"]
