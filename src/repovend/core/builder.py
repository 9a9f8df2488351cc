"""Snapshot builder (save).

Orchestrates discovery, manual overrides and pinned entries into a new
snapshot, diffs it against the previously persisted one, and writes the
result.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Mapping

from repovend.core.config import VendConfig
from repovend.core.exceptions import ProbeError
from repovend.core.fanout import FanOut, TaskOutcome
from repovend.core.models import (
    PinnedRepo,
    RepoFailure,
    RepoKind,
    RepoOverride,
    RepoRecord,
    SaveResult,
    Snapshot,
)
from repovend.core.probe import RepoProbe, build_probes, detect_kind
from repovend.core.scanner import DirectoryScanner
from repovend.core.snapshot import SnapshotFile, diff_snapshots

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """Captures the repositories under a root into a persisted snapshot."""

    def __init__(
        self,
        root: Path,
        *,
        probes: Mapping[RepoKind, RepoProbe] | None = None,
        ignore: Iterable[str] = (),
        max_workers: int | None = None,
        config: VendConfig | None = None,
    ) -> None:
        """Initialize builder.

        Args:
            root: Vendoring root; snapshot keys are relative to it
            probes: Probes per kind (built from ``config`` when omitted)
            ignore: Root-relative paths to skip, added to configured ones
            max_workers: Concurrent capture cap (``config.workers`` when omitted)
            config: Settings for ``root`` (loaded when omitted)
        """
        self.root = Path(root)
        self.config = config or VendConfig(self.root)
        self.probes = dict(probes) if probes is not None else build_probes(self.config)
        self.ignore = frozenset(self.config.ignore) | frozenset(ignore)
        self.max_workers = max_workers if max_workers is not None else self.config.workers

    def save(
        self,
        snapshot_path: Path,
        *,
        overrides: Iterable[RepoOverride] = (),
        pinned: Iterable[PinnedRepo] = (),
        extend: bool = False,
    ) -> SaveResult:
        """Capture, diff, and persist a snapshot.

        Args:
            snapshot_path: Snapshot file to read the previous state from and write to
            overrides: ``path=repoPath`` entries captured after discovery
            pinned: Literal records applied last, without probing
            extend: Merge into the previous snapshot instead of replacing it

        Returns:
            SaveResult with the persisted snapshot, changes and per-repo failures

        Raises:
            DiscoveryError: If the directory walk fails
            SnapshotIOError: If the snapshot cannot be written
        """
        overrides = list(overrides)
        pinned = list(pinned)
        snapshot_file = SnapshotFile(snapshot_path)
        previous = snapshot_file.load_previous()

        snapshot = self.build(overrides=overrides, pinned=pinned)
        changes = diff_snapshots(previous, snapshot.snapshot)

        final = previous.extend(snapshot.snapshot) if extend else snapshot.snapshot
        snapshot_file.save(final)

        return SaveResult(snapshot=final, changes=tuple(changes), failures=snapshot.failures)

    def build(
        self,
        *,
        overrides: Iterable[RepoOverride] = (),
        pinned: Iterable[PinnedRepo] = (),
    ) -> SaveResult:
        """Capture a fresh snapshot without reading or writing any file."""
        snapshot = Snapshot()
        lock = threading.Lock()
        failures: list[RepoFailure] = []

        def capture_into(kind: RepoKind, key: str, repo_path: Path) -> RepoRecord:
            record = self.probes[kind].capture(repo_path)
            with lock:
                snapshot.record(kind, key, record)
            return record

        with FanOut(max_workers=self.max_workers) as fan:
            scanner = DirectoryScanner(self.probes, ignore=self.ignore)
            for found in scanner.scan(self.root):
                fan.submit((found.path, found.kind), capture_into, found.kind, found.path, self.root / found.path)
            failures.extend(self._failures(fan.join()))

            # Overrides are captured only after discovery is complete and applied
            # in the order given, so they win over discovered records deterministically.
            for override in overrides:
                fan.submit(override.path, self._capture_override, override)
            for outcome in fan.join():
                if outcome.ok:
                    kind, record = outcome.value
                    snapshot.record(kind, outcome.key, record)
                else:
                    failures.append(self._failure(outcome.key, outcome.error))

        for entry in pinned:
            snapshot.record(entry.kind, entry.path, entry.record)

        logger.info("Captured %d repositories (%d failed)", len(snapshot), len(failures))
        return SaveResult(snapshot=snapshot, failures=tuple(failures))

    def _capture_override(self, override: RepoOverride) -> tuple[RepoKind, RepoRecord]:
        repo_path = Path(override.repo_path).expanduser()
        if not repo_path.is_absolute():
            repo_path = self.root / repo_path
        kind = detect_kind(repo_path, self.probes)
        if kind is None:
            raise ProbeError(
                f"No repository found at {repo_path}",
                context={"path": override.path, "repo_path": str(repo_path)},
            )
        return kind, self.probes[kind].capture(repo_path)

    def _failures(self, outcomes: list[TaskOutcome]) -> list[RepoFailure]:
        failures = []
        for outcome in outcomes:
            if not outcome.ok:
                path, kind = outcome.key
                failures.append(self._failure(path, outcome.error, kind))
        return failures

    @staticmethod
    def _failure(path: str, error: BaseException | None, kind: RepoKind | None = None) -> RepoFailure:
        return RepoFailure(path=path, message=str(error), kind=kind)


__all__ = ["SnapshotBuilder"]
