"""Repository probes.

A probe translates between a working tree on disk and a ``RepoRecord`` for
one VCS kind, using the external ``git`` / ``hg`` tools:

- ``capture`` reads the current origin and revision (read-only)
- ``reconcile`` makes the working tree match a record, trying in order:
  1. already at the revision: nothing to do
  2. in-place update (same origin, discard local changes)
  3. remove the directory and clone fresh from the origin
"""
from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

from repovend.core.config import VendConfig
from repovend.core.exceptions import CommandError, ProbeError, ReconcileError
from repovend.core.models import RepoKind, RepoRecord
from repovend.core.process import redact, run_command

logger = logging.getLogger(__name__)


def remove_tree(path: Path) -> None:
    """Remove ``path`` whether it is a directory, file, or dangling symlink."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


class RepoProbe(ABC):
    """Reads and sets the state of repositories of one kind."""

    kind: RepoKind

    def __init__(self, executable: str, *, timeout: float | None = None) -> None:
        """Initialize probe.

        Args:
            executable: VCS command (name on PATH or absolute path)
            timeout: Per-command timeout in seconds, ``None`` for no limit
        """
        self.executable = executable
        self.timeout = timeout

    @property
    def marker(self) -> str:
        return self.kind.marker

    def is_repo(self, path: Path) -> bool:
        """Whether ``path`` directly contains this kind's metadata marker."""
        return (Path(path) / self.marker).exists()

    def capture(self, path: Path) -> RepoRecord:
        """Read the current origin and revision of the repository at ``path``.

        Raises:
            ProbeError: If ``path`` is not a repository of this kind, a query
                fails, or the origin/revision is empty
        """
        path = Path(path)
        if not self.is_repo(path):
            raise ProbeError(
                f"No {self.kind.value} repository at {path}",
                context={"path": str(path)},
            )
        try:
            revision = self._read_revision(path)
            origin = self._read_origin(path)
        except CommandError as exc:
            raise ProbeError(str(exc), context={"path": str(path), **exc.context}) from exc

        if not revision:
            raise ProbeError(f"Empty revision for {path}", context={"path": str(path)})
        if not origin:
            raise ProbeError(f"No origin configured for {path}", context={"path": str(path)})
        return RepoRecord(origin=origin, revision=revision)

    def reconcile(self, path: Path, record: RepoRecord) -> bool:
        """Bring the working tree at ``path`` to ``record``.

        Returns:
            True if the working tree was changed, False if it was already current

        Raises:
            ReconcileError: If the fresh clone fails. The partial clone is
                removed, leaving ``path`` absent.
        """
        path = Path(path)
        if any(v.startswith("-") for v in (record.origin, record.revision)) or not record.origin:
            raise ReconcileError(
                f"Refusing unsafe origin/revision for {path}",
                context={"path": str(path), "origin": redact(record.origin)},
            )

        if self.is_repo(path):
            try:
                if self._is_at(path, record.revision):
                    return False
                self._update(path, record)
                return True
            except (CommandError, ReconcileError) as exc:
                logger.info("In-place update of %s failed, re-cloning: %s", path, exc)

        if path.exists() or path.is_symlink():
            logger.warning("Removing %s to clone %s", path, redact(record.origin))
            remove_tree(path)

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._clone(path, record)
        except CommandError as exc:
            remove_tree(path)
            raise ReconcileError(
                f"Cannot restore {path}: {exc}",
                context={"path": str(path), "origin": redact(record.origin), "revision": record.revision},
            ) from exc
        return True

    def _run(self, args: list[str], *, cwd: Path | None = None) -> str:
        result = run_command(
            [self.executable, *args],
            cwd=cwd,
            env=self._command_env(cwd),
            timeout=self.timeout,
        )
        return (result.stdout or "").strip()

    def _command_env(self, cwd: Path | None) -> dict[str, str]:
        return {}

    def _is_at(self, path: Path, revision: str) -> bool:
        return self._read_revision(path) == revision

    def _check_origin(self, path: Path, record: RepoRecord) -> None:
        current = self._read_origin(path)
        if current != record.origin:
            raise ReconcileError(
                f"Origin of {path} is {redact(current)!r}, expected {redact(record.origin)!r}",
                context={"path": str(path)},
            )

    @abstractmethod
    def _read_revision(self, path: Path) -> str:
        ...

    @abstractmethod
    def _read_origin(self, path: Path) -> str:
        ...

    @abstractmethod
    def _update(self, path: Path, record: RepoRecord) -> None:
        """Move an existing working tree to ``record.revision``, discarding local changes."""

    @abstractmethod
    def _clone(self, path: Path, record: RepoRecord) -> None:
        """Clone ``record.origin`` into ``path`` (absent) and move it to ``record.revision``."""


class GitProbe(RepoProbe):
    """git repositories (``.git`` marker)."""

    kind = RepoKind.GIT

    def _command_env(self, cwd: Path | None) -> dict[str, str]:
        env = {"GIT_TERMINAL_PROMPT": "0"}
        if cwd is not None:
            # A broken .git must fail here, not resolve to an enclosing repository.
            env["GIT_CEILING_DIRECTORIES"] = str(Path(cwd).resolve().parent)
        return env

    def _read_revision(self, path: Path) -> str:
        return self._run(["rev-parse", "HEAD"], cwd=path)

    def _read_origin(self, path: Path) -> str:
        return self._run(["config", "--get", "remote.origin.url"], cwd=path)

    def _is_at(self, path: Path, revision: str) -> bool:
        head = self._read_revision(path)
        if head == revision:
            return True
        # Abbreviated hashes and tags count when they resolve to HEAD.
        try:
            resolved = self._run(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"], cwd=path)
        except CommandError:
            return False
        return resolved == head

    def _update(self, path: Path, record: RepoRecord) -> None:
        self._check_origin(path, record)
        self._run(["reset", "--hard", record.revision], cwd=path)

    def _clone(self, path: Path, record: RepoRecord) -> None:
        self._run(["clone", "--", record.origin, str(path)], cwd=path.parent)
        self._run(["reset", "--hard", record.revision], cwd=path)


class MercurialProbe(RepoProbe):
    """Mercurial repositories (``.hg`` marker)."""

    kind = RepoKind.MERCURIAL

    def _command_env(self, cwd: Path | None) -> dict[str, str]:
        return {"HGPLAIN": "1"}

    def _identify(self, path: Path) -> str:
        return self._run(["-R", str(path), "--debug", "id", "-i"], cwd=path)

    def _read_revision(self, path: Path) -> str:
        revision = self._identify(path)
        if revision.endswith("+"):
            logger.warning("%s has uncommitted changes; recording its parent revision", path)
            revision = revision.rstrip("+")
        return revision

    def _read_origin(self, path: Path) -> str:
        return self._run(["-R", str(path), "paths", "default"], cwd=path)

    def _is_at(self, path: Path, revision: str) -> bool:
        current = self._identify(path)
        # A trailing "+" (local modifications) never matches a recorded revision.
        if current.endswith("+"):
            return False
        if current == revision:
            return True
        # Short ids and tags count when they resolve to the working copy parent.
        try:
            resolved = self._run(["-R", str(path), "--debug", "id", "-i", "-r", revision], cwd=path)
        except CommandError:
            return False
        return resolved == current

    def _update(self, path: Path, record: RepoRecord) -> None:
        self._check_origin(path, record)
        self._run(["-R", str(path), "update", "-C", record.revision], cwd=path)

    def _clone(self, path: Path, record: RepoRecord) -> None:
        self._run(["clone", "-u", record.revision, "--", record.origin, str(path)], cwd=path.parent)


def build_probes(config: VendConfig) -> dict[RepoKind, RepoProbe]:
    """Create one probe per supported kind from configuration."""
    return {
        RepoKind.GIT: GitProbe(config.git_executable, timeout=config.timeout_seconds),
        RepoKind.MERCURIAL: MercurialProbe(config.hg_executable, timeout=config.timeout_seconds),
    }


def detect_kind(path: Path, probes: Mapping[RepoKind, RepoProbe]) -> RepoKind | None:
    """Kind of repository rooted directly at ``path``, or None. Git is checked first."""
    for kind in RepoKind:
        probe = probes.get(kind)
        if probe is not None and probe.is_repo(path):
            return kind
    return None


__all__ = [
    "RepoProbe",
    "GitProbe",
    "MercurialProbe",
    "build_probes",
    "detect_kind",
    "remove_tree",
]
