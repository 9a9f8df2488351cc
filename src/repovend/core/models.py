"""Snapshot data models.

Provides the immutable record types captured per repository and the
``Snapshot`` mapping that is persisted by save and consumed by restore.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Iterator

from repovend.core.exceptions import ManualEntryError


class RepoKind(str, Enum):
    """Version-control systems a vendored repository can use."""

    GIT = "git"
    MERCURIAL = "hg"

    @property
    def marker(self) -> str:
        """Metadata directory that marks a repository root."""
        return _MARKERS[self]

    @property
    def field_name(self) -> str:
        """Top-level snapshot field holding repositories of this kind."""
        return _FIELD_NAMES[self]


_MARKERS = {RepoKind.GIT: ".git", RepoKind.MERCURIAL: ".hg"}
_FIELD_NAMES = {RepoKind.GIT: "GitRepos", RepoKind.MERCURIAL: "MercurialRepos"}


def normalize_repo_path(raw: str) -> str:
    """Normalize a snapshot key to a clean, root-relative POSIX path.

    Raises:
        ValueError: If the path is empty, absolute, names the root, or escapes it.
    """
    text = str(raw).strip().replace("\\", "/")
    if not text:
        raise ValueError("path must not be empty")
    pure = PurePosixPath(text)
    if pure.is_absolute():
        raise ValueError(f"path must be relative to the vendoring root: {raw!r}")
    parts = [p for p in pure.parts if p not in ("", ".")]
    if not parts:
        raise ValueError(f"path must not name the vendoring root: {raw!r}")
    if ".." in parts:
        raise ValueError(f"path must not escape the vendoring root: {raw!r}")
    return "/".join(parts)


@dataclass(frozen=True, slots=True)
class RepoRecord:
    """Pinned state of one repository.

    Attributes:
        origin: Remote URI the repository is cloned from
        revision: Opaque VCS revision identifier
    """

    origin: str
    revision: str

    def to_dict(self) -> dict[str, str]:
        """Serialize using the persisted field names."""
        return {"URI": self.origin, "Ref": self.revision}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepoRecord:
        """Create from a persisted ``{"URI": ..., "Ref": ...}`` object."""
        return cls(origin=str(data.get("URI") or ""), revision=str(data.get("Ref") or ""))


@dataclass(slots=True)
class Snapshot:
    """Recorded repositories keyed by root-relative path, one mapping per kind.

    A path lives in at most one of the two mappings; ``record`` enforces this.
    """

    git_repos: dict[str, RepoRecord] = field(default_factory=dict)
    mercurial_repos: dict[str, RepoRecord] = field(default_factory=dict)

    def repos(self, kind: RepoKind) -> dict[str, RepoRecord]:
        """Mapping for one kind (live view)."""
        if kind is RepoKind.GIT:
            return self.git_repos
        return self.mercurial_repos

    def get(self, kind: RepoKind, path: str) -> RepoRecord | None:
        return self.repos(kind).get(path)

    def kind_of(self, path: str) -> RepoKind | None:
        for kind in RepoKind:
            if path in self.repos(kind):
                return kind
        return None

    def record(self, kind: RepoKind, path: str, record: RepoRecord) -> None:
        """Record ``path`` under ``kind``, dropping it from the other kind."""
        for other in RepoKind:
            if other is not kind:
                self.repos(other).pop(path, None)
        self.repos(kind)[path] = record

    def entries(self) -> Iterator[tuple[RepoKind, str, RepoRecord]]:
        """Iterate all entries ordered by kind, then path."""
        for kind in RepoKind:
            mapping = self.repos(kind)
            for path in sorted(mapping):
                yield kind, path, mapping[path]

    def overlapping_paths(self) -> list[str]:
        """Paths present under more than one kind (always empty for valid snapshots)."""
        return sorted(set(self.git_repos) & set(self.mercurial_repos))

    def copy(self) -> Snapshot:
        return Snapshot(git_repos=dict(self.git_repos), mercurial_repos=dict(self.mercurial_repos))

    def extend(self, newer: Snapshot) -> Snapshot:
        """Merge ``newer`` into a copy of this snapshot.

        Entries of ``newer`` overwrite on collision; entries only present here
        are preserved unchanged.
        """
        merged = self.copy()
        for kind, path, rec in newer.entries():
            merged.record(kind, path, rec)
        return merged

    def __len__(self) -> int:
        return len(self.git_repos) + len(self.mercurial_repos)

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        """Serialize with stable ordering (fields, then sorted paths)."""
        return {
            kind.field_name: {path: self.repos(kind)[path].to_dict() for path in sorted(self.repos(kind))}
            for kind in RepoKind
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """Create from a persisted snapshot object.

        Missing or ``null`` kind fields are treated as empty. Disjointness is
        not checked here; see ``overlapping_paths``.

        Raises:
            ValueError: If a key is not a root-relative path below the root
        """
        snapshot = cls()
        for kind in RepoKind:
            for path, raw in (data.get(kind.field_name) or {}).items():
                snapshot.repos(kind)[normalize_repo_path(path)] = RepoRecord.from_dict(raw or {})
        return snapshot


@dataclass(frozen=True, slots=True)
class RepoOverride:
    """Manual ``path=repoPath`` entry: capture ``repo_path`` but record it as ``path``."""

    path: str
    repo_path: str

    @classmethod
    def parse(cls, text: str) -> RepoOverride:
        path, sep, repo_path = str(text).partition("=")
        if not sep or not repo_path.strip():
            raise ManualEntryError(
                f"Malformed override {text!r}: expected PATH=REPO",
                context={"entry": text},
            )
        try:
            normalized = normalize_repo_path(path)
        except ValueError as exc:
            raise ManualEntryError(f"Malformed override {text!r}: {exc}", context={"entry": text}) from exc
        return cls(path=normalized, repo_path=repo_path.strip())


@dataclass(frozen=True, slots=True)
class PinnedRepo:
    """Manual ``path=origin@revision`` entry recorded without touching the filesystem."""

    kind: RepoKind
    path: str
    record: RepoRecord

    @classmethod
    def parse(cls, kind: RepoKind, text: str) -> PinnedRepo:
        """Parse ``path=origin@revision``.

        The revision follows the last ``@`` so scp-style origins such as
        ``git@host:org/repo.git`` keep their user part.
        """
        path, sep, target = str(text).partition("=")
        origin, at, revision = target.rpartition("@")
        if not sep or not at or not origin.strip() or not revision.strip():
            raise ManualEntryError(
                f"Malformed {kind.value} entry {text!r}: expected PATH=URI@REV",
                context={"entry": text, "kind": kind.value},
            )
        try:
            normalized = normalize_repo_path(path)
        except ValueError as exc:
            raise ManualEntryError(
                f"Malformed {kind.value} entry {text!r}: {exc}",
                context={"entry": text, "kind": kind.value},
            ) from exc
        return cls(kind=kind, path=normalized, record=RepoRecord(origin=origin.strip(), revision=revision.strip()))


@dataclass(frozen=True, slots=True)
class DiscoveredRepo:
    """Repository root found by the directory scanner.

    Attributes:
        path: Root-relative POSIX path (snapshot key)
        kind: Detected VCS kind
    """

    path: str
    kind: RepoKind


@dataclass(frozen=True, slots=True)
class RepoFailure:
    """Per-repository failure reported without aborting sibling work."""

    path: str
    message: str
    kind: RepoKind | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class SnapshotChange:
    """A path whose record differs from the previous snapshot."""

    kind: RepoKind
    path: str
    new: RepoRecord
    old: RepoRecord | None = None

    @property
    def transition(self) -> str | None:
        """``old -> new`` revision note, when a previous revision existed."""
        if self.old is None or not self.old.revision:
            return None
        return f"{self.old.revision} -> {self.new.revision}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "kind": self.kind.value,
            "old": self.old.to_dict() if self.old else None,
            "new": self.new.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Result of a save operation.

    Attributes:
        snapshot: Snapshot that was persisted (merged result in extend mode)
        changes: Paths whose record differs from the previous snapshot
        failures: Repositories whose state could not be captured
    """

    snapshot: Snapshot
    changes: tuple[SnapshotChange, ...] = ()
    failures: tuple[RepoFailure, ...] = ()

    @property
    def changed_paths(self) -> list[str]:
        return [c.path for c in self.changes]


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Result of a restore operation.

    Attributes:
        restored: Paths whose working tree was changed, sorted
        unchanged: Paths already at their recorded revision, sorted
        failures: Repositories that could not be converged
    """

    restored: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()
    failures: tuple[RepoFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


__all__ = [
    "RepoKind",
    "RepoRecord",
    "Snapshot",
    "RepoOverride",
    "PinnedRepo",
    "DiscoveredRepo",
    "RepoFailure",
    "SnapshotChange",
    "SaveResult",
    "RestoreResult",
    "normalize_repo_path",
]
