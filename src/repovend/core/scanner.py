"""Directory scanner.

Walks a vendoring root in pre-order and yields every repository root it
finds. Repository roots are opaque: the walk never descends into them, so
nested checkouts inside a vendored repository belong to that repository.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AbstractSet, Iterator, Mapping

from repovend.core.exceptions import DiscoveryError
from repovend.core.models import DiscoveredRepo, RepoKind
from repovend.core.probe import RepoProbe, detect_kind

logger = logging.getLogger(__name__)


class DirectoryScanner:
    """Enumerates repository roots below a directory."""

    def __init__(
        self,
        probes: Mapping[RepoKind, RepoProbe],
        *,
        ignore: AbstractSet[str] = frozenset(),
    ) -> None:
        """Initialize scanner.

        Args:
            probes: Probes whose markers identify repository roots
            ignore: Root-relative POSIX paths whose subtrees are skipped
        """
        self.probes = probes
        self.ignore = frozenset(ignore)
        self._markers = frozenset(kind.marker for kind in probes)

    def scan(self, root: Path) -> Iterator[DiscoveredRepo]:
        """Yield repository roots below ``root`` as soon as each is found.

        The root itself is never reported, even if it is a repository.
        Subdirectories are visited in sorted order; symlinks are not followed.

        Raises:
            DiscoveryError: If a directory cannot be listed
        """
        root = Path(root)
        if not root.is_dir():
            raise DiscoveryError(f"Not a directory: {root}", context={"path": str(root)})
        yield from self._walk(root, "")

    def _walk(self, directory: Path, rel: str) -> Iterator[DiscoveredRepo]:
        for name in self._subdirectories(directory):
            child_rel = f"{rel}/{name}" if rel else name
            if child_rel in self.ignore:
                logger.debug("Skipping ignored %s", child_rel)
                continue
            child = directory / name
            kind = detect_kind(child, self.probes)
            if kind is not None:
                logger.debug("Found %s repository at %s", kind.value, child_rel)
                yield DiscoveredRepo(path=child_rel, kind=kind)
                continue
            yield from self._walk(child, child_rel)

    def _subdirectories(self, directory: Path) -> list[str]:
        try:
            with os.scandir(directory) as entries:
                return sorted(
                    entry.name
                    for entry in entries
                    if entry.is_dir(follow_symlinks=False) and entry.name not in self._markers
                )
        except OSError as exc:
            raise DiscoveryError(
                f"Cannot scan {directory}: {exc}",
                context={"path": str(directory)},
            ) from exc


__all__ = ["DirectoryScanner"]
