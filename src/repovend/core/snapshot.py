"""Snapshot file management.

Provides canonical JSON encoding of snapshots (stable key order, 2-space
indentation) so that saving an unchanged tree produces byte-identical files,
plus schema-validated loading and diffing against a previous snapshot.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from repovend.core.exceptions import SnapshotFormatError, SnapshotIOError
from repovend.core.models import Snapshot, SnapshotChange
from repovend.data import read_yaml

logger = logging.getLogger(__name__)

SCHEMA_FILE = "snapshot.schema.yaml"


def dumps_snapshot(snapshot: Snapshot) -> str:
    """Encode a snapshot as canonical JSON text (with trailing newline)."""
    return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False) + "\n"


def validate_snapshot_data(data: Any) -> None:
    """Validate decoded JSON against the bundled snapshot schema.

    Raises:
        SnapshotFormatError: On the most relevant schema violation
    """
    from jsonschema import Draft202012Validator
    from jsonschema.exceptions import best_match

    validator = Draft202012Validator(read_yaml("schemas", SCHEMA_FILE))
    err = best_match(validator.iter_errors(data))
    if err is not None:
        where = "/".join(str(p) for p in err.absolute_path) or "<root>"
        raise SnapshotFormatError(
            f"Invalid snapshot at {where}: {err.message}",
            context={"location": where},
        )


def loads_snapshot(text: str) -> Snapshot:
    """Decode and validate snapshot JSON text.

    Raises:
        SnapshotFormatError: If the text is not valid JSON, violates the
            schema, or records one path under both kinds
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {exc}") from exc

    validate_snapshot_data(data)
    try:
        snapshot = Snapshot.from_dict(data)
    except ValueError as exc:
        raise SnapshotFormatError(f"Invalid snapshot key: {exc}") from exc

    overlap = snapshot.overlapping_paths()
    if overlap:
        raise SnapshotFormatError(
            f"Snapshot records paths under more than one kind: {', '.join(overlap)}",
            context={"paths": overlap},
        )
    return snapshot


def diff_snapshots(old: Snapshot, new: Snapshot) -> list[SnapshotChange]:
    """List entries of ``new`` that are absent from ``old`` or differ from it.

    Comparison is per kind; ordering follows ``Snapshot.entries``.
    """
    changes: list[SnapshotChange] = []
    for kind, path, record in new.entries():
        previous = old.get(kind, path)
        if previous is None or previous != record:
            changes.append(SnapshotChange(kind=kind, path=path, new=record, old=previous))
    return changes


class SnapshotFile:
    """A snapshot persisted at a filesystem path."""

    def __init__(self, path: Path) -> None:
        """Initialize snapshot file.

        Args:
            path: Location of the JSON snapshot
        """
        self.path = Path(path)

    def load(self) -> Snapshot:
        """Load the snapshot.

        Raises:
            SnapshotIOError: If the file cannot be read
            SnapshotFormatError: If the content is invalid
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SnapshotIOError(
                f"Cannot read snapshot {self.path}: {exc}",
                context={"path": str(self.path)},
            ) from exc

        try:
            return loads_snapshot(text)
        except SnapshotFormatError as exc:
            exc.context.setdefault("path", str(self.path))
            raise SnapshotFormatError(f"{self.path}: {exc}", context=exc.context) from exc

    def load_previous(self) -> Snapshot:
        """Load best-effort: a missing or unparseable file yields an empty snapshot."""
        if not self.path.exists():
            return Snapshot()
        try:
            return self.load()
        except SnapshotIOError as exc:
            logger.info("Ignoring previous snapshot: %s", exc)
            return Snapshot()

    def save(self, snapshot: Snapshot) -> None:
        """Write the snapshot atomically (temp file + rename).

        Raises:
            SnapshotIOError: If the file cannot be written
        """
        content = dumps_snapshot(snapshot)
        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            mode = self.path.stat().st_mode & 0o777 if self.path.exists() else 0o644
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            raise SnapshotIOError(
                f"Cannot write snapshot {self.path}: {exc}",
                context={"path": str(self.path)},
            ) from exc
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()

        logger.debug("Wrote snapshot %s (%d repos)", self.path, len(snapshot))


__all__ = [
    "SnapshotFile",
    "diff_snapshots",
    "dumps_snapshot",
    "loads_snapshot",
    "validate_snapshot_data",
]
