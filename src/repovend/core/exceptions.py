"""repovend exceptions.

Per-repository errors (``ProbeError``, ``ReconcileError``) are collected and
reported without aborting sibling work. Structural errors (``DiscoveryError``,
``SnapshotIOError``, ``ManualEntryError``, ``VendConfigError``) abort the
whole operation.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping


class VendError(Exception):
    """Base exception for repovend."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class VendConfigError(VendError):
    """Raised when configuration is invalid."""


class ManualEntryError(VendError, ValueError):
    """Raised when a manual override or pinned entry is malformed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        VendError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class CommandError(VendError):
    """Raised when an external command exits non-zero, times out, or cannot start."""

    def __init__(
        self,
        message: str,
        *,
        argv: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if argv is not None:
            ctx.setdefault("argv", list(argv))
        if returncode is not None:
            ctx.setdefault("returncode", returncode)
        super().__init__(message, context=ctx)
        self.argv = list(argv or [])
        self.returncode = returncode
        self.stderr = stderr


class DiscoveryError(VendError):
    """Raised when the directory walk cannot proceed."""


class ProbeError(VendError):
    """Raised when a repository's origin or revision cannot be read."""


class ReconcileError(VendError):
    """Raised when a working tree cannot be brought to its recorded state."""


class SnapshotIOError(VendError):
    """Raised when a snapshot file cannot be read or written."""


class SnapshotFormatError(SnapshotIOError):
    """Raised when a snapshot file is not valid JSON or violates the snapshot schema."""


__all__ = [
    "VendError",
    "VendConfigError",
    "ManualEntryError",
    "CommandError",
    "DiscoveryError",
    "ProbeError",
    "ReconcileError",
    "SnapshotIOError",
    "SnapshotFormatError",
]
