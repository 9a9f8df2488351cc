"""repovend core engine.

Key components:
- SnapshotBuilder: discover and capture repositories into a snapshot (save)
- RestoreEngine: converge working trees to a snapshot (restore)
- SnapshotFile: canonical JSON persistence of snapshots
- GitProbe / MercurialProbe: per-kind capture and reconcile
- DirectoryScanner: repository root discovery
- VendConfig: layered configuration
"""
from __future__ import annotations

from repovend.core.builder import SnapshotBuilder
from repovend.core.config import VendConfig
from repovend.core.exceptions import (
    CommandError,
    DiscoveryError,
    ManualEntryError,
    ProbeError,
    ReconcileError,
    SnapshotFormatError,
    SnapshotIOError,
    VendConfigError,
    VendError,
)
from repovend.core.models import (
    PinnedRepo,
    RepoFailure,
    RepoKind,
    RepoOverride,
    RepoRecord,
    RestoreResult,
    SaveResult,
    Snapshot,
    SnapshotChange,
)
from repovend.core.probe import GitProbe, MercurialProbe, RepoProbe
from repovend.core.restore import RestoreEngine
from repovend.core.scanner import DirectoryScanner
from repovend.core.snapshot import SnapshotFile

__all__ = [
    # Engine
    "SnapshotBuilder",
    "RestoreEngine",
    "SnapshotFile",
    "DirectoryScanner",
    # Probes
    "RepoProbe",
    "GitProbe",
    "MercurialProbe",
    # Config
    "VendConfig",
    # Models
    "RepoKind",
    "RepoRecord",
    "Snapshot",
    "RepoOverride",
    "PinnedRepo",
    "RepoFailure",
    "SnapshotChange",
    "SaveResult",
    "RestoreResult",
    # Exceptions
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
