"""repovend configuration loading.

Configuration is layered (later wins):

1. Bundled defaults: ``repovend/data/config/defaults.yaml``
2. Project file: ``<root>/.repovend.yaml``
3. Environment overrides: ``REPOVEND_<KEY>`` (e.g. ``REPOVEND_WORKERS=8``)
4. Legacy ``VENDOR_IGNORE_DIRS`` (``os.pathsep``-separated), appended to ``ignore``
"""
from __future__ import annotations

import json
import os
from functools import cached_property
from pathlib import Path
from typing import Any, Mapping

import yaml

from repovend.core.exceptions import VendConfigError
from repovend.core.models import normalize_repo_path
from repovend.data import read_yaml

PROJECT_CONFIG_NAME = ".repovend.yaml"
ENV_PREFIX = "REPOVEND_"
LEGACY_IGNORE_ENV = "VENDOR_IGNORE_DIRS"


def _coerce_env_value(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    for caster in (int, float):
        try:
            return caster(value)
        except ValueError:
            pass
    if value.strip().startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass
    return value.strip()


class VendConfig:
    """Load and access repovend settings for one vendoring root."""

    def __init__(self, root: Path, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialize config.

        Args:
            root: Vendoring root (where ``.repovend.yaml`` is looked up)
            environ: Environment to read overrides from (defaults to ``os.environ``)
        """
        self.root = Path(root)
        self._environ = os.environ if environ is None else environ

    @property
    def config_path(self) -> Path:
        """Path to the optional project configuration file."""
        return self.root / PROJECT_CONFIG_NAME

    def _load_project(self) -> dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            data = yaml.safe_load(self.config_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise VendConfigError(f"Cannot load {self.config_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise VendConfigError(f"{self.config_path} must contain a mapping")
        return data

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key in sorted(self._environ):
            if key.startswith(ENV_PREFIX) and len(key) > len(ENV_PREFIX):
                overrides[key[len(ENV_PREFIX):].lower()] = _coerce_env_value(self._environ[key])
        return overrides

    @cached_property
    def settings(self) -> dict[str, Any]:
        """Fully merged settings."""
        merged: dict[str, Any] = dict(read_yaml("config", "defaults.yaml"))
        merged.update(self._load_project())
        merged.update(self._env_overrides())

        ignore = merged.get("ignore") or []
        if isinstance(ignore, str):
            ignore = [p for p in ignore.split(os.pathsep) if p]
        if not isinstance(ignore, list):
            raise VendConfigError("ignore must be a list of root-relative paths")
        legacy = self._environ.get(LEGACY_IGNORE_ENV, "")
        merged["ignore"] = list(ignore) + [p for p in legacy.split(os.pathsep) if p]
        return merged

    @cached_property
    def ignore(self) -> frozenset[str]:
        """Root-relative directories the scanner must not enter."""
        paths: set[str] = set()
        for raw in self.settings["ignore"]:
            try:
                paths.add(normalize_repo_path(str(raw)))
            except ValueError as exc:
                raise VendConfigError(f"Invalid ignore path {raw!r}: {exc}") from exc
        return frozenset(paths)

    @cached_property
    def workers(self) -> int | None:
        """Max concurrent repository workers, ``None`` for the executor default."""
        value = self._int_setting("workers")
        if value < 0:
            raise VendConfigError("workers must be >= 0")
        return value or None

    @cached_property
    def timeout_seconds(self) -> float | None:
        """Per-command timeout, ``None`` when disabled."""
        raw = self.settings.get("timeout_seconds") or 0
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise VendConfigError(f"timeout_seconds must be a number, got {raw!r}") from exc
        if value < 0:
            raise VendConfigError("timeout_seconds must be >= 0")
        return value or None

    @cached_property
    def git_executable(self) -> str:
        return str(self.settings.get("git_executable") or "git")

    @cached_property
    def hg_executable(self) -> str:
        return str(self.settings.get("hg_executable") or "hg")

    @cached_property
    def log_level(self) -> str:
        return str(self.settings.get("log_level") or "WARNING").upper()

    @cached_property
    def log_file(self) -> Path | None:
        raw = self.settings.get("log_file")
        if not raw:
            return None
        path = Path(str(raw)).expanduser()
        return path if path.is_absolute() else self.root / path

    def _int_setting(self, key: str) -> int:
        raw = self.settings.get(key) or 0
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise VendConfigError(f"{key} must be an integer, got {raw!r}") from exc


__all__ = ["VendConfig", "PROJECT_CONFIG_NAME", "LEGACY_IGNORE_ENV"]
