"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
from pathlib import Path


def get_root_dir(args: argparse.Namespace) -> Path:
    """Vendoring root from ``-d/--dir`` (current directory by default)."""
    return Path(getattr(args, "root_dir", None) or ".")


__all__ = ["get_root_dir"]
