"""CLI output formatting.

Text mode follows the scripting contract: one changed path per line on
stdout, notes and per-repository diagnostics on stderr. JSON mode emits a
single document on stdout instead.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Iterable, Optional

from repovend.core.exceptions import VendError
from repovend.core.models import RepoFailure


class OutputFormatter:
    """Output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def paths(self, paths: Iterable[str]) -> None:
        """Print one path per line on stdout (text mode only)."""
        if self.json_mode:
            return
        for path in paths:
            print(path)

    def note(self, message: str) -> None:
        """Print an informational note on stderr (text mode only)."""
        if not self.json_mode:
            print(message, file=sys.stderr)

    def failures(self, failures: Iterable[RepoFailure]) -> None:
        """Print per-repository diagnostics on stderr, prefixed with the path."""
        if self.json_mode:
            return
        for failure in failures:
            print(f"{failure.path}: {failure.message}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        """Output raw JSON data.

        Args:
            data: Data to serialize as JSON
        """
        print(json.dumps(data, indent=self.indent, default=str))

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output a fatal error on stderr.

        Args:
            error: The exception that occurred
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
        """
        msg = message or str(error)
        if self.json_mode:
            output: dict[str, Any] = {"error": error_code, "message": msg}
            if isinstance(error, VendError):
                output["detail"] = error.to_json_error()
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)


__all__ = ["OutputFormatter"]
