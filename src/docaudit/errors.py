"""Exceptions raised by a reconciliation run.

Only run-level failures are exceptions. Problems with a single record (an
unreadable path, a permission error) are reported as a missing file instead.
"""

from __future__ import annotations

from pathlib import Path


class ReconcileError(Exception):
    """Base class for errors that abort a reconciliation run."""


class RootDirectoryMissingError(ReconcileError):
    """The configured document root does not exist."""

    def __init__(self, root: str | Path) -> None:
        self.root = str(root)
        super().__init__(f"Configured root directory does not exist: {self.root}")


class RecordSourceError(ReconcileError):
    """The record source could not be opened or queried."""


class ExportError(ReconcileError):
    """The CSV report could not be written."""
