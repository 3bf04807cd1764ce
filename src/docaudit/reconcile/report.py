"""Run level aggregation of reconciliation outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from docaudit.models import ReconciledRow

NOT_CONFIGURED = "not configured"
SUCCESS_MARKER = "Reconciliation completed successfully"


def format_row_line(row: ReconciledRow) -> str:
    path = row.path if row.path is not None else "<no path>"
    return f"Record {row.record.record_id}: {path} -> EXISTS={row.flag}"


@dataclass(slots=True)
class RunReport:
    total: int = 0
    matched: int = 0
    missing: int = 0
    skipped_no_path: int = 0
    root_directory: Optional[str] = None
    strategy: str = "direct"
    indexed_entries: int = 0
    index_errors: int = 0
    columns: list[str] = field(default_factory=list)
    rows: list[ReconciledRow] = field(default_factory=list)
    log_lines: list[str] = field(default_factory=list)
    succeeded: bool = False
    fatal_error: Optional[str] = None

    def set_root(self, root: Optional[str]) -> None:
        self.root_directory = root or None
        self.log(f"Root directory: {self.root_label}")

    @property
    def root_label(self) -> str:
        return self.root_directory if self.root_directory else NOT_CONFIGURED

    def log(self, line: str) -> None:
        self.log_lines.append(line)

    def add(self, row: ReconciledRow) -> None:
        self.total += 1
        if not row.has_path:
            self.skipped_no_path += 1
            self.missing += 1
        elif row.exists:
            self.matched += 1
        else:
            self.missing += 1
        if not self.columns:
            self.columns = list(row.record.columns)
        self.rows.append(row)
        self.log(format_row_line(row))

    def succeed(self) -> None:
        self.succeeded = True
        self.log(
            f"{SUCCESS_MARKER}: {self.total} records, "
            f"{self.matched} found, {self.missing} missing "
            f"({self.skipped_no_path} without a stored path)"
        )

    def fail(self, message: str) -> None:
        self.succeeded = False
        self.fatal_error = message
        self.log(f"FATAL: {message}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "matched": self.matched,
            "missing": self.missing,
            "skipped_no_path": self.skipped_no_path,
            "root_directory": self.root_label,
            "strategy": self.strategy,
            "indexed_entries": self.indexed_entries,
            "index_errors": self.index_errors,
            "succeeded": self.succeeded,
            "fatal_error": self.fatal_error,
        }
