"""CSV and log file outputs for reconciliation runs."""

from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Iterable, Sequence

from docaudit.models import ReconciledRow

EXISTS_COLUMN = "EXISTS"


def _cell(value: object) -> object:
    return "" if value is None else value


class CsvSink:
    """Writes one row per record with the ``EXISTS`` flag appended.

    Rows are written to a temporary file beside the target and moved into
    place only once every row is written, so a failed export never leaves a
    partial report behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def write(self, columns: Sequence[str], rows: Iterable[ReconciledRow]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            newline="",
            encoding="utf-8",
            delete=False,
        )
        try:
            with handle:
                writer = csv.writer(handle)
                writer.writerow([*columns, EXISTS_COLUMN])
                for row in rows:
                    writer.writerow([*(_cell(value) for value in row.record.values), row.flag])
            os.replace(handle.name, self.path)
        except BaseException:
            os.unlink(handle.name)
            raise


class LogFileSink:
    """Plain text run log, overwritten at the start of every run."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def reset(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")

    def write(self, lines: Iterable[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            for line in lines:
                handle.write(f"{line}\n")
