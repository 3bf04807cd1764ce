"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from docaudit.source.storage import DEFAULT_ROOT_KEY


def resolve_path(path: Path, base_dir: Path | None = None) -> Path:
    if Path(path).is_absolute() or base_dir is None:
        return Path(path)
    return base_dir / path


@dataclass(slots=True)
class AppConfig:
    db_path: Path = Path("data/practice.db")
    root_key: str = DEFAULT_ROOT_KEY
    root_override: str | None = None
    query: str | None = None
    csv_path: Path = Path("docaudit_report.csv")
    log_path: Path = Path("docaudit.log")
    output_dir: Path = Path("reports")
    workers: int = 1
    use_index: bool = True
    confirm_misses: bool = False

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        return resolve_path(self.db_path, base_dir)

    def resolve_csv_path(self, base_dir: Path | None = None) -> Path:
        return resolve_path(self.csv_path, base_dir)

    def resolve_output_dir(self, base_dir: Path | None = None) -> Path:
        return resolve_path(self.output_dir, base_dir)

    def resolve_log_path(self, base_dir: Path | None = None) -> Path:
        return resolve_path(self.log_path, base_dir)
