"""FastAPI application exposing reconciliation runs over HTTP."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from docaudit.config import AppConfig
from docaudit.errors import ExportError, RecordSourceError, ReconcileError, RootDirectoryMissingError
from docaudit.reconcile.pipeline import run_reconciliation
from docaudit.reconcile.report import RunReport

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="docaudit", version="0.1.0")
# Report files requested over HTTP may only be written below this directory.
app.state.output_dir = None


class ReconcilePayload(BaseModel):
    db: str | None = None
    root_key: str | None = None
    root: str | None = None
    query: str | None = None
    workers: int = 1
    use_index: bool = True
    confirm_misses: bool = False
    csv_path: str | None = None
    log_path: str | None = None


def _resolve_db_path(db: str | None) -> Path:
    config = AppConfig(db_path=Path(db) if db is not None else AppConfig().db_path)
    return config.resolve_db_path(Path.cwd())


def _output_dir() -> Path:
    configured = app.state.output_dir
    if configured is None:
        return AppConfig().resolve_output_dir(Path.cwd())
    return Path(configured)


def _validate_output_path(raw: str, label: str) -> Path:
    """Return the canonical output path, or raise if it may not be written."""
    clean_path = raw.strip()
    if "\0" in clean_path:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: contains null byte")
    if not clean_path or not os.path.isabs(clean_path):
        raise HTTPException(status_code=400, detail=f"Invalid {label}: must be absolute")

    # Canonical paths on both sides so symlinks cannot escape the base.
    real_path = os.path.realpath(clean_path)
    base_dir = os.path.realpath(str(_output_dir()))
    if not real_path.startswith(base_dir + os.sep):
        raise HTTPException(
            status_code=403,
            detail=f"Access denied: {label} is outside the output directory",
        )
    if os.path.isdir(real_path):
        raise HTTPException(status_code=400, detail=f"Invalid {label}: is a directory")
    return Path(real_path)


def _serialize(report: RunReport) -> dict[str, Any]:
    return {
        "summary": report.as_dict(),
        "columns": [*report.columns, "EXISTS"],
        "rows": [row.values() for row in report.rows],
        "log": report.log_lines,
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/reconcile")
async def reconcile(payload: ReconcilePayload) -> dict[str, Any]:
    """Run a reconciliation and return the summary with every row.

    Files are only written when ``csv_path`` and ``log_path`` are both given,
    and both must be absolute paths inside the output directory.
    """
    if payload.workers < 1:
        raise HTTPException(status_code=400, detail="workers must be at least 1")
    if payload.db is not None and "\0" in payload.db:
        raise HTTPException(status_code=400, detail="Invalid db: contains null byte")

    resolved_db = _resolve_db_path(payload.db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail=f"Database not found: {resolved_db}")

    write_outputs = payload.csv_path is not None and payload.log_path is not None
    defaults = AppConfig()
    csv_path, log_path = defaults.csv_path, defaults.log_path
    if write_outputs:
        csv_path = _validate_output_path(payload.csv_path, "csv_path")  # type: ignore[arg-type]
        log_path = _validate_output_path(payload.log_path, "log_path")  # type: ignore[arg-type]
        if csv_path == log_path:
            raise HTTPException(status_code=400, detail="csv_path and log_path must differ")

    config = AppConfig(
        db_path=resolved_db,
        root_key=payload.root_key or defaults.root_key,
        root_override=payload.root,
        query=payload.query,
        csv_path=csv_path,
        log_path=log_path,
        workers=payload.workers,
        use_index=payload.use_index,
        confirm_misses=payload.confirm_misses,
    )

    try:
        report = await asyncio.to_thread(
            run_reconciliation, config, base_dir=Path.cwd(), write_outputs=write_outputs
        )
    except RootDirectoryMissingError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RecordSourceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExportError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ReconcileError as exc:  # pragma: no cover - defensive
        LOGGER.exception("Reconciliation failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return _serialize(report)
