"""High-level orchestration of a reconciliation run."""

from __future__ import annotations

import logging
from pathlib import Path

from docaudit.config import AppConfig
from docaudit.errors import RecordSourceError
from docaudit.export import CsvSink, LogFileSink
from docaudit.reconcile.engine import ReconciliationEngine
from docaudit.reconcile.report import RunReport
from docaudit.source.storage import SQLiteRecordSource

LOGGER = logging.getLogger(__name__)


def run_reconciliation(
    config: AppConfig,
    *,
    base_dir: Path | None = None,
    write_outputs: bool = True,
) -> RunReport:
    """Run one reconciliation described by ``config``.

    When ``write_outputs`` is False the report is only returned and no CSV or
    log file is touched.
    """
    csv_sink = CsvSink(config.resolve_csv_path(base_dir)) if write_outputs else None
    log_sink = LogFileSink(config.resolve_log_path(base_dir)) if write_outputs else None

    db_path = config.resolve_db_path(base_dir)
    try:
        if not db_path.exists():
            raise RecordSourceError(f"Database not found: {db_path}")
        source = SQLiteRecordSource(db_path, query=config.query)
    except RecordSourceError as exc:
        LOGGER.error("Reconciliation aborted: %s", exc)
        if log_sink is not None:
            report = RunReport()
            report.fail(str(exc))
            log_sink.write(report.log_lines)
        raise

    engine = ReconciliationEngine(
        source,
        csv_sink=csv_sink,
        log_sink=log_sink,
        root_key=config.root_key,
        root_override=config.root_override,
        use_index=config.use_index,
        confirm_misses=config.confirm_misses,
        workers=config.workers,
    )
    try:
        return engine.run()
    finally:
        source.close()
