"""Reconciliation of stored document paths against the filesystem."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Iterable, Optional

from docaudit.errors import ExportError, ReconcileError, RootDirectoryMissingError
from docaudit.models import DocumentRecord, ReconciledRow
from docaudit.reconcile.checker import DirectStatChecker, IndexedChecker, build_checker
from docaudit.reconcile.report import RunReport
from docaudit.reconcile.resolver import is_blank, resolve_document_path
from docaudit.source.storage import DEFAULT_ROOT_KEY, RecordSource

LOGGER = logging.getLogger(__name__)

Checker = DirectStatChecker | IndexedChecker


def reconcile_record(checker: Checker, record: DocumentRecord) -> ReconciledRow:
    """Resolve and check a single record."""
    if record.entity_kind is None:
        LOGGER.debug("Record %s has no single Matters/Contacts owner", record.record_id)
    path = resolve_document_path(record.doc_dir)
    if path is None:
        return ReconciledRow(record=record, path=None, exists=False)
    return ReconciledRow(record=record, path=path, exists=checker.exists(path))


class ReconciliationEngine:
    """Coordinates one reconciliation run.

    The run reads the root directory setting, validates it, optionally
    indexes the tree below it, checks every record and hands the results to
    the CSV and log sinks. The CSV sink is only called when every record has
    been processed.
    """

    def __init__(
        self,
        source: RecordSource,
        *,
        csv_sink=None,
        log_sink=None,
        root_key: str = DEFAULT_ROOT_KEY,
        root_override: Optional[str] = None,
        use_index: bool = True,
        confirm_misses: bool = False,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.source = source
        self.csv_sink = csv_sink
        self.log_sink = log_sink
        self.root_key = root_key
        self.root_override = root_override
        self.use_index = use_index
        self.confirm_misses = confirm_misses
        self.workers = workers

    def run(self) -> RunReport:
        report = RunReport()

        try:
            if self.log_sink is not None:
                self.log_sink.reset()
            root = self._load_root()
            report.set_root(root)
            self._check_root(root)
            checker = self._prepare_checker(root, report)
            self._record_loop(checker, report)
            self._export(report)
        except ReconcileError as exc:
            LOGGER.error("Reconciliation aborted: %s", exc)
            report.fail(str(exc))
            self._flush_log(report)
            raise
        except Exception as exc:
            LOGGER.exception("Reconciliation failed unexpectedly: %s", exc)
            report.fail(f"Unexpected error: {exc}")
            try:
                self._flush_log(report)
            except OSError as log_exc:
                LOGGER.error("Unable to write run log: %s", log_exc)
            raise

        report.succeed()
        self._flush_log(report)
        LOGGER.info(
            "Checked %d records: %d found, %d missing",
            report.total, report.matched, report.missing,
        )
        return report

    def _load_root(self) -> Optional[str]:
        if self.root_override is not None:
            root = self.root_override
        else:
            root = self.source.root_directory(self.root_key)
        if is_blank(root):
            LOGGER.info("No root directory configured, checking every path directly")
            return None
        return str(root)

    def _check_root(self, root: Optional[str]) -> None:
        if root is not None and not os.path.isdir(root):
            raise RootDirectoryMissingError(root)

    def _prepare_checker(self, root: Optional[str], report: RunReport) -> Checker:
        checker = build_checker(
            root, use_index=self.use_index, confirm_misses=self.confirm_misses
        )
        report.strategy = checker.strategy
        if checker.index is not None:
            report.indexed_entries = len(checker.index)
            report.index_errors = checker.index.error_count
            report.log(
                f"Indexed {report.indexed_entries} entries under root "
                f"({report.index_errors} unreadable)"
            )
        return checker

    def _record_loop(self, checker: Checker, report: RunReport) -> None:
        records: Iterable[DocumentRecord] = self.source.fetch_records()
        check = partial(reconcile_record, checker)

        if self.workers == 1:
            for record in records:
                report.add(check(record))
            return

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            # map() yields in submission order, so rows keep the fetch order.
            for row in pool.map(check, list(records)):
                report.add(row)

    def _export(self, report: RunReport) -> None:
        if not report.columns:
            report.columns = list(getattr(self.source, "columns", ()))
        if self.csv_sink is None:
            return
        try:
            self.csv_sink.write(report.columns, report.rows)
        except OSError as exc:
            raise ExportError(f"Unable to write CSV report: {exc}") from exc

    def _flush_log(self, report: RunReport) -> None:
        if self.log_sink is not None:
            self.log_sink.write(report.log_lines)
