"""Command line interface for docaudit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docaudit.config import AppConfig
from docaudit.errors import ReconcileError
from docaudit.reconcile.pipeline import run_reconciliation
from docaudit.reconcile.report import RunReport
from docaudit.web.app import app as web_app


console = Console()
app = typer.Typer(help="docaudit - reconcile stored document paths against the filesystem")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _read_query(query_file: Optional[Path]) -> Optional[str]:
    if query_file is None:
        return None
    if not query_file.is_file():
        raise typer.BadParameter(f"Query file not found: {query_file}")
    return query_file.read_text(encoding="utf-8")


def _print_summary(report: RunReport) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Root directory")
    table.add_column("Strategy")
    table.add_column("Records", justify="right")
    table.add_column("Found", justify="right")
    table.add_column("Missing", justify="right")
    table.add_column("No path", justify="right")
    table.add_row(
        report.root_label,
        report.strategy,
        str(report.total),
        str(report.matched),
        str(report.missing),
        str(report.skipped_no_path),
    )
    console.print(table)


@app.command()
def run(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    root_key: str = typer.Option(AppConfig().root_key, help="Settings key holding the document root"),
    root: Optional[str] = typer.Option(
        None, "--root", help="Use this root directory instead of the database setting"
    ),
    query_file: Optional[Path] = typer.Option(None, help="File with a custom record query"),
    csv_path: Path = typer.Option(AppConfig().csv_path, "--csv", help="CSV report path"),
    log_path: Path = typer.Option(AppConfig().log_path, "--log", help="Run log path"),
    workers: int = typer.Option(1, min=1, help="Number of parallel existence checks"),
    index: bool = typer.Option(True, "--index/--no-index", help="Pre-list the root directory"),
    confirm_misses: bool = typer.Option(
        False, help="Re-check paths missing from the index directly"
    ),
    fail_on_missing: bool = typer.Option(
        False, help="Exit with status 2 when any document is missing"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Check every stored document path and write a CSV report."""
    _setup_logging(verbose)
    config = AppConfig(
        db_path=db if db is not None else AppConfig().db_path,
        root_key=root_key,
        root_override=root,
        query=_read_query(query_file),
        csv_path=csv_path,
        log_path=log_path,
        workers=workers,
        use_index=index,
        confirm_misses=confirm_misses,
    )

    console.print(f"Reconciling [bold]{config.resolve_db_path(Path.cwd())}[/bold]...")
    try:
        report = run_reconciliation(config, base_dir=Path.cwd())
    except ReconcileError as exc:
        console.print(f"[red]Aborted: {exc}[/red]")
        console.print(f"See {config.resolve_log_path(Path.cwd())} for details.")
        raise typer.Exit(code=1)

    _print_summary(report)
    console.print(f"Report written to [bold]{config.resolve_csv_path(Path.cwd())}[/bold]")
    if fail_on_missing and report.missing:
        raise typer.Exit(code=2)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    output_dir: Path = typer.Option(
        AppConfig().output_dir, "--output-dir", help="Directory that report files may be written to"
    ),
) -> None:
    """Start the web interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    web_app.state.output_dir = output_dir.resolve()
    console.print(f"Starting web interface on http://{host}:{port}")
    console.print(f"Report files are restricted to {web_app.state.output_dir}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
