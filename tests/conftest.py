"""Shared fixtures for docaudit tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from docaudit.models import CONTACTS
from docaudit.source.storage import DEFAULT_ROOT_KEY, SQLiteRecordSource


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """Document root containing a single file."""
    root = tmp_path / "data" / "docs"
    root.mkdir(parents=True)
    (root / "a.pdf").write_text("x")
    return root


@pytest.fixture
def practice_db(tmp_path: Path, docs_root: Path) -> Path:
    """Practice database with one found, one blank and one missing document."""
    db_path = tmp_path / "practice.db"
    source = SQLiteRecordSource(db_path, create=True)
    source.create_schema()
    source.set_setting(DEFAULT_ROOT_KEY, str(docs_root))
    source.add_event(1, str(docs_root / "a.pdf"), subject="Engagement letter")
    source.add_event(2, "", entity_type=CONTACTS, entity_id=4, event_type="Note")
    source.add_event(3, str(docs_root / "missing.pdf"), notes="Scanned, see file")
    source.close()
    return db_path
