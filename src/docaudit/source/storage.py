"""SQLite record source for document events."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, Sequence

from docaudit.errors import RecordSourceError
from docaudit.models import CONTACTS, MATTERS, DocumentRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_ROOT_KEY = "DocumentRoot"

DEFAULT_QUERY = """
SELECT
    e.EventID AS EventID,
    t.Description AS EventType,
    CASE WHEN e.EntityType = 'Matters' THEN e.EntityID END AS MatterID,
    m.FileNumber AS MatterNumber,
    CASE WHEN e.EntityType = 'Contacts' THEN e.EntityID END AS ContactID,
    c.Name AS ContactName,
    e.DocDir AS DocDir,
    e.Subject AS Subject,
    e.Notes AS Notes
FROM DocumentEvents e
LEFT JOIN EventTypes t ON t.EventTypeID = e.EventTypeID
LEFT JOIN Matters m ON e.EntityType = 'Matters' AND m.MatterID = e.EntityID
LEFT JOIN Contacts c ON e.EntityType = 'Contacts' AND c.ContactID = e.EntityID
ORDER BY e.EventID
"""


class RecordSource(Protocol):
    """What a reconciliation run needs from the document database."""

    def root_directory(self, key: str) -> Optional[str]: ...

    def fetch_records(self) -> Iterator[DocumentRecord]: ...


@dataclass(slots=True, frozen=True)
class RecordColumns:
    """Names of the result columns that carry the record's typed fields."""

    record_id: str = "EventID"
    event_type: str = "EventType"
    matter_id: str = "MatterID"
    contact_id: str = "ContactID"
    doc_dir: str = "DocDir"

    def require(self, columns: Sequence[str]) -> None:
        missing = [name for name in (self.record_id, self.doc_dir) if name not in columns]
        if missing:
            raise RecordSourceError(
                "Query result is missing required column(s): " + ", ".join(missing)
            )

    def to_record(self, columns: Sequence[str], row: Sequence[Any]) -> DocumentRecord:
        values = tuple(row)

        def _get(name: str) -> Any:
            return values[columns.index(name)] if name in columns else None

        return DocumentRecord(
            record_id=_get(self.record_id),
            doc_dir=_get(self.doc_dir),
            event_type=_get(self.event_type),
            matter_id=_get(self.matter_id),
            contact_id=_get(self.contact_id),
            columns=tuple(columns),
            values=values,
        )


class SQLiteRecordSource:
    """Reads the root directory setting and document events from SQLite.

    Existing databases are opened read-only unless ``create`` is set.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        query: Optional[str] = None,
        columns: RecordColumns = RecordColumns(),
        create: bool = False,
    ) -> None:
        self.db_path = Path(db_path)
        self.query = query or DEFAULT_QUERY
        self.record_columns = columns
        self.columns: list[str] = []
        try:
            if create:
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            else:
                uri = self.db_path.resolve().as_uri() + "?mode=ro"
                self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as exc:
            raise RecordSourceError(f"Unable to open database {self.db_path}: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteRecordSource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def root_directory(self, key: str = DEFAULT_ROOT_KEY) -> Optional[str]:
        try:
            row = self._conn.execute(
                "SELECT SettingValue FROM Settings WHERE SettingKey = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise RecordSourceError(f"Unable to read setting {key!r}: {exc}") from exc
        if row is None or row["SettingValue"] is None:
            return None
        return str(row["SettingValue"])

    def fetch_records(self) -> Iterator[DocumentRecord]:
        try:
            cursor = self._conn.execute(self.query)
            self.columns = [item[0] for item in cursor.description or ()]
            self.record_columns.require(self.columns)
            for row in cursor:
                yield self.record_columns.to_record(self.columns, row)
        except sqlite3.Error as exc:
            raise RecordSourceError(f"Document query failed: {exc}") from exc

    def create_schema(self) -> None:
        """Create the practice-management tables used by the default query."""
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS Settings (
                    SettingKey TEXT PRIMARY KEY,
                    SettingValue TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS EventTypes (
                    EventTypeID INTEGER PRIMARY KEY,
                    Description TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS Matters (
                    MatterID INTEGER PRIMARY KEY,
                    FileNumber TEXT,
                    Description TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS Contacts (
                    ContactID INTEGER PRIMARY KEY,
                    Name TEXT
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS DocumentEvents (
                    EventID INTEGER PRIMARY KEY,
                    EventTypeID INTEGER REFERENCES EventTypes(EventTypeID),
                    EntityType TEXT NOT NULL CHECK (EntityType IN ('{MATTERS}', '{CONTACTS}')),
                    EntityID INTEGER NOT NULL,
                    DocDir TEXT,
                    Subject TEXT,
                    Notes TEXT
                )
                """
            )

    def set_setting(self, key: str, value: Optional[str]) -> None:
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO Settings(SettingKey, SettingValue) VALUES (?, ?)",
                (key, value),
            )

    def add_event(
        self,
        event_id: int,
        doc_dir: Optional[str],
        *,
        entity_type: str = MATTERS,
        entity_id: int = 1,
        event_type: str = "Document",
        subject: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Insert a document event, creating its type and owner rows if needed."""
        with self.transaction() as conn:
            type_row = conn.execute(
                "SELECT EventTypeID FROM EventTypes WHERE Description = ?", (event_type,)
            ).fetchone()
            if type_row is None:
                type_id = conn.execute(
                    "INSERT INTO EventTypes(Description) VALUES (?)", (event_type,)
                ).lastrowid
            else:
                type_id = type_row["EventTypeID"]

            if entity_type == MATTERS:
                conn.execute(
                    "INSERT OR IGNORE INTO Matters(MatterID, FileNumber) VALUES (?, ?)",
                    (entity_id, f"M-{entity_id:05d}"),
                )
            else:
                conn.execute(
                    "INSERT OR IGNORE INTO Contacts(ContactID, Name) VALUES (?, ?)",
                    (entity_id, f"Contact {entity_id}"),
                )

            conn.execute(
                """
                INSERT INTO DocumentEvents(
                    EventID, EventTypeID, EntityType, EntityID, DocDir, Subject, Notes
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (event_id, type_id, entity_type, entity_id, doc_dir, subject, notes),
            )
