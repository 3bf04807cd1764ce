"""Core docaudit data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

MATTERS = "Matters"
CONTACTS = "Contacts"


@dataclass(slots=True, frozen=True)
class DocumentRecord:
    """One document event as returned by the record source.

    ``columns`` and ``values`` hold every column of the source row by
    position, in query order, so exports reproduce the original row even
    when a query repeats a column name.
    """

    record_id: Any
    doc_dir: Optional[str]
    event_type: Any = None
    matter_id: Any = None
    contact_id: Any = None
    columns: Tuple[str, ...] = ()
    values: Tuple[Any, ...] = ()

    @property
    def entity_kind(self) -> Optional[str]:
        """``Matters`` or ``Contacts``, or None when the tag is ambiguous."""
        has_matter = self.matter_id not in (None, "")
        has_contact = self.contact_id not in (None, "")
        if has_matter and not has_contact:
            return MATTERS
        if has_contact and not has_matter:
            return CONTACTS
        return None

    @property
    def fields(self) -> Dict[str, Any]:
        """Values by column name; the first of any repeated name wins."""
        fields: Dict[str, Any] = {}
        for name, value in zip(self.columns, self.values):
            fields.setdefault(name, value)
        return fields


@dataclass(slots=True, frozen=True)
class ReconciledRow:
    """A record paired with the outcome of its existence check."""

    record: DocumentRecord
    path: Optional[str]
    exists: bool

    @property
    def flag(self) -> str:
        return "Y" if self.exists else "N"

    @property
    def has_path(self) -> bool:
        return self.path is not None

    def values(self) -> list[Any]:
        return [*self.record.values, self.flag]
