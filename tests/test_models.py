"""Tests for data models."""

from __future__ import annotations

import pytest

from docaudit.models import CONTACTS, MATTERS, DocumentRecord, ReconciledRow


def _record(**overrides) -> DocumentRecord:
    values = {
        "record_id": 7,
        "doc_dir": "/data/docs/a.pdf",
        "event_type": "Letter",
        "matter_id": 12,
        "contact_id": None,
        "columns": ("EventID", "MatterID", "ContactID", "DocDir"),
        "values": (7, 12, None, "/data/docs/a.pdf"),
    }
    values.update(overrides)
    return DocumentRecord(**values)


class TestDocumentRecord:
    """Test DocumentRecord dataclass."""

    def test_matter_record(self) -> None:
        """A record with only a matter reference belongs to Matters."""
        assert _record().entity_kind == MATTERS

    def test_contact_record(self) -> None:
        """A record with only a contact reference belongs to Contacts."""
        record = _record(matter_id=None, contact_id=3)
        assert record.entity_kind == CONTACTS

    def test_ambiguous_record(self) -> None:
        """Both or neither references leave the owner undecided."""
        assert _record(contact_id=3).entity_kind is None
        assert _record(matter_id=None).entity_kind is None

    def test_columns_keep_order(self) -> None:
        """Columns follow the order of the source row."""
        assert _record().columns == ("EventID", "MatterID", "ContactID", "DocDir")

    def test_immutable(self) -> None:
        """Records cannot be modified once fetched."""
        record = _record()
        with pytest.raises(AttributeError):
            record.doc_dir = "/elsewhere"  # type: ignore[misc]


class TestReconciledRow:
    """Test ReconciledRow dataclass."""

    def test_flag_values(self) -> None:
        """Exists maps to Y and N."""
        record = _record()
        assert ReconciledRow(record, "/data/docs/a.pdf", True).flag == "Y"
        assert ReconciledRow(record, "/data/docs/a.pdf", False).flag == "N"

    def test_has_path(self) -> None:
        record = _record(doc_dir=None)
        assert ReconciledRow(record, None, False).has_path is False

    def test_values_append_flag(self) -> None:
        """Output values are the original fields followed by the flag."""
        row = ReconciledRow(_record(), "/data/docs/a.pdf", True)
        assert row.values() == [7, 12, None, "/data/docs/a.pdf", "Y"]

    def test_repeated_column_names_keep_every_value(self) -> None:
        """Joined queries can repeat a name; values stay positional."""
        record = _record(
            columns=("EventID", "Description", "Description", "DocDir"),
            values=(7, "Letter", "Smith v Jones", "/data/docs/a.pdf"),
        )
        row = ReconciledRow(record, "/data/docs/a.pdf", False)

        assert row.values() == [7, "Letter", "Smith v Jones", "/data/docs/a.pdf", "N"]
        assert record.fields["Description"] == "Letter"
