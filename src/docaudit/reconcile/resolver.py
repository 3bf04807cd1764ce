"""Effective path resolution for document records."""

from __future__ import annotations

from typing import Optional


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def resolve_document_path(stored: Optional[str], root: Optional[str] = None) -> Optional[str]:
    """Return the path to check for a stored ``DocDir`` value, or None.

    Stored paths are used exactly as recorded. The root directory never
    takes part in building the path; it only decides which existence check
    strategy a run uses.
    """
    if is_blank(stored):
        return None
    return str(stored)
