"""Existence checks for resolved document paths."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from docaudit.utils.files import TreeListing, is_case_insensitive, path_exists, scan_tree

LOGGER = logging.getLogger(__name__)


def _key(path: str, fold: bool = False) -> str:
    key = os.path.normcase(path)
    return key.casefold() if fold else key


@dataclass(slots=True, frozen=True)
class DirectoryIndex:
    """Read-only snapshot of every path below a root directory.

    On volumes that ignore case the keys are case-folded so lookups match
    what the filesystem itself would find.
    """

    root: str
    entries: frozenset[str]
    opaque: frozenset[str]
    error_count: int = 0
    case_insensitive: bool = False

    @classmethod
    def from_listing(
        cls, listing: TreeListing, *, case_insensitive: bool = False
    ) -> "DirectoryIndex":
        return cls(
            root=listing.root,
            entries=frozenset(_key(path, case_insensitive) for path in listing.entries),
            opaque=frozenset(_key(path, case_insensitive) for path in listing.opaque),
            error_count=len(listing.errors),
            case_insensitive=case_insensitive,
        )

    @classmethod
    def build(cls, root: str) -> "DirectoryIndex":
        root = os.path.normpath(os.path.abspath(root))
        LOGGER.info("Indexing %s", root)
        listing = scan_tree(root)
        case_insensitive = is_case_insensitive(listing.entries)
        if case_insensitive:
            LOGGER.info("%s is on a case-insensitive volume", root)
        index = cls.from_listing(listing, case_insensitive=case_insensitive)
        LOGGER.info(
            "Indexed %d entries under %s (%d unreadable)",
            len(index), root, index.error_count,
        )
        return index

    def __len__(self) -> int:
        return len(self.entries)

    def _key(self, path: str) -> str:
        return _key(path, self.case_insensitive)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self._key(path) in self.entries

    def covers(self, path: str) -> bool:
        """True when membership alone decides whether ``path`` exists.

        Paths outside the root, relative or non-canonical paths, and paths at
        or below an opaque directory are not covered.
        """
        if not os.path.isabs(path) or os.path.normpath(path) != path:
            return False
        key = self._key(path)
        root = self._key(self.root)
        try:
            if os.path.commonpath([root, key]) != root:
                return False
        except ValueError:
            # Different drives on Windows.
            return False
        if not self.opaque:
            return True
        current = key
        while True:
            if current in self.opaque:
                return False
            if current == root:
                return True
            parent = os.path.dirname(current)
            if parent == current:
                return True
            current = parent


class DirectStatChecker:
    """Checks each path with one filesystem call."""

    strategy = "direct"
    index: Optional[DirectoryIndex] = None

    def exists(self, path: str) -> bool:
        return path_exists(path)


class IndexedChecker:
    """Answers existence from a prebuilt :class:`DirectoryIndex`.

    Paths the index does not cover fall back to a direct stat, so results are
    the same as :class:`DirectStatChecker` for an unchanged filesystem.
    """

    strategy = "indexed"

    def __init__(self, index: DirectoryIndex, *, confirm_misses: bool = False) -> None:
        self.index = index
        self.confirm_misses = confirm_misses

    def exists(self, path: str) -> bool:
        if not self.index.covers(path):
            LOGGER.debug("Path not covered by index, checking directly: %s", path)
            return path_exists(path)
        if path in self.index:
            return True
        if self.confirm_misses:
            return path_exists(path)
        return False


def build_checker(
    root: Optional[str],
    *,
    use_index: bool = True,
    confirm_misses: bool = False,
) -> DirectStatChecker | IndexedChecker:
    """Select the existence check strategy for a run.

    ``root`` must already be validated; a blank root always selects direct
    stat checks and no enumeration happens.
    """
    if not root or not use_index:
        return DirectStatChecker()
    return IndexedChecker(DirectoryIndex.build(root), confirm_misses=confirm_misses)
