"""Utility helpers for working with files."""

from __future__ import annotations

import errno
import itertools
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

LOGGER = logging.getLogger(__name__)


def path_exists(path: str) -> bool:
    """Return True when ``path`` names an existing file or directory.

    Invalid paths and permission errors count as missing; they are logged but
    never raised.
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        return False
    except PermissionError as exc:
        LOGGER.warning("Permission denied checking %s: %s", path, exc)
        return False
    except (OSError, ValueError) as exc:
        LOGGER.warning("Unable to check %s: %s", path, exc)
        return False
    return True


@dataclass(slots=True)
class TreeListing:
    """Result of a recursive enumeration of a directory tree."""

    root: str
    entries: set[str] = field(default_factory=set)
    opaque: set[str] = field(default_factory=set)
    errors: list[tuple[str, str]] = field(default_factory=list)


def iter_tree(
    root: str, on_error: Optional[Callable[[str, OSError], None]] = None
) -> Iterator[tuple[str, bool]]:
    """Yield ``(path, descended)`` for every entry below ``root``.

    ``descended`` is False for directories whose contents were not listed
    (symlinked directories and directories that could not be read or
    traversed).
    """
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                children = list(it)
        except OSError as exc:
            if on_error is not None:
                on_error(current, exc)
            continue
        if not os.access(current, os.X_OK):
            # Names are listable but cannot be stat'ed through this directory.
            if on_error is not None:
                on_error(
                    current,
                    PermissionError(errno.EACCES, "Directory cannot be traversed", current),
                )
            continue
        for entry in children:
            try:
                if entry.is_symlink():
                    # Links are resolved now so that broken links stay missing.
                    if not path_exists(entry.path):
                        continue
                    yield entry.path, not entry.is_dir()
                elif entry.is_dir(follow_symlinks=False):
                    yield entry.path, True
                    stack.append(entry.path)
                else:
                    yield entry.path, True
            except OSError as exc:
                if on_error is not None:
                    on_error(entry.path, exc)


def scan_tree(root: str) -> TreeListing:
    """Enumerate every file and directory below ``root`` once.

    Enumeration is best-effort: unreadable directories are recorded as opaque
    instead of aborting the scan.
    """
    listing = TreeListing(root=root)

    def _on_error(path: str, exc: OSError) -> None:
        LOGGER.warning("Skipping unreadable entry %s: %s", path, exc)
        listing.errors.append((path, str(exc)))
        listing.opaque.add(path)

    listing.entries.add(root)
    for path, descended in iter_tree(root, on_error=_on_error):
        listing.entries.add(path)
        if not descended:
            listing.opaque.add(path)
    return listing


def is_case_insensitive(entries: Iterable[str], *, attempts: int = 64) -> bool:
    """Guess whether the volume holding ``entries`` ignores case in names.

    A listed name is looked up again with its case swapped. If the swapped
    spelling is not itself listed but still exists, the volume folds case.
    """
    known = entries if isinstance(entries, (set, frozenset)) else set(entries)
    for path in itertools.islice(known, attempts):
        head, name = os.path.split(path)
        swapped = name.swapcase()
        if not name or swapped == name:
            continue
        other = os.path.join(head, swapped)
        if other in known:
            return False
        return path_exists(other)
    return False
