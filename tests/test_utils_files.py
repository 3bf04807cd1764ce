"""Tests for file utility functions."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from docaudit.utils.files import is_case_insensitive, iter_tree, path_exists, scan_tree

running_as_root = hasattr(os, "geteuid") and os.geteuid() == 0


class TestPathExists:
    """Test path_exists function."""

    def test_existing_file(self, tmp_path: Path) -> None:
        """Should report an existing file."""
        doc = tmp_path / "a.pdf"
        doc.write_text("dummy")

        assert path_exists(str(doc)) is True

    def test_existing_directory(self, tmp_path: Path) -> None:
        """Directories count as existing."""
        assert path_exists(str(tmp_path)) is True

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should report a missing file."""
        assert path_exists(str(tmp_path / "missing.pdf")) is False

    def test_file_used_as_directory(self, tmp_path: Path) -> None:
        """A path through a regular file is missing, not an error."""
        doc = tmp_path / "a.pdf"
        doc.write_text("dummy")

        assert path_exists(str(doc / "child.pdf")) is False

    def test_embedded_null_byte(self, tmp_path: Path) -> None:
        """Invalid paths are missing instead of raising."""
        assert path_exists(str(tmp_path) + "/bad\0name.pdf") is False

    def test_overlong_name(self, tmp_path: Path) -> None:
        """Names the filesystem rejects are missing instead of raising."""
        assert path_exists(str(tmp_path / ("x" * 5000))) is False

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_permission_denied(self, tmp_path: Path) -> None:
        """Permission errors count as missing."""
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "a.pdf").write_text("dummy")
        locked.chmod(0)
        try:
            assert path_exists(str(locked / "a.pdf")) is False
        finally:
            locked.chmod(0o755)


class TestScanTree:
    """Test scan_tree and iter_tree."""

    def test_lists_files_and_directories(self, tmp_path: Path) -> None:
        """Should list nested files and directories."""
        sub = tmp_path / "matters" / "M-1"
        sub.mkdir(parents=True)
        (sub / "letter.pdf").write_text("x")
        (tmp_path / "root.docx").write_text("x")

        listing = scan_tree(str(tmp_path))

        assert str(tmp_path) in listing.entries
        assert str(tmp_path / "matters") in listing.entries
        assert str(sub) in listing.entries
        assert str(sub / "letter.pdf") in listing.entries
        assert str(tmp_path / "root.docx") in listing.entries
        assert listing.opaque == set()
        assert listing.errors == []

    def test_empty_directory(self, tmp_path: Path) -> None:
        """Only the root itself is listed."""
        listing = scan_tree(str(tmp_path))

        assert listing.entries == {str(tmp_path)}

    def test_broken_symlink_is_skipped(self, tmp_path: Path) -> None:
        """Broken links do not exist, so they are not listed."""
        link = tmp_path / "dangling.pdf"
        link.symlink_to(tmp_path / "nowhere.pdf")

        listing = scan_tree(str(tmp_path))

        assert str(link) not in listing.entries

    def test_symlinked_directory_is_opaque(self, tmp_path: Path) -> None:
        """Linked directories are listed but their contents are not."""
        target = tmp_path / "target"
        target.mkdir()
        (target / "a.pdf").write_text("x")
        root = tmp_path / "root"
        root.mkdir()
        link = root / "linked"
        link.symlink_to(target, target_is_directory=True)

        listing = scan_tree(str(root))

        assert str(link) in listing.entries
        assert str(link) in listing.opaque
        assert str(link / "a.pdf") not in listing.entries

    def test_symlinked_file_is_listed(self, tmp_path: Path) -> None:
        """Links to existing files are listed."""
        target = tmp_path / "a.pdf"
        target.write_text("x")
        root = tmp_path / "root"
        root.mkdir()
        link = root / "b.pdf"
        link.symlink_to(target)

        listing = scan_tree(str(root))

        assert str(link) in listing.entries
        assert str(link) not in listing.opaque

    def test_unreadable_root_reports_error(self, tmp_path: Path) -> None:
        """Enumeration errors are collected instead of raised."""
        missing = tmp_path / "gone"

        listing = scan_tree(str(missing))

        assert str(missing) in listing.opaque
        assert len(listing.errors) == 1

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_unreadable_subtree_is_opaque(self, tmp_path: Path) -> None:
        """Unreadable directories reduce coverage without aborting."""
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "a.pdf").write_text("x")
        (tmp_path / "b.pdf").write_text("x")
        locked.chmod(0)
        try:
            listing = scan_tree(str(tmp_path))
        finally:
            locked.chmod(0o755)

        assert str(tmp_path / "b.pdf") in listing.entries
        assert str(locked) in listing.opaque
        assert listing.errors

    def test_iter_tree_calls_error_handler(self, tmp_path: Path) -> None:
        """The error callback receives the failing path."""
        seen = []

        list(iter_tree(str(tmp_path / "gone"), on_error=lambda p, e: seen.append(p)))

        assert seen == [str(tmp_path / "gone")]

    @pytest.mark.skipif(running_as_root, reason="root ignores directory permissions")
    def test_listable_but_untraversable_subtree_is_opaque(self, tmp_path: Path) -> None:
        """Names in a read-only directory are listed by scandir but cannot be stat'ed."""
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "a.pdf").write_text("x")
        locked.chmod(0o444)
        try:
            listing = scan_tree(str(tmp_path))
        finally:
            locked.chmod(0o755)

        assert str(locked) in listing.opaque
        assert str(locked / "a.pdf") not in listing.entries
        assert listing.errors

    def test_untraversable_directory_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "a.pdf").write_text("x")
        real_access = os.access

        def fake_access(path, mode, *args, **kwargs):
            if os.fspath(path) == str(locked):
                return False
            return real_access(path, mode, *args, **kwargs)

        monkeypatch.setattr(os, "access", fake_access)
        seen = []

        paths = [
            path
            for path, _ in iter_tree(str(tmp_path), on_error=lambda p, e: seen.append((p, e)))
        ]

        assert str(locked) in paths
        assert str(locked / "a.pdf") not in paths
        assert [p for p, _ in seen] == [str(locked)]
        assert isinstance(seen[0][1], PermissionError)


class TestIsCaseInsensitive:
    """Test case sensitivity detection."""

    def test_swapped_name_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docaudit.utils.files.path_exists", lambda path: False)
        (tmp_path / "Letter.pdf").write_text("x")

        assert is_case_insensitive(scan_tree(str(tmp_path)).entries) is False

    def test_swapped_name_exists(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """The other spelling resolving to a file means the volume folds case."""
        monkeypatch.setattr("docaudit.utils.files.path_exists", lambda path: True)

        assert is_case_insensitive({str(tmp_path / "Letter.pdf")}) is True

    def test_both_spellings_listed(self) -> None:
        """Two names differing only in case can only coexist on a case-sensitive volume."""
        assert is_case_insensitive(["/docs/a.pdf", "/docs/A.pdf"]) is False

    def test_no_cased_names(self) -> None:
        assert is_case_insensitive(["/docs/1234", "/docs/5678.001"]) is False
        assert is_case_insensitive([]) is False
