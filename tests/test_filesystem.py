"""Tests for the local filesystem provider and directory sizing."""

from __future__ import annotations

import os

import pytest

from staledirs.core.filesystem import LocalFilesystem, SizeComputationError, dir_size
from staledirs.models.entry import EntryKind


@pytest.fixture
def sized_tree(tmp_path):
    root = tmp_path / "root"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "locked").mkdir()
    (root / "a").write_bytes(b"x" * 100)
    (root / "sub" / "b").write_bytes(b"x" * 20)
    (root / "sub" / "deeper" / "c").write_bytes(b"x" * 3)
    (root / "locked" / "d").write_bytes(b"x" * 1000)
    return root


@pytest.fixture
def locked_scandir(monkeypatch):
    """Make os.scandir fail for any directory named 'locked'."""
    real_scandir = os.scandir

    def _scandir(path):
        if os.path.basename(os.fspath(path)) == "locked":
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)


class TestDirSize:
    def test_sums_files_recursively(self, sized_tree):
        assert dir_size(sized_tree) == 1123

    def test_file_is_its_own_size(self, sized_tree):
        assert dir_size(sized_tree / "a") == 100

    def test_symlinks_are_not_followed(self, sized_tree):
        target = str(sized_tree / "locked")
        (sized_tree / "sub" / "link").symlink_to(target)
        assert dir_size(sized_tree / "sub") == 23 + len(target)

    def test_missing_path_fails(self, tmp_path):
        with pytest.raises(SizeComputationError) as excinfo:
            dir_size(tmp_path / "missing")
        assert isinstance(excinfo.value.cause, FileNotFoundError)

    @pytest.mark.usefixtures("locked_scandir")
    def test_strict_fails_whole_sum(self, sized_tree):
        with pytest.raises(SizeComputationError) as excinfo:
            dir_size(sized_tree)
        assert excinfo.value.path == sized_tree
        assert isinstance(excinfo.value.cause, PermissionError)

    @pytest.mark.usefixtures("locked_scandir")
    def test_best_effort_skips_unreadable(self, sized_tree, caplog):
        assert dir_size(sized_tree, strict=False) == 123
        assert "locked" in caplog.text


class TestLocalFilesystem:
    def test_stat_kinds(self, sized_tree):
        fs = LocalFilesystem()
        (sized_tree / "link").symlink_to(sized_tree / "a")
        assert fs.stat(sized_tree).kind is EntryKind.DIRECTORY
        assert fs.stat(sized_tree / "a").kind is EntryKind.FILE
        assert fs.stat(sized_tree / "link").kind is EntryKind.SYMLINK

    def test_stat_can_follow_a_link(self, sized_tree):
        link = sized_tree.parent / "alias"
        link.symlink_to(sized_tree)
        entry = LocalFilesystem().stat(link, follow_symlinks=True)
        assert entry.kind is EntryKind.DIRECTORY
        assert entry.path == link

    def test_stat_reports_metadata(self, sized_tree):
        os.utime(sized_tree / "a", (1_000_000_000, 1_000_000_000))
        entry = LocalFilesystem().stat(sized_tree / "a")
        assert entry.size == 100
        assert entry.accessed.timestamp() == 1_000_000_000
        assert entry.owner == os.getuid()
        assert entry.accessible

    def test_stat_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocalFilesystem().stat(tmp_path / "missing")

    def test_list_dir(self, sized_tree):
        entries = LocalFilesystem().list_dir(sized_tree)
        assert sorted(e.path.name for e in entries) == ["a", "locked", "sub"]
        assert all(e.path.parent == sized_tree for e in entries)
        assert all(e.accessible for e in entries)

    def test_list_dir_broken_symlink(self, sized_tree):
        (sized_tree / "sub" / "dangling").symlink_to(sized_tree / "nowhere")
        entries = {e.path.name: e for e in LocalFilesystem().list_dir(sized_tree / "sub")}
        assert entries["dangling"].kind is EntryKind.SYMLINK

    @pytest.mark.usefixtures("locked_scandir")
    def test_list_dir_unreadable_raises(self, sized_tree):
        with pytest.raises(PermissionError):
            LocalFilesystem().list_dir(sized_tree / "locked")
