"""Shared test fixtures."""

from __future__ import annotations

import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from staledirs.models.entry import EntryKind, FileSystemEntry
from staledirs.settings import Settings

CUTOFF = datetime(2019, 1, 1, tzinfo=timezone.utc)
OLD = datetime(2018, 6, 1, tzinfo=timezone.utc)
NEW = datetime(2020, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def isolate_settings(tmp_path, monkeypatch):
    """Point the settings singleton at a temp file."""
    settings = Settings(tmp_path / "config" / "settings.json")
    monkeypatch.setattr(Settings, "_instance", settings)
    return settings


@pytest.fixture
def make_tree(tmp_path):
    """Build a tree of files with chosen sizes and access times.

    Keys are paths relative to the returned root; values are
    ``(size, accessed)`` for files, ``None`` for empty directories.
    """

    def _make(spec: dict[str, tuple[int, datetime] | None], root: Path | None = None) -> Path:
        root = root or tmp_path / "tree"
        root.mkdir(parents=True, exist_ok=True)
        for rel, value in spec.items():
            path = root / rel
            if value is None:
                path.mkdir(parents=True, exist_ok=True)
                continue
            size, accessed = value
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
            ts = accessed.timestamp()
            os.utime(path, (ts, ts))
        return root

    return _make


class FakeFilesystem:
    """In-memory metadata provider for failure injection."""

    def __init__(self) -> None:
        self.entries: dict[Path, FileSystemEntry] = {}
        self.children: dict[Path, list[Path]] = {}
        self.unlistable: set[Path] = set()
        self.unstattable: set[Path] = set()
        self.list_calls: list[Path] = []
        self.list_delay = 0.0
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def _add(self, entry: FileSystemEntry) -> FileSystemEntry:
        self.entries[entry.path] = entry
        if entry.path.parent in self.children and entry.path.parent != entry.path:
            self.children[entry.path.parent].append(entry.path)
        if entry.is_dir:
            self.children[entry.path] = []
        return entry

    def add_dir(self, path: str, owner: int = 0) -> FileSystemEntry:
        return self._add(FileSystemEntry(Path(path), EntryKind.DIRECTORY, 4096, OLD, owner))

    def add_file(self, path: str, size: int, accessed: datetime = OLD, owner: int = 0) -> FileSystemEntry:
        return self._add(FileSystemEntry(Path(path), EntryKind.FILE, size, accessed, owner))

    def add_symlink(self, path: str) -> FileSystemEntry:
        return self._add(FileSystemEntry(Path(path), EntryKind.SYMLINK, 12, OLD, 0))

    def add_other(self, path: str) -> FileSystemEntry:
        return self._add(FileSystemEntry(Path(path), EntryKind.OTHER, 0, OLD, 0))

    def stat(self, path: Path, *, follow_symlinks: bool = False) -> FileSystemEntry:
        if path in self.unstattable or path not in self.entries:
            raise FileNotFoundError(2, "No such file or directory", str(path))
        return self.entries[path]

    def list_dir(self, path: Path) -> list[FileSystemEntry]:
        with self._lock:
            self.list_calls.append(path)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.list_delay:
                time.sleep(self.list_delay)
            if path in self.unlistable:
                raise PermissionError(13, "Permission denied", str(path))
            return [
                FileSystemEntry.unavailable(child, "Permission denied")
                if child in self.unstattable
                else self.entries[child]
                for child in self.children[path]
            ]
        finally:
            with self._lock:
                self._in_flight -= 1


@pytest.fixture
def fake_fs():
    return FakeFilesystem()
