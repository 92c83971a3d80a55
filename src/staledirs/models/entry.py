"""Filesystem entry dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class EntryKind(Enum):
    """What an entry is, as reported by ``lstat``."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class FileSystemEntry:
    """Metadata for a single path, never following symlinks.

    Entries whose ``lstat`` failed are still produced by directory listings
    with ``accessible=False`` and the failure in ``error`` so that callers
    can report them without aborting the walk.
    """

    path: Path
    kind: EntryKind = EntryKind.OTHER
    size: int = 0
    accessed: datetime | None = None
    owner: int = -1
    accessible: bool = True
    error: str = ""

    @classmethod
    def unavailable(cls, path: Path, error: OSError | str) -> FileSystemEntry:
        return cls(path=path, accessible=False, error=str(error))

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_symlink(self) -> bool:
        return self.kind is EntryKind.SYMLINK


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A recoverable problem with one path, reported on the side channel."""

    path: Path | str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
