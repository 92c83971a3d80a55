"""Metadata and listing provider for the local filesystem."""

from __future__ import annotations

import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path

from staledirs.models.entry import EntryKind, FileSystemEntry

log = logging.getLogger(__name__)


class SizeComputationError(Exception):
    """Raised when a recursive size sum hits an I/O error."""

    def __init__(self, path: Path | str, cause: OSError) -> None:
        super().__init__(f"cannot compute size of {path}: {cause}")
        self.path = path
        self.cause = cause


def _kind_of(mode: int) -> EntryKind:
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def entry_from_stat(path: Path, st: os.stat_result) -> FileSystemEntry:
    """Build a FileSystemEntry from an ``lstat`` result."""
    return FileSystemEntry(
        path=path,
        kind=_kind_of(st.st_mode),
        size=st.st_size,
        accessed=datetime.fromtimestamp(st.st_atime, tz=timezone.utc),
        owner=st.st_uid,
    )


class LocalFilesystem:
    """Reads metadata with ``lstat`` and lists directories with ``scandir``.

    Symlinks found while listing are never followed.  Listing order is
    whatever the operating system returns; it is not re-sorted.
    """

    def stat(self, path: Path, *, follow_symlinks: bool = False) -> FileSystemEntry:
        """Return metadata for *path*.

        With *follow_symlinks* a link is described by its target, which is
        how a root named on the command line is read.

        Raises:
            OSError: If the path cannot be statted.
        """
        return entry_from_stat(path, os.stat(path, follow_symlinks=follow_symlinks))

    def list_dir(self, path: Path) -> list[FileSystemEntry]:
        """List the children of *path*.

        Children that cannot be statted are returned with
        ``accessible=False`` instead of raising.

        Raises:
            OSError: If the directory itself cannot be read.
        """
        entries: list[FileSystemEntry] = []
        with os.scandir(path) as it:
            for dent in it:
                child = path / dent.name
                try:
                    entries.append(entry_from_stat(child, dent.stat(follow_symlinks=False)))
                except OSError as e:
                    entries.append(FileSystemEntry.unavailable(child, e))
        return entries


def dir_size(path: Path | str, *, strict: bool = True) -> int:
    """Calculate the total size of a path, like ``du --bytes -s``.

    Directories are walked recursively; every other entry, symlinks
    included, counts with its own ``lstat`` length.

    Args:
        path: File or directory to size.
        strict: If True (the default), any I/O error aborts the whole sum.
                If False, unreadable entries are logged and skipped.

    Raises:
        SizeComputationError: On any I/O error when *strict* is True, and on
            an unreadable *path* itself either way.
    """
    try:
        st = os.lstat(path)
    except OSError as e:
        raise SizeComputationError(path, e) from e

    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    total = 0
    stack: list[Path | str] = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                        else:
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError as e:
                        if strict:
                            raise SizeComputationError(path, e) from e
                        log.warning("Skipping %s while sizing %s: %s", entry.path, path, e)
        except OSError as e:
            if strict:
                raise SizeComputationError(path, e) from e
            log.warning("Cannot read %s while sizing %s: %s", current, path, e)
    return total


def owner_of(path: Path | str) -> int:
    """Return the uid owning *path* without following symlinks."""
    return os.lstat(path).st_uid
