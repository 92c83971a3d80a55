"""Stale subtree classification.

Walks one directory tree bottom-up and reduces it to the upper-most
directories in which every file was last accessed before a cutoff.
Directories that also hold fresh files are not collapsed; their stale
leaves (and wholly-stale subdirectories) are reported individually.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, Protocol

from staledirs.core.filesystem import LocalFilesystem
from staledirs.models.entry import Diagnostic, FileSystemEntry
from staledirs.models.records import AggregateRecord, ClassifyResult, StaleVerdict

log = logging.getLogger(__name__)

ErrorCallback = Callable[[Diagnostic], None]

# Each worker can hold one directory listing open, so the width is also the
# bound on listings in flight.  Raising it multiplies open file descriptors.
DEFAULT_WORKERS = 1

_Outcome = tuple[list[AggregateRecord], StaleVerdict | None]


class MetadataProvider(Protocol):
    """What the classifier needs from the filesystem."""

    def stat(self, path: Path, *, follow_symlinks: bool = False) -> FileSystemEntry: ...

    def list_dir(self, path: Path) -> list[FileSystemEntry]: ...


class RootUnavailable(Exception):
    """Raised when the root of a classification cannot be statted or listed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"cannot read {path}: {cause}")
        self.path = path
        self.cause = cause


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default error callback: report on the logging side channel."""
    log.warning("%s", diagnostic)


class StaleSubtreeClassifier:
    """Finds wholly-stale subtrees under a root directory.

    A file is stale when its access time is strictly earlier than the
    cutoff.  Symlinks are never followed or reported, but they keep their
    parent directory from collapsing.  Entries that cannot be read are
    reported through *on_error* and otherwise ignored.

    With ``workers > 1`` the children of each directory are classified on a
    shared thread pool.  Results are rejoined in listing order, so the
    output is the same as with the sequential walk.  An instance runs one
    classification at a time.
    """

    def __init__(
        self,
        provider: MetadataProvider | None = None,
        *,
        workers: int = DEFAULT_WORKERS,
        on_error: ErrorCallback | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.provider = provider or LocalFilesystem()
        self.workers = workers
        self._on_error = on_error or log_diagnostic
        self._executor: ThreadPoolExecutor | None = None
        self._listing_slots = threading.BoundedSemaphore(workers)

    def classify(self, root: Path | str, cutoff: datetime) -> ClassifyResult:
        """Classify everything under *root* against *cutoff*.

        A symlinked *root* is followed; links below it are not.  Naive
        cutoffs are taken to be local time.

        Raises:
            RootUnavailable: If *root* itself cannot be statted or listed.
        """
        root = Path(root)
        if cutoff.tzinfo is None:
            cutoff = cutoff.astimezone(timezone.utc)

        try:
            entry = self.provider.stat(root, follow_symlinks=True)
        except OSError as e:
            raise RootUnavailable(root, e) from e

        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="staledirs") as executor:
                self._executor = executor
                try:
                    records, _ = self._visit_root(entry, cutoff)
                finally:
                    self._executor = None
        else:
            records, _ = self._visit_root(entry, cutoff)

        result = ClassifyResult(root=root, records=records, total_bytes=sum(r.size for r in records))
        log.info("Classified %s: %d records, %d stale bytes", root, len(records), result.total_bytes)
        return result

    def _visit_root(self, entry: FileSystemEntry, cutoff: datetime) -> _Outcome:
        if not entry.is_dir:
            return self._visit(entry, cutoff, True)
        try:
            children = self._list(entry.path)
        except OSError as e:
            raise RootUnavailable(entry.path, e) from e
        return self._reduce(entry, children, cutoff, True)

    def _visit(self, entry: FileSystemEntry, cutoff: datetime, hint: bool) -> _Outcome:
        """Classify one entry.

        A None verdict means the entry could not be read and must not count
        as either stale or fresh.  *hint* is the flag the parent directory
        received, seeded True at the root; it is handed down unchanged.
        """
        if not entry.accessible:
            self._report(entry.path, f"cannot get metadata: {entry.error}")
            return [], None

        if entry.is_symlink:
            return [], StaleVerdict(False)

        if entry.is_file:
            if entry.accessed is None:
                self._report(entry.path, "cannot get access time")
                return [], None
            if entry.accessed < cutoff:
                return [AggregateRecord(entry.path, entry.size, entry.owner)], StaleVerdict(True, entry.size)
            return [], StaleVerdict(False)

        if not entry.is_dir:
            self._report(entry.path, f"is not a file nor directory ({entry.kind.value})")
            return [], None

        try:
            children = self._list(entry.path)
        except OSError as e:
            self._report(entry.path, f"cannot list directory: {e}")
            return [], None
        return self._reduce(entry, children, cutoff, hint)

    def _reduce(
        self,
        entry: FileSystemEntry,
        children: list[FileSystemEntry],
        cutoff: datetime,
        hint: bool,
    ) -> _Outcome:
        # Left-to-right fold: the flag starts at the hint handed down from
        # the parent and is cleared by the first child that is not stale.
        all_stale = hint
        stale_size = 0
        records: list[AggregateRecord] = []
        for child_records, verdict in self._outcomes(children, cutoff, hint):
            if verdict is None:
                continue
            records.extend(child_records)
            stale_size += verdict.aggregate_size
            all_stale = all_stale and verdict.is_wholly_stale

        if all_stale:
            log.debug("Collapsing %s (%d bytes)", entry.path, stale_size)
            return [AggregateRecord(entry.path, stale_size, entry.owner, collapsed=True)], StaleVerdict(
                True, stale_size
            )
        return records, StaleVerdict(False, stale_size)

    def _outcomes(self, children: list[FileSystemEntry], cutoff: datetime, hint: bool) -> Iterable[_Outcome]:
        if self._executor is None or len(children) < 2:
            return (self._visit(child, cutoff, hint) for child in children)
        return self._outcomes_concurrent(self._executor, children, cutoff, hint)

    def _outcomes_concurrent(
        self,
        executor: ThreadPoolExecutor,
        children: list[FileSystemEntry],
        cutoff: datetime,
        hint: bool,
    ) -> Iterator[_Outcome]:
        """Yield child outcomes in listing order regardless of completion order.

        A child that no worker has picked up yet is run inline by the
        waiting thread, so a parent never blocks on work queued behind it.
        """
        futures = [executor.submit(self._visit, child, cutoff, hint) for child in children]
        for child, future in zip(children, futures):
            if future.cancel():
                yield self._visit(child, cutoff, hint)
            else:
                yield future.result()

    def _list(self, path: Path) -> list[FileSystemEntry]:
        with self._listing_slots:
            return self.provider.list_dir(path)

    def _report(self, path: Path, message: str) -> None:
        self._on_error(Diagnostic(path, message))
