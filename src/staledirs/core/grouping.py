"""Grouping of consecutive report rows that share a parent directory."""

from __future__ import annotations

import logging
from typing import Callable

from staledirs.core.paths import parent_of
from staledirs.models.records import ReportRow

log = logging.getLogger(__name__)

RowSink = Callable[[ReportRow], None]

DEFAULT_GROUP_THRESHOLD = 10


class PrefixGroupingAggregator:
    """Summarizes runs of rows under the same parent directory.

    Rows must arrive sorted so that siblings are adjacent.  When a run of
    siblings ends (a row with a different parent arrives, or :meth:`flush`
    is called at the end of input) the run is emitted as one ``grouped``
    row for the parent if it has at least *group_threshold* members, and
    row by row otherwise.  A threshold of 0 disables grouping.

    Grouping is lossy: a grouped parent may still contain files that were
    never reported, since the rows only name what was found stale.
    """

    def __init__(self, group_threshold: int = DEFAULT_GROUP_THRESHOLD, sink: RowSink | None = None) -> None:
        if group_threshold < 0:
            raise ValueError(f"group threshold must not be negative, got {group_threshold}")
        self.group_threshold = group_threshold
        self._sink = sink
        self._parent = ""
        self._buffer: list[ReportRow] = []
        self._emitted: list[ReportRow] = []

    @property
    def parent(self) -> str:
        """Parent directory of the run being buffered ('' when idle)."""
        return self._parent

    def __len__(self) -> int:
        return len(self._buffer)

    def push(self, path: str, owner: str | None, size: int) -> None:
        """Add one row, flushing the current run first if *path* starts a new one."""
        row = ReportRow(path=path, owner=owner, size=size)
        if self.group_threshold == 0:
            self._emit(row)
            return

        given_parent = parent_of(path)
        if self._buffer and given_parent != self._parent:
            self.flush()
        if not self._buffer:
            self._parent = given_parent
        self._buffer.append(row)

    def flush(self, owner: str | None = None) -> None:
        """Emit the buffered run.

        *owner* labels the grouped row if the run is long enough; it need
        not match any owner in the buffer.  Without it the run is labelled
        with its first row's owner, as runs ended by :meth:`push` are.
        """
        if self.group_threshold and len(self._buffer) >= self.group_threshold:
            total = sum(row.size for row in self._buffer)
            if owner is None:
                owner = self._buffer[0].owner
            log.debug("Grouping %d rows under %s", len(self._buffer), self._parent)
            self._emit(ReportRow(path=self._parent, owner=owner, size=total, grouped=True))
        else:
            for row in self._buffer:
                self._emit(row)
        self._parent = ""
        self._buffer.clear()

    def drain(self) -> list[ReportRow]:
        """Return and forget rows emitted so far (when no sink was given)."""
        rows, self._emitted = self._emitted, []
        return rows

    def _emit(self, row: ReportRow) -> None:
        if self._sink is not None:
            self._sink(row)
        else:
            self._emitted.append(row)
