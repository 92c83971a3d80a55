"""Directory detection over a sorted list of file paths."""

from __future__ import annotations

import functools
import logging
from typing import Callable, Iterable, Iterator

from staledirs.core.classifier import ErrorCallback, log_diagnostic
from staledirs.core.filesystem import SizeComputationError, dir_size, owner_of
from staledirs.core.paths import common_prefix, parent_of
from staledirs.core.users import UserCache
from staledirs.models.entry import Diagnostic
from staledirs.models.records import DirInfo

log = logging.getLogger(__name__)

SizeLookup = Callable[[str], int]
OwnerLookup = Callable[[str], str]

ERROR_OWNER = "ERROR_OWNER"


def _normalize_base(base: str) -> str:
    return base if base.endswith("/") else f"{base}/"


class PrefixSpanSplitter:
    """Finds the directories spanned by runs of sorted file paths.

    Paths under *base* are fed in lexicographic order.  The splitter keeps
    the common component prefix of the current run; when an incoming path
    shares no component with it, the run is over and its prefix is
    described with one size lookup and one owner lookup, instead of one
    stat per file.

    Size lookups that fail are reported and recorded as 0 bytes, owner
    lookups that fail as ``ERROR_OWNER``.
    """

    def __init__(
        self,
        base: str,
        *,
        size_of: SizeLookup | None = None,
        owner_lookup: OwnerLookup | None = None,
        strict: bool = True,
        users: UserCache | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.base = _normalize_base(base)
        self._size_of = size_of or functools.partial(dir_size, strict=strict)
        if owner_lookup is None:
            users = users or UserCache()
            owner_lookup = lambda path: users.display_name(owner_of(path))  # noqa: E731
        self._owner_of = owner_lookup
        self._on_error = on_error or log_diagnostic
        self._prefix = ""

    @property
    def prefix(self) -> str:
        """Common prefix of the current run, relative to the base ('' when idle)."""
        return self._prefix

    def feed(self, path: str) -> DirInfo | None:
        """Consume one path; return the finished run it closed, if any."""
        if not path.startswith(self.base):
            self._on_error(Diagnostic(path, f"not under {self.base}, skipped"))
            return None
        relative = path[len(self.base):]

        if not self._prefix:
            self._prefix = parent_of(relative)
            return None

        shared = common_prefix(self._prefix, relative)
        if shared:
            self._prefix = shared
            return None

        finished = self._describe(self._prefix)
        self._prefix = parent_of(relative)
        return finished

    def finish(self) -> DirInfo | None:
        """Close the last run at end of input."""
        if not self._prefix:
            return None
        finished = self._describe(self._prefix)
        self._prefix = ""
        return finished

    def split(self, paths: Iterable[str]) -> Iterator[DirInfo]:
        """Feed every path and yield each finished run, the last one included."""
        for path in paths:
            info = self.feed(path)
            if info is not None:
                yield info
        info = self.finish()
        if info is not None:
            yield info

    def _describe(self, relative: str) -> DirInfo:
        path = f"{self.base}{relative}"
        try:
            owner = self._owner_of(path)
        except OSError as e:
            self._on_error(Diagnostic(path, f"cannot get owner: {e}"))
            owner = ERROR_OWNER
        try:
            size = self._size_of(path)
        except SizeComputationError as e:
            self._on_error(Diagnostic(path, str(e)))
            size = 0
        log.debug("Finished run %s (%d bytes, owner %s)", path, size, owner)
        return DirInfo(path=path, size=size, owner=owner)
