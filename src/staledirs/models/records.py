"""Result records produced by the aggregation engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class StaleVerdict:
    """Outcome of classifying one subtree.

    ``is_wholly_stale`` is True when every file below the subtree was
    accessed before the cutoff; ``aggregate_size`` sums the stale leaves.
    """

    is_wholly_stale: bool
    aggregate_size: int = 0


@dataclass(frozen=True, slots=True)
class AggregateRecord:
    """Either a collapsed wholly-stale directory or a single stale file."""

    path: Path
    size: int
    owner: int
    collapsed: bool = False


@dataclass(slots=True)
class ClassifyResult:
    """Everything found under one root."""

    root: Path
    records: list[AggregateRecord] = field(default_factory=list)
    total_bytes: int = 0


@dataclass(frozen=True, slots=True)
class ReportRow:
    """A row emitted by the grouping aggregator.

    ``owner`` is an already formatted display tag (or None when ownership is
    not being shown).  Grouped rows carry the parent directory as ``path``.
    """

    path: str
    owner: str | None
    size: int
    grouped: bool = False


@dataclass(frozen=True, slots=True)
class DirInfo:
    """Directory summary emitted by the prefix span splitter."""

    path: str
    size: int
    owner: str
