"""Line formats spoken between pipeline stages.

``scan`` writes one ``<path> <uid> <size>`` record per line; ``dirs-info``
writes one JSON object per line.  Both are read back by the report stages.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Callable, Iterable, Iterator, TypeVar

from staledirs.models.records import AggregateRecord, DirInfo

log = logging.getLogger(__name__)

T = TypeVar("T")


class MalformedRecord(Exception):
    """Raised when an input line cannot be parsed."""

    def __init__(self, line: str, reason: str = "malformed") -> None:
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


def format_record(record: AggregateRecord) -> str:
    """Encode a classifier record as ``<path> <uid> <size>``."""
    return f"{record.path} {record.owner} {record.size}"


def parse_record(line: str) -> tuple[str, int, int]:
    """Decode a ``<path> <uid> <size>`` line.

    The last two fields are split off the right so the path may contain
    spaces.

    Raises:
        MalformedRecord: If the line does not have three fields or the
            numbers do not parse.
    """
    text = line.rstrip("\n")
    head, sep, size = text.rpartition(" ")
    if not sep:
        raise MalformedRecord(text)
    path, sep, uid = head.rpartition(" ")
    if not sep or not path:
        raise MalformedRecord(text)
    try:
        return path, int(uid), int(size)
    except ValueError:
        raise MalformedRecord(text, "bad number") from None


def format_dir_info(info: DirInfo) -> str:
    """Encode a directory summary as one JSON line."""
    return json.dumps(asdict(info), ensure_ascii=False)


def parse_dir_info(line: str) -> DirInfo:
    """Decode a JSON directory summary.

    Raises:
        MalformedRecord: If the line is not a JSON object with the expected fields.
    """
    try:
        data = json.loads(line)
        return DirInfo(path=str(data["path"]), size=int(data["size"]), owner=str(data["owner"]))
    except json.JSONDecodeError as e:
        raise MalformedRecord(line.rstrip("\n"), f"invalid JSON ({e.msg})") from None
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedRecord(line.rstrip("\n"), f"missing or invalid field {e}") from None


def read_lines(lines: Iterable[str], parser: Callable[[str], T], source: str | Path = "<stdin>") -> Iterator[T]:
    """Parse each non-blank line, logging and skipping the malformed ones."""
    for lineno, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            yield parser(line)
        except MalformedRecord as e:
            log.warning("%s:%d: %s", source, lineno, e)
