"""CLI interface for staledirs."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TextIO

import click

from staledirs.core.classifier import RootUnavailable, StaleSubtreeClassifier
from staledirs.core.grouping import PrefixGroupingAggregator
from staledirs.core.splitter import PrefixSpanSplitter
from staledirs.core.users import UnknownUserError, UserCache
from staledirs.lines import format_dir_info, format_record, parse_dir_info, parse_record, read_lines
from staledirs.models.records import ReportRow
from staledirs.settings import Settings
from staledirs.utils import bytes_to_human, format_elapsed, parse_duration, parse_size

log = logging.getLogger(__name__)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


class _SizeParam(click.ParamType):
    name = "size"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_size(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class _DurationParam(click.ParamType):
    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> timedelta:
        if isinstance(value, timedelta):
            return value
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


SIZE = _SizeParam()
DURATION = _DurationParam()


def _setting_int(key: str, minimum: int) -> int:
    settings = Settings.instance()
    value = settings.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise click.ClickException(f"Invalid value for '{key}' in {settings.path}: {value!r}")
    return value


def _echo_total(total: int) -> None:
    bar = "=" * 30
    click.echo(f"        {bar} TOTAL SIZE: {click.style(bytes_to_human(total), fg='yellow')} {bar}")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Find directories worth reclaiming in large filesystem trees.

    Diagnostics go to stderr; records go to stdout, one per line.
    """
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("root", type=click.Path(path_type=Path))
@click.option("--since", "-s", required=True, type=DURATION, help="Report files not accessed for this long (e.g. 180d)")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Directory listings in flight")
def scan(root: Path, since: timedelta, workers: int | None) -> None:
    """Find the upper-most directories under ROOT in which every file is stale.

    Prints "<path> <uid> <bytes>" lines.  Symlinks are not followed;
    unreadable entries are reported on stderr and otherwise ignored.
    """
    if workers is None:
        workers = _setting_int("scan.workers", 1)
    cutoff = datetime.now(timezone.utc) - since
    classifier = StaleSubtreeClassifier(workers=workers)

    start = time.monotonic()
    try:
        result = classifier.classify(root, cutoff)
    except RootUnavailable as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for record in result.records:
        click.echo(format_record(record))
    log.info(
        "%s of stale data under %s (%s)",
        bytes_to_human(result.total_bytes),
        root,
        format_elapsed(time.monotonic() - start),
    )


# ── report ───────────────────────────────────────────────────────────────

def _echo_row(row: ReportRow) -> None:
    suffix = click.style(" (grouped)", dim=True) if row.grouped else ""
    size = bytes_to_human(row.size)
    if row.owner is not None:
        click.echo(f"{row.path} {row.owner} {size}{suffix}")
    else:
        click.echo(f"{row.path} {size}{suffix}")


def _owner_tag(users: UserCache, uid: int) -> str:
    name = users.name_of(uid)
    if name is None:
        return click.style(str(uid), fg="magenta")
    return click.style(name, fg="cyan")


@main.command()
@click.argument("input_file", type=click.File("r"), default="-")
@click.option("--user", "-u", default=None, help="User name or UID to filter by")
@click.option("--size", "-s", "min_size", type=SIZE, default="0B", help="Minimum size to report (e.g. 10GiB)")
@click.option(
    "--group",
    "-g",
    type=click.IntRange(min=0),
    default=None,
    help="Summarize this many consecutive siblings as their parent (default 10, 0 disables)",
)
def report(input_file: TextIO, user: str | None, min_size: int, group: int | None) -> None:
    """Filter, pretty-print and summarize the output of "scan".

    Grouping is lossy: a grouped parent directory may also contain files
    that are not stale.  It is meant to point at directories worth a review.
    """
    users = UserCache()
    wanted: tuple[str, int] | None = None
    if user is not None:
        try:
            wanted = users.resolve(user)
        except UnknownUserError as e:
            raise click.BadParameter(str(e), param_hint="'--user'")
    if group is None:
        group = _setting_int("report.group", 0)

    printer = PrefixGroupingAggregator(group, sink=_echo_row)
    total = 0
    for path, uid, size in read_lines(input_file, parse_record, source=input_file.name):
        if size < min_size:
            continue
        if wanted is not None and uid != wanted[1]:
            continue
        total += size
        # grouped rows take the first row's tag, so none when filtering by user
        printer.push(path, None if wanted else _owner_tag(users, uid), size)
    printer.flush()

    _echo_total(total)


# ── dirs-info ────────────────────────────────────────────────────────────

@main.command("dirs-info")
@click.argument("base")
@click.argument("input_file", type=click.File("r"), default="-")
@click.option(
    "--size-policy",
    type=click.Choice(["strict", "best-effort"]),
    default=None,
    help="strict: any error fails a directory's size; best-effort: skip unreadable entries",
)
def dirs_info(base: str, input_file: TextIO, size_policy: str | None) -> None:
    """Find the directories spanned by a sorted list of files under BASE.

    Reads paths such as the output of "find BASE -type f | sort" and prints
    one JSON object {path, size, owner} per directory found.
    """
    if size_policy is None:
        strict = bool(Settings.instance().get("dirs_info.strict", True))
    else:
        strict = size_policy == "strict"
    splitter = PrefixSpanSplitter(base, strict=strict, users=UserCache())
    paths = (line.rstrip("\n") for line in input_file if line.strip())
    for info in splitter.split(paths):
        click.echo(format_dir_info(info))


# ── dirs-report ──────────────────────────────────────────────────────────

@main.command("dirs-report")
@click.argument("input_file", type=click.File("r"), default="-")
@click.option("--user", "-u", default=None, help="Owner name to filter by")
@click.option("--size", "-s", "min_size", type=SIZE, default="0B", help="Minimum size to report (e.g. 10GiB)")
def dirs_report(input_file: TextIO, user: str | None, min_size: int) -> None:
    """Filter and pretty-print the output of "dirs-info"."""
    total = 0
    for info in read_lines(input_file, parse_dir_info, source=input_file.name):
        if user and info.owner != user:
            continue
        if info.size < min_size:
            continue
        total += info.size
        click.echo(f"{info.path} {click.style(bytes_to_human(info.size), fg='yellow')}")

    _echo_total(total)


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Show or change persisted defaults."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print the value of KEY (e.g. report.group)."""
    value = Settings.instance().get(key)
    if value is None:
        click.echo(f"Setting '{key}' is not set.", err=True)
        sys.exit(1)
    click.echo(json.dumps(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set KEY to VALUE; VALUE is read as JSON when it parses as JSON."""
    try:
        parsed: Any = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    settings = Settings.instance()
    settings.set(key, parsed)
    click.echo(f"{key} = {json.dumps(parsed)}")


@config.command("path")
def config_path() -> None:
    """Print where settings are stored."""
    click.echo(str(Settings.instance().path))
