"""String helpers for ``/``-separated paths."""

from __future__ import annotations


def parent_of(path: str) -> str:
    """Return the text before the last ``/``, or *path* itself if it has none.

    Top-level absolute paths such as ``/a`` have ``/`` as their parent.
    """
    parent, sep, _ = path.rpartition("/")
    if not sep:
        return path
    return parent or "/"


def common_prefix(x: str, y: str) -> str:
    """Return the longest run of leading path components shared by *x* and *y*.

    Components are compared whole, so ``common_prefix("bub/bles", "bub/blez")``
    is ``"bub"``.  The result does not depend on argument order.
    """
    if not x or not y:
        return ""
    shared: list[str] = []
    for left, right in zip(x.split("/"), y.split("/")):
        if left != right:
            break
        shared.append(left)
    return "/".join(shared)
