"""Deterministic comparators for the lock list.

Ordering mirrors what a file browser shows on each platform: natural ordering
for names (``file2`` before ``file10``) and directories ahead of files.
"""

from __future__ import annotations

import os
import re
from enum import Enum

from lfs_locks.models import LockRecord, LockSortType

_DIGIT_RUNS = re.compile(r"(\d+)")
_SEPARATORS = ("/", "\\")


class PathStyle(str, Enum):
    """Platform family whose file browser ordering is reproduced."""

    WINDOWS = "windows"
    POSIX = "posix"


def default_path_style() -> PathStyle:
    return PathStyle.WINDOWS if os.name == "nt" else PathStyle.POSIX


def natural_compare(x: str, y: str) -> int:
    """Case-insensitive comparison where digit runs compare numerically."""

    x_key = _natural_key(x)
    y_key = _natural_key(y)
    if x_key != y_key:
        return -1 if x_key < y_key else 1
    if x == y:
        return 0
    return -1 if x < y else 1


def _natural_key(text: str) -> list[str | tuple[int, str]]:
    key: list[str | tuple[int, str]] = []
    for index, chunk in enumerate(_DIGIT_RUNS.split(text.casefold())):
        # re.split with one group alternates text and digit runs, text first
        if index % 2:
            key.append((int(chunk), chunk))
        else:
            key.append(chunk)
    return key


def path_compare(x: str, y: str, style: PathStyle | None = None) -> int:
    """Compare two repo-relative paths the way the host file browser orders them."""

    style = style or default_path_style()
    for i in range(min(len(x), len(y))):
        cx = x[i]
        cy = y[i]
        if cx == cy:
            continue

        if style is PathStyle.WINDOWS:
            # folders always sort above files in the same directory
            x_is_folder = x[_next_separator(x, i)] in _SEPARATORS
            y_is_folder = y[_next_separator(y, i)] in _SEPARATORS

            if x_is_folder and y_is_folder:
                # "Foo" lists above "Foo 1" and "Foo 10" even though natural
                # ordering puts it last
                if cx in _SEPARATORS:
                    return -1
                if cy in _SEPARATORS:
                    return 1

            if x_is_folder and not y_is_folder:
                return -1
            if y_is_folder and not x_is_folder:
                return 1
        else:
            # folders only sort above files with the same name
            if cx in _SEPARATORS:
                return -1
            if cy in _SEPARATORS:
                return 1
        break

    return natural_compare(x, y)


def _next_separator(text: str, start: int) -> int:
    for i in range(start, len(text)):
        if text[i] in _SEPARATORS:
            return i
    return len(text) - 1


def compare_locks(
    x: LockRecord,
    y: LockRecord,
    *,
    sort_type: LockSortType,
    ascending: bool,
    style: PathStyle | None = None,
) -> int:
    """Compare two records for the given column and direction.

    Direction swaps the operands instead of negating the result so the path
    tie-break of a user sort follows the same direction.
    """

    if not ascending:
        x, y = y, x

    if sort_type is LockSortType.USER:
        result = natural_compare(x.user, y.user)
        if result != 0:
            return result
        return path_compare(x.path, y.path, style)
    if sort_type is LockSortType.PATH:
        return path_compare(x.path, y.path, style)
    if sort_type is LockSortType.ID:
        return natural_compare(x.id, y.id)
    raise ValueError(f"Unsupported lock sort type: {sort_type!r}")
