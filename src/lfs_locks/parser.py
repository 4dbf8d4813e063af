"""Parser for `git lfs locks` output lines."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from lfs_locks.models import LockRecord

logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = "\t"
_ID_PREFIX = "ID:"
# Self-hosted servers report a bare login, cloud hosts "Display Name (login@domain)".
_DISPLAY_NAME_USER = re.compile(r"^.*\((?P<local>[^()@\s]+)@[^()\s]*\)$")


def parse_lock_line(line: str) -> LockRecord | None:
    """Parse one output line, e.g. ``Assets/foo.png\\tmikerochip\\tID:1436853``.

    Returns None for lines that do not have the lock shape.
    """

    parts = [part.strip() for part in line.split(_FIELD_SEPARATOR)]
    if len(parts) != 3:  # noqa: PLR2004
        return None

    path, user_field, id_field = parts
    if not path or not user_field or not id_field.startswith(_ID_PREFIX):
        return None

    lock_id = id_field.removeprefix(_ID_PREFIX).strip()
    if not lock_id:
        return None

    return LockRecord(path=path, user=_parse_user(user_field), id=lock_id)


def parse_lock_lines(
    lines: Iterable[str],
    resolve_asset_id: Callable[[str], str] | None = None,
) -> list[LockRecord]:
    """Parse a whole refresh, skipping lines that are not locks."""

    records: list[LockRecord] = []
    for line in lines:
        record = parse_lock_line(line)
        if record is None:
            logger.debug("Skipping unparseable git-lfs locks line: %r", line)
            continue
        if resolve_asset_id is not None:
            record.asset_guid = resolve_asset_id(record.path) or ""
        records.append(record)
    return records


def _parse_user(user_field: str) -> str:
    match = _DISPLAY_NAME_USER.match(user_field)
    if match is None:
        return user_field
    return match.group("local")
