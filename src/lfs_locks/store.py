"""Canonical ordered collection of lock records."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from lfs_locks.models import LockRecord, LockSortType
from lfs_locks.sorting import PathStyle, compare_locks


class LockStore:
    """Lock records plus their sort state.

    Only ever touched from the logical thread, so it carries no locking.
    """

    def __init__(
        self,
        *,
        sort_type: LockSortType = LockSortType.PATH,
        ascending: bool = True,
        path_style: PathStyle | None = None,
    ) -> None:
        self._records: list[LockRecord] = []
        self.sort_type = sort_type
        self.ascending = ascending
        self.path_style = path_style

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LockRecord]:
        return iter(list(self._records))

    @property
    def records(self) -> tuple[LockRecord, ...]:
        return tuple(self._records)

    def find(self, predicate: Callable[[LockRecord], bool]) -> LockRecord | None:
        return next((record for record in self._records if predicate(record)), None)

    def find_by_path(self, path: str) -> LockRecord | None:
        return self.find(lambda record: record.path == path)

    def find_by_id(self, lock_id: str) -> LockRecord | None:
        return self.find(lambda record: record.id == lock_id)

    def add(self, record: LockRecord) -> None:
        if self.find_by_path(record.path) is not None:
            raise ValueError(f"Lock for {record.path!r} is already tracked")
        self._records.append(record)

    def remove(self, record: LockRecord) -> None:
        self._records.remove(record)

    def replace_all(self, records: Iterable[LockRecord]) -> None:
        """Drop every record and rebuild from an authoritative listing."""

        self._records.clear()
        seen_paths: set[str] = set()
        for record in records:
            # keep the first listing entry per path
            if record.path in seen_paths:
                continue
            seen_paths.add(record.path)
            self._records.append(record)
        self.sort()

    def sort(self, sort_type: LockSortType | None = None, ascending: bool | None = None) -> None:
        if sort_type is not None:
            self.sort_type = sort_type
        if ascending is not None:
            self.ascending = ascending

        self._records.sort(
            key=functools.cmp_to_key(
                functools.partial(
                    compare_locks,
                    sort_type=self.sort_type,
                    ascending=self.ascending,
                    style=self.path_style,
                ),
            ),
        )

    def to_blob(self) -> dict[str, Any]:
        return {
            "locks": [record.to_dict() for record in self._records],
            "lock_sort_type": self.sort_type.value,
            "lock_sort_ascending": self.ascending,
        }

    def load_blob(self, blob: dict[str, Any]) -> None:
        raw_locks = blob.get("locks", [])
        if not isinstance(raw_locks, list):
            raise TypeError("settings.locks must be an array")
        records = [LockRecord.from_dict(item) for item in raw_locks]
        sort_type = LockSortType(blob.get("lock_sort_type", self.sort_type.value))
        self.sort_type = sort_type
        self.ascending = bool(blob.get("lock_sort_ascending", self.ascending))
        # no command survives a restart: unconfirmed locks go, the rest settle
        records = [record for record in records if record.id or not record.is_pending]
        for record in records:
            record.is_pending = False
        self.replace_all(records)
