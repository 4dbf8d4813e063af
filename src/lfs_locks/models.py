"""Domain models for the LFS lock cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LockSortType(str, Enum):
    """Column the lock list is ordered by."""

    USER = "user"
    PATH = "path"
    ID = "id"


class ResultClass(str, Enum):
    """How trustworthy the output of one command invocation is."""

    CLEAN = "clean"
    ERRORED_WITH_DATA = "errored_with_data"
    ERRORED_NO_DATA = "errored_no_data"


@dataclass(slots=True)
class LockRecord:
    """One LFS lock as seen by the local cache."""

    path: str
    id: str = ""
    user: str = ""
    asset_guid: str = ""
    is_pending: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "id": self.id,
            "user": self.user,
            "asset_guid": self.asset_guid,
            "is_pending": self.is_pending,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LockRecord:
        path = raw.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError("lock.path must be a non-empty string")
        return cls(
            path=path,
            id=str(raw.get("id", "")),
            user=str(raw.get("user", "")),
            asset_guid=str(raw.get("asset_guid", "")),
            is_pending=bool(raw.get("is_pending", False)),
        )


@dataclass(slots=True)
class ProcessResult:
    """Captured output of one external command invocation."""

    out_lines: list[str] = field(default_factory=list)
    error_lines: list[str] = field(default_factory=list)
    timed_out: bool = False

    @property
    def has_errors(self) -> bool:
        return bool(self.error_lines)

    @property
    def classification(self) -> ResultClass:
        if not self.error_lines:
            return ResultClass.CLEAN
        if self.out_lines:
            return ResultClass.ERRORED_WITH_DATA
        return ResultClass.ERRORED_NO_DATA
