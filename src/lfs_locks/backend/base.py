"""Runner interface for external command execution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from lfs_locks.models import ProcessResult

DEFAULT_TIMEOUT_MS = 30_000


@dataclass(slots=True)
class CommandRunRequest:
    """Inputs required to execute one command attempt."""

    executable: str
    args: tuple[str, ...]
    working_directory: Path | None
    timeout_ms: int = DEFAULT_TIMEOUT_MS


class CommandRunner(Protocol):
    """Protocol implemented by command runners."""

    def run(self, request: CommandRunRequest) -> ProcessResult:
        """Run one command attempt and return its captured output."""
