"""Command runner implementations."""

from lfs_locks.backend.base import DEFAULT_TIMEOUT_MS, CommandRunner, CommandRunRequest
from lfs_locks.backend.cli_backend import SubprocessCommandRunner

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "CommandRunRequest",
    "CommandRunner",
    "SubprocessCommandRunner",
]
