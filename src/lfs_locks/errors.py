"""Exception hierarchy for lfs-locks."""

from __future__ import annotations


class LfsLocksError(RuntimeError):
    """Base class for all lfs-locks errors."""


class RepositoryStateError(LfsLocksError):
    """Repository files that must exist are missing or unreadable."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class CommandStartError(LfsLocksError):
    """External command could not be started."""
