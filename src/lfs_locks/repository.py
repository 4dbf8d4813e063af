"""Repository root, branch and LFS configuration discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lfs_locks.errors import RepositoryStateError

logger = logging.getLogger(__name__)

_HEAD_REF_PREFIX = "ref: refs/heads/"
_LFS_CONFIG_SECTION = "[lfs]"
LOCK_CACHE_FILE_NAME = "lockcache.db"


@dataclass(slots=True, frozen=True)
class RepositoryContext:
    """Paths derived from one repository root."""

    root: Path

    @property
    def git_dir(self) -> Path:
        return self.root / ".git"

    @property
    def lfs_dir(self) -> Path:
        return self.git_dir / "lfs"

    @property
    def lock_cache_path(self) -> Path:
        return self.lfs_dir / LOCK_CACHE_FILE_NAME


class RepositoryDiscovery:
    """Find the enclosing git repository of a working directory.

    The root is cached until it stops existing on disk.
    """

    def __init__(self, start_dir: Path) -> None:
        self.start_dir = start_dir
        self.context: RepositoryContext | None = None
        self.branch = ""
        self.has_lfs_config = False

    @property
    def is_git_repo(self) -> bool:
        return self.context is not None

    def load(self) -> RepositoryContext | None:
        """Refresh root, branch and LFS flag; returns the current context."""

        self.cache_root()
        self.load_branch()
        self.load_lfs_config()
        return self.context

    def cache_root(self) -> None:
        if self.context is not None:
            # if this is no longer a git repo, forget it
            if not self.context.root.is_dir():
                logger.info("Repository root %s disappeared", self.context.root)
                self.context = None
            return

        directory = self.start_dir.resolve()
        for candidate in (directory, *directory.parents):
            if (candidate / ".git").is_dir():
                self.context = RepositoryContext(root=candidate)
                logger.debug("Discovered repository root %s", candidate)
                return

    def load_branch(self) -> None:
        self.branch = ""
        if self.context is None:
            return

        head_path = self.context.git_dir / "HEAD"
        try:
            with head_path.open(encoding="utf-8") as handle:
                line = handle.readline().strip()
        except OSError as error:
            raise RepositoryStateError(
                f"Failed to load git branch from {str(head_path)!r}",
                path=str(head_path),
            ) from error
        self.branch = line.replace(_HEAD_REF_PREFIX, "")

    def load_lfs_config(self) -> None:
        self.has_lfs_config = False
        if self.context is None:
            return

        config_path = self.context.git_dir / "config"
        try:
            text = config_path.read_text("utf-8")
        except OSError as error:
            raise RepositoryStateError(
                f"Failed to load git config {str(config_path)!r}",
                path=str(config_path),
            ) from error
        self.has_lfs_config = _LFS_CONFIG_SECTION in text
