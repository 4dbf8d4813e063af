"""Locate the git-lfs executable."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

LFS_EXECUTABLE_NAME = "git-lfs"

# Homebrew installs to a different prefix on Apple silicon than on Intel, and
# neither prefix is guaranteed to be on the PATH a GUI host was started with.
_WELL_KNOWN_LOCATIONS: tuple[str, ...] = (
    "/opt/homebrew/bin/git-lfs",
    "/usr/local/bin/git-lfs",
)


@dataclass(slots=True)
class LfsTool:
    """Resolved executable, or an empty name when git-lfs is missing."""

    executable: str = ""

    @property
    def exists(self) -> bool:
        return bool(self.executable)


def locate_lfs_tool(
    override: str | None = None,
    *,
    search_path: str | None = None,
    well_known_locations: tuple[str, ...] = _WELL_KNOWN_LOCATIONS,
) -> LfsTool:
    """Resolve git-lfs from an explicit override, PATH, then well-known prefixes."""

    if override:
        resolved = shutil.which(override, path=search_path)
        if resolved is None and Path(override).is_file() and os.access(override, os.X_OK):
            resolved = override
        return LfsTool(executable=resolved or "")

    resolved = shutil.which(LFS_EXECUTABLE_NAME, path=search_path)
    if resolved is not None:
        return LfsTool(executable=resolved)

    for location in well_known_locations:
        if Path(location).is_file():
            return LfsTool(executable=location)
    return LfsTool()
