"""Asset identifier resolution for locked paths."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

_META_GUID = re.compile(r"^guid:\s*(?P<guid>[0-9a-fA-F]+)\s*$", re.MULTILINE)


class AssetIdResolver(Protocol):
    """Maps a repo-relative path to a host asset identifier."""

    def resolve(self, path: str) -> str:
        """Return the identifier, or an empty string when there is none."""


class MetaFileAssetIdResolver:
    """Read the ``guid:`` entry of the ``<path>.meta`` sidecar file."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def resolve(self, path: str) -> str:
        meta_path = self.root / f"{path}.meta"
        try:
            text = meta_path.read_text("utf-8", errors="replace")
        except OSError:
            return ""
        match = _META_GUID.search(text)
        return match.group("guid") if match else ""
