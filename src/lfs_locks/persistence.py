"""Settings blob persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    """Opaque key-value blob storage."""

    def save(self, blob: dict[str, Any]) -> None:
        """Persist the whole blob."""

    def load(self) -> dict[str, Any] | None:
        """Return the last saved blob, or None when nothing was saved yet."""


class JsonSettingsStore:
    """Store the blob as a deterministic JSON document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def save(self, blob: dict[str, Any]) -> None:
        write_json(self.path, blob)

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        try:
            return load_json(self.path)
        except (OSError, ValueError, TypeError) as error:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, error)
            return None


class MemorySettingsStore:
    """In-process store used when nothing should touch the disk."""

    def __init__(self, blob: dict[str, Any] | None = None) -> None:
        self.blob = blob
        self.saves = 0

    def save(self, blob: dict[str, Any]) -> None:
        self.blob = json.loads(json.dumps(blob))
        self.saves += 1

    def load(self) -> dict[str, Any] | None:
        return self.blob


def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True), "utf-8")


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON document and validate top-level object type."""

    payload = json.loads(path.read_text("utf-8"))
    if not isinstance(payload, dict):
        raise TypeError(f"Expected JSON object in {path}")
    return payload
