"""Runtime configuration for the lock cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from lfs_locks.backend.base import DEFAULT_TIMEOUT_MS

DEFAULT_SETTINGS_RELATIVE_PATH = Path("UserSettings") / "Git" / "Settings.json"


@dataclass(slots=True)
class Settings:
    """Lock cache settings, overridable from ``LFS_LOCKS_*`` environment variables."""

    process_timeout_ms: int = DEFAULT_TIMEOUT_MS
    update_interval_seconds: float = 30.0
    max_lock_items: int = 50
    auto_refresh: bool = True
    username: str = ""
    lfs_executable: str | None = None
    settings_path: Path | None = None

    @classmethod
    def from_env(cls, settings_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local use."""

        env_settings_path = os.getenv("LFS_LOCKS_SETTINGS_PATH", "").strip()
        return cls(
            process_timeout_ms=int(
                os.getenv("LFS_LOCKS_PROCESS_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)),
            ),
            update_interval_seconds=float(os.getenv("LFS_LOCKS_UPDATE_INTERVAL_SECONDS", "30")),
            max_lock_items=int(os.getenv("LFS_LOCKS_MAX_LOCK_ITEMS", "50")),
            auto_refresh=_env_bool("LFS_LOCKS_AUTO_REFRESH", default=True),
            username=os.getenv("LFS_LOCKS_USERNAME", "").strip(),
            lfs_executable=os.getenv("LFS_LOCKS_LFS_EXECUTABLE", "").strip() or None,
            settings_path=settings_path or (Path(env_settings_path) if env_settings_path else None),
        )

    def validate(self) -> None:
        """Raise configuration error for out-of-range values."""

        if self.process_timeout_ms <= 0:
            raise ValueError("LFS_LOCKS_PROCESS_TIMEOUT_MS must be > 0.")
        if self.update_interval_seconds <= 0:
            raise ValueError("LFS_LOCKS_UPDATE_INTERVAL_SECONDS must be > 0.")
        if self.max_lock_items <= 0:
            raise ValueError("LFS_LOCKS_MAX_LOCK_ITEMS must be a positive integer.")

    def resolve_settings_path(self, repo_root: Path | None) -> Path | None:
        if self.settings_path is not None:
            return self.settings_path
        if repo_root is None:
            return None
        return repo_root / DEFAULT_SETTINGS_RELATIVE_PATH


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
