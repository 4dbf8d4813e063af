"""Controllers for lock cache CLI commands."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from lfs_locks.config import Settings
from lfs_locks.lifecycle import LfsLockSession
from lfs_locks.models import LockRecord, LockSortType
from lfs_locks.repository import RepositoryDiscovery


@dataclass(slots=True)
class LocksStatusCommand:
    """CLI input for repository/tool status."""

    repo_path: Path


@dataclass(slots=True)
class LocksListCommand:
    """CLI input for lock listing."""

    repo_path: Path
    sort_type: LockSortType | None
    descending: bool
    limit: int | None


@dataclass(slots=True)
class LocksLockCommand:
    """CLI input for acquiring locks."""

    repo_path: Path
    paths: tuple[str, ...]


@dataclass(slots=True)
class LocksUnlockCommand:
    """CLI input for releasing locks by id or path."""

    repo_path: Path
    targets: tuple[str, ...]
    force: bool


@dataclass(slots=True)
class LocksWatchCommand:
    """CLI input for the periodic refresh loop."""

    repo_path: Path
    iterations: int
    poll_seconds: float


class LocksCliController:
    """Runs one lock cache session per CLI command."""

    def status(self, command: LocksStatusCommand) -> list[str]:
        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            discovery = session.discovery
            root = discovery.context.root if discovery and discovery.context else None
            return [
                f"Repository: {root if root is not None else '(not a git repository)'}",
                f"Branch: {session.branch or '-'}",
                f"LFS configured: {'yes' if session.has_lfs_in_repo else 'no'}",
                f"git-lfs: {session.executor.executable or '(not found)'}",
                f"User: {session.username if session.has_username else '(not set)'}",
                f"Auto refresh: {'on' if session.auto_refresh else 'off'}",
                f"Cached locks: {len(session.locks)}",
            ]

    def refresh(self, command: LocksStatusCommand) -> list[str]:
        """Force a listing even when auto refresh is off or the last one failed."""

        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            if not session.refresh_locks():
                return ["Cannot refresh locks: git repository or git-lfs executable missing."]
            session.wait_for_tasks()
            lines = [f"Refreshed: {len(session.locks)} lock(s)"]
            if session.coordinator.last_locks_result_errored:
                lines.append("Warning: git-lfs reported errors; automatic refresh is paused.")
            return lines

    def list_locks(self, command: LocksListCommand) -> list[str]:
        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            if not session.refresh_locks():
                return ["Cannot list locks: git repository or git-lfs executable missing."]
            session.wait_for_tasks()
            if command.sort_type is not None or command.descending:
                session.sort_locks(
                    command.sort_type or session.lock_sort_type,
                    not command.descending,
                )
            limit = command.limit or settings.max_lock_items
            lines = [_format_lock(record) for record in session.locks[:limit]]
            if len(session.locks) > limit:
                lines.append(f"... {len(session.locks) - limit} more")
            if session.coordinator.last_locks_result_errored:
                lines.append("Warning: git-lfs reported errors; the list may be incomplete.")
            return lines or ["No locks."]

    def lock(self, command: LocksLockCommand) -> list[str]:
        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            held: dict[str, LockRecord] = {}
            for path in command.paths:
                existing = session.store.find_by_path(path)
                if existing is not None:
                    held[path] = existing
                    continue
                session.lock(path)
            session.wait_for_tasks()
            return [
                f"Lock failed: {path} (held by {held[path].user or '-'}, id={held[path].id})"
                if path in held
                else _mutation_outcome(session, path, locked=True)
                for path in command.paths
            ]

    def unlock(self, command: LocksUnlockCommand) -> list[str]:
        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            lines: list[str] = []
            paths: list[str] = []
            for target in command.targets:
                record = session.store.find_by_id(target) or session.store.find_by_path(target)
                if record is None:
                    lines.append(f"Not locked: {target}")
                    continue
                paths.append(record.path)
                if command.force:
                    session.force_unlock(record.id)
                else:
                    session.unlock(record.id)
            session.wait_for_tasks()
            lines.extend(_mutation_outcome(session, path, locked=False) for path in paths)
            return lines

    def watch(self, command: LocksWatchCommand) -> Iterator[str]:
        """Tick a session like a host event loop and report each refresh."""

        settings = Settings.from_env()
        with _session(settings, command.repo_path) as session:
            refreshed: list[int] = []
            session.locks_refreshed.connect(lambda: refreshed.append(len(session.locks)))
            for _ in range(command.iterations):
                session.tick()
                while refreshed:
                    yield f"Locks refreshed: {refreshed.pop(0)} lock(s)"
                time.sleep(command.poll_seconds)
            session.wait_for_tasks()
            while refreshed:
                yield f"Locks refreshed: {refreshed.pop(0)} lock(s)"


@contextmanager
def _session(
    settings: Settings,
    repo_path: Path,
) -> Iterator[LfsLockSession]:
    settings.validate()
    session = LfsLockSession(settings=settings)
    session.init(RepositoryDiscovery(repo_path))
    session.wait_for_tasks()
    try:
        yield session
    finally:
        session.shutdown()


def _format_lock(record: LockRecord) -> str:
    state = " (pending)" if record.is_pending else ""
    return f"{record.id or '-':>10}  {record.user:<20}  {record.path}{state}"


def _mutation_outcome(session: LfsLockSession, path: str, *, locked: bool) -> str:
    record = session.store.find_by_path(path)
    if locked:
        if record is not None and record.id and not record.is_pending:
            return f"Locked: {path} (id={record.id})"
        return f"Lock failed: {path}"
    if record is None:
        return f"Unlocked: {path}"
    return f"Unlock failed: {path}"
