"""Session object wiring host lifecycle signals to the lock coordinator."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from lfs_locks.assets import AssetIdResolver, MetaFileAssetIdResolver
from lfs_locks.backend import CommandRunner, SubprocessCommandRunner
from lfs_locks.config import Settings
from lfs_locks.coordinator import TaskCoordinator
from lfs_locks.dispatch import MainThreadDispatcher, Signal
from lfs_locks.executor import LfsCommandExecutor
from lfs_locks.models import LockRecord, LockSortType
from lfs_locks.persistence import JsonSettingsStore, SettingsStore
from lfs_locks.repository import RepositoryDiscovery
from lfs_locks.sorting import PathStyle
from lfs_locks.store import LockStore
from lfs_locks.tool import LfsTool, locate_lfs_tool

logger = logging.getLogger(__name__)


class HostEvents:
    """Lifecycle notifications raised by the host on its logical thread."""

    def __init__(self) -> None:
        self.update = Signal("update")
        self.focus_changed = Signal("focus_changed")
        self.quitting = Signal("quitting")
        self.before_reload = Signal("before_reload")
        self.play_mode_changed = Signal("play_mode_changed")


class LfsLockSession:
    """Public face of the lock cache for one repository.

    Call :meth:`init` once the host is ready and :meth:`shutdown` before it goes
    away. Everything here must be called from the host's logical thread.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        settings_store: SettingsStore | None = None,
        asset_resolver: AssetIdResolver | None = None,
        dispatcher: MainThreadDispatcher | None = None,
        path_style: PathStyle | None = None,
        clock: Callable[[], float] = time.monotonic,
        tool_locator: Callable[[str | None], LfsTool] = locate_lfs_tool,
    ) -> None:
        self.settings = settings or Settings()
        self.dispatcher = dispatcher or MainThreadDispatcher()
        self._settings_store = settings_store
        self._asset_resolver = asset_resolver
        self._clock = clock
        self._tool_locator = tool_locator
        self._tool = LfsTool()
        self._username = self.settings.username
        self._last_update_time = 0.0
        self._handlers: list[tuple[Signal, Callable[..., Any]]] = []

        self.discovery: RepositoryDiscovery | None = None
        self.store = LockStore(path_style=path_style)
        self.executor = LfsCommandExecutor(
            runner=runner or SubprocessCommandRunner(),
            executable="",
            working_directory=None,
            lock_cache_path=None,
            timeout_ms=self.settings.process_timeout_ms,
        )
        self.coordinator = TaskCoordinator(
            executor=self.executor,
            store=self.store,
            dispatcher=self.dispatcher,
            username=lambda: self._username,
            resolve_asset_id=self._resolve_asset_id,
            on_locks_changed=self.save,
        )
        self.coordinator.auto_refresh = self.settings.auto_refresh

    # -- read-only state -------------------------------------------------------

    @property
    def username(self) -> str:
        return self._username

    @username.setter
    def username(self, value: str) -> None:
        self._username = value
        self.save()

    @property
    def has_username(self) -> bool:
        return bool(self._username.strip())

    @property
    def is_git_repo(self) -> bool:
        return self.discovery is not None and self.discovery.is_git_repo

    @property
    def branch(self) -> str:
        return self.discovery.branch if self.discovery is not None else ""

    @property
    def has_lfs_process(self) -> bool:
        return self._tool.exists

    @property
    def has_lfs_in_repo(self) -> bool:
        return self.discovery is not None and self.discovery.has_lfs_config

    @property
    def locks(self) -> tuple[LockRecord, ...]:
        return self.store.records

    @property
    def lock_sort_type(self) -> LockSortType:
        return self.store.sort_type

    @property
    def is_lock_sort_ascending(self) -> bool:
        return self.store.ascending

    @property
    def are_locks_refreshing(self) -> bool:
        return self.coordinator.are_locks_refreshing

    @property
    def auto_refresh(self) -> bool:
        return self.coordinator.auto_refresh

    @auto_refresh.setter
    def auto_refresh(self, value: bool) -> None:
        self.coordinator.auto_refresh = value
        self.save()

    @property
    def locks_refreshed(self) -> Signal:
        return self.coordinator.locks_refreshed

    @property
    def lock_status_changed(self) -> Signal:
        return self.coordinator.lock_status_changed

    # -- lifecycle -------------------------------------------------------------

    def init(self, discovery: RepositoryDiscovery, events: HostEvents | None = None) -> None:
        """Discover the repository, restore persisted state, and start refreshing."""

        self.discovery = discovery
        self._load_repo_info()
        self._load_persisted()
        self._cache_lfs_process()
        self._last_update_time = self._clock()

        if events is not None:
            self._subscribe(events)

        # must follow _subscribe: teardown signals wait on this refresh
        self.refresh_if_allowed()

    def shutdown(self) -> None:
        """Detach from the host and finish every in-flight command."""

        for signal, handler in self._handlers:
            signal.disconnect(handler)
        self._handlers.clear()
        self.wait_for_tasks()
        self.save()

    def tick(self) -> None:
        """Periodic host update: apply finished results, refresh every interval."""

        self.dispatcher.pump()

        now = self._clock()
        if now - self._last_update_time < self.settings.update_interval_seconds:
            return
        self._last_update_time = now

        if self.discovery is not None:
            self.discovery.load_branch()
        self.refresh_if_allowed()

    def on_focus_changed(self, focused: bool) -> None:
        if not focused:
            return
        self._load_repo_info()
        self._cache_lfs_process()
        self.refresh_if_allowed()

    def on_quitting(self) -> None:
        self.wait_for_tasks()

    def on_before_reload(self) -> None:
        self.wait_for_tasks()

    def on_play_mode_changed(self, state: object = None) -> None:  # noqa: ARG002
        self.wait_for_tasks()

    def wait_for_tasks(self) -> None:
        self.coordinator.wait_for_tasks()

    # -- lock operations -------------------------------------------------------

    def lock(self, path: str) -> bool:
        if not self._can_run_commands("lock"):
            return False
        return self.coordinator.lock(path)

    def unlock(self, lock_id: str) -> bool:
        if not self._can_run_commands("unlock"):
            return False
        return self.coordinator.unlock(lock_id, force=False)

    def force_unlock(self, lock_id: str) -> bool:
        if not self._can_run_commands("unlock"):
            return False
        return self.coordinator.unlock(lock_id, force=True)

    def refresh_locks(self) -> bool:
        """Refresh regardless of the auto-refresh gate."""

        if not self._can_run_commands("locks"):
            return False
        self.coordinator.refresh()
        return True

    def refresh_if_allowed(self) -> bool:
        if not self.is_git_repo or not self.has_lfs_process:
            return False
        return self.coordinator.refresh_if_allowed()

    def sort_locks(self, sort_type: LockSortType, ascending: bool) -> None:
        self.store.sort(sort_type, ascending)
        self.save()

    # -- persistence -----------------------------------------------------------

    def save(self) -> None:
        store = self._resolve_settings_store()
        if store is None:
            return
        blob = self.store.to_blob()
        blob.update(
            {
                "username": self._username,
                "lfs_process_name": self._tool.executable,
                "lfs_process_exists": self._tool.exists,
                "auto_refresh": self.coordinator.auto_refresh,
            },
        )
        store.save(blob)

    def _load_persisted(self) -> None:
        store = self._resolve_settings_store()
        if store is None:
            return
        blob = store.load()
        if blob is None:
            return
        try:
            self.store.load_blob(blob)
        except (TypeError, ValueError) as error:
            logger.warning("Ignoring persisted lock list: %s", error)
        if not self._username:
            self._username = str(blob.get("username", ""))
        self.coordinator.auto_refresh = bool(blob.get("auto_refresh", self.coordinator.auto_refresh))
        saved_executable = str(blob.get("lfs_process_name", ""))
        if saved_executable and Path(saved_executable).is_file():
            self._tool = LfsTool(executable=saved_executable)

    def _resolve_settings_store(self) -> SettingsStore | None:
        if self._settings_store is not None:
            return self._settings_store
        root = self.discovery.context.root if self.discovery and self.discovery.context else None
        path = self.settings.resolve_settings_path(root)
        if path is None:
            return None
        self._settings_store = JsonSettingsStore(path)
        return self._settings_store

    # -- helpers ---------------------------------------------------------------

    def _load_repo_info(self) -> None:
        if self.discovery is None:
            return
        context = self.discovery.load()
        self.executor.working_directory = context.root if context is not None else None
        self.executor.lock_cache_path = context.lock_cache_path if context is not None else None

    def _cache_lfs_process(self) -> None:
        if (
            self.settings.lfs_executable is None
            and self._tool.exists
            and Path(self._tool.executable).is_file()
        ):
            self.executor.executable = self._tool.executable
            return
        self._tool = self._tool_locator(self.settings.lfs_executable)
        self.executor.executable = self._tool.executable
        if not self._tool.exists:
            logger.warning("git-lfs executable not found; lock commands are disabled")

    def _resolve_asset_id(self, path: str) -> str:
        if self._asset_resolver is not None:
            return self._asset_resolver.resolve(path)
        if self.discovery is None or self.discovery.context is None:
            return ""
        return MetaFileAssetIdResolver(self.discovery.context.root).resolve(path)

    def _can_run_commands(self, command: str) -> bool:
        if not self.is_git_repo:
            logger.warning("git-lfs %s skipped: not inside a git repository", command)
            return False
        if not self.has_lfs_process:
            logger.warning("git-lfs %s skipped: git-lfs executable not found", command)
            return False
        return True

    def _subscribe(self, events: HostEvents) -> None:
        for signal, handler in (
            (events.update, self.tick),
            (events.play_mode_changed, self.on_play_mode_changed),
            (events.quitting, self.on_quitting),
            (events.before_reload, self.on_before_reload),
            (events.focus_changed, self.on_focus_changed),
        ):
            signal.connect(handler)
            self._handlers.append((signal, handler))
