"""Background dispatch of git-lfs commands and reconciliation of their results.

Two kinds of background work exist: mutating commands (``lock``/``unlock``)
and ``locks`` refreshes. Each runs on its own thread and is tracked under an
integer handle. Results are never applied from those threads; they are posted
to the :class:`MainThreadDispatcher` and merged into the :class:`LockStore`
when the logical thread pumps it.

A mutation chains a refresh that only lists locks when the mutation succeeded
and no other mutation is still in flight, so a burst of N mutations ends in a
single trailing ``locks`` call.
"""

from __future__ import annotations

import itertools
import logging
import shlex
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from concurrent.futures import wait as wait_futures

from lfs_locks.dispatch import MainThreadDispatcher, Signal
from lfs_locks.errors import CommandStartError
from lfs_locks.executor import LfsCommandExecutor
from lfs_locks.models import LockRecord, ProcessResult, ResultClass
from lfs_locks.parser import parse_lock_lines
from lfs_locks.store import LockStore

logger = logging.getLogger(__name__)

LIST_LOCKS_ARGS: tuple[str, ...] = ("locks",)

# Result of a chained refresh that decided not to list locks.
NO_RESULT = None


class TaskCoordinator:
    """Owns the in-flight task maps and the only write path into the store."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        executor: LfsCommandExecutor,
        store: LockStore,
        dispatcher: MainThreadDispatcher,
        username: Callable[[], str] = lambda: "",
        resolve_asset_id: Callable[[str], str] = lambda _path: "",
        on_locks_changed: Callable[[], None] | None = None,
    ) -> None:
        self.executor = executor
        self.store = store
        self.dispatcher = dispatcher
        self.username = username
        self.resolve_asset_id = resolve_asset_id
        self.on_locks_changed = on_locks_changed or (lambda: None)
        self.auto_refresh = True
        self.last_locks_result_errored = False

        self.locks_refreshed = Signal("locks_refreshed")
        self.lock_status_changed = Signal("lock_status_changed")

        self._handles = itertools.count(1)
        self._tasks_lock = threading.Lock()
        self._mutating_tasks: dict[int, Future[ProcessResult]] = {}
        self._refresh_tasks: dict[int, Future[ProcessResult | None]] = {}

    # -- introspection ---------------------------------------------------------

    @property
    def are_locks_refreshing(self) -> bool:
        with self._tasks_lock:
            return bool(self._refresh_tasks)

    @property
    def mutating_task_count(self) -> int:
        with self._tasks_lock:
            return len(self._mutating_tasks)

    @property
    def refresh_task_count(self) -> int:
        with self._tasks_lock:
            return len(self._refresh_tasks)

    def can_auto_refresh(self) -> bool:
        """Periodic and focus refreshes back off while one is running or the tool keeps failing."""

        return (
            self.auto_refresh
            and not self.last_locks_result_errored
            and not self.are_locks_refreshing
        )

    # -- public operations -----------------------------------------------------

    def lock(self, path: str) -> bool:
        """Optimistically add a pending lock for ``path`` and dispatch ``git lfs lock``."""

        if self.store.find_by_path(path) is not None:
            return False

        record = LockRecord(
            path=path,
            user=self.username(),
            asset_guid=self.resolve_asset_id(path) or "",
            is_pending=True,
        )
        self.store.add(record)
        self.store.sort()
        self.lock_status_changed.emit(record)

        self._dispatch_mutation(("lock", path), record)
        return True

    def unlock(self, lock_id: str, *, force: bool = False) -> bool:
        """Mark the lock pending and dispatch ``git lfs unlock``."""

        record = self.store.find_by_id(lock_id)
        if record is None:
            logger.warning("No tracked lock with id %s", lock_id)
            return False
        if record.is_pending:
            return False

        record.is_pending = True
        self.lock_status_changed.emit(record)

        args = ["unlock", "--id", lock_id]
        if force:
            args.append("--force")
        self._dispatch_mutation(tuple(args), record)
        return True

    def refresh(self) -> int:
        """Dispatch ``git lfs locks`` unconditionally; returns the task handle."""

        handle = next(self._handles)
        future: Future[ProcessResult | None] = Future()
        with self._tasks_lock:
            self._refresh_tasks[handle] = future
        _start_background(
            f"lfs-locks-{handle}",
            future,
            self._refresh_done_callback(handle),
            self._run_command,
            LIST_LOCKS_ARGS,
        )
        return handle

    def refresh_if_allowed(self) -> bool:
        if not self.can_auto_refresh():
            return False
        self.refresh()
        return True

    def wait_for_tasks(self) -> None:
        """Block until every tracked task finished, then apply their results.

        Both maps are drained atomically, so tasks dispatched by the applied
        results are not waited for.
        """

        with self._tasks_lock:
            futures = [*self._mutating_tasks.values(), *self._refresh_tasks.values()]
            self._mutating_tasks.clear()
            self._refresh_tasks.clear()

        if futures:
            logger.debug("Waiting for %d git-lfs task(s)", len(futures))
            wait_futures(futures)
        self.dispatcher.pump()

    # -- background work -------------------------------------------------------

    def _dispatch_mutation(self, args: Sequence[str], record: LockRecord) -> None:
        handle = next(self._handles)
        mutation: Future[ProcessResult] = Future()
        with self._tasks_lock:
            self._mutating_tasks[handle] = mutation
        _start_background(f"lfs-mutation-{handle}", mutation, None, self._run_command, args)

        refresh_handle = next(self._handles)
        refresh: Future[ProcessResult | None] = Future()
        with self._tasks_lock:
            self._refresh_tasks[refresh_handle] = refresh
        _start_background(
            f"lfs-locks-{refresh_handle}",
            refresh,
            self._refresh_done_callback(refresh_handle),
            self._refresh_after_mutation,
            handle,
            mutation,
            record,
            args,
        )

    def _run_command(self, args: Sequence[str]) -> ProcessResult:
        try:
            return self.executor.execute(args)
        except CommandStartError as error:
            return ProcessResult(error_lines=[str(error)])

    def _refresh_after_mutation(
        self,
        handle: int,
        mutation: Future[ProcessResult],
        record: LockRecord,
        args: Sequence[str],
    ) -> ProcessResult | None:
        error = mutation.exception()
        with self._tasks_lock:
            self._mutating_tasks.pop(handle, None)
            others_in_flight = bool(self._mutating_tasks)

        if error is not None:
            # not a listing failure, so the auto-refresh gate stays open
            logger.error("git-lfs %s failed", shlex.join(args), exc_info=error)
            self.dispatcher.post(self._revert_mutation, record)
            return NO_RESULT

        result = mutation.result()
        # a failed mutation would make the listing stale or misleading
        if result.has_errors:
            self.dispatcher.post(self._revert_mutation, record)
            return NO_RESULT

        # only the last mutation of a burst needs to list locks
        if others_in_flight:
            return NO_RESULT

        return self._run_command(LIST_LOCKS_ARGS)

    def _refresh_done_callback(self, handle: int) -> _DoneCallback:
        def _post(result: ProcessResult | None, error: Exception | None) -> None:
            self.dispatcher.post(self._complete_refresh, handle, result, error)

        return _post

    # -- logical thread --------------------------------------------------------

    def _complete_refresh(
        self,
        handle: int,
        result: ProcessResult | None,
        error: Exception | None,
    ) -> None:
        with self._tasks_lock:
            self._refresh_tasks.pop(handle, None)

        if error is not None:
            logger.error("git-lfs locks refresh failed", exc_info=error)
            self.last_locks_result_errored = True
            return

        if result is NO_RESULT:
            return
        self._process_locks_result(result)

    def _process_locks_result(self, result: ProcessResult) -> None:
        records = parse_lock_lines(result.out_lines, self.resolve_asset_id)
        self.store.replace_all(records)
        self.last_locks_result_errored = result.classification is ResultClass.ERRORED_NO_DATA
        logger.debug(
            "Lock list rebuilt: locks=%d result=%s",
            len(records),
            result.classification.value,
        )
        self.on_locks_changed()
        self.locks_refreshed.emit()

    def _revert_mutation(self, record: LockRecord) -> None:
        current = self.store.find_by_path(record.path)
        if current is not record:
            # a refresh already replaced it
            return
        record.is_pending = False
        if not record.id:
            self.store.remove(record)
        self.lock_status_changed.emit(record)


_DoneCallback = Callable[[ProcessResult | None, Exception | None], None]


def _start_background(
    name: str,
    future: Future,
    on_done: _DoneCallback | None,
    target: Callable[..., ProcessResult | None],
    *args: object,
) -> None:
    """Run ``target`` on a new thread and resolve ``future`` with its outcome.

    ``on_done`` runs before the future resolves, so anything it posts to the
    logical thread is queued by the time a waiter wakes up.
    """

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = target(*args)
        except Exception as error:  # noqa: BLE001
            if on_done is not None:
                on_done(None, error)
            future.set_exception(error)
            return
        if on_done is not None:
            on_done(result, None)
        future.set_result(result)

    threading.Thread(target=_run, name=name).start()
