"""Shared test fixtures."""

from __future__ import annotations

import os
import stat
import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from lfs_locks.backend import fake_lfs
from lfs_locks.backend.base import CommandRunRequest
from lfs_locks.coordinator import TaskCoordinator
from lfs_locks.dispatch import MainThreadDispatcher
from lfs_locks.executor import LfsCommandExecutor
from lfs_locks.models import ProcessResult
from lfs_locks.sorting import PathStyle
from lfs_locks.store import LockStore

FAKE_LFS_SCRIPT = Path(fake_lfs.__file__).resolve()


class ScriptedRunner:
    """CommandRunner double keyed by git-lfs command.

    A key is either the subcommand (``"lock"``) or the full command text
    (``"lock Assets/a.png"``); the full text wins. Each key replays its queued
    results in order and repeats the last one. ``gate`` holds every matching
    run until the event is set.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.gates: dict[str, threading.Event] = {}
        self.failures: dict[str, Exception] = {}
        self._responses: dict[str, list[ProcessResult]] = {}
        self._lock = threading.Lock()

    def respond(self, command: str, *results: ProcessResult) -> None:
        self._responses[command] = list(results)

    def fail(self, command: str, error: Exception) -> None:
        self.failures[command] = error

    def gate(self, command: str) -> threading.Event:
        event = threading.Event()
        self.gates[command] = event
        return event

    def count(self, command: str) -> int:
        with self._lock:
            return sum(1 for args in self.calls if args[0] == command)

    def run(self, request: CommandRunRequest) -> ProcessResult:
        keys = (" ".join(request.args), request.args[0])
        with self._lock:
            self.calls.append(request.args)
        gate = _first_match(self.gates, keys)
        if gate is not None:
            gate.wait(timeout=10)
        failure = _first_match(self.failures, keys)
        if failure is not None:
            raise failure
        with self._lock:
            queued = _first_match(self._responses, keys) or []
            scripted = (queued.pop(0) if len(queued) > 1 else queued[0]) if queued else None
        if scripted is None:
            return ProcessResult()
        return ProcessResult(
            out_lines=list(scripted.out_lines),
            error_lines=list(scripted.error_lines),
            timed_out=scripted.timed_out,
        )


def _first_match(table: dict, keys: tuple[str, ...]):  # noqa: ANN202
    for key in keys:
        if key in table:
            return table[key]
    return None


def _pump_until(
    dispatcher: MainThreadDispatcher,
    condition: Callable[[], bool],
    timeout: float = 10.0,
) -> None:
    deadline = time.monotonic() + timeout
    while True:
        dispatcher.pump()
        if condition():
            return
        if time.monotonic() >= deadline:
            raise AssertionError("condition not reached while pumping")
        time.sleep(0.01)


@pytest.fixture()
def pump_until() -> Callable[..., None]:
    """Pump the logical thread like a host event loop until a condition holds."""

    return _pump_until


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    """Minimal on-disk git repository with LFS configured."""

    root = tmp_path / "repo"
    git_dir = root / ".git"
    (git_dir / "lfs").mkdir(parents=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n", "utf-8")
    (git_dir / "config").write_text(
        '[core]\n\tbare = false\n[lfs]\n\tlocksverify = true\n',
        "utf-8",
    )
    return root


@pytest.fixture()
def runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture()
def coordinator(runner: ScriptedRunner, git_repo: Path) -> TaskCoordinator:
    executor = LfsCommandExecutor(
        runner=runner,
        executable="git-lfs",
        working_directory=git_repo,
        lock_cache_path=git_repo / ".git" / "lfs" / "lockcache.db",
    )
    return TaskCoordinator(
        executor=executor,
        store=LockStore(path_style=PathStyle.POSIX),
        dispatcher=MainThreadDispatcher(),
        username=lambda: "mikerochip",
    )


@pytest.fixture()
def fake_lfs_executable(tmp_path: Path) -> Path:
    """Shell launcher that runs the bundled fake git-lfs module."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    if os.name == "nt":
        launcher = bin_dir / "git-lfs.cmd"
        launcher.write_text(
            f'@echo off\r\n"{sys.executable}" "{FAKE_LFS_SCRIPT}" %*\r\n',
            "utf-8",
        )
        return launcher

    launcher = bin_dir / "git-lfs"
    launcher.write_text(
        f'#!/usr/bin/env sh\nexec "{sys.executable}" "{FAKE_LFS_SCRIPT}" "$@"\n',
        "utf-8",
    )
    launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR)
    return launcher
