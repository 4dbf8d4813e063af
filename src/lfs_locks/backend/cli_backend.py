"""Subprocess-based runner for the git-lfs command line tool."""

from __future__ import annotations

import subprocess
import threading
import time
from typing import IO

from lfs_locks.backend.base import CommandRunRequest
from lfs_locks.errors import CommandStartError
from lfs_locks.models import ProcessResult

_POLL_INTERVAL_SECONDS = 0.05
_READER_JOIN_SECONDS = 2.0


class SubprocessCommandRunner:
    """Spawn one process per request and capture its output line by line."""

    def run(self, request: CommandRunRequest) -> ProcessResult:
        run_args = [request.executable, *request.args]
        try:
            process = subprocess.Popen(  # noqa: S603
                run_args,
                cwd=str(request.working_directory) if request.working_directory else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as error:
            raise CommandStartError(f"Command not found: {request.executable}") from error
        except OSError as error:
            raise CommandStartError(f"Command failed to start: {error}") from error

        result = ProcessResult()
        readers = [
            _start_reader(process.stdout, result.out_lines, name="lfs-stdout"),
            _start_reader(process.stderr, result.error_lines, name="lfs-stderr"),
        ]
        timed_out = _wait_with_timeout(process, timeout_ms=request.timeout_ms)
        for reader in readers:
            reader.join(timeout=_READER_JOIN_SECONDS)

        if timed_out:
            result.timed_out = True
            result.error_lines.append(
                f"Process timed out after {request.timeout_ms} ms and was terminated",
            )
        return result


def _start_reader(stream: IO[str] | None, sink: list[str], *, name: str) -> threading.Thread:
    thread = threading.Thread(target=_pump_lines, args=(stream, sink), daemon=True, name=name)
    thread.start()
    return thread


def _pump_lines(stream: IO[str] | None, sink: list[str]) -> None:
    if stream is None:
        return
    with stream:
        for raw_line in stream:
            line = raw_line.rstrip("\r\n")
            if line:
                sink.append(line)


def _wait_with_timeout(process: subprocess.Popen[str], *, timeout_ms: int) -> bool:
    start_monotonic = time.monotonic()
    timeout_seconds = max(0, timeout_ms) / 1000

    while True:
        if process.poll() is not None:
            return False

        if time.monotonic() - start_monotonic >= timeout_seconds:
            _terminate_process(process)
            return True

        time.sleep(_POLL_INTERVAL_SECONDS)


def _terminate_process(process: subprocess.Popen[str]) -> None:
    # The process may exit on its own between poll() and terminate().
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        try:
            process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            return
