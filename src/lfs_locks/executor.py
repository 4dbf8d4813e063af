"""git-lfs command execution with output filtering and lock cache self-healing."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence
from pathlib import Path

from lfs_locks.backend.base import DEFAULT_TIMEOUT_MS, CommandRunner, CommandRunRequest
from lfs_locks.errors import CommandStartError
from lfs_locks.models import ProcessResult

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2

# Older git-lfs builds print these on every call even when the call succeeds.
_IGNORABLE_ERROR_PATTERNS: tuple[str, ...] = ("operation not supported",)


class LfsCommandExecutor:
    """Run git-lfs subcommands in the repository root.

    Error lines that only carry known noise are dropped when the command still
    produced output. When the remaining errors point at the on-disk lock cache,
    the cache file is deleted and the command is run once more.
    """

    def __init__(
        self,
        *,
        runner: CommandRunner,
        executable: str,
        working_directory: Path | None,
        lock_cache_path: Path | None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self.runner = runner
        self.executable = executable
        self.working_directory = working_directory
        self.lock_cache_path = lock_cache_path
        self.timeout_ms = timeout_ms

    def execute(self, args: Sequence[str]) -> ProcessResult:
        command_text = shlex.join(args)
        request = CommandRunRequest(
            executable=self.executable,
            args=tuple(args),
            working_directory=self.working_directory,
            timeout_ms=self.timeout_ms,
        )

        result = self._run_attempt(request, command_text=command_text)
        cache_path = self.lock_cache_path
        if cache_path is None or not _mentions_file(result.error_lines, cache_path):
            _report_errors(command_text, result.error_lines)
            return result

        try:
            cache_path.unlink(missing_ok=True)
        except OSError as error:
            result.error_lines.append(f"Failed to delete lock cache {cache_path}: {error}")
            _report_errors(command_text, result.error_lines)
            return result

        _report_errors(command_text, result.error_lines)
        logger.warning(
            "Deleted lock cache %s after git-lfs %s reported it; retrying once",
            cache_path,
            command_text,
        )
        retry = self._run_attempt(request, command_text=command_text)
        if not retry.error_lines:
            return retry

        _report_errors(command_text, retry.error_lines)
        return ProcessResult(
            out_lines=retry.out_lines,
            error_lines=[*result.error_lines, *retry.error_lines],
            timed_out=retry.timed_out,
        )

    def _run_attempt(self, request: CommandRunRequest, *, command_text: str) -> ProcessResult:
        try:
            result = self.runner.run(request)
        except CommandStartError as error:
            logger.error(
                "git-lfs %s could not start (%s): %s",
                command_text,
                type(error).__name__,
                error,
            )
            raise
        result.error_lines = filter_ignorable_errors(result)
        return result


def filter_ignorable_errors(result: ProcessResult) -> list[str]:
    """Drop known-noise error lines, but only when stdout has something to show."""

    if not result.out_lines:
        return list(result.error_lines)
    return [line for line in result.error_lines if not _is_ignorable(line)]


def _is_ignorable(line: str) -> bool:
    lowered = line.lower()
    return any(pattern in lowered for pattern in _IGNORABLE_ERROR_PATTERNS)


def _mentions_file(error_lines: list[str], path: Path) -> bool:
    return any(path.name in line for line in error_lines)


def _report_errors(command_text: str, error_lines: list[str]) -> None:
    for line in error_lines:
        logger.error("git-lfs %s: %s", command_text, line)
