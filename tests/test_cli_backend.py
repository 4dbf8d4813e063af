from __future__ import annotations

import sys
from pathlib import Path

import allure
import pytest

from lfs_locks.backend.base import CommandRunRequest
from lfs_locks.backend.cli_backend import SubprocessCommandRunner
from lfs_locks.errors import CommandStartError

pytestmark = [
    allure.epic("Lock Cache"),
    allure.feature("Command Execution"),
]


def _request(code: str, tmp_path: Path, timeout_ms: int = 10_000) -> CommandRunRequest:
    return CommandRunRequest(
        executable=sys.executable,
        args=("-c", code),
        working_directory=tmp_path,
        timeout_ms=timeout_ms,
    )


def test_runner_captures_stdout_and_stderr_lines(tmp_path: Path) -> None:
    code = (
        "import sys\n"
        "print('first')\n"
        "print()\n"
        "print('second')\n"
        "print('oops', file=sys.stderr)\n"
    )

    result = SubprocessCommandRunner().run(_request(code, tmp_path))

    assert result.out_lines == ["first", "second"]
    assert result.error_lines == ["oops"]
    assert result.timed_out is False


def test_runner_uses_working_directory(tmp_path: Path) -> None:
    result = SubprocessCommandRunner().run(_request("import os; print(os.getcwd())", tmp_path))

    assert Path(result.out_lines[0]).resolve() == tmp_path.resolve()


def test_runner_kills_process_after_timeout(tmp_path: Path) -> None:
    code = "import time\nprint('started', flush=True)\ntime.sleep(30)\n"

    result = SubprocessCommandRunner().run(_request(code, tmp_path, timeout_ms=500))

    assert result.timed_out is True
    assert result.out_lines == ["started"]
    assert len(result.error_lines) == 1
    assert "timed out after 500 ms" in result.error_lines[0]


def test_runner_reports_missing_executable(tmp_path: Path) -> None:
    request = CommandRunRequest(
        executable=str(tmp_path / "no-such-git-lfs"),
        args=("locks",),
        working_directory=tmp_path,
    )

    with pytest.raises(CommandStartError, match="Command not found"):
        SubprocessCommandRunner().run(request)
