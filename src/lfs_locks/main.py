"""CLI entrypoint for lfs-locks."""

import logging
from pathlib import Path

import rich_click as click

from lfs_locks import __version__
from lfs_locks.controllers import (
    LocksCliController,
    LocksListCommand,
    LocksLockCommand,
    LocksStatusCommand,
    LocksUnlockCommand,
    LocksWatchCommand,
)
from lfs_locks.models import LockSortType

click.rich_click.USE_MARKDOWN = True
LOCKS_CONTROLLER = LocksCliController()

_REPO_OPTION = click.option(
    "--repo",
    "repo_path",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path(),
    show_default=True,
    help="Directory inside the git repository.",
)


@click.group()
@click.version_option(version=__version__, prog_name="lfs-locks")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def lfs_locks(verbose: bool) -> None:
    """Git LFS lock cache CLI."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lfs_locks.command("status")
@_REPO_OPTION
def status(repo_path: Path) -> None:
    """Show repository, branch and git-lfs availability."""

    _emit_lines(LOCKS_CONTROLLER.status(LocksStatusCommand(repo_path=repo_path)))


@lfs_locks.command("refresh")
@_REPO_OPTION
def refresh(repo_path: Path) -> None:
    """List locks now, bypassing the auto-refresh gate."""

    lines = LOCKS_CONTROLLER.refresh(LocksStatusCommand(repo_path=repo_path))
    _emit_lines(lines)
    if lines[0].startswith("Cannot"):
        raise click.ClickException("git-lfs is not available for this directory.")


@lfs_locks.command("list")
@_REPO_OPTION
@click.option(
    "--sort",
    "sort_type",
    type=click.Choice([item.value for item in LockSortType]),
    default=None,
    help="Sort column; defaults to the persisted one.",
)
@click.option("--descending", is_flag=True, help="Reverse the sort direction.")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum rows to print (LFS_LOCKS_MAX_LOCK_ITEMS by default).",
)
def list_locks(
    repo_path: Path,
    sort_type: str | None,
    descending: bool,
    limit: int | None,
) -> None:
    """Refresh and print the lock list."""

    _emit_lines(
        LOCKS_CONTROLLER.list_locks(
            LocksListCommand(
                repo_path=repo_path,
                sort_type=LockSortType(sort_type) if sort_type else None,
                descending=descending,
                limit=limit,
            ),
        ),
    )


@lfs_locks.command("lock")
@_REPO_OPTION
@click.argument("paths", nargs=-1, required=True)
def lock(repo_path: Path, paths: tuple[str, ...]) -> None:
    """Lock one or more repo-relative paths."""

    lines = LOCKS_CONTROLLER.lock(LocksLockCommand(repo_path=repo_path, paths=paths))
    _emit_lines(lines)
    if any(line.startswith("Lock failed") for line in lines):
        raise click.ClickException("Some locks could not be acquired.")


@lfs_locks.command("unlock")
@_REPO_OPTION
@click.argument("targets", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Release locks owned by other users.")
def unlock(repo_path: Path, targets: tuple[str, ...], force: bool) -> None:
    """Unlock by lock id or repo-relative path."""

    lines = LOCKS_CONTROLLER.unlock(
        LocksUnlockCommand(repo_path=repo_path, targets=targets, force=force),
    )
    _emit_lines(lines)
    if any(line.startswith(("Unlock failed", "Not locked")) for line in lines):
        raise click.ClickException("Some locks could not be released.")


@lfs_locks.command("watch")
@_REPO_OPTION
@click.option(
    "--iterations",
    type=click.IntRange(min=1),
    default=60,
    show_default=True,
    help="Number of update ticks before exiting.",
)
@click.option(
    "--poll-seconds",
    type=click.FloatRange(min=0),
    default=1.0,
    show_default=True,
    help="Delay between ticks.",
)
def watch(repo_path: Path, iterations: int, poll_seconds: float) -> None:
    """Keep the lock list fresh the way an editor host would."""

    for line in LOCKS_CONTROLLER.watch(
        LocksWatchCommand(repo_path=repo_path, iterations=iterations, poll_seconds=poll_seconds),
    ):
        click.echo(line)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    lfs_locks()
