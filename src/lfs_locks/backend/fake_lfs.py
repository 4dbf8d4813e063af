"""Local stand-in for the git-lfs locking commands, used by integration tests.

Locks live in ``.git/lfs/fake_locks.json`` under the working directory. A lock
cache file containing ``corrupt`` makes every command fail the way a damaged
cache does with the real tool.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path

_STATE_FILE = Path(".git") / "lfs" / "fake_locks.json"
_LOCK_CACHE_FILE = Path(".git") / "lfs" / "lockcache.db"


def main(argv: list[str] | None = None) -> int:
    """Run one fake git-lfs command."""

    parser = argparse.ArgumentParser(prog="git-lfs")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("locks")
    lock_parser = commands.add_parser("lock")
    lock_parser.add_argument("path")
    unlock_parser = commands.add_parser("unlock")
    unlock_parser.add_argument("--id", required=True)
    unlock_parser.add_argument("--force", action="store_true")
    commands.add_parser("version")
    args = parser.parse_args(argv)

    delay = float(os.getenv("FAKE_LFS_SLEEP_SECONDS", "0"))
    if delay > 0:
        time.sleep(delay)

    if os.getenv("FAKE_LFS_NOISE") == "1":
        print("fake-lfs: operation not supported", file=sys.stderr)

    if args.command == "version":
        print("git-lfs/3.4.0 (fake)")
        return 0

    if _LOCK_CACHE_FILE.exists() and "corrupt" in _LOCK_CACHE_FILE.read_text("utf-8"):
        print(
            f"Error: unable to read {_LOCK_CACHE_FILE.as_posix()}: database disk image is malformed",
            file=sys.stderr,
        )
        return 2

    state = _load_state()
    user = os.getenv("FAKE_LFS_USER", "tester")

    if args.command == "locks":
        for lock in state["locks"]:
            print(f"{lock['path']}\t{lock['user']}\tID:{lock['id']}")
        return 0

    if args.command == "lock":
        if any(lock["path"] == args.path for lock in state["locks"]):
            print(f"Lock exists: {args.path}", file=sys.stderr)
            return 2
        state["next_id"] += 1
        state["locks"].append({"path": args.path, "user": user, "id": str(state["next_id"])})
        _save_state(state)
        print(f"Locked {args.path}")
        return 0

    remaining = [lock for lock in state["locks"] if lock["id"] != args.id]
    if len(remaining) == len(state["locks"]):
        print(f"Unable to find lock for id {args.id}", file=sys.stderr)
        return 2
    owner = next(lock for lock in state["locks"] if lock["id"] == args.id)
    if owner["user"] != user and not args.force:
        print(f"Lock {args.id} is owned by {owner['user']}; use --force", file=sys.stderr)
        return 2
    state["locks"] = remaining
    _save_state(state)
    print(f"Unlocked {owner['path']}")
    return 0


def _load_state() -> dict:
    if not _STATE_FILE.exists():
        return {"next_id": 1000, "locks": []}
    return json.loads(_STATE_FILE.read_text("utf-8"))


def _save_state(state: dict) -> None:
    _STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
    _STATE_FILE.write_text(json.dumps(state, indent=2, sort_keys=True), "utf-8")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
