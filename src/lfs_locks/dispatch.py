"""Logical-thread dispatch and observer signals."""

from __future__ import annotations

import queue
from collections.abc import Callable
from typing import Any


class MainThreadDispatcher:
    """Queue of callbacks drained by the single logical thread.

    Background threads only ever ``post``; the host calls ``pump`` from its
    own event loop, which is the only place queued callbacks run.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[tuple[Callable[..., Any], tuple[Any, ...]]] = queue.Queue()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.put((callback, args))

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def pump(self, max_items: int | None = None) -> int:
        """Run queued callbacks in arrival order; returns how many ran."""

        processed = 0
        while max_items is None or processed < max_items:
            try:
                callback, args = self._queue.get_nowait()
            except queue.Empty:
                break
            callback(*args)
            processed += 1
        return processed


class Signal:
    """Minimal observer list; handlers run synchronously on ``emit``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> None:
        self._handlers.append(handler)

    def disconnect(self, handler: Callable[..., Any]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)

    def __len__(self) -> int:
        return len(self._handlers)
