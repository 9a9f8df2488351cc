"""Fan-out/fan-in helper for independent per-repository work.

Work units are submitted as soon as they are known and run on a thread pool;
``join`` is the single barrier that waits for every unit. A failing unit is
recorded in its outcome and never cancels or interrupts its siblings.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TaskOutcome(Generic[T]):
    """Result of one unit of work: either ``value`` or ``error`` is meaningful."""

    key: Hashable
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FanOut(Generic[T]):
    """Submit independent units of work, then block until all complete.

    Usage::

        with FanOut(max_workers=8) as fan:
            for repo in repos:
                fan.submit(repo.path, capture, repo)
            outcomes = fan.join()
    """

    def __init__(self, max_workers: int | None = None) -> None:
        """Initialize the pool.

        Args:
            max_workers: Thread cap; ``None`` uses the executor default
        """
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="repovend")
        self._pending: list[tuple[Hashable, Future[T]]] = []

    def submit(self, key: Hashable, fn: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._pending.append((key, self._executor.submit(fn, *args, **kwargs)))

    def join(self) -> list[TaskOutcome[T]]:
        """Wait for every submitted unit; outcomes keep submission order."""
        outcomes: list[TaskOutcome[T]] = []
        for key, future in self._pending:
            try:
                outcomes.append(TaskOutcome(key=key, value=future.result()))
            except Exception as exc:
                logger.debug("Task %s failed: %s", key, exc)
                outcomes.append(TaskOutcome(key=key, error=exc))
        self._pending = []
        return outcomes

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> FanOut[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def fan_out(
    items: list[Any],
    fn: Callable[[Any], T],
    *,
    key: Callable[[Any], Hashable] = lambda item: item,
    max_workers: int | None = None,
) -> list[TaskOutcome[T]]:
    """Run ``fn`` over ``items`` concurrently and collect every outcome."""
    with FanOut(max_workers=max_workers) as fan:
        for item in items:
            fan.submit(key(item), fn, item)
        return fan.join()


__all__ = ["FanOut", "TaskOutcome", "fan_out"]
