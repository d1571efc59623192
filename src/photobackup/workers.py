"""Bounded worker pool and progress counting shared by every parallel stage."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


class ProgressCounter:
    """Thread-safe completed-count reported to a single observer.

    The observer receives ``(completed, total)`` after every increment. Values
    are strictly increasing and the last call reports ``completed == total``
    once every item has been processed.
    """

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None) -> None:
        self.total = total
        self._callback = callback
        self._completed = 0
        self._lock = threading.Lock()

    @property
    def completed(self) -> int:
        """Return the number of finished items."""
        with self._lock:
            return self._completed

    def advance(self) -> int:
        """Record one finished item and notify the observer."""
        with self._lock:
            self._completed += 1
            completed = self._completed
            if self._callback is not None:
                self._callback(completed, self.total)
        return completed


def run_pool(
    items: Sequence[T],
    worker: Callable[[T], R],
    *,
    threads: int,
    progress: Optional[ProgressCounter] = None,
) -> list[R]:
    """Apply ``worker`` to every item using at most ``threads`` threads.

    With ``threads == 1`` items run sequentially in the calling thread, in
    order. Otherwise results are returned in completion order. Exceptions
    raised by ``worker`` propagate to the caller; workers are expected to
    handle their own recoverable per-entry errors.

    Args:
        items: Work items to process.
        worker: Callable invoked once per item.
        threads: Maximum number of concurrent workers.
        progress: Optional counter advanced after each item.

    Returns:
        list[R]: Worker results.
    """
    results: list[R] = []
    if threads <= 1:
        for item in items:
            results.append(worker(item))
            if progress is not None:
                progress.advance()
        return results

    with ThreadPoolExecutor(max_workers=threads) as executor:
        futures = [executor.submit(worker, item) for item in items]
        for future in as_completed(futures):
            results.append(future.result())
            if progress is not None:
                progress.advance()
    return results


__all__ = ["ProgressCallback", "ProgressCounter", "run_pool"]
