"""Single-flight deduplication of identical provider requests.

Concurrent callers asking for the same key share one in-flight Future, so a
burst of readers for the same box score costs one quota slot. A caller that
stops waiting does not cancel the call; its quota is already spent.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from ..logging import logger

T = TypeVar("T")


@dataclass
class _Pending:
    future: Future
    started_at: float


class RequestDeduplicator:
    def __init__(
        self,
        stale_after_seconds: float = 30.0,
        max_workers: int = 4,
        executor: ThreadPoolExecutor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_after_seconds = stale_after_seconds
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="provider-dedup"
        )
        self._clock = clock
        # Reentrant: add_done_callback runs inline when the future is already done
        self._lock = threading.RLock()
        self._pending: dict[str, _Pending] = {}

    def dedupe(self, key: str, fetcher: Callable[[], T], timeout: float | None = None) -> T:
        """Run ``fetcher`` once per key and return its result to every waiter.

        Raises whatever ``fetcher`` raised, or ``TimeoutError`` if this
        caller's wait exceeds ``timeout``.
        """
        future = self._get_or_submit(key, fetcher)
        return future.result(timeout=timeout)

    def _get_or_submit(self, key: str, fetcher: Callable[[], Any]) -> Future:
        with self._lock:
            now = self._clock()
            entry = self._pending.get(key)
            if entry is not None and not entry.future.done():
                if now - entry.started_at < self.stale_after_seconds:
                    logger.debug("dedup_joined", key=key)
                    return entry.future
                logger.warning(
                    "dedup_stale_entry_replaced",
                    key=key,
                    age_seconds=round(now - entry.started_at, 1),
                )

            future = self._executor.submit(fetcher)
            entry = _Pending(future=future, started_at=now)
            self._pending[key] = entry
            future.add_done_callback(lambda _f, k=key, e=entry: self._release(k, e))
            return future

    def _release(self, key: str, entry: _Pending) -> None:
        with self._lock:
            if self._pending.get(key) is entry:
                del self._pending[key]

    def is_pending(self, key: str) -> bool:
        with self._lock:
            entry = self._pending.get(key)
            return entry is not None and not entry.future.done()

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._pending.values() if not entry.future.done())

    def clear(self) -> None:
        """Forget pending entries. In-flight calls still run to completion."""
        with self._lock:
            self._pending.clear()

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
