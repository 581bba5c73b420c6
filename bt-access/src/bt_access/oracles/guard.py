"""Bounded-time guard around oracle calls.

Oracle lookups are synchronous and may be slow. When a timeout is configured
the call runs on a small shared worker pool and an overrun raises
`OracleUnavailableError`; the evaluator turns that into a soft denial. Without
a timeout the call runs inline and no threads are created.

A call that has started cannot be cancelled, so a hung oracle keeps its worker
thread. After a timeout the pool is detached and the next call gets a fresh
one; stuck workers finish (or not) on the old pool without queueing new calls
behind them.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional, TypeVar

from bt_access.errors import OracleUnavailableError

T = TypeVar("T")

_MAX_WORKERS = 4


class OracleGuard:
    def __init__(self, timeout_ms: Optional[int] = None) -> None:
        if timeout_ms is not None and int(timeout_ms) <= 0:
            raise ValueError("timeout_ms must be > 0")
        self._timeout_ms = int(timeout_ms) if timeout_ms is not None else None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self.timeouts = 0

    @property
    def timeout_ms(self) -> Optional[int]:
        return self._timeout_ms

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=_MAX_WORKERS, thread_name_prefix="bt-access-oracle"
                )
            return self._executor

    def call(self, oracle_name: str, fn: Callable[[], T]) -> T:
        if self._timeout_ms is None:
            return fn()

        future = self._pool().submit(fn)
        try:
            return future.result(timeout=self._timeout_ms / 1000.0)
        except FutureTimeoutError:
            future.cancel()
            self._detach_pool()
            raise OracleUnavailableError(
                oracle_name, f"no answer within {self._timeout_ms} ms"
            ) from None

    def _detach_pool(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
        self.timeouts += 1

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
