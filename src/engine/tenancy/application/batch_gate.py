"""Process-wide mutual exclusion for batch runs.

Only one batch may push and pop tenant frames at a time. The gate hands
out that right for the duration of a whole run. A batch started from
inside a tenant operation (same thread, or same asyncio task) is nested
and joins the gate its caller already holds instead of deadlocking.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar

from tenancy.domain.exceptions import BatchLockTimeoutError

_holder: ContextVar[object | None] = ContextVar("batch_gate_holder", default=None)


class BatchGate:
    """Reentrant-per-context lock guarding batch execution.

    Ownership is tracked with a ContextVar token, not the calling thread.
    An asyncio task waiting on the gate therefore does not slip in just
    because another task on the same event loop thread holds it.

    Tasks spawned from inside a tenant operation copy their parent's
    context and count as nested.
    """

    def __init__(
        self,
        timeout_seconds: float | None = None,
        poll_interval_seconds: float = 0.01,
    ) -> None:
        self._lock = threading.Lock()
        self._token = object()
        self._timeout = timeout_seconds
        self._poll_interval = poll_interval_seconds

    @property
    def held_here(self) -> bool:
        """True if the current thread or task already holds the gate."""
        return _holder.get() is self._token

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Hold the gate for a synchronous batch.

        Yields:
            True if this is a top-level hold, False if nested.

        Raises:
            BatchLockTimeoutError: If the configured timeout expires first.
        """
        if self.held_here:
            yield False
            return

        acquired = self._lock.acquire(
            timeout=-1 if self._timeout is None else self._timeout
        )
        if not acquired:
            raise BatchLockTimeoutError(self._timeout)

        marker = _holder.set(self._token)
        try:
            yield True
        finally:
            _holder.reset(marker)
            self._lock.release()

    @asynccontextmanager
    async def hold_async(self) -> AsyncIterator[bool]:
        """Hold the gate for an asyncio batch.

        Polls instead of blocking so the event loop keeps running while
        another batch finishes. Cancellation while waiting leaves the gate
        untouched.

        Yields:
            True if this is a top-level hold, False if nested.

        Raises:
            BatchLockTimeoutError: If the configured timeout expires first.
        """
        if self.held_here:
            yield False
            return

        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        while not self._lock.acquire(blocking=False):
            if deadline is not None and time.monotonic() >= deadline:
                raise BatchLockTimeoutError(self._timeout)
            await asyncio.sleep(self._poll_interval)

        marker = _holder.set(self._token)
        try:
            yield True
        finally:
            _holder.reset(marker)
            self._lock.release()
