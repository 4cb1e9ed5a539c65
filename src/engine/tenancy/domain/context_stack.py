"""Process-wide stack of active tenant contexts.

The context stack is the single source of truth for "which tenant is
currently active". ``push`` and ``pop`` are the only operations that may
change the answer; everything else reads it through ``current()``.

Most code should receive the tenant explicitly as an argument. The stack
exists for call sites that still look the tenant up ambiently.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from tenancy.domain.exceptions import (
    ContextRestorationError,
    ImbalancedPopError,
    NoTenantError,
)
from tenancy.domain.observability import DefaultContextStackProbe
from tenancy.domain.value_objects import (
    NO_TENANT,
    ContextFrame,
    NoTenant,
    TenantId,
    is_no_tenant,
)

if TYPE_CHECKING:
    from tenancy.domain.observability import ContextStackProbe


class ContextStack:
    """LIFO stack of tenant context frames.

    In the common case the stack holds zero or one frame. Deeper stacks
    only appear when a tenant operation starts a nested batch, in which
    case frames must unwind in strict reverse order.

    The stack is not meant for concurrent mutation from independent
    batches; the batch gate serializes those. The internal lock only
    keeps individual push/pop calls atomic.
    """

    def __init__(self, probe: ContextStackProbe | None = None) -> None:
        self._frames: list[ContextFrame] = []
        self._lock = threading.Lock()
        self._probe = probe or DefaultContextStackProbe()

    def push(self, tenant_id: TenantId) -> ContextFrame:
        """Make ``tenant_id`` the active tenant.

        Args:
            tenant_id: Tenant to activate

        Returns:
            The frame that was pushed

        Raises:
            NoTenantError: If tenant_id is the no-tenant sentinel or None.
                The stack is left unchanged.
        """
        if is_no_tenant(tenant_id):
            self._probe.push_rejected(tenant_id)
            raise NoTenantError(tenant_id)

        with self._lock:
            frame = ContextFrame(
                tenant_id=tenant_id,
                depth=len(self._frames) + 1,
                pushed_at=time.monotonic(),
            )
            self._frames.append(frame)

        self._probe.tenant_pushed(tenant_id, frame.depth)
        return frame

    def pop(self) -> ContextFrame:
        """Remove the top frame, restoring the tenant beneath it.

        Returns:
            The frame that was removed

        Raises:
            ImbalancedPopError: If the stack is empty. The stack is left
                unchanged.
        """
        with self._lock:
            if not self._frames:
                frame = None
            else:
                frame = self._frames.pop()

        if frame is None:
            self._probe.imbalanced_pop()
            raise ImbalancedPopError()

        self._probe.tenant_popped(frame.tenant_id, frame.depth)
        return frame

    def current(self) -> TenantId | NoTenant:
        """Return the active tenant, or NO_TENANT if no frame is active."""
        with self._lock:
            if not self._frames:
                return NO_TENANT
            return self._frames[-1].tenant_id

    @property
    def depth(self) -> int:
        with self._lock:
            return len(self._frames)

    @property
    def is_empty(self) -> bool:
        return self.depth == 0

    def frames(self) -> tuple[ContextFrame, ...]:
        """Snapshot of the active frames, bottom first."""
        with self._lock:
            return tuple(self._frames)

    def reset(self) -> int:
        """Discard every frame.

        Only for recovering a process after an engine-fatal error, or for
        isolating tests. Returns the number of frames discarded.
        """
        with self._lock:
            discarded = len(self._frames)
            self._frames.clear()

        self._probe.stack_reset(discarded)
        return discarded

    @contextmanager
    def scope(self, tenant_id: TenantId) -> Iterator[ContextFrame]:
        """Activate a tenant for the duration of a ``with`` block.

        The frame is popped on every exit path. On the way out the popped
        frame must be the one pushed here and the previously active tenant
        must be active again, otherwise ContextRestorationError is raised.
        Frames left above this scope's frame are popped along with it
        before the error is raised.

        A rejected push raises before the block is entered, so no pop is
        attempted for it.

        Raises:
            NoTenantError: If tenant_id is the no-tenant sentinel.
            ImbalancedPopError: If the block emptied the stack itself.
            ContextRestorationError: If restoration did not return to the
                previously active tenant.
        """
        previous = self.current()
        frame = self.push(tenant_id)
        try:
            with structlog.contextvars.bound_contextvars(tenant_id=tenant_id):
                yield frame
        finally:
            self._restore(frame, previous)

    def _restore(self, frame: ContextFrame, previous: TenantId | NoTenant) -> None:
        popped = self.pop()
        if popped is not frame:
            self._probe.restoration_mismatch(
                expected=frame.tenant_id, actual=popped.tenant_id, depth=popped.depth
            )
            self._unwind_through(frame)
            raise ContextRestorationError(
                f"Expected to pop the frame for tenant {frame.tenant_id!r} at depth "
                f"{frame.depth}, popped tenant {popped.tenant_id!r} at depth "
                f"{popped.depth}",
                expected=frame.tenant_id,
                actual=popped.tenant_id,
            )

        restored = self.current()
        if restored != previous:
            self._probe.restoration_mismatch(
                expected=previous, actual=restored, depth=self.depth
            )
            raise ContextRestorationError(
                f"Leaving tenant {frame.tenant_id!r} restored {restored!r} "
                f"instead of {previous!r}",
                expected=previous,
                actual=restored,
            )

    def _unwind_through(self, frame: ContextFrame) -> None:
        """Pop frames left above ``frame``, then ``frame`` itself.

        Does nothing if ``frame`` is no longer on the stack.
        """
        while any(f is frame for f in self.frames()):
            self.pop()
