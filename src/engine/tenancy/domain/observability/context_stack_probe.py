"""Domain probe for tenant context switching.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of the tenant context stack: switches in and
out of a tenant, rejected switches, and balance violations.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ContextStackProbe(Protocol):
    """Domain probe for tenant context stack operations."""

    def tenant_pushed(self, tenant_id: Any, depth: int) -> None:
        """Record that a tenant became the active context."""
        ...

    def tenant_popped(self, tenant_id: Any, depth: int) -> None:
        """Record that a tenant stopped being the active context."""
        ...

    def push_rejected(self, value: Any) -> None:
        """Record that the no-tenant sentinel was pushed."""
        ...

    def imbalanced_pop(self) -> None:
        """Record that pop() was called on an empty stack."""
        ...

    def restoration_mismatch(self, expected: Any, actual: Any, depth: int) -> None:
        """Record that leaving a scope did not restore the prior tenant."""
        ...

    def stack_reset(self, discarded: int) -> None:
        """Record that the stack was forcibly cleared."""
        ...

    def with_context(self, context: ObservationContext) -> ContextStackProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultContextStackProbe:
    """Default implementation of ContextStackProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultContextStackProbe:
        """Create a new probe with observation context bound."""
        return DefaultContextStackProbe(logger=self._logger, context=context)

    def tenant_pushed(self, tenant_id: Any, depth: int) -> None:
        """Record that a tenant became the active context."""
        self._logger.debug(
            "tenant_context_pushed",
            active_tenant=tenant_id,
            depth=depth,
            **self._get_context_kwargs(),
        )

    def tenant_popped(self, tenant_id: Any, depth: int) -> None:
        """Record that a tenant stopped being the active context."""
        self._logger.debug(
            "tenant_context_popped",
            active_tenant=tenant_id,
            depth=depth,
            **self._get_context_kwargs(),
        )

    def push_rejected(self, value: Any) -> None:
        """Record that the no-tenant sentinel was pushed."""
        self._logger.warning(
            "tenant_context_push_rejected",
            value=repr(value),
            message="The no-tenant sentinel cannot be made active",
            **self._get_context_kwargs(),
        )

    def imbalanced_pop(self) -> None:
        """Record that pop() was called on an empty stack."""
        self._logger.error(
            "tenant_context_imbalanced_pop",
            message="pop() without a matching push",
            **self._get_context_kwargs(),
        )

    def restoration_mismatch(self, expected: Any, actual: Any, depth: int) -> None:
        """Record that leaving a scope did not restore the prior tenant."""
        self._logger.error(
            "tenant_context_restoration_mismatch",
            expected=repr(expected),
            actual=repr(actual),
            depth=depth,
            **self._get_context_kwargs(),
        )

    def stack_reset(self, discarded: int) -> None:
        """Record that the stack was forcibly cleared."""
        log = self._logger.warning if discarded else self._logger.debug
        log(
            "tenant_context_stack_reset",
            discarded=discarded,
            **self._get_context_kwargs(),
        )
