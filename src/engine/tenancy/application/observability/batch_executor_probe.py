"""Observability probes for the batch executor.

Following Domain Oriented Observability, probes capture domain-significant
events of a batch run without cluttering the executor with logging calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class BatchExecutorProbe(Protocol):
    """Protocol for batch executor observability.

    Implementations can log, emit metrics, or send traces.
    """

    def batch_started(self, batch_id: str, tenant_count: int, nested: bool) -> None:
        """Called when a batch acquires the gate and starts iterating."""
        ...

    def batch_completed(
        self, batch_id: str, succeeded: int, failed: int, duration_ms: float
    ) -> None:
        """Called when every tenant of a batch has an outcome."""
        ...

    def batch_aborted(self, batch_id: str, tenant_id: Any, error: Exception) -> None:
        """Called when an engine-fatal error stops a batch."""
        ...

    def batch_cancelled(self, batch_id: str, tenant_id: Any) -> None:
        """Called when a batch is interrupted or cancelled mid-operation."""
        ...

    def tenant_operation_succeeded(
        self, batch_id: str, tenant_id: Any, duration_ms: float
    ) -> None:
        """Called when the operation returns normally for a tenant."""
        ...

    def tenant_operation_failed(
        self, batch_id: str, tenant_id: Any, error_kind: str, message: str
    ) -> None:
        """Called when the operation fails for a tenant.

        The batch continues with the next tenant.
        """
        ...

    def tenant_skipped(self, batch_id: str, tenant_id: Any) -> None:
        """Called when fail-fast mode skips a tenant after an earlier failure."""
        ...

    def waiting_for_batch_gate(self) -> None:
        """Called when another batch holds the gate and this one must wait."""
        ...

    def batch_gate_timeout(self, timeout_seconds: float | None) -> None:
        """Called when waiting for the gate exceeds its bound."""
        ...

    def with_context(self, context: ObservationContext) -> BatchExecutorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBatchExecutorProbe:
    """Default implementation using structlog.

    Logs all executor events with appropriate log levels.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ) -> None:
        self._logger = logger or structlog.get_logger().bind(component="batch_executor")
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultBatchExecutorProbe:
        """Create a new probe with observation context bound."""
        return DefaultBatchExecutorProbe(logger=self._logger, context=context)

    def batch_started(self, batch_id: str, tenant_count: int, nested: bool) -> None:
        """Log batch start."""
        self._logger.info(
            "tenant_batch_started",
            batch_id=batch_id,
            tenant_count=tenant_count,
            nested=nested,
            **self._get_context_kwargs(),
        )

    def batch_completed(
        self, batch_id: str, succeeded: int, failed: int, duration_ms: float
    ) -> None:
        """Log batch completion, at warning level if any tenant failed."""
        log = self._logger.warning if failed else self._logger.info
        log(
            "tenant_batch_completed",
            batch_id=batch_id,
            succeeded=succeeded,
            failed=failed,
            duration_ms=round(duration_ms, 3),
            **self._get_context_kwargs(),
        )

    def batch_aborted(self, batch_id: str, tenant_id: Any, error: Exception) -> None:
        """Log an engine-fatal abort."""
        self._logger.error(
            "tenant_batch_aborted",
            batch_id=batch_id,
            active_tenant=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def batch_cancelled(self, batch_id: str, tenant_id: Any) -> None:
        """Log cancellation."""
        self._logger.warning(
            "tenant_batch_cancelled",
            batch_id=batch_id,
            active_tenant=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_operation_succeeded(
        self, batch_id: str, tenant_id: Any, duration_ms: float
    ) -> None:
        """Log successful tenant operation."""
        self._logger.debug(
            "tenant_operation_succeeded",
            batch_id=batch_id,
            active_tenant=tenant_id,
            duration_ms=round(duration_ms, 3),
            **self._get_context_kwargs(),
        )

    def tenant_operation_failed(
        self, batch_id: str, tenant_id: Any, error_kind: str, message: str
    ) -> None:
        """Log failed tenant operation."""
        self._logger.warning(
            "tenant_operation_failed",
            batch_id=batch_id,
            active_tenant=tenant_id,
            error_kind=error_kind,
            error=message,
            **self._get_context_kwargs(),
        )

    def tenant_skipped(self, batch_id: str, tenant_id: Any) -> None:
        """Log a tenant skipped by fail-fast mode."""
        self._logger.info(
            "tenant_operation_skipped",
            batch_id=batch_id,
            active_tenant=tenant_id,
            **self._get_context_kwargs(),
        )

    def waiting_for_batch_gate(self) -> None:
        """Log that another batch is in flight."""
        self._logger.debug(
            "tenant_batch_waiting_for_gate", **self._get_context_kwargs()
        )

    def batch_gate_timeout(self, timeout_seconds: float | None) -> None:
        """Log gate wait timeout."""
        self._logger.error(
            "tenant_batch_gate_timeout",
            timeout_seconds=timeout_seconds,
            **self._get_context_kwargs(),
        )
