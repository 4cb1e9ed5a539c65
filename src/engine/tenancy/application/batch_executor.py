"""Batch executor running an operation once per tenant.

For every tenant the executor switches the ambient tenant context in,
invokes the operation, switches it back out and records the outcome.
A failing tenant never stops the others. A broken context stack stops
everything, because later tenants would run under the wrong context.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from tenancy.application.batch_gate import BatchGate
from tenancy.application.observability import DefaultBatchExecutorProbe
from tenancy.domain.exceptions import (
    BatchLockTimeoutError,
    ContextRestorationError,
    EngineFatalError,
)
from tenancy.domain.outcomes import (
    BatchResult,
    TenantFailure,
    TenantOutcome,
    TenantSuccess,
)
from tenancy.domain.value_objects import BatchId, ContextFrame, TenantId

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext
    from tenancy.application.observability import BatchExecutorProbe
    from tenancy.domain.context_stack import ContextStack
    from tenancy.ports.operations import AsyncTenantOperation, TenantOperation

HALTED_ERROR_KIND = "BatchHalted"


class BatchExecutor:
    """Runs tenant operations under an isolated, restored tenant context.

    The executor holds the batch gate for a whole run, so concurrent runs
    serialize. Iteration within a run is strictly sequential. An operation
    may start a nested run through the same executor; the nested run joins
    the gate its caller holds and unwinds before the outer frame is popped.
    A top-level run refuses to start while any tenant frame is active.

    Do not call ``run_batch`` from an event loop thread while an async
    batch is in flight on that loop; use ``run_batch_async`` there.
    """

    def __init__(
        self,
        context_stack: ContextStack,
        gate: BatchGate | None = None,
        probe: BatchExecutorProbe | None = None,
        operation_timeout_seconds: float | None = None,
        fail_fast: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            context_stack: The process-wide tenant context stack
            gate: Mutual exclusion for whole runs; a private gate if omitted
            probe: Observability probe for logging/metrics
            operation_timeout_seconds: Per-tenant bound for async operations
            fail_fast: Default for stopping a run at its first tenant failure
        """
        self._stack = context_stack
        self._gate = gate or BatchGate()
        self._probe = probe or DefaultBatchExecutorProbe()
        self._operation_timeout = operation_timeout_seconds
        self._fail_fast = fail_fast

    @property
    def context_stack(self) -> ContextStack:
        return self._stack

    def run_batch(
        self,
        tenant_ids: Iterable[TenantId],
        operation: TenantOperation[Any],
        *,
        fail_fast: bool | None = None,
        context: ObservationContext | None = None,
    ) -> BatchResult:
        """Run ``operation`` once for each tenant, in order.

        Args:
            tenant_ids: Tenants to run for; duplicates run independently
            operation: Called with each tenant id; raising marks that
                tenant as failed
            fail_fast: Stop after the first failure, recording the
                remaining tenants as skipped
            context: Observation context bound to this run's probe events

        Returns:
            One outcome per tenant id, in input order

        Raises:
            EngineFatalError: If the context stack was left unbalanced.
            BatchLockTimeoutError: If the gate could not be acquired in time.
        """
        tenants = list(tenant_ids)
        probe = self._probe_for(context)
        halt_on_failure = self._fail_fast if fail_fast is None else fail_fast

        self._announce_wait(probe)
        try:
            with self._gate.hold() as top_level:
                run = _Run(self._stack, probe, tenants, top_level)
                for tenant_id in tenants:
                    if run.halted:
                        run.skip(tenant_id)
                        continue
                    outcome = self._run_one(run, tenant_id, operation)
                    if halt_on_failure and not outcome.succeeded:
                        run.halted = True
                return run.finish()
        except BatchLockTimeoutError as e:
            probe.batch_gate_timeout(e.timeout_seconds)
            raise

    async def run_batch_async(
        self,
        tenant_ids: Iterable[TenantId],
        operation: AsyncTenantOperation[Any],
        *,
        fail_fast: bool | None = None,
        timeout_seconds: float | None = None,
        context: ObservationContext | None = None,
    ) -> BatchResult:
        """Await ``operation`` once for each tenant, in order.

        Same contract as ``run_batch``. An operation exceeding the timeout
        is recorded as a TimeoutError failure for its tenant. Cancelling
        the awaiting task pops the active frame before the cancellation
        propagates.

        Args:
            tenant_ids: Tenants to run for; duplicates run independently
            operation: Coroutine function called with each tenant id
            fail_fast: Stop after the first failure
            timeout_seconds: Per-tenant bound, overriding the executor default
            context: Observation context bound to this run's probe events
        """
        tenants = list(tenant_ids)
        probe = self._probe_for(context)
        halt_on_failure = self._fail_fast if fail_fast is None else fail_fast
        timeout = (
            self._operation_timeout if timeout_seconds is None else timeout_seconds
        )

        self._announce_wait(probe)
        try:
            async with self._gate.hold_async() as top_level:
                run = _Run(self._stack, probe, tenants, top_level)
                for tenant_id in tenants:
                    if run.halted:
                        run.skip(tenant_id)
                        continue
                    outcome = await self._run_one_async(
                        run, tenant_id, operation, timeout
                    )
                    if halt_on_failure and not outcome.succeeded:
                        run.halted = True
                return run.finish()
        except BatchLockTimeoutError as e:
            probe.batch_gate_timeout(e.timeout_seconds)
            raise

    def _run_one(
        self,
        run: _Run,
        tenant_id: TenantId,
        operation: TenantOperation[Any],
    ) -> TenantOutcome:
        started = time.perf_counter()
        try:
            with self._stack.scope(tenant_id):
                value = operation(tenant_id)
        except EngineFatalError as e:
            run.abort(tenant_id, e)
            raise
        except Exception as e:
            return run.record_failure(tenant_id, e, started)
        except BaseException:
            run.cancel(tenant_id)
            raise
        return run.record_success(tenant_id, value, started)

    async def _run_one_async(
        self,
        run: _Run,
        tenant_id: TenantId,
        operation: AsyncTenantOperation[Any],
        timeout: float | None,
    ) -> TenantOutcome:
        started = time.perf_counter()
        try:
            with self._stack.scope(tenant_id):
                async with asyncio.timeout(timeout):
                    value = await operation(tenant_id)
        except EngineFatalError as e:
            run.abort(tenant_id, e)
            raise
        except Exception as e:
            return run.record_failure(tenant_id, e, started)
        except BaseException:
            run.cancel(tenant_id)
            raise
        return run.record_success(tenant_id, value, started)

    def _probe_for(self, context: ObservationContext | None) -> BatchExecutorProbe:
        if context is None:
            return self._probe
        return self._probe.with_context(context)

    def _announce_wait(self, probe: BatchExecutorProbe) -> None:
        if self._gate.locked and not self._gate.held_here:
            probe.waiting_for_batch_gate()


class _Run:
    """Bookkeeping for one batch run: ordered outcomes and boundary checks."""

    def __init__(
        self,
        stack: ContextStack,
        probe: BatchExecutorProbe,
        tenants: list[TenantId],
        top_level: bool,
    ) -> None:
        self.batch_id = BatchId.generate()
        self.halted = False
        self._stack = stack
        self._probe = probe
        self._outcomes: list[TenantOutcome] = []
        self._entry_frames: tuple[ContextFrame, ...] = stack.frames()
        self._started_at = datetime.now(UTC)
        self._first_failure: TenantFailure | None = None
        if top_level and self._entry_frames:
            error = ContextRestorationError(
                f"Batch {self.batch_id} found {len(self._entry_frames)} frame(s) "
                "on the tenant context stack before starting",
                expected=(),
                actual=self._entry_frames,
            )
            probe.batch_aborted(str(self.batch_id), stack.current(), error)
            raise error
        probe.batch_started(str(self.batch_id), len(tenants), nested=not top_level)

    def record_success(
        self, tenant_id: TenantId, value: Any, started: float
    ) -> TenantSuccess:
        duration_ms = _elapsed_ms(started)
        outcome = TenantSuccess(
            tenant_id=tenant_id, value=value, duration_ms=duration_ms
        )
        self._outcomes.append(outcome)
        self._probe.tenant_operation_succeeded(
            str(self.batch_id), tenant_id, duration_ms
        )
        return outcome

    def record_failure(
        self, tenant_id: TenantId, error: Exception, started: float
    ) -> TenantFailure:
        outcome = TenantFailure.from_exception(tenant_id, error, _elapsed_ms(started))
        self._outcomes.append(outcome)
        if self._first_failure is None:
            self._first_failure = outcome
        self._probe.tenant_operation_failed(
            str(self.batch_id), tenant_id, outcome.error_kind, outcome.message
        )
        return outcome

    def skip(self, tenant_id: TenantId) -> None:
        self._outcomes.append(
            TenantFailure(
                tenant_id=tenant_id,
                error_kind=HALTED_ERROR_KIND,
                message=(
                    f"Skipped after tenant {self._first_failure.tenant_id!r} failed"
                ),
            )
        )
        self._probe.tenant_skipped(str(self.batch_id), tenant_id)

    def abort(self, tenant_id: TenantId, error: EngineFatalError) -> None:
        self._probe.batch_aborted(str(self.batch_id), tenant_id, error)

    def cancel(self, tenant_id: TenantId) -> None:
        self._probe.batch_cancelled(str(self.batch_id), tenant_id)

    def finish(self) -> BatchResult:
        """Verify the stack is back where it started and freeze the outcomes."""
        remaining = self._stack.frames()
        if len(remaining) != len(self._entry_frames) or any(
            a is not b for a, b in zip(remaining, self._entry_frames)
        ):
            error = ContextRestorationError(
                f"Batch {self.batch_id} left {len(remaining)} frame(s) on the "
                f"tenant context stack, expected {len(self._entry_frames)}",
                expected=self._entry_frames,
                actual=remaining,
            )
            self._probe.batch_aborted(str(self.batch_id), self._stack.current(), error)
            raise error

        result = BatchResult(
            batch_id=self.batch_id,
            outcomes=tuple(self._outcomes),
            started_at=self._started_at,
            finished_at=datetime.now(UTC),
        )
        self._probe.batch_completed(
            str(self.batch_id),
            succeeded=len(result.successes),
            failed=len(result.failures),
            duration_ms=result.duration_ms,
        )
        return result


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
