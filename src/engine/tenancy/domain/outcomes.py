"""Value objects describing what happened to each tenant in a batch.

A batch result is built once per run and never mutated afterwards.
Outcomes appear in exactly the order of the tenant ids that were
submitted, duplicates included.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, overload

from tenancy.domain.value_objects import BatchId, TenantId


@dataclass(frozen=True)
class TenantSuccess:
    """The operation returned normally for a tenant.

    Attributes:
        tenant_id: The tenant the operation ran for
        value: Whatever the operation returned
        duration_ms: Wall time spent inside the operation
    """

    tenant_id: TenantId
    value: Any = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class TenantFailure:
    """The operation raised, or the tenant could not be activated.

    Attributes:
        tenant_id: The tenant the failure belongs to
        error_kind: Short classification, the exception class name
        message: Human-readable description of the failure
        duration_ms: Wall time spent before the failure surfaced
        error: The original exception, if one was raised
    """

    tenant_id: TenantId
    error_kind: str
    message: str
    duration_ms: float = 0.0
    error: BaseException | None = field(default=None, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return False

    @classmethod
    def from_exception(
        cls,
        tenant_id: TenantId,
        error: BaseException,
        duration_ms: float = 0.0,
    ) -> TenantFailure:
        """Build a failure record from a raised exception.

        The message falls back to the exception class name when the
        exception carries no text (e.g. a bare ``TimeoutError()``).
        """
        kind = type(error).__name__
        return cls(
            tenant_id=tenant_id,
            error_kind=kind,
            message=str(error) or kind,
            duration_ms=duration_ms,
            error=error,
        )


TenantOutcome = TenantSuccess | TenantFailure


@dataclass(frozen=True)
class BatchResult(Sequence[TenantOutcome]):
    """Ordered, immutable record of one batch run.

    Behaves as a read-only sequence of outcomes, one per submitted
    tenant id, in submission order.

    Attributes:
        batch_id: Identifier of the run
        outcomes: One outcome per submitted tenant id
        started_at: When the run acquired the batch gate
        finished_at: When the last tenant finished
    """

    batch_id: BatchId
    outcomes: tuple[TenantOutcome, ...]
    started_at: datetime
    finished_at: datetime

    def __len__(self) -> int:
        return len(self.outcomes)

    @overload
    def __getitem__(self, index: int) -> TenantOutcome: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[TenantOutcome, ...]: ...

    def __getitem__(self, index):
        return self.outcomes[index]

    def __iter__(self) -> Iterator[TenantOutcome]:
        return iter(self.outcomes)

    @property
    def tenant_ids(self) -> tuple[TenantId, ...]:
        """Tenant ids in outcome order."""
        return tuple(outcome.tenant_id for outcome in self.outcomes)

    @property
    def successes(self) -> tuple[TenantSuccess, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, TenantSuccess))

    @property
    def failures(self) -> tuple[TenantFailure, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, TenantFailure))

    @property
    def succeeded(self) -> bool:
        """True if every tenant succeeded (vacuously true for an empty batch)."""
        return not self.failures

    @property
    def duration_ms(self) -> float:
        return (self.finished_at - self.started_at).total_seconds() * 1000
