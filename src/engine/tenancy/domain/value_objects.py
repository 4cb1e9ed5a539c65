"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for tenant identity, context frames and batch runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final, TypeAlias

from ulid import ULID

TenantId: TypeAlias = int | str
"""Opaque tenant identifier issued by the tenant directory."""


class NoTenant(Enum):
    """Sentinel type for the default, tenant-less context."""

    NO_TENANT = "no_tenant"

    def __repr__(self) -> str:
        return "NO_TENANT"

    def __bool__(self) -> bool:
        return False


NO_TENANT: Final = NoTenant.NO_TENANT


def is_no_tenant(value: object) -> bool:
    """Return True if value denotes the tenant-less context.

    ``None`` is accepted as an alias of the sentinel so callers that
    carry an optional tenant cannot smuggle an absent tenant onto the stack.
    """
    return value is None or value is NO_TENANT


@dataclass(frozen=True, eq=False)
class ContextFrame:
    """One active tenant switch on the context stack.

    Frames compare by identity: two pushes of the same tenant are
    distinct frames, which is what restoration checks rely on.

    Attributes:
        tenant_id: The tenant made active by this frame.
        depth: 1-based stack depth at the time of the push.
        pushed_at: ``time.monotonic()`` reading taken at push time.
    """

    tenant_id: TenantId
    depth: int
    pushed_at: float = field(repr=False)


@dataclass(frozen=True)
class BatchId:
    """Identifier for a single batch run.

    Uses ULID for sortability so log lines from successive runs order
    naturally.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> BatchId:
        """Generate a new BatchId using ULID."""
        return cls(value=str(ULID()))
