"""Protocols for operations run once per tenant.

An operation receives the tenant it runs for as its only argument. New
operations should use that argument rather than the ambient context;
``current_tenant()`` returns the same value while the operation runs.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, TypeVar

from tenancy.domain.value_objects import TenantId

R_co = TypeVar("R_co", covariant=True)


class TenantOperation(Protocol[R_co]):
    """Synchronous per-tenant operation. Raises to signal failure."""

    def __call__(self, tenant_id: TenantId, /) -> R_co: ...


class AsyncTenantOperation(Protocol[R_co]):
    """Coroutine function run once per tenant. Raises to signal failure."""

    def __call__(self, tenant_id: TenantId, /) -> Awaitable[R_co]: ...
