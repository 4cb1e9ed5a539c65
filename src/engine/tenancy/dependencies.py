"""Dependency wiring for the Tenancy bounded context.

Composes the process-wide context stack, batch gate and executor from
settings, and exposes ambient tenant lookup for call sites that cannot
take the tenant as an argument.

Usage:
    executor = get_batch_executor()
    result = executor.run_batch(site_ids, rebuild_search_index)

    # deep inside legacy code running under a batch
    site_id = require_tenant()
"""

from __future__ import annotations

from functools import lru_cache

from infrastructure.settings import get_tenancy_settings
from tenancy.application.batch_executor import BatchExecutor
from tenancy.application.batch_gate import BatchGate
from tenancy.domain.context_stack import ContextStack
from tenancy.domain.exceptions import TenantContextRequiredError
from tenancy.domain.value_objects import NoTenant, TenantId, is_no_tenant


@lru_cache
def get_context_stack() -> ContextStack:
    """Get the process-wide tenant context stack.

    Uses lru_cache so every caller shares one stack.
    """
    return ContextStack()


@lru_cache
def get_batch_gate() -> BatchGate:
    """Get the process-wide batch gate configured from settings."""
    settings = get_tenancy_settings()
    return BatchGate(
        timeout_seconds=settings.lock_timeout_seconds,
        poll_interval_seconds=settings.lock_poll_interval_seconds,
    )


@lru_cache
def get_batch_executor() -> BatchExecutor:
    """Get the process-wide batch executor.

    Shares the context stack and gate above, so any two executors obtained
    here serialize against each other.
    """
    settings = get_tenancy_settings()
    return BatchExecutor(
        context_stack=get_context_stack(),
        gate=get_batch_gate(),
        operation_timeout_seconds=settings.operation_timeout_seconds,
        fail_fast=settings.fail_fast,
    )


def current_tenant() -> TenantId | NoTenant:
    """Return the ambient active tenant, or NO_TENANT outside any batch."""
    return get_context_stack().current()


def require_tenant() -> TenantId:
    """Return the ambient active tenant.

    Raises:
        TenantContextRequiredError: If no tenant is active.
    """
    tenant_id = current_tenant()
    if is_no_tenant(tenant_id):
        raise TenantContextRequiredError(
            "No tenant is active; run this code inside a tenant batch"
        )
    return tenant_id
