"""Tenancy domain module.

Contains value objects, outcomes, exceptions and the tenant context stack
for the Tenancy bounded context.
"""

from tenancy.domain.value_objects import (
    NO_TENANT,
    BatchId,
    ContextFrame,
    NoTenant,
    TenantId,
    is_no_tenant,
)
from tenancy.domain.exceptions import (
    BatchLockTimeoutError,
    ContextRestorationError,
    EngineFatalError,
    ImbalancedPopError,
    NoTenantError,
    TenancyError,
    TenantContextRequiredError,
)
from tenancy.domain.outcomes import (
    BatchResult,
    TenantFailure,
    TenantOutcome,
    TenantSuccess,
)
from tenancy.domain.context_stack import ContextStack

__all__ = [
    "NO_TENANT",
    "BatchId",
    "BatchLockTimeoutError",
    "BatchResult",
    "ContextFrame",
    "ContextRestorationError",
    "ContextStack",
    "EngineFatalError",
    "ImbalancedPopError",
    "NoTenant",
    "NoTenantError",
    "TenancyError",
    "TenantContextRequiredError",
    "TenantFailure",
    "TenantId",
    "TenantOutcome",
    "TenantSuccess",
    "is_no_tenant",
]
