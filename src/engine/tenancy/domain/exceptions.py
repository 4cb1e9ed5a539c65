"""Domain exceptions for the tenancy bounded context.

Two disjoint families live here. Tenant-scoped errors concern a single
tenant and are recorded in a batch result. Engine-fatal errors mean the
ambient tenant context can no longer be trusted; they abort the whole
batch and are never downgraded to a per-tenant failure.
"""

from __future__ import annotations

from typing import Any


class TenancyError(Exception):
    """Base exception for tenancy operations."""

    pass


class NoTenantError(TenancyError, ValueError):
    """Raised when the "no tenant" sentinel is pushed onto the context stack.

    This is a caller contract violation. The stack is left untouched, so
    when the sentinel comes from a batch's tenant list the executor records
    it as a failure for that entry and carries on.
    """

    def __init__(self, value: Any = None):
        super().__init__(f"Cannot activate the no-tenant sentinel ({value!r})")
        self.value = value


class TenantContextRequiredError(TenancyError):
    """Raised when code that needs an active tenant runs outside any tenant scope."""

    pass


class BatchLockTimeoutError(TenancyError):
    """Raised when waiting for the process-wide batch gate exceeds its bound.

    No tenant has run when this is raised.
    """

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Timed out after {timeout_seconds}s waiting for the batch gate"
        )
        self.timeout_seconds = timeout_seconds


class EngineFatalError(TenancyError):
    """Base exception for failures of the context machinery itself.

    Raised when the context stack's balance is broken. Any further tenant
    execution in the process would run under a wrong context.
    """

    pass


class ImbalancedPopError(EngineFatalError):
    """Raised when pop() is called on an empty context stack.

    Indicates a pop without a matching push. The stack is not mutated.
    """

    def __init__(self) -> None:
        super().__init__("pop() called on an empty tenant context stack")


class ContextRestorationError(EngineFatalError):
    """Raised when leaving a tenant scope does not restore the prior context.

    Attributes:
        expected: The tenant that should be active after restoration.
        actual: The tenant that is active instead.
    """

    def __init__(self, message: str, expected: Any, actual: Any):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
