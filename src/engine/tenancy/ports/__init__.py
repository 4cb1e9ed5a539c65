"""Tenancy ports (interfaces) module.

Ports define the shape of the operations callers hand to the executor.
"""

from tenancy.ports.operations import AsyncTenantOperation, TenantOperation

__all__ = ["AsyncTenantOperation", "TenantOperation"]
