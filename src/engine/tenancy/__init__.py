"""Tenancy bounded context.

Runs an operation once per tenant of a shared-process multi-tenant system,
switching the ambient tenant context in and out around each call and
reporting one outcome per tenant.

Entry points live in ``tenancy.dependencies`` (process-wide executor and
ambient lookup), ``tenancy.application`` and ``tenancy.domain``.
"""
