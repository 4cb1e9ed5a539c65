"""Observability for tenancy domain operations."""

from tenancy.domain.observability.context_stack_probe import (
    ContextStackProbe,
    DefaultContextStackProbe,
)

__all__ = [
    "ContextStackProbe",
    "DefaultContextStackProbe",
]
