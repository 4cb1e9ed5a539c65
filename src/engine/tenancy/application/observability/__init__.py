"""Domain-Oriented Observability for the tenancy application layer.

Probes for batch execution following Domain-Oriented Observability patterns.
"""

from tenancy.application.observability.batch_executor_probe import (
    BatchExecutorProbe,
    DefaultBatchExecutorProbe,
)

__all__ = [
    "BatchExecutorProbe",
    "DefaultBatchExecutorProbe",
]
