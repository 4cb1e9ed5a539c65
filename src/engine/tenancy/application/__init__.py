"""Tenancy application layer.

Contains the batch executor and the gate that serializes batch runs.
"""

from tenancy.application.batch_executor import BatchExecutor
from tenancy.application.batch_gate import BatchGate

__all__ = ["BatchExecutor", "BatchGate"]
