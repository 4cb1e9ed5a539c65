"""Unit test fixtures with mocked probes."""

from unittest.mock import MagicMock

import pytest

from tenancy.application.batch_executor import BatchExecutor
from tenancy.application.batch_gate import BatchGate
from tenancy.domain.context_stack import ContextStack


@pytest.fixture
def stack_probe():
    """Provide a mocked context stack probe."""
    return MagicMock()


@pytest.fixture
def executor_probe():
    """Provide a mocked batch executor probe."""
    probe = MagicMock()
    probe.with_context.return_value = probe
    return probe


@pytest.fixture
def context_stack(stack_probe):
    """Provide an empty context stack with a mocked probe."""
    return ContextStack(probe=stack_probe)


@pytest.fixture
def gate():
    """Provide a private batch gate with a fast poll interval."""
    return BatchGate(poll_interval_seconds=0.001)


@pytest.fixture
def executor(context_stack, gate, executor_probe):
    """Provide a batch executor wired to the fixtures above."""
    return BatchExecutor(
        context_stack=context_stack,
        gate=gate,
        probe=executor_probe,
    )


@pytest.fixture
def clear_dependency_caches():
    """Reset cached settings and process-wide singletons around a test."""
    from infrastructure.settings import get_settings, get_tenancy_settings
    from tenancy.dependencies import (
        get_batch_executor,
        get_batch_gate,
        get_context_stack,
    )

    caches = [
        get_settings,
        get_tenancy_settings,
        get_context_stack,
        get_batch_gate,
        get_batch_executor,
    ]
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()
