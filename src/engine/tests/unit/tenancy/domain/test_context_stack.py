"""Unit tests for the tenant ContextStack."""

from __future__ import annotations

import pytest
import structlog

from tenancy.domain.context_stack import ContextStack
from tenancy.domain.exceptions import (
    ContextRestorationError,
    EngineFatalError,
    ImbalancedPopError,
    NoTenantError,
)
from tenancy.domain.value_objects import NO_TENANT


class TestPushAndPop:
    """Tests for push(), pop() and current()."""

    def test_empty_stack_has_no_tenant(self, context_stack: ContextStack):
        assert context_stack.current() is NO_TENANT
        assert context_stack.depth == 0
        assert context_stack.is_empty

    def test_push_makes_tenant_current(self, context_stack: ContextStack):
        frame = context_stack.push(1)

        assert context_stack.current() == 1
        assert frame.tenant_id == 1
        assert frame.depth == 1

    def test_push_shadows_previous_tenant(self, context_stack: ContextStack):
        context_stack.push("site-a")
        context_stack.push("site-b")

        assert context_stack.current() == "site-b"
        assert context_stack.depth == 2

    def test_pop_restores_previous_tenant(self, context_stack: ContextStack):
        context_stack.push("site-a")
        context_stack.push("site-b")

        popped = context_stack.pop()

        assert popped.tenant_id == "site-b"
        assert context_stack.current() == "site-a"

    def test_pop_last_frame_restores_no_tenant(self, context_stack: ContextStack):
        context_stack.push(7)
        context_stack.pop()

        assert context_stack.current() is NO_TENANT

    def test_frames_are_lifo(self, context_stack: ContextStack):
        for tenant_id in (1, 2, 3):
            context_stack.push(tenant_id)

        assert [context_stack.pop().tenant_id for _ in range(3)] == [3, 2, 1]

    def test_frames_snapshot_is_bottom_first(self, context_stack: ContextStack):
        first = context_stack.push(1)
        second = context_stack.push(2)

        assert context_stack.frames() == (first, second)

    def test_duplicate_pushes_are_distinct_frames(self, context_stack: ContextStack):
        first = context_stack.push(1)
        second = context_stack.push(1)

        assert first is not second
        assert first != second

    def test_push_and_pop_are_probed(self, context_stack: ContextStack, stack_probe):
        context_stack.push(5)
        context_stack.pop()

        stack_probe.tenant_pushed.assert_called_once_with(5, 1)
        stack_probe.tenant_popped.assert_called_once_with(5, 1)


class TestNoTenantSentinel:
    """Tests that the no-tenant sentinel cannot be pushed."""

    @pytest.mark.parametrize("value", [NO_TENANT, None])
    def test_push_sentinel_raises(self, context_stack: ContextStack, value):
        with pytest.raises(NoTenantError):
            context_stack.push(value)

    def test_push_sentinel_does_not_mutate(self, context_stack: ContextStack):
        context_stack.push(1)

        with pytest.raises(NoTenantError):
            context_stack.push(NO_TENANT)

        assert context_stack.current() == 1
        assert context_stack.depth == 1

    def test_no_tenant_error_is_a_value_error(self, context_stack: ContextStack):
        with pytest.raises(ValueError):
            context_stack.push(None)

    def test_rejection_is_probed(self, context_stack: ContextStack, stack_probe):
        with pytest.raises(NoTenantError):
            context_stack.push(None)

        stack_probe.push_rejected.assert_called_once_with(None)
        stack_probe.tenant_pushed.assert_not_called()

    def test_falsy_tenant_ids_are_valid(self, context_stack: ContextStack):
        context_stack.push(0)
        context_stack.push("")

        assert context_stack.depth == 2


class TestImbalancedPop:
    """Tests for pop() on an empty stack."""

    def test_pop_empty_raises(self, context_stack: ContextStack):
        with pytest.raises(ImbalancedPopError):
            context_stack.pop()

    def test_pop_empty_is_engine_fatal(self, context_stack: ContextStack):
        with pytest.raises(EngineFatalError):
            context_stack.pop()

    def test_pop_empty_does_not_mutate(self, context_stack: ContextStack):
        for _ in range(3):
            with pytest.raises(ImbalancedPopError):
                context_stack.pop()

        assert context_stack.depth == 0
        assert context_stack.current() is NO_TENANT

    def test_pop_empty_is_probed(self, context_stack: ContextStack, stack_probe):
        with pytest.raises(ImbalancedPopError):
            context_stack.pop()

        stack_probe.imbalanced_pop.assert_called_once()


class TestScope:
    """Tests for the scope() guard."""

    def test_scope_activates_and_restores(self, context_stack: ContextStack):
        with context_stack.scope(3) as frame:
            assert context_stack.current() == 3
            assert frame.tenant_id == 3

        assert context_stack.current() is NO_TENANT

    def test_scope_restores_on_exception(self, context_stack: ContextStack):
        with pytest.raises(RuntimeError):
            with context_stack.scope(3):
                raise RuntimeError("boom")

        assert context_stack.is_empty

    def test_scope_restores_on_keyboard_interrupt(self, context_stack: ContextStack):
        with pytest.raises(KeyboardInterrupt):
            with context_stack.scope(3):
                raise KeyboardInterrupt

        assert context_stack.is_empty

    def test_nested_scopes_restore_outer_tenant(self, context_stack: ContextStack):
        with context_stack.scope("outer"):
            with context_stack.scope("inner"):
                assert context_stack.current() == "inner"
            assert context_stack.current() == "outer"

        assert context_stack.is_empty

    def test_rejected_push_never_pops(self, context_stack: ContextStack, stack_probe):
        context_stack.push("outer")

        with pytest.raises(NoTenantError):
            with context_stack.scope(None):
                pytest.fail("scope body must not run")

        assert context_stack.current() == "outer"
        stack_probe.tenant_popped.assert_not_called()

    def test_pop_inside_scope_is_imbalanced(self, context_stack: ContextStack):
        with pytest.raises(ImbalancedPopError):
            with context_stack.scope(1):
                context_stack.pop()

        assert context_stack.is_empty

    def test_leaked_push_inside_scope_is_detected(
        self, context_stack: ContextStack, stack_probe
    ):
        with pytest.raises(ContextRestorationError) as exc_info:
            with context_stack.scope(1):
                context_stack.push(2)

        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2
        stack_probe.restoration_mismatch.assert_called_once()
        assert context_stack.is_empty

    def test_leaked_frames_unwind_down_to_outer_scope(
        self, context_stack: ContextStack
    ):
        with context_stack.scope("outer"):
            with pytest.raises(ContextRestorationError):
                with context_stack.scope("inner"):
                    context_stack.push("leaked-1")
                    context_stack.push("leaked-2")

            assert context_stack.current() == "outer"
            assert context_stack.depth == 1

        assert context_stack.is_empty

    def test_replaced_frame_inside_scope_is_detected(self, context_stack: ContextStack):
        with pytest.raises(ContextRestorationError):
            with context_stack.scope(1):
                context_stack.pop()
                context_stack.push(1)

        assert context_stack.is_empty

    def test_restoration_error_supersedes_operation_error(
        self, context_stack: ContextStack
    ):
        with pytest.raises(ImbalancedPopError) as exc_info:
            with context_stack.scope(1):
                context_stack.pop()
                raise RuntimeError("operation failed too")

        assert isinstance(exc_info.value.__context__, RuntimeError)

    def test_scope_binds_tenant_into_log_context(self, context_stack: ContextStack):
        with context_stack.scope("site-9"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["tenant_id"] == "site-9"

        assert "tenant_id" not in structlog.contextvars.get_contextvars()


class TestReset:
    """Tests for reset()."""

    def test_reset_discards_frames(self, context_stack: ContextStack, stack_probe):
        context_stack.push(1)
        context_stack.push(2)

        discarded = context_stack.reset()

        assert discarded == 2
        assert context_stack.is_empty
        stack_probe.stack_reset.assert_called_once_with(2)

    def test_reset_empty_stack(self, context_stack: ContextStack):
        assert context_stack.reset() == 0
