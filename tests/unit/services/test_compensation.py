"""Tests for CompensationPlan."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import ConsistencyAlarmError, InsufficientStockError
from src.core.services.compensation import CompensationPlan


class TestCompensationPlan:
    async def test_success_keeps_all_steps(self):
        """No inverse runs when the block completes."""
        inverse = AsyncMock()

        async with CompensationPlan("op") as plan:
            result = await plan.run("one", AsyncMock(return_value=1), inverse)
            assert plan.completed_steps == ["one"]

        assert result == 1
        inverse.assert_not_awaited()

    async def test_failure_reverts_newest_first(self):
        calls: list[str] = []

        def inverse_for(name):
            async def inverse(result):
                calls.append(f"{name}:{result}")

            return inverse

        with pytest.raises(RuntimeError, match="boom"):
            async with CompensationPlan("op", inventory_id=1) as plan:
                await plan.run("first", AsyncMock(return_value="a"), inverse_for("first"))
                await plan.run("second", AsyncMock(return_value="b"), inverse_for("second"))
                raise RuntimeError("boom")

        assert calls == ["second:b", "first:a"]

    async def test_failing_action_is_not_reverted(self):
        """Only steps that completed get their inverse."""
        first_inverse = AsyncMock()
        failing_inverse = AsyncMock()

        with pytest.raises(InsufficientStockError):
            async with CompensationPlan("op") as plan:
                await plan.run("first", AsyncMock(return_value=1), first_inverse)
                await plan.run(
                    "second",
                    AsyncMock(side_effect=InsufficientStockError(1, 5, 2)),
                    failing_inverse,
                )

        first_inverse.assert_awaited_once_with(1)
        failing_inverse.assert_not_awaited()

    async def test_step_without_inverse(self):
        inverse = AsyncMock()

        with pytest.raises(RuntimeError):
            async with CompensationPlan("op") as plan:
                await plan.run("tracked", AsyncMock(return_value=None), inverse)
                await plan.run("untracked", AsyncMock(return_value=None))
                assert plan.completed_steps == ["tracked"]
                raise RuntimeError

        inverse.assert_awaited_once()

    async def test_register(self):
        inverse = AsyncMock()

        with pytest.raises(RuntimeError):
            async with CompensationPlan("op") as plan:
                plan.register("manual", inverse, result=42)
                raise RuntimeError

        inverse.assert_awaited_once_with(42)

    async def test_failed_inverse_raises_alarm(self):
        """A failing inverse becomes a ConsistencyAlarmError chained to the cause."""
        healthy_inverse = AsyncMock()
        broken_inverse = AsyncMock(side_effect=OSError("disk gone"))
        cause = RuntimeError("original")

        with pytest.raises(ConsistencyAlarmError) as exc_info:
            async with CompensationPlan("withdraw", inventory_id=3) as plan:
                await plan.run("decrement_stock", AsyncMock(), healthy_inverse)
                await plan.run("create_item", AsyncMock(), broken_inverse)
                raise cause

        error = exc_info.value
        assert error.details["operation"] == "withdraw"
        assert error.details["failed_steps"] == ["create_item"]
        assert error.__cause__ is cause
        # Remaining inverses still run
        healthy_inverse.assert_awaited_once()

    async def test_cancellation_triggers_compensation(self):
        inverse = AsyncMock()

        with pytest.raises(asyncio.CancelledError):
            async with CompensationPlan("op") as plan:
                await plan.run("step", AsyncMock(return_value=1), inverse)
                raise asyncio.CancelledError

        inverse.assert_awaited_once_with(1)

    async def test_cancelled_caller_waits_for_write_and_reverts_it(self):
        """A write already under way when the caller is cancelled still gets undone."""
        entered = asyncio.Event()
        release = asyncio.Event()
        inverse = AsyncMock()

        async def slow_write():
            entered.set()
            await release.wait()
            return 5

        async def operation():
            async with CompensationPlan("withdraw", inventory_id=1) as plan:
                await plan.run("decrement_stock", slow_write, inverse)

        task = asyncio.create_task(operation())
        await entered.wait()
        task.cancel()
        await asyncio.sleep(0)
        release.set()

        with pytest.raises(asyncio.CancelledError):
            await task

        inverse.assert_awaited_once_with(5)

    async def test_step_ending_cancelled_is_settled(self):
        """A step that ends cancelled has an unknown outcome and gets its settle."""
        inverse = AsyncMock()
        settle = AsyncMock()

        async def interrupted_write():
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            async with CompensationPlan("withdraw") as plan:
                await plan.run("decrement_stock", interrupted_write, inverse, settle=settle)

        settle.assert_awaited_once_with(None)
        inverse.assert_not_awaited()

    async def test_step_ending_cancelled_without_settle_records_nothing(self):
        inverse = AsyncMock()

        async def interrupted_write():
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            async with CompensationPlan("op") as plan:
                await plan.run("step", interrupted_write, inverse)

        inverse.assert_not_awaited()
