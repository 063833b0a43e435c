"""
Compensating multi-step writes.

Each store write commits on its own, so an operation that needs several
writes records how to undo each one as soon as it succeeds. If anything
later fails, or the task is cancelled, the recorded undos run newest first.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from src.config import get_logger
from src.core.exceptions import ConsistencyAlarmError

logger = get_logger(__name__)

T = TypeVar("T")

Inverse = Callable[[Any], Awaitable[Any]]


class CompensationPlan:
    """
    Async context manager that rolls back completed steps on failure.

    Usage:
        async with CompensationPlan("withdraw", inventory_id=7) as plan:
            agg = await plan.run(
                "decrement_stock",
                lambda: store.adjust_quantity(7, -2),
                lambda _: store.adjust_quantity(7, 2),
            )
            ...

    A failing inverse is logged at critical level and surfaces as
    ConsistencyAlarmError chained to the original failure.
    """

    def __init__(self, operation: str, **context: Any):
        self.operation = operation
        self._context = context
        self._steps: list[tuple[str, Inverse, Any]] = []

    @property
    def completed_steps(self) -> list[str]:
        return [name for name, _, _ in self._steps]

    async def run(
        self,
        name: str,
        action: Callable[[], Awaitable[T]],
        inverse: Inverse | None = None,
        *,
        settle: Inverse | None = None,
    ) -> T:
        """
        Execute one step and remember its inverse, called with the step's result.

        The step is shielded from cancellation: when the caller is cancelled
        mid-write, the write is awaited to the end and its inverse recorded
        before the cancellation propagates. A step that itself ends
        cancelled has an unknown outcome; `settle` (a repair that is correct
        either way) is recorded in place of the inverse.
        """
        task = asyncio.ensure_future(action())
        try:
            result = await asyncio.shield(task)
        except asyncio.CancelledError:
            await self._after_interrupt(name, task, inverse, settle)
            raise
        if inverse is not None:
            self._steps.append((name, inverse, result))
        return result

    async def _after_interrupt(
        self,
        name: str,
        task: "asyncio.Future[Any]",
        inverse: Inverse | None,
        settle: Inverse | None,
    ) -> None:
        # Let the write land; its outcome is read from the task below
        await asyncio.wait([task])
        if task.cancelled():
            if settle is not None:
                logger.warning("step_outcome_unknown", operation=self.operation, step=name)
                self._steps.append((name, settle, None))
            return
        if task.exception() is None and inverse is not None:
            self._steps.append((name, inverse, task.result()))

    def register(self, name: str, inverse: Inverse, result: Any = None) -> None:
        """Register an inverse for a step performed outside run()."""
        self._steps.append((name, inverse, result))

    async def __aenter__(self) -> "CompensationPlan":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self._steps.clear()
            return False

        await self.compensate(exc)
        return False

    async def compensate(self, cause: BaseException) -> None:
        """Run the inverses of all completed steps, newest first."""
        if not self._steps:
            return

        logger.warning(
            "compensation_started",
            operation=self.operation,
            steps=self.completed_steps,
            cause=type(cause).__name__,
            **self._context,
        )

        failed: list[str] = []
        while self._steps:
            name, inverse, result = self._steps.pop()
            try:
                await inverse(result)
                logger.info(
                    "compensation_step_reverted",
                    operation=self.operation,
                    step=name,
                )
            except Exception as e:
                failed.append(name)
                logger.critical(
                    "compensation_step_failed",
                    operation=self.operation,
                    step=name,
                    error=str(e),
                    cause=str(cause),
                    **self._context,
                )

        if failed:
            raise ConsistencyAlarmError(
                operation=self.operation,
                failed_steps=failed,
                cause=str(cause) or type(cause).__name__,
            ) from cause

        logger.info("compensation_complete", operation=self.operation)
