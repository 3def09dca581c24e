"""
Handler chain execution.

Runs the configured steps strictly in order, each step's resolved result
becoming the next step's query, optionally bounded by one time budget for
the whole chain.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator
from typing import Any, Optional, Sequence

from services.pipeline.models.context import RequestContext
from services.pipeline.models.route import StepFactory

from .exceptions import RequestTimeoutError

logger = logging.getLogger("pipeline.executor")

# Resolved outcome of an async iterator that finished without yielding.
NO_VALUE = object()


async def resolve_result(outcome: Any) -> Any:
    """
    Resolve a step outcome to a single value.

    Awaitables are awaited; async iterators yield their first item, and an
    iterator that produces nothing resolves to NO_VALUE.
    """
    if inspect.isawaitable(outcome):
        outcome = await outcome

    if isinstance(outcome, AsyncIterator):
        try:
            async for item in outcome:
                return item
            return NO_VALUE
        finally:
            aclose = getattr(outcome, "aclose", None)
            if aclose is not None:
                await aclose()

    return outcome


def _invoke(unit: Any, query: Any) -> Any:
    execute = getattr(unit, "execute", None)
    if execute is not None:
        return execute(query)
    if callable(unit):
        return unit(query)
    raise TypeError(f"Step produced a non-executable unit: {type(unit).__name__}")


def _discard_late_outcome(task: asyncio.Task) -> None:
    """Retrieve and drop the outcome of a chain abandoned after a timeout."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Discarded late error from timed-out chain: {exc!r}")
    else:
        logger.debug("Discarded late result from timed-out chain")


class PipelineExecutor:
    """Sequential fold over step factories."""

    async def run_chain(
        self, initial_query: Any, context: RequestContext, steps: Sequence[StepFactory]
    ) -> Any:
        query = initial_query
        for index, create_step in enumerate(steps, start=1):
            started = time.perf_counter()
            unit = create_step(query, context)
            query = await resolve_result(_invoke(unit, query))
            if query is NO_VALUE:
                logger.debug(f"Step {index}/{len(steps)} produced no value, ending chain")
                return None
            logger.debug(
                f"Step {index}/{len(steps)} resolved",
                extra={
                    "step": getattr(create_step, "__name__", type(create_step).__name__),
                    "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        return query

    async def run(
        self,
        initial_query: Any,
        context: RequestContext,
        steps: Sequence[StepFactory],
        timeout_ms: Optional[int] = None,
    ) -> Any:
        """
        Run the chain and return its final value.

        The timeout covers the whole chain. On expiry the in-flight step is
        cancelled at its current await point and anything it produces later
        is discarded; blocking work inside it is not reclaimed.

        Raises:
            RequestTimeoutError: the chain did not finish within timeout_ms
            Exception: whatever a step raised, unchanged
        """
        if not timeout_ms:
            return await self.run_chain(initial_query, context, steps)

        task = asyncio.ensure_future(self.run_chain(initial_query, context, steps))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        finally:
            if not task.done():
                task.add_done_callback(_discard_late_outcome)
                task.cancel()

        if task not in done:
            logger.warning(
                f"Handler chain exceeded {timeout_ms}ms",
                extra={"timeout_ms": timeout_ms, "path": context.path},
            )
            raise RequestTimeoutError()

        return task.result()
