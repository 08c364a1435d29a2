# ABOUTME: Concurrent fan-out helper that joins tasks and honors a caller's cancel signal.
# ABOUTME: Used by both the provider orchestrator and description enrichment.

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_until_cancelled(
    awaitables: Sequence[Awaitable[T]],
    cancel_event: asyncio.Event | None = None,
) -> list[tuple[int, T]]:
    """Run awaitables concurrently and collect results as they complete.

    Returns (index, result) pairs in completion order, where index is the
    position in the input sequence. If cancel_event is set before every task
    finishes, the outstanding tasks are cancelled (abandoning their in-flight
    requests) and only the results gathered so far are returned.

    The awaitables are expected to absorb their own failures; an exception
    from one of them propagates after the others are cancelled.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    positions = {task: i for i, task in enumerate(tasks)}
    pending: set[asyncio.Future[T]] = set(tasks)
    completed: list[tuple[int, T]] = []

    waiter: asyncio.Future[object] | None = None
    if cancel_event is not None:
        waiter = asyncio.ensure_future(cancel_event.wait())

    try:
        while pending:
            watched: set[asyncio.Future] = set(pending)
            if waiter is not None:
                watched.add(waiter)
            done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)

            finished = sorted((t for t in done if t is not waiter), key=positions.__getitem__)
            for task in finished:
                pending.discard(task)
                completed.append((positions[task], task.result()))

            if waiter is not None and waiter in done:
                if pending:
                    logger.info("Cancelled with %d task(s) outstanding", len(pending))
                break
    finally:
        leftovers: list[asyncio.Future] = list(pending)
        if waiter is not None:
            leftovers.append(waiter)
        for task in leftovers:
            task.cancel()
        if leftovers:
            await asyncio.gather(*leftovers, return_exceptions=True)

    return completed
