"""
Bounded fan-out for page-level work inside one pipeline stage.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
    before_each: Callable[[], None] | None = None,
) -> list[R]:
    """
    Run *worker* over *items* with at most *limit* in flight.

    Results come back in input order. *before_each* runs right before each
    item starts (used for cancellation checks); if it raises, the exception
    propagates once the items already in flight have settled.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: T) -> R:
        async with semaphore:
            if before_each is not None:
                before_each()
            return await worker(item)

    tasks = [asyncio.create_task(_run(item)) for item in items]
    if not tasks:
        return []

    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
