from __future__ import annotations
from typing import Awaitable, Callable, Iterable, List, TypeVar, Union
import asyncio

T = TypeVar("T")
R = TypeVar("R")

async def bounded_gather(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    limit: int,
) -> List[Union[R, BaseException]]:
    """
    Run fn over items with at most `limit` calls in flight.

    Results come back in input order. A failing item yields its exception in
    place of a result and never cancels its siblings.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run_one(item: T) -> R:
        async with semaphore:
            return await fn(item)

    return await asyncio.gather(*[run_one(i) for i in items], return_exceptions=True)
