import asyncio
from typing import Awaitable, List, TypeVar, Union

T = TypeVar("T")


async def gather_settled(
    *coros: Awaitable[T], max_concurrency: int = 8
) -> List[Union[T, BaseException]]:
    """
    Run coroutines with at most `max_concurrency` in flight.
    Results keep argument order; a failed coroutine yields its exception
    instead of cancelling the others.
    """
    sem = asyncio.Semaphore(max_concurrency)

    async def run_with_sem(coro: Awaitable[T]):
        async with sem:
            return await coro

    if not coros:
        return []

    return await asyncio.gather(*[run_with_sem(c) for c in coros], return_exceptions=True)
