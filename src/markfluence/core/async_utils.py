"""Async utilities for bridging the blocking HTTP client into the event loop."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used to wrap the blocking Confluence REST calls made by the sync engine.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = ConfluenceClient(config)
        page = await run_sync(client.get_page, page_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def gather_settled(
    coros: Sequence[Coroutine[Any, Any, T]],
) -> list[T | BaseException]:
    """Run coroutines concurrently and wait for every one to finish.

    Unlike a plain gather, one failure does not cancel or hide the others:
    each slot of the result holds either the coroutine's value or the
    exception it raised, in input order.

    Args:
        coros: Sequence of coroutines to run concurrently.

    Returns:
        List of results or exceptions in the same order as input coroutines.
    """
    return list(await asyncio.gather(*coros, return_exceptions=True))
