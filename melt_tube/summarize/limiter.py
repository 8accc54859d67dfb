"""Bounded-concurrency execution of coroutine factories."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_bounded(tasks: Sequence[Callable[[], Awaitable[T]]], limit: int) -> list[T]:
    """
    Run task factories with at most ``limit`` in flight at once.

    Tasks start in input order; whenever one settles the next queued task is
    started. Once a task has raised, no further queued task is started; the
    first exception is re-raised after every started task has settled.

    Returns:
        Task results in completion order (not input order)
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    results: list[T] = []
    first_error: BaseException | None = None
    in_flight: set[asyncio.Future[T]] = set()

    def collect(done: set[asyncio.Future[T]]) -> None:
        nonlocal first_error
        for future in done:
            error = asyncio.CancelledError() if future.cancelled() else future.exception()
            if error is None:
                results.append(future.result())
            elif first_error is None:
                first_error = error

    try:
        for factory in tasks:
            if len(in_flight) >= limit:
                done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                collect(done)
            if first_error is not None:
                logger.debug("Task failed; not starting the remaining queued tasks")
                break
            in_flight.add(asyncio.ensure_future(factory()))

        while in_flight:
            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            collect(done)
    except asyncio.CancelledError:
        for future in in_flight:
            future.cancel()
        await asyncio.gather(*in_flight, return_exceptions=True)
        raise

    if first_error is not None:
        raise first_error
    return results
