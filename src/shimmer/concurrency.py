"""Bounded-parallelism fan-out/fan-in over deferred async units of work.

A fixed pool of worker tasks pulls items in order, calls ``selector(item)``
only when it picks the item up, and collects results in completion order.
The first failure stops new dispatch but does not cancel units already in
flight; they run to completion and their results are discarded.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncIterable, Sized
from typing import TYPE_CHECKING, cast

import anyio

from shimmer import exceptions

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


@dataclasses.dataclass(slots=True)
class _Failure:
    item: object
    error: Exception
    from_source: bool = False


class _ItemSource[T]:
    """Hands out items one at a time to concurrent workers."""

    _iterator: Iterator[T] | None
    _async_iterator: AsyncIterator[T] | None
    _lock: anyio.Lock

    def __init__(self, items: Iterable[T] | AsyncIterable[T]) -> None:
        if isinstance(items, AsyncIterable):
            self._iterator = None
            self._async_iterator = aiter(cast("AsyncIterable[T]", items))
        else:
            self._iterator = iter(items)
            self._async_iterator = None
        self._lock = anyio.Lock()

    async def next(self) -> T | object:
        """Return the next item, or _EXHAUSTED."""
        if self._iterator is not None:
            # No await between check and pull, so this is atomic on the event loop
            return next(self._iterator, _EXHAUSTED)
        assert self._async_iterator is not None
        async with self._lock:
            try:
                return await anext(self._async_iterator)
            except StopAsyncIteration:
                return _EXHAUSTED


async def map_reduce[T, R](
    items: Iterable[T] | AsyncIterable[T],
    selector: Callable[[T], Awaitable[R]],
    degree_of_parallelism: int = 4,
) -> list[R]:
    """Run ``selector(item)`` for every item with at most N units in flight.

    Args:
        items: Items to process, pulled lazily in order.
        selector: Returns the awaitable unit of work for an item. Not called
            until a worker is free to run that unit.
        degree_of_parallelism: Maximum concurrently running units (>= 1).

    Returns:
        Results in completion order (not input order).

    Raises:
        MapReduceError: If any unit failed. Chained to the first failure;
            side effects of other units may already have happened.
    """
    if degree_of_parallelism < 1:
        raise ValueError(f"degree_of_parallelism must be >= 1, got {degree_of_parallelism}")

    workers = degree_of_parallelism
    if isinstance(items, Sized):
        workers = min(workers, len(items))

    source = _ItemSource(items)
    results = list[R]()
    failure: _Failure | None = None

    def record_failure(new: _Failure) -> None:
        nonlocal failure
        if failure is None:
            failure = new
            logger.debug(f"First failure for item {new.item!r}, stopping dispatch: {new.error!r}")
        else:
            logger.debug(f"Discarding later failure for item {new.item!r}: {new.error!r}")

    async def worker() -> None:
        while failure is None:
            try:
                item = await source.next()
            except Exception as e:
                record_failure(_Failure(item=None, error=e, from_source=True))
                return
            if item is _EXHAUSTED:
                return
            unit_item = cast("T", item)
            try:
                result = await selector(unit_item)
            except Exception as e:
                record_failure(_Failure(item=unit_item, error=e))
                return
            results.append(result)

    async with anyio.create_task_group() as tg:
        for _ in range(workers):
            tg.start_soon(worker)

    if failure is not None:
        if failure.from_source:
            raise failure.error
        logger.debug(f"Discarding {len(results)} completed results after failure")
        raise exceptions.MapReduceError(failure.item, failure.error) from failure.error

    return results


def run_map_reduce[T, R](
    items: Iterable[T] | AsyncIterable[T],
    selector: Callable[[T], Awaitable[R]],
    degree_of_parallelism: int | None = None,
) -> list[R]:
    """Blocking wrapper around :func:`map_reduce` for synchronous callers."""
    if degree_of_parallelism is None:
        from shimmer import config

        degree_of_parallelism = config.get_default_parallelism()
    return anyio.run(map_reduce, items, selector, degree_of_parallelism)
