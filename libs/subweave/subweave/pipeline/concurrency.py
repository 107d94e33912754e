"""Bounded-concurrency primitives shared by every pipeline stage.

Cancellation is cooperative: a single `asyncio.Event` is threaded through the
pipeline. When it fires, suspended calls reject with `OperationCancelledError`
and `map_in_parallel` stops dispatching new items.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from subweave.exceptions import OperationCancelledError, OperationTimeoutError

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ConcurrencyState:
    active: int
    max: int


async def _discard(task: asyncio.Future[Any]) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


async def run_cancellable(
    aw: Awaitable[R],
    *,
    cancel_event: asyncio.Event | None = None,
    timeout_s: float | None = None,
    stage: str | None = None,
) -> R:
    """Await `aw`, racing it against the cancellation signal and an optional deadline.

    A timeout raises `OperationTimeoutError`, a subclass of `OperationCancelledError`.
    The losing task is cancelled and awaited before raising.
    """
    if cancel_event is not None and cancel_event.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        raise OperationCancelledError(stage=stage)

    task = asyncio.ensure_future(aw)
    if cancel_event is None and timeout_s is None:
        return await task

    waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
    watched: set[asyncio.Future[Any]] = {task}
    if waiter is not None:
        watched.add(waiter)
    try:
        done, _ = await asyncio.wait(
            watched,
            timeout=timeout_s,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        await _discard(task)
        if waiter is not None:
            await _discard(waiter)
        raise

    if waiter is not None and waiter not in done:
        await _discard(waiter)
    if task in done:
        return task.result()

    await _discard(task)
    if waiter is not None and waiter in done:
        raise OperationCancelledError(stage=stage)
    raise OperationTimeoutError(float(timeout_s or 0.0), stage=stage)


class Semaphore:
    """Counting semaphore bounding simultaneous in-flight external calls.

    Prefer `async with sem.slot(cancel_event):` so release happens on every path.
    """

    def __init__(self, max_permits: int) -> None:
        if int(max_permits) < 1:
            raise ValueError("max_permits must be >= 1")
        self.max = int(max_permits)
        self._sem = asyncio.Semaphore(self.max)
        self._in_use = 0

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def available(self) -> int:
        return self.max - self._in_use

    def snapshot(self) -> ConcurrencyState:
        return ConcurrencyState(active=self._in_use, max=self.max)

    async def acquire(self, cancel_event: asyncio.Event | None = None) -> None:
        """Suspend until a permit is available (or the cancellation signal fires)."""
        if cancel_event is None:
            await self._sem.acquire()
            self._in_use += 1
            return
        if cancel_event.is_set():
            raise OperationCancelledError(stage="semaphore")

        acquiring = asyncio.ensure_future(self._sem.acquire())
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {acquiring, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            await self._abandon(acquiring)
            await _discard(waiter)
            raise
        await _discard(waiter)
        if acquiring in done:
            self._in_use += 1
            return
        await self._abandon(acquiring)
        raise OperationCancelledError(stage="semaphore")

    async def _abandon(self, acquiring: asyncio.Future[Any]) -> None:
        # The acquire may have completed between the wait and the cancel.
        acquiring.cancel()
        (result,) = await asyncio.gather(acquiring, return_exceptions=True)
        if result is True:
            self._sem.release()

    def release(self) -> None:
        if self._in_use <= 0:
            raise RuntimeError("Semaphore released more times than acquired")
        self._in_use -= 1
        self._sem.release()

    @asynccontextmanager
    async def slot(self, cancel_event: asyncio.Event | None = None) -> AsyncIterator[ConcurrencyState]:
        await self.acquire(cancel_event)
        try:
            yield self.snapshot()
        finally:
            self.release()

    async def __aenter__(self) -> "Semaphore":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.release()


async def map_in_parallel(
    items: Iterable[T],
    concurrency: int,
    fn: Callable[[T, int], Awaitable[R]],
    *,
    cancel_event: asyncio.Event | None = None,
) -> list[R]:
    """Apply `fn(item, index)` to every item with at most `concurrency` calls in flight.

    Results are returned in input order. The first failure (or cancellation)
    aborts the remaining work and propagates; wrap `fn` to collect per-item
    failures instead.
    """
    pending = list(items)
    if not pending:
        return []
    results: list[Any] = [None] * len(pending)
    next_index = 0

    async def _worker() -> None:
        nonlocal next_index
        while next_index < len(pending):
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(stage="map_in_parallel")
            i = next_index
            next_index += 1
            results[i] = await run_cancellable(
                fn(pending[i], i),
                cancel_event=cancel_event,
                stage="map_in_parallel",
            )

    workers = [
        asyncio.ensure_future(_worker())
        for _ in range(min(len(pending), max(1, int(concurrency))))
    ]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for w in workers:
            w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return results
