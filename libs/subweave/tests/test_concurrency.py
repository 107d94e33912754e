from __future__ import annotations

import asyncio

import pytest

from subweave.exceptions import OperationCancelledError, OperationTimeoutError
from subweave.pipeline.concurrency import Semaphore, map_in_parallel, run_cancellable


@pytest.mark.asyncio
async def test_map_in_parallel_preserves_order_and_bounds_in_flight() -> None:
    in_flight = 0
    peak = 0

    async def _work(item: int, index: int) -> int:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # Later items finish first.
        await asyncio.sleep(0.001 * (10 - item))
        in_flight -= 1
        assert item == index
        return item * 10

    results = await map_in_parallel(range(10), 3, _work)

    assert results == [i * 10 for i in range(10)]
    assert peak == 3


@pytest.mark.asyncio
async def test_map_in_parallel_empty_input() -> None:
    async def _work(item: int, index: int) -> int:  # pragma: no cover
        raise AssertionError("not called")

    assert await map_in_parallel([], 4, _work) == []


@pytest.mark.asyncio
async def test_map_in_parallel_fail_fast_stops_dispatch() -> None:
    started: list[int] = []

    async def _work(item: int, index: int) -> int:
        started.append(item)
        if item == 1:
            raise ValueError("boom")
        await asyncio.sleep(0.01)
        return item

    with pytest.raises(ValueError, match="boom"):
        await map_in_parallel(range(20), 2, _work)

    assert len(started) < 20


@pytest.mark.asyncio
async def test_map_in_parallel_cancel_event_rejects() -> None:
    cancel = asyncio.Event()
    started: list[int] = []

    async def _work(item: int, index: int) -> int:
        started.append(item)
        if item == 2:
            cancel.set()
        await asyncio.sleep(1)
        return item

    with pytest.raises(OperationCancelledError):
        await map_in_parallel(range(10), 3, _work, cancel_event=cancel)

    assert started == [0, 1, 2]


@pytest.mark.asyncio
async def test_run_cancellable_timeout_is_a_cancellation() -> None:
    with pytest.raises(OperationCancelledError) as excinfo:
        await run_cancellable(asyncio.sleep(1), timeout_s=0.01, stage="translation")

    assert isinstance(excinfo.value, OperationTimeoutError)
    assert excinfo.value.stage == "translation"


@pytest.mark.asyncio
async def test_run_cancellable_already_cancelled() -> None:
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        await run_cancellable(asyncio.sleep(0), cancel_event=cancel)


@pytest.mark.asyncio
async def test_run_cancellable_returns_result() -> None:
    async def _value() -> str:
        return "ok"

    assert await run_cancellable(_value(), cancel_event=asyncio.Event(), timeout_s=1) == "ok"


@pytest.mark.asyncio
async def test_semaphore_acquire_suspends_until_release() -> None:
    sem = Semaphore(2)
    await sem.acquire()
    await sem.acquire()
    assert sem.available == 0

    waiter = asyncio.ensure_future(sem.acquire())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    sem.release()
    await asyncio.wait_for(waiter, timeout=1)
    assert sem.in_use == 2

    sem.release()
    sem.release()
    assert sem.in_use == 0


@pytest.mark.asyncio
async def test_semaphore_slot_releases_on_error() -> None:
    sem = Semaphore(1)

    with pytest.raises(RuntimeError, match="inside"):
        async with sem.slot() as state:
            assert state.active == 1
            raise RuntimeError("inside")

    assert sem.in_use == 0


@pytest.mark.asyncio
async def test_semaphore_acquire_cancelled_while_waiting() -> None:
    sem = Semaphore(1)
    cancel = asyncio.Event()
    await sem.acquire()

    waiter = asyncio.ensure_future(sem.acquire(cancel))
    await asyncio.sleep(0.01)
    cancel.set()

    with pytest.raises(OperationCancelledError):
        await waiter
    sem.release()
    assert sem.in_use == 0
    assert sem.available == 1


def test_semaphore_rejects_over_release_and_bad_capacity() -> None:
    with pytest.raises(ValueError):
        Semaphore(0)
    with pytest.raises(RuntimeError):
        Semaphore(1).release()
