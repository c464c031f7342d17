from __future__ import annotations

import asyncio

import pytest

from harvest_mcp.middleware.throttle import WriteRateLimitError, WriteThrottle


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.mark.asyncio
async def test_admits_up_to_limit_then_rejects() -> None:
    clock = FakeClock()
    throttle = WriteThrottle(limit=3, window_seconds=60, clock=clock)

    results = [await throttle.acquire() for _ in range(4)]

    assert results == [True, True, True, False]
    assert throttle.remaining() == 0


@pytest.mark.asyncio
async def test_rejected_attempts_do_not_extend_the_window() -> None:
    clock = FakeClock()
    throttle = WriteThrottle(limit=2, window_seconds=60, clock=clock)
    await throttle.acquire()
    await throttle.acquire()

    clock.advance(30)
    assert await throttle.acquire() is False
    clock.advance(30)

    assert await throttle.acquire() is True


@pytest.mark.asyncio
async def test_window_slides_per_admission() -> None:
    clock = FakeClock()
    throttle = WriteThrottle(limit=2, window_seconds=10, clock=clock)
    assert await throttle.acquire()
    clock.advance(5)
    assert await throttle.acquire()

    clock.advance(4.9)
    assert await throttle.acquire() is False
    clock.advance(0.1)
    assert await throttle.acquire() is True
    assert await throttle.acquire() is False


@pytest.mark.asyncio
async def test_check_or_raise_message() -> None:
    throttle = WriteThrottle(limit=1, window_seconds=60, clock=FakeClock())
    await throttle.check_or_raise()

    with pytest.raises(WriteRateLimitError) as excinfo:
        await throttle.check_or_raise()

    assert str(excinfo.value) == (
        "Rate limit exceeded: maximum 1 write operations per 60 seconds. "
        "Please wait before making more changes."
    )
    assert excinfo.value.limit == 1


@pytest.mark.asyncio
async def test_concurrent_acquires_never_over_admit() -> None:
    throttle = WriteThrottle(limit=30, window_seconds=60, clock=FakeClock())

    results = await asyncio.gather(*(throttle.acquire() for _ in range(50)))

    assert results.count(True) == 30
    assert results.count(False) == 20


@pytest.mark.asyncio
async def test_remaining_does_not_prune_the_window() -> None:
    clock = FakeClock()
    throttle = WriteThrottle(limit=2, window_seconds=10, clock=clock)
    await throttle.acquire()
    await throttle.acquire()

    clock.advance(10)

    assert throttle.remaining() == 2
    assert len(throttle._bucket.timestamps) == 2
    assert await throttle.acquire() is True
    assert len(throttle._bucket.timestamps) == 1
