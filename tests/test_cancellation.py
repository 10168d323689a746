import asyncio
import threading
import time

import pytest

from utils.cancellation import CancellationToken
from utils.errors import RunCancelled


def test_cancellation_token_stops_loop():
    token = CancellationToken()

    def long_loop():
        for _ in range(1000):
            token.raise_if_cancelled()
            time.sleep(0.001)

    def cancel_later():
        time.sleep(0.01)
        token.cancel()

    t = threading.Thread(target=cancel_later)
    t.start()
    with pytest.raises(RuntimeError):
        long_loop()
    t.join()


def test_guard_returns_result_when_not_cancelled():
    async def work():
        await asyncio.sleep(0)
        return 7

    token = CancellationToken()
    assert asyncio.run(token.guard(work())) == 7


def test_guard_abandons_in_flight_work():
    async def scenario():
        token = CancellationToken()
        started = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            await asyncio.sleep(30)
            finished.append(True)

        guarded = asyncio.ensure_future(token.guard(slow()))
        await started.wait()
        token.cancel()
        with pytest.raises(RunCancelled):
            await guarded
        return finished

    assert asyncio.run(scenario()) == []


def test_guard_propagates_work_errors():
    async def broken():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        asyncio.run(CancellationToken().guard(broken()))


def test_sleep_raises_if_already_cancelled():
    token = CancellationToken()
    token.cancel()
    with pytest.raises(RunCancelled):
        asyncio.run(token.sleep(10))


def test_sleep_returns_after_delay():
    token = CancellationToken()
    asyncio.run(token.sleep(0.01))
    assert not token.is_set()
