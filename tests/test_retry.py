import asyncio

import pytest

from utils.cancellation import CancellationToken
from utils.errors import RunCancelled, TransientCallError
from utils.retry import is_retryable, retrying, should_retry, with_retry


class Flaky:
    def __init__(self, failures, exc=TransientCallError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise self.exc(f"boom {self.calls}")
        return "ok"


def test_should_retry_truth_table():
    cases = {
        "rate_limit": True,
        "transient": True,
        "timeout": True,
        "auth": False,
        "quota": True,
        "validation": False,
        "unknown": False,
    }
    for k, v in cases.items():
        assert should_retry(k) is v


def test_two_failures_then_success_takes_three_attempts():
    op = Flaky(2)
    assert asyncio.run(with_retry(op, 3, 0)) == "ok"
    assert op.calls == 3


def test_always_failing_makes_exactly_max_attempts():
    op = Flaky(None)
    with pytest.raises(TransientCallError, match="boom 3"):
        asyncio.run(with_retry(op, 3, 0))
    assert op.calls == 3


def test_retry_if_stops_early():
    op = Flaky(None, exc=ValueError)
    with pytest.raises(ValueError):
        asyncio.run(with_retry(op, 3, 0, retry_if=is_retryable))
    assert op.calls == 1


def test_backoff_delays_are_capped(monkeypatch):
    waits = []

    async def fake_sleep(delay):
        waits.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    op = Flaky(None)
    with pytest.raises(TransientCallError):
        asyncio.run(with_retry(op, 4, 1.0, backoff=2.0, cap=3.0))
    assert waits == [1.0, 2.0, 3.0]


def test_on_retry_hook_sees_each_failed_attempt():
    seen = []
    op = Flaky(2)
    asyncio.run(with_retry(op, 3, 0, on_retry=lambda n, e: seen.append(n)))
    assert seen == [1, 2]


def test_cancelled_token_interrupts_the_wait():
    async def scenario():
        token = CancellationToken()
        op = Flaky(None)
        task = asyncio.ensure_future(with_retry(op, 3, 30.0, cancel_token=token))
        while op.calls == 0:
            await asyncio.sleep(0)
        token.cancel()
        with pytest.raises(RunCancelled):
            await asyncio.wait_for(task, timeout=2)
        return op.calls

    assert asyncio.run(scenario()) == 1


def test_run_cancelled_is_never_retried():
    op = Flaky(None, exc=RunCancelled)
    with pytest.raises(RunCancelled):
        asyncio.run(with_retry(op, 3, 0))
    assert op.calls == 1


def test_decorator_form():
    calls = []

    @retrying(3, 0)
    async def fetch(x):
        calls.append(x)
        if len(calls) < 2:
            raise TransientCallError("again")
        return x * 2

    assert asyncio.run(fetch(21)) == 42
    assert calls == [21, 21]


class InsufficientQuotaError(Exception):
    pass


def test_quota_window_errors_are_retried():
    exc = InsufficientQuotaError("billing window exhausted")
    assert is_retryable(exc) is True
    op = Flaky(1, exc=InsufficientQuotaError)
    assert asyncio.run(with_retry(op, 3, 0, retry_if=is_retryable)) == "ok"
    assert op.calls == 2
