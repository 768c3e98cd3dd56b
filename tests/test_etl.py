from __future__ import annotations

import asyncio

import pytest

from gu_market_feed import etl
from gu_market_feed.etl import AsyncIndependentJob, AsyncJobSequence, RetriesExhaustedError, RetryOptions


def recording_job(log: list, name: str, fail_times: int = 0, retries: int = 0, result=None) -> AsyncIndependentJob:
    """Job that appends ``name`` to ``log`` per attempt and fails the first ``fail_times`` attempts."""
    state = {"n": 0}

    async def op():
        log.append(name)
        state["n"] += 1
        if state["n"] <= fail_times:
            raise RuntimeError(f"{name} failed attempt {state['n']}")
        return result if result is not None else name

    return AsyncIndependentJob(op, RetryOptions(max_retries=retries))


@pytest.mark.parametrize("n", [0, 1, 2, 5])
def test_always_failing_job_makes_n_plus_one_attempts(n):
    log: list = []
    job = recording_job(log, "x", fail_times=10**6, retries=n)
    with pytest.raises(RetriesExhaustedError) as info:
        asyncio.run(job.run())
    assert len(log) == n + 1
    assert info.value.attempts == n + 1
    assert isinstance(info.value.last_error, RuntimeError)
    assert info.value.__cause__ is info.value.last_error
    assert f"attempt {n + 1}" in str(info.value.last_error)


@pytest.mark.parametrize("n,k", [(0, 1), (2, 1), (2, 3), (5, 4)])
def test_job_succeeding_on_attempt_k(n, k):
    log: list = []
    job = recording_job(log, "x", fail_times=k - 1, retries=n, result=42)
    assert asyncio.run(job.run()) == 42
    assert len(log) == k


def test_sequence_runs_children_in_order_once():
    log: list = []
    seq = AsyncJobSequence([recording_job(log, n) for n in ("job1", "job2", "job3")], RetryOptions(max_retries=3))
    assert asyncio.run(seq.run()) == ["job1", "job2", "job3"]
    assert log == ["job1", "job2", "job3"]


def test_sequence_retries_from_first_job():
    log: list = []
    seq = AsyncJobSequence(
        [recording_job(log, "job1"), recording_job(log, "job2", fail_times=10**6), recording_job(log, "job3")],
        RetryOptions(max_retries=1),
    )
    with pytest.raises(RetriesExhaustedError) as info:
        asyncio.run(seq.run())
    assert log == ["job1", "job2", "job1", "job2"]
    assert info.value.attempts == 2
    assert isinstance(info.value.last_error, RetriesExhaustedError)
    assert isinstance(info.value.root_cause, RuntimeError)


def test_child_retries_are_internal_to_the_child():
    log: list = []
    seq = AsyncJobSequence(
        [recording_job(log, "job1"), recording_job(log, "job2", fail_times=2, retries=2)],
        RetryOptions(max_retries=0),
    )
    assert asyncio.run(seq.run()) == ["job1", "job2"]
    assert log == ["job1", "job2", "job2", "job2"]


def test_sequence_recovers_on_a_later_pass():
    log: list = []
    # job2 exhausts its single attempt on pass 1, then succeeds on pass 2
    seq = AsyncJobSequence(
        [recording_job(log, "job1"), recording_job(log, "job2", fail_times=1)],
        RetryOptions(max_retries=1),
    )
    assert asyncio.run(seq.run()) == ["job1", "job2"]
    assert log == ["job1", "job2", "job1", "job2"]


def test_empty_sequence_resolves_immediately():
    seq = AsyncJobSequence([], RetryOptions(max_retries=5))
    assert asyncio.run(seq.run()) == []
    assert len(seq) == 0


def test_nested_sequence_behaves_flattened():
    log: list = []
    inner = AsyncJobSequence([recording_job(log, "a"), recording_job(log, "b")], RetryOptions(max_retries=0))
    outer = AsyncJobSequence([recording_job(log, "x"), inner, recording_job(log, "y")], RetryOptions(max_retries=0))
    assert asyncio.run(outer.run()) == ["x", ["a", "b"], "y"]
    assert log == ["x", "a", "b", "y"]


def test_nested_sequences_keep_their_own_retry_policy():
    log: list = []
    # inner retries its own pass once (b fails the first time), outer never needs to retry
    inner = AsyncJobSequence([recording_job(log, "a"), recording_job(log, "b", fail_times=1)], RetryOptions(max_retries=1))
    outer = AsyncJobSequence([recording_job(log, "x"), inner], RetryOptions(max_retries=0))
    asyncio.run(outer.run())
    assert log == ["x", "a", "b", "a", "b"]

    log.clear()
    inner = AsyncJobSequence([recording_job(log, "a", fail_times=10**6)], RetryOptions(max_retries=1))
    outer = AsyncJobSequence([recording_job(log, "x"), inner], RetryOptions(max_retries=1))
    with pytest.raises(RetriesExhaustedError) as info:
        asyncio.run(outer.run())
    assert log == ["x", "a", "a", "x", "a", "a"]
    assert isinstance(info.value.root_cause, RuntimeError)


def test_cancellation_is_not_retried():
    calls = []

    async def op():
        calls.append(1)
        raise asyncio.CancelledError()

    job = AsyncIndependentJob(op, RetryOptions(max_retries=3))
    with pytest.raises(asyncio.CancelledError):
        asyncio.run(job.run())
    assert calls == [1]


def test_delay_between_attempts(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(etl.asyncio, "sleep", fake_sleep)
    log: list = []
    job = AsyncIndependentJob(recording_job(log, "x", fail_times=2).operation, RetryOptions(max_retries=2, delay_seconds=0.5))
    assert asyncio.run(job.run()) == "x"
    # no sleep before the first attempt
    assert sleeps == [0.5, 0.5]


@pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"delay_seconds": -0.1}])
def test_retry_options_rejects_negative(kwargs):
    with pytest.raises(ValueError):
        RetryOptions(**kwargs)


def test_retry_options_defaults():
    opts = RetryOptions()
    assert opts.max_retries == 0
    assert opts.max_attempts == 1
    assert AsyncIndependentJob(lambda: None).retry_options == opts
