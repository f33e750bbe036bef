import asyncio

import pytest

from deskpulse.errors import PerTicketFetchError
from deskpulse.upstream.fetcher import fetch_bounded


@pytest.mark.asyncio
async def test_never_exceeds_concurrency_limit():
    active = 0
    peak = 0
    calls: list[int] = []

    async def fetch(item: int) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        calls.append(item)
        await asyncio.sleep(0.001 * (item % 3))
        active -= 1
        return item * 10

    outcome = await fetch_bounded(list(range(20)), fetch, limit=4)

    assert peak == 4
    assert sorted(calls) == list(range(20))
    assert sorted(outcome.results) == [i * 10 for i in range(20)]
    assert outcome.attempted == 20
    assert outcome.failures == []


@pytest.mark.asyncio
async def test_single_failure_does_not_abort_batch():
    async def fetch(item: int) -> int:
        if item == 7:
            raise RuntimeError("boom")
        return item

    outcome = await fetch_bounded(list(range(50)), fetch, limit=5)

    assert len(outcome.results) == 49
    assert len(outcome.failures) == 1
    failure = outcome.failures[0]
    assert isinstance(failure, PerTicketFetchError)
    assert failure.ticket_id == 7
    assert isinstance(failure.cause, RuntimeError)


@pytest.mark.asyncio
async def test_fewer_items_than_limit():
    active = 0
    peak = 0

    async def fetch(item: str) -> str:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0)
        active -= 1
        return item

    outcome = await fetch_bounded(["a", "b"], fetch, limit=10)

    assert peak == 2
    assert sorted(outcome.results) == ["a", "b"]


@pytest.mark.asyncio
async def test_empty_batch():
    async def fetch(item):
        raise AssertionError("should not be called")

    outcome = await fetch_bounded([], fetch, limit=3)

    assert outcome.attempted == 0
    assert outcome.results == []


@pytest.mark.asyncio
async def test_rejects_zero_limit():
    async def fetch(item):
        return item

    with pytest.raises(ValueError):
        await fetch_bounded([1], fetch, limit=0)
