import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from deskpulse.errors import PerTicketFetchError

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class FetchOutcome(Generic[T, R]):
    attempted: int
    results: list[R] = field(default_factory=list)
    failures: list[PerTicketFetchError] = field(default_factory=list)


async def fetch_bounded(
    items: Sequence[T],
    fetch_one: Callable[[T], Awaitable[R]],
    limit: int,
) -> FetchOutcome[T, R]:
    """Call *fetch_one* for every item with at most *limit* calls outstanding.

    A fixed pool of ``min(limit, max(1, len(items)))`` workers drains a shared
    queue, so each item is attempted exactly once. Failures are collected per
    item and never abort the batch. Results arrive in completion order.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    queue: asyncio.Queue[T] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)

    outcome: FetchOutcome[T, R] = FetchOutcome(attempted=len(items))

    async def worker() -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                outcome.results.append(await fetch_one(item))
            except Exception as exc:
                logger.warning("ticket_fetch_failed", ticket_id=item, error=str(exc))
                outcome.failures.append(PerTicketFetchError(item, exc))

    worker_count = min(limit, max(1, len(items)))
    await asyncio.gather(*(worker() for _ in range(worker_count)))
    return outcome
