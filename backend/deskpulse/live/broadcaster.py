"""Fan-out of snapshots to connected dashboard viewers.

Broadcasting is synchronous: every sink registered when ``broadcast`` is
called receives the same event object in the same event-loop turn, so no
viewer can observe a mix of two reconciliation cycles.
"""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Literal, Protocol

import structlog

from deskpulse.metrics.schemas import ErrorRecord, MetricsSnapshot

logger = structlog.get_logger()


@dataclass(frozen=True)
class LiveEvent:
    kind: Literal["metrics", "error"]
    payload: MetricsSnapshot | ErrorRecord


class Sink(Protocol):
    def send(self, event: LiveEvent) -> None: ...


class QueueSink:
    """Bounded per-viewer queue. A slow viewer loses its oldest queued events."""

    _ids = itertools.count(1)

    def __init__(self, maxsize: int = 16):
        self.id = next(self._ids)
        self.dropped = 0
        self._queue: asyncio.Queue[LiveEvent] = asyncio.Queue(maxsize=maxsize)

    def send(self, event: LiveEvent) -> None:
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1

    async def receive(self) -> LiveEvent:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class LiveUpdateBroadcaster:
    def __init__(self) -> None:
        self._sinks: set[Sink] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._sinks)

    def subscribe(self, sink: Sink, current: MetricsSnapshot | None = None) -> Sink:
        """Register *sink*, handing it *current* before any later broadcast."""
        if current is not None:
            sink.send(LiveEvent("metrics", current))
        self._sinks.add(sink)
        logger.info("live_subscriber_added", subscribers=len(self._sinks))
        return sink

    def unsubscribe(self, sink: Sink) -> None:
        if sink in self._sinks:
            self._sinks.discard(sink)
            logger.info("live_subscriber_removed", subscribers=len(self._sinks))

    def broadcast(self, snapshot: MetricsSnapshot) -> int:
        return self._deliver(LiveEvent("metrics", snapshot))

    def broadcast_error(self, error: ErrorRecord) -> int:
        return self._deliver(LiveEvent("error", error))

    def _deliver(self, event: LiveEvent) -> int:
        delivered = 0
        for sink in list(self._sinks):
            try:
                sink.send(event)
                delivered += 1
            except Exception:
                logger.exception("live_sink_write_failed", kind=event.kind)
                self._sinks.discard(sink)
        return delivered
