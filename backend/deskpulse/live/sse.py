"""Server-Sent-Events framing for the live update stream."""

import asyncio
import json
from collections.abc import AsyncGenerator, Awaitable, Callable

import structlog
from fastapi.responses import StreamingResponse

from deskpulse.live.broadcaster import LiveEvent, QueueSink
from deskpulse.metrics.schemas import to_json

logger = structlog.get_logger()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_event(event: LiveEvent) -> str:
    data = json.dumps(to_json(event.payload), separators=(",", ":"))
    return f"event: {event.kind}\ndata: {data}\n\n"


async def event_stream(
    sink: QueueSink,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float,
    retry_ms: int | None = None,
) -> AsyncGenerator[str, None]:
    """Yield SSE frames from *sink* until the client goes away."""
    if retry_ms:
        yield f"retry: {retry_ms}\n\n"
    try:
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(sink.receive(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_event(event)
    except asyncio.CancelledError:
        logger.info("sse_client_disconnected", sink_id=sink.id)
        raise


class EventStreamResponse(StreamingResponse):
    """Streaming response that always closes its frame generator.

    A client that disconnects while the generator is suspended at a ``yield``
    would otherwise leave its ``finally`` unrun until garbage collection.
    """

    media_type = "text/event-stream"

    def __init__(self, content, **kwargs):
        kwargs.setdefault("headers", SSE_HEADERS)
        super().__init__(content, **kwargs)

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            aclose = getattr(self.body_iterator, "aclose", None)
            if aclose is not None:
                await aclose()
