from fastapi import APIRouter, Depends, Request

from deskpulse.dependencies import get_runtime
from deskpulse.live.broadcaster import QueueSink
from deskpulse.live.sse import EventStreamResponse, event_stream
from deskpulse.metrics.schemas import HealthResponse, MetricsResponse, to_json
from deskpulse.runtime import MetricsRuntime

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def get_metrics(runtime: MetricsRuntime = Depends(get_runtime)):
    """Current snapshot plus coordinator status. Pull fallback for the dashboard."""
    coordinator = runtime.coordinator
    response = MetricsResponse(
        **coordinator.snapshot.model_dump(),
        reconciling=coordinator.reconciling,
        last_error=coordinator.last_error,
    )
    return to_json(response)


@router.get("/stream")
async def stream_metrics(request: Request, runtime: MetricsRuntime = Depends(get_runtime)):
    """Server-Sent Events: a ``metrics`` event on connect, then one per broadcast."""
    settings = runtime.settings
    broadcaster = runtime.broadcaster
    sink = QueueSink(maxsize=settings.SSE_QUEUE_SIZE)

    async def frames():
        try:
            # Registered only once the body is streaming, so a client that
            # never receives a byte never enters the registry
            broadcaster.subscribe(sink, runtime.coordinator.snapshot)
            async for frame in event_stream(
                sink,
                request.is_disconnected,
                settings.SSE_KEEPALIVE_SECONDS,
                settings.SSE_RETRY_MS,
            ):
                yield frame
        finally:
            broadcaster.unsubscribe(sink)

    return EventStreamResponse(frames())


@router.get("/health")
async def health(runtime: MetricsRuntime = Depends(get_runtime)):
    coordinator = runtime.coordinator
    return to_json(HealthResponse(
        status="ok",
        credentials_configured=runtime.settings.has_credentials,
        subscribers=runtime.broadcaster.subscriber_count,
        pending_refreshes=coordinator.pending_depth,
        webhook_pending=runtime.debouncer.pending,
        reconciling=coordinator.reconciling,
        last_snapshot_at=coordinator.snapshot.generated_at,
        last_error=coordinator.last_error,
    ))
