"""Single-flight owner of the published metrics snapshot.

States: idle, running, running with a pending reason. A ``refresh`` that
arrives while a run is in flight only records its reason (the latest reason
wins) and returns. When the run finishes, exactly one follow-up run is
started for the queued reason. Runs never raise: failures are recorded in
``last_error`` and the previous snapshot is republished with a caveat.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from deskpulse.errors import ReconcileTimeoutError, UpstreamError
from deskpulse.live.broadcaster import LiveUpdateBroadcaster
from deskpulse.metrics.schemas import ErrorRecord, MetricsSnapshot

logger = structlog.get_logger()

QUEUED_SUFFIX = ":queued"

CollectFunc = Callable[[str], Awaitable[MetricsSnapshot]]


@dataclass
class ReconciliationState:
    current_snapshot: MetricsSnapshot
    in_flight: bool = False
    pending_reason: str | None = None
    last_error: ErrorRecord | None = None
    runs_completed: int = 0


@dataclass
class _BackgroundTasks:
    tasks: set[asyncio.Task] = field(default_factory=set)

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task


class ReconciliationCoordinator:
    def __init__(
        self,
        collect: CollectFunc,
        broadcaster: LiveUpdateBroadcaster,
        initial: MetricsSnapshot,
        *,
        cycle_timeout: float | None = None,
    ):
        self._collect = collect
        self._broadcaster = broadcaster
        self._cycle_timeout = cycle_timeout or None
        self._background = _BackgroundTasks()
        self.state = ReconciliationState(current_snapshot=initial)

    @property
    def snapshot(self) -> MetricsSnapshot:
        return self.state.current_snapshot

    @property
    def reconciling(self) -> bool:
        return self.state.in_flight

    @property
    def last_error(self) -> ErrorRecord | None:
        return self.state.last_error

    @property
    def pending_depth(self) -> int:
        return 0 if self.state.pending_reason is None else 1

    def trigger(self, reason: str) -> asyncio.Task:
        """Fire-and-forget ``refresh`` for callers that must not wait."""
        return self._background.spawn(self.refresh(reason))

    async def refresh(self, reason: str) -> None:
        state = self.state
        if state.in_flight:
            if state.pending_reason is not None:
                logger.info("reconcile_pending_replaced", previous=state.pending_reason, reason=reason)
            state.pending_reason = reason
            return

        state.in_flight = True
        try:
            await self._run(reason)
            while state.pending_reason is not None:
                queued, state.pending_reason = state.pending_reason, None
                await self._run(queued + QUEUED_SUFFIX)
        finally:
            state.in_flight = False

    async def _run(self, reason: str) -> None:
        logger.info("reconcile_started", reason=reason)
        try:
            if self._cycle_timeout:
                try:
                    snapshot = await asyncio.wait_for(self._collect(reason), timeout=self._cycle_timeout)
                except asyncio.TimeoutError:
                    raise ReconcileTimeoutError(self._cycle_timeout) from None
            else:
                snapshot = await self._collect(reason)
        except (UpstreamError, ReconcileTimeoutError) as exc:
            logger.warning("reconcile_failed", reason=reason, error=str(exc))
            self._record_failure(reason, exc)
            return
        except Exception as exc:
            logger.exception("reconcile_crashed", reason=reason)
            self._record_failure(reason, exc)
            return

        self.state.current_snapshot = snapshot
        self.state.last_error = None
        self.state.runs_completed += 1
        delivered = self._broadcaster.broadcast(snapshot)
        logger.info("reconcile_finished", reason=reason, source=snapshot.source, delivered=delivered)

    def _record_failure(self, reason: str, exc: Exception) -> None:
        now = datetime.now(timezone.utc)
        error = ErrorRecord(at=now, message=str(exc) or type(exc).__name__, reason=reason)
        previous = self.state.current_snapshot
        degraded = previous.model_copy(update={
            "note": f"Refresh failed at {now:%H:%M:%S} UTC ({error.message}); showing last known values.",
            "reconcile_reason": reason,
            "stale": True,
        })
        self.state.current_snapshot = degraded
        self.state.last_error = error
        self.state.runs_completed += 1
        self._broadcaster.broadcast(degraded)
        self._broadcaster.broadcast_error(error)

    async def aclose(self) -> None:
        for task in list(self._background.tasks):
            task.cancel()
        for task in list(self._background.tasks):
            try:
                await task
            except asyncio.CancelledError:
                pass
