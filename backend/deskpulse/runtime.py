"""Wiring of the reconciliation engine for one application instance."""

import asyncio
from functools import partial

import structlog

from deskpulse.config import Settings
from deskpulse.live.broadcaster import LiveUpdateBroadcaster
from deskpulse.metrics.schemas import MetricsSnapshot
from deskpulse.metrics.service import build_mock_snapshot, collect_live_snapshot, initial_snapshot
from deskpulse.reconcile.coordinator import ReconciliationCoordinator
from deskpulse.reconcile.debouncer import WebhookDebouncer
from deskpulse.reconcile.scheduler import refresh_loop
from deskpulse.upstream.client import UpstreamClient

logger = structlog.get_logger()


class MetricsRuntime:
    """Owns the client, broadcaster, coordinator, debouncer and timer task."""

    def __init__(self, settings: Settings, client: UpstreamClient | None = None):
        self.settings = settings
        self.client = client
        if self.client is None and settings.has_credentials:
            self.client = UpstreamClient.from_settings(settings)

        self.broadcaster = LiveUpdateBroadcaster()
        self.coordinator = ReconciliationCoordinator(
            self._collect,
            self.broadcaster,
            initial_snapshot(settings),
            cycle_timeout=settings.RECONCILE_TIMEOUT_SECONDS,
        )
        self.debouncer = WebhookDebouncer(
            partial(self.coordinator.trigger, "webhook"),
            settings.WEBHOOK_DEBOUNCE_SECONDS,
        )
        self._loop_task: asyncio.Task | None = None

    async def _collect(self, reason: str) -> MetricsSnapshot:
        if self.client is None:
            return build_mock_snapshot(self.settings, reason)
        return await collect_live_snapshot(self.client, self.settings, reason)

    async def start(self) -> None:
        logger.info(
            "metrics_runtime_starting",
            credentials_configured=self.client is not None,
            interval=self.settings.REFRESH_INTERVAL_SECONDS,
        )
        self._loop_task = asyncio.create_task(
            refresh_loop(self.coordinator, self.settings.REFRESH_INTERVAL_SECONDS)
        )

    async def stop(self) -> None:
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        await self.debouncer.aclose()
        await self.coordinator.aclose()
        if self.client is not None:
            await self.client.aclose()
        logger.info("metrics_runtime_stopped")
