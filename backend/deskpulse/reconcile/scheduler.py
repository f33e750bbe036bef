"""Periodic reconciliation: refresh once at startup, then every interval."""

import asyncio

import structlog

from deskpulse.reconcile.coordinator import ReconciliationCoordinator

logger = structlog.get_logger()


async def refresh_loop(coordinator: ReconciliationCoordinator, interval_seconds: float) -> None:
    """Run ``refresh`` every *interval_seconds* indefinitely."""
    logger.info("metrics_refresh_loop_started", interval=interval_seconds)
    reason = "startup"
    while True:
        try:
            await coordinator.refresh(reason)
        except Exception:
            logger.exception("metrics_refresh_loop_error", reason=reason)
        reason = "interval"
        await asyncio.sleep(interval_seconds)
