from datetime import date, datetime, timezone
from functools import partial
from zoneinfo import ZoneInfo

import structlog

from deskpulse.config import Settings
from deskpulse.metrics.aggregator import TicketCounts, TicketTimings, build_kpis
from deskpulse.metrics.schemas import KpiSet, MetricsSnapshot
from deskpulse.upstream.fetcher import fetch_bounded
from deskpulse.upstream.zendesk import (
    JsonGetter,
    fetch_ticket_counts,
    fetch_ticket_timings,
    solved_ticket_ids,
)

logger = structlog.get_logger()

MOCK_NOTE = (
    "Zendesk credentials are not configured (ZENDESK_SUBDOMAIN, ZENDESK_EMAIL, "
    "ZENDESK_API_TOKEN). Showing demo data."
)
WAITING_NOTE = "Waiting for the first reconciliation."

MOCK_COUNTS = TicketCounts(received_today=42, resolved_today=35, pending=18)
MOCK_TIMINGS = [
    TicketTimings("DEMO-1", reply_minutes=12, resolution_minutes=95),
    TicketTimings("DEMO-2", reply_minutes=35, resolution_minutes=310),
    TicketTimings("DEMO-3", reply_minutes=8, resolution_minutes=620),
    TicketTimings("DEMO-4", reply_minutes=None, resolution_minutes=45),
    TicketTimings("DEMO-5", reply_minutes=64, resolution_minutes=None),
]


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def initial_snapshot(settings: Settings) -> MetricsSnapshot:
    return MetricsSnapshot(
        source="live" if settings.has_credentials else "mock",
        generated_at=datetime.now(timezone.utc),
        refresh_interval_ms=settings.refresh_interval_ms,
        kpis=KpiSet(),
        note=WAITING_NOTE,
    )


def build_mock_snapshot(settings: Settings, reason: str) -> MetricsSnapshot:
    kpis, sample = build_kpis(MOCK_COUNTS, MOCK_TIMINGS, settings.SLA_TARGET_MINUTES)
    return MetricsSnapshot(
        source="mock",
        generated_at=datetime.now(timezone.utc),
        refresh_interval_ms=settings.refresh_interval_ms,
        kpis=kpis,
        sample_info=sample,
        note=MOCK_NOTE,
        reconcile_reason=reason,
    )


async def collect_live_snapshot(client: JsonGetter, settings: Settings, reason: str) -> MetricsSnapshot:
    """One full fetch+aggregate cycle against the ticketing API.

    Count and search failures propagate as ``UpstreamError``; per-ticket
    metric failures only shrink the sample.
    """
    day = today_in(settings.METRICS_TIMEZONE)
    counts = await fetch_ticket_counts(client, day)
    ticket_ids = await solved_ticket_ids(client, day, settings.MAX_TICKETS_PER_CYCLE)

    outcome = await fetch_bounded(
        ticket_ids,
        partial(fetch_ticket_timings, client),
        settings.MAX_CONCURRENT_REQUESTS,
    )
    kpis, sample = build_kpis(
        counts, outcome.results, settings.SLA_TARGET_MINUTES, considered=outcome.attempted,
    )

    note = None
    if outcome.failures:
        note = f"{len(outcome.failures)} of {outcome.attempted} tickets could not be fetched; averages use the rest."

    logger.info(
        "live_metrics_collected",
        reason=reason,
        received=counts.received_today,
        resolved=counts.resolved_today,
        pending=counts.pending,
        sampled=outcome.attempted,
        failed=len(outcome.failures),
    )
    return MetricsSnapshot(
        source="live",
        generated_at=datetime.now(timezone.utc),
        refresh_interval_ms=settings.refresh_interval_ms,
        kpis=kpis,
        sample_info=sample,
        note=note,
        reconcile_reason=reason,
    )
