"""Turn raw ticket counts and per-ticket timings into the published KPI set.

Averages only consider tickets that actually carry the figure: a ticket with
no reply time contributes to neither the sum nor the count. SLA compliance is
the share of resolved tickets whose resolution time is within the target.
Percentages and minutes round exact halves up, as browser dashboards do.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from deskpulse.metrics.schemas import UNAVAILABLE, KpiSet, SampleInfo


@dataclass(frozen=True)
class TicketCounts:
    received_today: int
    resolved_today: int
    pending: int


@dataclass(frozen=True)
class TicketTimings:
    ticket_id: object
    reply_minutes: float | None = None
    resolution_minutes: float | None = None


def round_half_up(value: float) -> int:
    """12.5 -> 13, not the 12 that ``round`` gives."""
    return math.floor(value + 0.5)


def _present(values: Iterable[float | None]) -> list[float]:
    return [v for v in values if v is not None and not math.isnan(v)]


def average(values: Iterable[float | None]) -> float | None:
    present = _present(values)
    if not present:
        return None
    return sum(present) / len(present)


def sla_compliance(resolution_minutes: Iterable[float | None], target_minutes: float) -> str:
    present = _present(resolution_minutes)
    if not present:
        return UNAVAILABLE
    within = sum(1 for minutes in present if minutes <= target_minutes)
    return f"{round_half_up(100 * within / len(present))}%"


def format_duration(minutes: float | None) -> str:
    """``H:MM h`` from one hour up, ``M min`` below it, ``--`` when unknown."""
    if minutes is None or math.isnan(minutes):
        return UNAVAILABLE
    total = round_half_up(minutes)
    if total >= 60:
        hours, rest = divmod(total, 60)
        return f"{hours}:{rest:02d} h"
    return f"{total} min"


def build_kpis(
    counts: TicketCounts,
    timings: Sequence[TicketTimings],
    sla_target_minutes: float,
    considered: int | None = None,
) -> tuple[KpiSet, SampleInfo]:
    replies = [t.reply_minutes for t in timings]
    resolutions = [t.resolution_minutes for t in timings]
    considered = len(timings) if considered is None else considered

    kpis = KpiSet(
        tickets_received_today=str(counts.received_today),
        tickets_resolved_today=str(counts.resolved_today),
        tickets_pending=str(counts.pending),
        frt_average=format_duration(average(replies)),
        resolution_average=format_duration(average(resolutions)),
        sla_compliance=sla_compliance(resolutions, sla_target_minutes),
    )
    sample = SampleInfo(
        considered_tickets=considered,
        with_reply_time=len(_present(replies)),
        with_resolution_time=len(_present(resolutions)),
        failed_tickets=considered - len(timings),
    )
    return kpis, sample
