"""Zendesk Support endpoints used to compute the desk KPIs."""

from datetime import date
from typing import Protocol

from deskpulse.metrics.aggregator import TicketCounts, TicketTimings


class JsonGetter(Protocol):
    async def get(self, path: str, params: dict | None = None) -> dict: ...


def received_query(day: date) -> str:
    return f"type:ticket created>={day.isoformat()}"


def solved_query(day: date) -> str:
    return f"type:ticket solved>={day.isoformat()}"


PENDING_QUERY = "type:ticket status<solved"


async def count_tickets(client: JsonGetter, query: str) -> int:
    data = await client.get("/api/v2/search/count.json", params={"query": query})
    return int(data.get("count") or 0)


async def fetch_ticket_counts(client: JsonGetter, day: date) -> TicketCounts:
    """Run the three count searches one after another."""
    received = await count_tickets(client, received_query(day))
    resolved = await count_tickets(client, solved_query(day))
    pending = await count_tickets(client, PENDING_QUERY)
    return TicketCounts(received_today=received, resolved_today=resolved, pending=pending)


async def solved_ticket_ids(client: JsonGetter, day: date, limit: int) -> list[int]:
    """Most recently updated tickets solved since *day*, at most *limit* of them."""
    data = await client.get(
        "/api/v2/search.json",
        params={
            "query": solved_query(day),
            "sort_by": "updated_at",
            "sort_order": "desc",
            "per_page": limit,
        },
    )
    ids: list[int] = []
    for result in data.get("results", []):
        ticket_id = result.get("id")
        if ticket_id is not None and ticket_id not in ids:
            ids.append(ticket_id)
        if len(ids) >= limit:
            break
    return ids


def _calendar_minutes(metric: dict, field: str) -> float | None:
    value = (metric.get(field) or {}).get("calendar")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


async def fetch_ticket_timings(client: JsonGetter, ticket_id: int) -> TicketTimings:
    data = await client.get(f"/api/v2/tickets/{ticket_id}/metrics.json")
    metric = data.get("ticket_metric") or {}
    return TicketTimings(
        ticket_id=ticket_id,
        reply_minutes=_calendar_minutes(metric, "reply_time_in_minutes"),
        resolution_minutes=_calendar_minutes(metric, "full_resolution_time_in_minutes"),
    )
