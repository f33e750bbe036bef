from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNAVAILABLE = "--"


class _Frozen(BaseModel):
    """Immutable model serialised with camelCase keys for the browser client."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class KpiSet(_Frozen):
    tickets_received_today: str = UNAVAILABLE
    tickets_resolved_today: str = UNAVAILABLE
    tickets_pending: str = UNAVAILABLE
    frt_average: str = UNAVAILABLE
    resolution_average: str = UNAVAILABLE
    sla_compliance: str = UNAVAILABLE


class SampleInfo(_Frozen):
    considered_tickets: int
    with_reply_time: int
    with_resolution_time: int
    failed_tickets: int = 0


class ErrorRecord(_Frozen):
    at: datetime
    message: str
    reason: str


class MetricsSnapshot(_Frozen):
    source: Literal["live", "mock"]
    generated_at: datetime
    refresh_interval_ms: int
    kpis: KpiSet
    sample_info: SampleInfo | None = None
    note: str | None = None
    reconcile_reason: str | None = None
    stale: bool = False


class MetricsResponse(MetricsSnapshot):
    reconciling: bool
    last_error: ErrorRecord | None = None


class HealthResponse(_Frozen):
    status: str
    credentials_configured: bool
    subscribers: int
    pending_refreshes: int
    webhook_pending: bool
    reconciling: bool
    last_snapshot_at: datetime | None
    last_error: ErrorRecord | None = None


def to_json(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)
