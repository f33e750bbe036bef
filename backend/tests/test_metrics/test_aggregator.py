import math

from deskpulse.metrics.aggregator import (
    TicketCounts,
    TicketTimings,
    average,
    build_kpis,
    format_duration,
    sla_compliance,
)
from deskpulse.metrics.schemas import UNAVAILABLE


def test_average_skips_missing_values():
    assert average([10, 20, None]) == 15
    assert average([None, None]) is None
    assert average([]) is None
    assert average([30, math.nan]) == 30


def test_sla_compliance_counts_tickets_within_target():
    assert sla_compliance([100, 500], 480) == "50%"
    assert sla_compliance([480, 481, None], 480) == "50%"
    assert sla_compliance([10, 20, 30], 480) == "100%"
    assert sla_compliance([1, 500, 600], 480) == "33%"


def test_sla_compliance_rounds_halves_up():
    one_of_eight = [100] + [600] * 7
    five_of_eight = [100] * 5 + [600] * 3

    assert sla_compliance(one_of_eight, 480) == "13%"
    assert sla_compliance(five_of_eight, 480) == "63%"
    assert sla_compliance([100, 600], 480) == "50%"


def test_sla_compliance_without_resolution_times_is_unavailable():
    assert sla_compliance([], 480) == UNAVAILABLE
    assert sla_compliance([None, None], 480) == UNAVAILABLE


def test_format_duration():
    assert format_duration(15) == "15 min"
    assert format_duration(59.4) == "59 min"
    assert format_duration(30.5) == "31 min"
    assert format_duration(89.5) == "1:30 h"
    assert format_duration(60) == "1:00 h"
    assert format_duration(125) == "2:05 h"
    assert format_duration(None) == UNAVAILABLE
    assert format_duration(math.nan) == UNAVAILABLE


def test_build_kpis():
    counts = TicketCounts(received_today=12, resolved_today=5, pending=3)
    timings = [
        TicketTimings(1, reply_minutes=10, resolution_minutes=100),
        TicketTimings(2, reply_minutes=20, resolution_minutes=500),
        TicketTimings(3, reply_minutes=None, resolution_minutes=None),
    ]

    kpis, sample = build_kpis(counts, timings, sla_target_minutes=480, considered=4)

    assert kpis.tickets_received_today == "12"
    assert kpis.tickets_resolved_today == "5"
    assert kpis.tickets_pending == "3"
    assert kpis.frt_average == "15 min"
    assert kpis.resolution_average == "5:00 h"
    assert kpis.sla_compliance == "50%"
    assert sample.considered_tickets == 4
    assert sample.with_reply_time == 2
    assert sample.with_resolution_time == 2
    assert sample.failed_tickets == 1


def test_build_kpis_without_timings():
    kpis, sample = build_kpis(TicketCounts(0, 0, 0), [], sla_target_minutes=480)

    assert kpis.frt_average == UNAVAILABLE
    assert kpis.resolution_average == UNAVAILABLE
    assert kpis.sla_compliance == UNAVAILABLE
    assert sample.considered_tickets == 0
