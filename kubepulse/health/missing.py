"""Detection of workloads that vanished between two successful listings."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from datetime import datetime

from kubepulse.health.scoring import vacated_state
from kubepulse.models.alerts import AlertEvent, AlertType
from kubepulse.models.workloads import WorkloadKey, WorkloadState

MISSING_REASON = "Workload removed between scans (stopped or scaled to zero)"


def detect_missing_workloads(
    current_keys: Collection[WorkloadKey],
    previous: Mapping[WorkloadKey, WorkloadState],
    now: datetime,
) -> list[AlertEvent]:
    """Return a ``stopped`` event for every previously healthy workload now absent.

    Must run against the previous map before it is replaced.  Callers
    must only pass keys from a listing that actually succeeded.
    """
    events: list[AlertEvent] = []
    for key, state in previous.items():
        if key in current_keys:
            continue
        prev_healthy = state.healthy_count
        if prev_healthy == 0:
            continue
        events.append(
            AlertEvent(
                type=AlertType.STOPPED,
                workload=vacated_state(state, now),
                timestamp=now,
                reason=MISSING_REASON,
                previous_healthy=prev_healthy,
                current_healthy=0,
            )
        )
    return events
