"""Transition classification between two observations of one workload.

Three classifiers, each yielding at most one AlertEvent:

classify_transition     -- count-based rules for steady-state scans.
classify_from_baseline  -- relaxed rules for the first scan after the
                           grace period; never alerts on a condition that
                           already existed when the baseline was taken.
classify_by_severity    -- optional severity/score-delta rules that catch
                           slow degradations the count rules miss.

"Healthy" always means ready and in the Running phase.
"""

from __future__ import annotations

from kubepulse.models.alerts import AlertEvent, AlertType
from kubepulse.models.workloads import HealthSeverity, WorkloadState

SCORE_DELTA_THRESHOLD = 20


def _event(
    alert_type: AlertType,
    current: WorkloadState,
    reason: str,
    previous_healthy: int,
    current_healthy: int,
) -> AlertEvent:
    return AlertEvent(
        type=alert_type,
        workload=current,
        timestamp=current.last_seen,
        reason=reason,
        previous_healthy=previous_healthy,
        current_healthy=current_healthy,
    )


def classify_transition(current: WorkloadState, previous: WorkloadState | None) -> AlertEvent | None:
    """Apply the ordered count rules; first match wins.

    A missing *previous* is treated as zero pods, so a workload first seen
    after monitoring began is reported as started once it has a healthy pod.
    """
    prev_healthy = previous.healthy_count if previous is not None else 0
    prev_total = previous.total_pods if previous is not None else 0
    cur_healthy = current.healthy_count
    cur_total = current.total_pods

    if prev_healthy > 0 and cur_total == 0 and prev_total > 0:
        return _event(AlertType.STOPPED, current, "All pods removed", prev_healthy, cur_healthy)
    if prev_total == 0 and cur_healthy > 0:
        reason = "New workload appeared" if previous is None else "Workload started"
        return _event(AlertType.STARTED, current, reason, prev_healthy, cur_healthy)
    if cur_healthy < prev_healthy and cur_healthy > 0:
        return _event(AlertType.DEGRADED, current, "Healthy pod count dropped", prev_healthy, cur_healthy)
    if cur_total > 0 and cur_healthy == 0 and prev_healthy > 0:
        return _event(AlertType.FAILED, current, "No healthy pods remain", prev_healthy, cur_healthy)
    if cur_healthy > prev_healthy:
        return _event(AlertType.RECOVERED, current, "Healthy pod count increased", prev_healthy, cur_healthy)
    return None


def classify_from_baseline(current: WorkloadState, baseline: WorkloadState) -> AlertEvent | None:
    """Relaxed comparison against the baseline snapshot, used once per workload."""
    base_healthy = baseline.healthy_count
    cur_healthy = current.healthy_count

    if base_healthy == 0 and cur_healthy > 0:
        return _event(
            AlertType.RECOVERED,
            current,
            "Workload recovered from baseline failed state",
            base_healthy,
            cur_healthy,
        )
    if cur_healthy > base_healthy > 0:
        return _event(
            AlertType.RECOVERED,
            current,
            "Workload improved from baseline state",
            base_healthy,
            cur_healthy,
        )
    if cur_healthy < base_healthy:
        return _event(
            AlertType.DEGRADED,
            current,
            "Workload degraded from baseline state",
            base_healthy,
            cur_healthy,
        )
    return None


def classify_by_severity(
    current: WorkloadState,
    previous: WorkloadState,
    persistent_minutes: float = 10,
) -> AlertEvent | None:
    """Severity-level and score-delta rules.

    The persistent-critical rule fires on the scan where the time spent
    critical first reaches *persistent_minutes*, not on every scan after.
    """
    prev_healthy = previous.healthy_count
    cur_healthy = current.healthy_count

    if current.severity.level > previous.severity.level:
        return _event(
            AlertType.FAILED,
            current,
            f"Severity worsened from {previous.severity} to {current.severity}",
            prev_healthy,
            cur_healthy,
        )
    if current.severity.level < previous.severity.level:
        return _event(
            AlertType.RECOVERED,
            current,
            f"Severity improved from {previous.severity} to {current.severity}",
            prev_healthy,
            cur_healthy,
        )

    delta = current.health_score - previous.health_score
    if delta <= -SCORE_DELTA_THRESHOLD:
        return _event(
            AlertType.DEGRADED,
            current,
            f"Health score dropped by {-delta}",
            prev_healthy,
            cur_healthy,
        )
    if delta >= SCORE_DELTA_THRESHOLD:
        return _event(
            AlertType.RECOVERED,
            current,
            f"Health score improved by {delta}",
            prev_healthy,
            cur_healthy,
        )

    if (
        current.severity == HealthSeverity.CRITICAL
        and current.status_duration_minutes >= persistent_minutes
        and previous.status_duration_minutes < persistent_minutes
    ):
        return _event(
            AlertType.FAILED,
            current,
            f"Critical for {int(current.status_duration_minutes)} minutes",
            prev_healthy,
            cur_healthy,
        )
    return None
