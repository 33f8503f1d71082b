"""Workload health scoring.

Two modes:

* :func:`basic_status` -- four-tier status used for cluster overviews.
* :func:`assess_health` -- 0-100 score plus a severity bucket.

Score = 60 * ready/total + 30 * running/total - 20 * crash_looping/total,
clamped to [0, 100].  A pod counts as crash-looping above
``CRASH_LOOP_RESTARTS`` restarts.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from kubepulse.health.grouping import WorkloadGroup
from kubepulse.models.cluster import PodRecord
from kubepulse.models.workloads import (
    HEALTH_HISTORY_LENGTH,
    BasicStatus,
    DetailedStatus,
    HealthSeverity,
    WorkloadState,
)

CRASH_LOOP_RESTARTS = 5

_READY_WEIGHT = 60.0
_RUNNING_WEIGHT = 30.0
_CRASH_PENALTY = 20.0


@dataclass(frozen=True)
class HealthAssessment:
    """Result of the detailed scoring pass."""

    score: int
    severity: HealthSeverity
    status: DetailedStatus
    total: int
    ready: int
    running: int
    crash_looping: int
    pending: int


def basic_status(pods: Sequence[PodRecord], ready_replicas: int) -> BasicStatus:
    total = len(pods)
    running = sum(1 for pod in pods if pod.is_running)
    if ready_replicas == 0 and total > 0:
        return BasicStatus.CRITICAL
    if ready_replicas < total * 0.5:
        return BasicStatus.DEGRADED
    if running < total:
        return BasicStatus.WARNING
    return BasicStatus.HEALTHY


def assess_health(pods: Sequence[PodRecord], ready_replicas: int) -> HealthAssessment:
    total = len(pods)
    running = sum(1 for pod in pods if pod.is_running)
    crash_looping = sum(1 for pod in pods if pod.restart_count > CRASH_LOOP_RESTARTS)
    pending = sum(1 for pod in pods if pod.is_pending)

    score = 0.0
    if total > 0:
        score = (
            _READY_WEIGHT * ready_replicas / total
            + _RUNNING_WEIGHT * running / total
            - _CRASH_PENALTY * crash_looping / total
        )
    score = min(100.0, max(0.0, score))

    if total == 0:
        status, severity = DetailedStatus.NO_PODS, HealthSeverity.WARNING
    elif ready_replicas == 0:
        status, severity = DetailedStatus.CRITICAL, HealthSeverity.CRITICAL
    elif crash_looping > 0:
        status, severity = DetailedStatus.CRASH_LOOP, HealthSeverity.CRITICAL
    elif ready_replicas < total * 0.5:
        status, severity = DetailedStatus.DEGRADED, HealthSeverity.WARNING
    elif ready_replicas < total:
        status, severity = DetailedStatus.PARTIAL, HealthSeverity.WARNING
    elif pending > 0:
        status, severity = DetailedStatus.SCALING, HealthSeverity.INFO
    else:
        status, severity = DetailedStatus.HEALTHY, HealthSeverity.SUCCESS

    return HealthAssessment(
        score=int(math.floor(score + 0.5)),
        severity=severity,
        status=status,
        total=total,
        ready=ready_replicas,
        running=running,
        crash_looping=crash_looping,
        pending=pending,
    )


def score_workload(
    group: WorkloadGroup,
    previous: WorkloadState | None,
    now: datetime,
    *,
    is_baseline: bool,
) -> WorkloadState:
    """Build this scan's WorkloadState, carrying lineage from *previous*.

    ``first_seen``, the score history and the time already spent in an
    unchanged severity carry over; everything else is recomputed.
    """
    pods = tuple(group.pods)
    ready = group.ready_replicas
    health = assess_health(pods, ready)

    first_seen = previous.first_seen if previous is not None else now
    severity_since = now
    history: tuple[int, ...] = ()
    if previous is not None:
        history = previous.health_history
        if previous.severity == health.severity:
            severity_since = previous.severity_since

    return WorkloadState(
        key=group.key,
        pods=pods,
        desired_replicas=group.desired_replicas,
        ready_replicas=ready,
        health_score=health.score,
        severity=health.severity,
        status=health.status,
        basic_status=basic_status(pods, ready),
        is_baseline=is_baseline,
        first_seen=first_seen,
        last_seen=now,
        severity_since=severity_since,
        health_history=(*history, health.score)[-HEALTH_HISTORY_LENGTH:],
    )


def vacated_state(previous: WorkloadState, now: datetime) -> WorkloadState:
    """The zero-pod state of a workload that vanished from the listing."""
    health = assess_health((), 0)
    return replace(
        previous,
        pods=(),
        desired_replicas=0,
        ready_replicas=0,
        health_score=health.score,
        severity=health.severity,
        status=health.status,
        basic_status=basic_status((), 0),
        is_baseline=False,
        last_seen=now,
        severity_since=now,
        health_history=(*previous.health_history, health.score)[-HEALTH_HISTORY_LENGTH:],
    )
