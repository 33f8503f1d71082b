"""Cluster-wide tallies built from a set of workload states."""

from __future__ import annotations

from collections.abc import Iterable

from kubepulse.models.alerts import ClusterOverview, HealthSummary, NamespaceSummary
from kubepulse.models.workloads import BasicStatus, HealthSeverity, WorkloadState


def build_cluster_overview(states: Iterable[WorkloadState]) -> ClusterOverview:
    overview = ClusterOverview()
    for state in states:
        overview.total += 1
        ns = overview.by_namespace.setdefault(state.key.namespace, NamespaceSummary())
        ns.total += 1

        if state.basic_status == BasicStatus.HEALTHY:
            overview.healthy += 1
            ns.healthy += 1
        elif state.basic_status in (BasicStatus.DEGRADED, BasicStatus.WARNING):
            overview.degraded += 1
            ns.degraded += 1
            overview.degraded_workloads.append(state.key)
        elif state.basic_status == BasicStatus.CRITICAL:
            overview.failed += 1
            ns.failed += 1
            overview.failed_workloads.append(state.key)
        else:
            overview.unknown += 1
    return overview


def summarize_health(states: Iterable[WorkloadState]) -> HealthSummary:
    summary = HealthSummary()
    score_total = 0
    for state in states:
        summary.total += 1
        score_total += state.health_score
        if state.severity == HealthSeverity.SUCCESS:
            summary.healthy += 1
        elif state.severity == HealthSeverity.WARNING:
            summary.warning += 1
        elif state.severity == HealthSeverity.CRITICAL:
            summary.critical += 1
    if summary.total:
        summary.average_health = round(score_total / summary.total)
    return summary
