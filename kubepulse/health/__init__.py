"""Workload grouping, health scoring and transition classification.

Everything in this package is a pure function of its inputs; the
stateful pieces (baseline, batching, restart tracking) live in
``kubepulse.monitor``.
"""

from kubepulse.health.grouping import WorkloadGroup, group_pods, parse_workload_key
from kubepulse.health.missing import detect_missing_workloads
from kubepulse.health.overview import build_cluster_overview, summarize_health
from kubepulse.health.scoring import HealthAssessment, assess_health, basic_status, score_workload
from kubepulse.health.transitions import (
    classify_by_severity,
    classify_from_baseline,
    classify_transition,
)

__all__ = [
    "HealthAssessment",
    "WorkloadGroup",
    "assess_health",
    "basic_status",
    "build_cluster_overview",
    "classify_by_severity",
    "classify_from_baseline",
    "classify_transition",
    "detect_missing_workloads",
    "group_pods",
    "parse_workload_key",
    "score_workload",
    "summarize_health",
]
