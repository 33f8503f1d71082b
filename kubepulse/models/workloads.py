"""Workload identity, health tiers and per-workload tracked state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from kubepulse.models.cluster import PodRecord

HEALTH_HISTORY_LENGTH = 10


class WorkloadKind(StrEnum):
    """Owning controller kind inferred from a pod name."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    POD = "Pod"


class BasicStatus(StrEnum):
    """Cheap four-tier status used for cluster overviews."""

    HEALTHY = "healthy"
    WARNING = "warning"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class HealthSeverity(StrEnum):
    """Severity tier derived from the detailed health assessment."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def level(self) -> int:
        return _SEVERITY_LEVELS[self]


_SEVERITY_LEVELS: dict[HealthSeverity, int] = {
    HealthSeverity.SUCCESS: 0,
    HealthSeverity.INFO: 1,
    HealthSeverity.WARNING: 2,
    HealthSeverity.CRITICAL: 3,
}


class DetailedStatus(StrEnum):
    """Label attached to the detailed severity bucket."""

    NO_PODS = "no-pods"
    CRITICAL = "critical"
    CRASH_LOOP = "crash-loop"
    DEGRADED = "degraded"
    PARTIAL = "partial"
    SCALING = "scaling"
    HEALTHY = "healthy"


@dataclass(frozen=True)
class WorkloadKey:
    """Identity of a logical workload: (kind, name, namespace)."""

    kind: str
    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}/{self.namespace}"


@dataclass(frozen=True)
class WorkloadState:
    """Observed state of one workload as of a single scan.

    A fresh instance is built every scan and replaces the previous one in
    the engine's map, so instances can be shared with alert events as
    snapshots without copying.
    """

    key: WorkloadKey
    pods: tuple[PodRecord, ...]
    desired_replicas: int
    ready_replicas: int
    health_score: int
    severity: HealthSeverity
    status: DetailedStatus
    basic_status: BasicStatus
    is_baseline: bool
    first_seen: datetime
    last_seen: datetime
    severity_since: datetime
    health_history: tuple[int, ...] = ()

    @property
    def total_pods(self) -> int:
        return len(self.pods)

    @property
    def healthy_count(self) -> int:
        return sum(1 for pod in self.pods if pod.is_healthy)

    @property
    def status_duration_minutes(self) -> float:
        """Minutes spent continuously in the current severity."""
        return (self.last_seen - self.severity_since).total_seconds() / 60.0
