"""Alert, overview and batch data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import uuid4

from kubepulse.models.workloads import WorkloadKey, WorkloadState


class AlertType(StrEnum):
    """Workload transition categories, one pending list per member."""

    FAILED = "failed"
    DEGRADED = "degraded"
    RECOVERED = "recovered"
    STOPPED = "stopped"
    STARTED = "started"


@dataclass(frozen=True)
class AlertEvent:
    """A classified workload transition awaiting batched delivery.

    Immutable: ``workload`` is the frozen state observed when the
    transition was detected.
    """

    type: AlertType
    workload: WorkloadState
    timestamp: datetime
    reason: str
    previous_healthy: int | None = None
    current_healthy: int | None = None
    event_id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class RestartStormAlert:
    """Raised when a single pod's restart counter crosses the threshold."""

    namespace: str
    pod_name: str
    node: str
    restart_count: int
    previous_count: int
    threshold: int
    detected_at: datetime
    alert_id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class NodeTransition:
    """A change in node readiness between two scans."""

    name: str
    previous_ready: bool
    ready: bool
    observed_at: datetime


@dataclass
class NamespaceSummary:
    """Per-namespace workload counts for the cluster overview."""

    total: int = 0
    healthy: int = 0
    degraded: int = 0
    failed: int = 0


@dataclass
class ClusterOverview:
    """Fresh whole-cluster workload tally computed at flush time."""

    total: int = 0
    healthy: int = 0
    degraded: int = 0
    failed: int = 0
    unknown: int = 0
    by_namespace: dict[str, NamespaceSummary] = field(default_factory=dict)
    degraded_workloads: list[WorkloadKey] = field(default_factory=list)
    failed_workloads: list[WorkloadKey] = field(default_factory=list)

    @property
    def cluster_health(self) -> str:
        if self.failed > 0:
            return "CRITICAL"
        if self.degraded > 0:
            return "DEGRADED"
        return "HEALTHY"


@dataclass
class HealthSummary:
    """Severity distribution and average score across tracked workloads."""

    total: int = 0
    healthy: int = 0
    warning: int = 0
    critical: int = 0
    average_health: int = 0

    @property
    def grade(self) -> str:
        if self.total == 0:
            return "unknown"
        if self.average_health >= 90:
            return "excellent"
        if self.average_health >= 75:
            return "good"
        if self.average_health >= 50:
            return "fair"
        return "poor"


@dataclass(frozen=True)
class BatchNotification:
    """One coalesced notification: buffered events plus a fresh overview.

    ``overview`` is None when the flush-time listing failed.
    """

    events: dict[AlertType, tuple[AlertEvent, ...]]
    overview: ClusterOverview | None
    created_at: datetime

    @property
    def total_events(self) -> int:
        return sum(len(items) for items in self.events.values())

    def count(self, alert_type: AlertType) -> int:
        return len(self.events.get(alert_type, ()))
