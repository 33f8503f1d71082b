"""Core data structures for KubePulse."""

from kubepulse.models.alerts import (
    AlertEvent,
    AlertType,
    BatchNotification,
    ClusterOverview,
    HealthSummary,
    NamespaceSummary,
    NodeTransition,
    RestartStormAlert,
)
from kubepulse.models.cluster import NodeRecord, PodRecord
from kubepulse.models.config import KubePulseConfig
from kubepulse.models.workloads import (
    BasicStatus,
    DetailedStatus,
    HealthSeverity,
    WorkloadKey,
    WorkloadKind,
    WorkloadState,
)

__all__ = [
    "AlertEvent",
    "AlertType",
    "BasicStatus",
    "BatchNotification",
    "ClusterOverview",
    "DetailedStatus",
    "HealthSeverity",
    "HealthSummary",
    "KubePulseConfig",
    "NamespaceSummary",
    "NodeRecord",
    "NodeTransition",
    "PodRecord",
    "RestartStormAlert",
    "WorkloadKey",
    "WorkloadKind",
    "WorkloadState",
]
