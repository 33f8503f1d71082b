"""Collector package for KubePulse.

Lists pods and nodes from the cluster and converts them into the
immutable records consumed by the monitor.

Submodules
----------
source  -- Snapshot source protocols, FetchFailedError, KubernetesSnapshotSource.
parsers -- Pure conversion of kubernetes-asyncio API objects into records.
"""

from kubepulse.collector.source import (
    FetchFailedError,
    KubernetesSnapshotSource,
    NodeSnapshotSource,
    PodSnapshotSource,
)

__all__ = [
    "FetchFailedError",
    "KubernetesSnapshotSource",
    "NodeSnapshotSource",
    "PodSnapshotSource",
]
