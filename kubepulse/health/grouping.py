"""Partition pods into logical workloads by naming convention.

Controllers name their pods predictably:

* Deployment: ``<name>-<replicaset hash>-<pod hash>``
* StatefulSet: ``<name>-<ordinal>``
* bare pods: anything else

Owner references would be exact, but list responses are grouped from
names alone so the grouping works against any pod listing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from kubepulse.models.cluster import PodRecord
from kubepulse.models.workloads import WorkloadKey, WorkloadKind

# Alphabet used by k8s.io/apimachinery rand.SafeEncodeString for template hashes.
_HASH_ALPHABET = frozenset("bcdfghjklmnpqrstvwxz2456789")


def _looks_like_hash(segment: str) -> bool:
    return (
        5 <= len(segment) <= 10
        and set(segment) <= _HASH_ALPHABET
        and any(ch.isdigit() for ch in segment)
    )


def parse_workload_key(pod_name: str, namespace: str) -> WorkloadKey:
    """Infer the owning workload of *pod_name*.

    ``redis-0`` -> StatefulSet/redis, ``api-7d9f8b6c5-x2kjq`` ->
    Deployment/api, ``debug`` -> Pod/debug.
    """
    parts = pod_name.split("-")
    if len(parts) < 2:
        return WorkloadKey(WorkloadKind.POD, pod_name, namespace)

    last, prev = parts[-1], parts[-2]
    if last.isdigit() and prev and not _looks_like_hash(prev):
        return WorkloadKey(WorkloadKind.STATEFUL_SET, "-".join(parts[:-1]), namespace)

    if len(parts) >= 3:
        return WorkloadKey(WorkloadKind.DEPLOYMENT, "-".join(parts[:-2]), namespace)

    return WorkloadKey(WorkloadKind.POD, pod_name, namespace)


@dataclass
class WorkloadGroup:
    """Pods that share one inferred workload key in a single listing."""

    key: WorkloadKey
    pods: list[PodRecord] = field(default_factory=list)

    @property
    def ready_replicas(self) -> int:
        return sum(1 for pod in self.pods if pod.is_healthy)

    @property
    def desired_replicas(self) -> int:
        # Observed count stands in for spec.replicas.
        return len(self.pods)


def group_pods(pods: Iterable[PodRecord]) -> dict[WorkloadKey, WorkloadGroup]:
    """Group *pods* by inferred workload; colliding keys accumulate pods."""
    groups: dict[WorkloadKey, WorkloadGroup] = {}
    for pod in pods:
        key = parse_workload_key(pod.name, pod.namespace)
        group = groups.get(key)
        if group is None:
            group = groups[key] = WorkloadGroup(key=key)
        group.pods.append(pod)
    return groups
