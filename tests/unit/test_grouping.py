"""Tests for workload key inference and pod grouping."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from kubepulse.health.grouping import group_pods, parse_workload_key
from kubepulse.models.cluster import PodRecord
from kubepulse.models.workloads import WorkloadKey, WorkloadKind


def _pod(name: str, namespace: str = "default", ready: bool = True, phase: str = "Running") -> PodRecord:
    return PodRecord(
        name=name,
        namespace=namespace,
        phase=phase,
        ready_containers=1 if ready else 0,
        total_containers=1,
        restart_count=0,
        node="node-1",
    )


# ---------------------------------------------------------------------------
# parse_workload_key
# ---------------------------------------------------------------------------


class TestParseWorkloadKey:
    @pytest.mark.parametrize(
        ("pod_name", "kind", "name"),
        [
            # Deployment: <name>-<replicaset hash>-<pod hash>
            ("api-7d9f8b6c5-x2kjq", WorkloadKind.DEPLOYMENT, "api"),
            ("payments-gateway-6c8b9d7f4-zt5vq", WorkloadKind.DEPLOYMENT, "payments-gateway"),
            ("a-b-c", WorkloadKind.DEPLOYMENT, "a"),
            # StatefulSet: <name>-<ordinal>
            ("redis-0", WorkloadKind.STATEFUL_SET, "redis"),
            ("kafka-broker-12", WorkloadKind.STATEFUL_SET, "kafka-broker"),
            ("worker-7", WorkloadKind.STATEFUL_SET, "worker"),
            # Numeric pod hash after a replicaset hash stays a Deployment
            ("web-5d8f9-12345", WorkloadKind.DEPLOYMENT, "web"),
            # Standalone pods
            ("debug", WorkloadKind.POD, "debug"),
            ("my-app", WorkloadKind.POD, "my-app"),
        ],
    )
    def test_table(self, pod_name: str, kind: WorkloadKind, name: str) -> None:
        key = parse_workload_key(pod_name, "prod")
        assert key == WorkloadKey(kind, name, "prod")

    def test_namespace_is_part_of_identity(self) -> None:
        assert parse_workload_key("redis-0", "a") != parse_workload_key("redis-0", "b")

    def test_str_renders_kind_name_namespace(self) -> None:
        assert str(parse_workload_key("redis-0", "data")) == "StatefulSet/redis/data"

    @given(pod_name=st.from_regex(r"[a-z0-9]([a-z0-9-]{0,40}[a-z0-9])?", fullmatch=True))
    @settings(max_examples=100)
    def test_name_is_prefix_of_pod_name(self, pod_name: str) -> None:
        key = parse_workload_key(pod_name, "default")
        assert pod_name.startswith(key.name)
        assert key.kind in set(WorkloadKind)


# ---------------------------------------------------------------------------
# group_pods
# ---------------------------------------------------------------------------


class TestGroupPods:
    def test_replicas_share_one_group(self) -> None:
        pods = [
            _pod("api-7d9f8b6c5-x2kjq"),
            _pod("api-7d9f8b6c5-b7m4p"),
            _pod("api-7d9f8b6c5-q9w2z", ready=False),
        ]
        groups = group_pods(pods)
        assert len(groups) == 1
        group = groups[WorkloadKey(WorkloadKind.DEPLOYMENT, "api", "default")]
        assert group.desired_replicas == 3
        assert group.ready_replicas == 2

    def test_same_name_in_two_namespaces_is_two_groups(self) -> None:
        groups = group_pods([_pod("redis-0", "a"), _pod("redis-0", "b")])
        assert len(groups) == 2

    def test_ready_replicas_requires_running_phase(self) -> None:
        groups = group_pods([_pod("redis-0", phase="Pending")])
        (group,) = groups.values()
        assert group.ready_replicas == 0

    def test_empty_listing(self) -> None:
        assert group_pods([]) == {}
