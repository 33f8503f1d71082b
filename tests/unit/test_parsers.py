"""Tests for API-object parsers and the Kubernetes snapshot source error mapping."""

from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from kubernetes_asyncio.client.exceptions import ApiException

from kubepulse.collector.parsers import node_record_from_api, pod_record_from_api
from kubepulse.collector.source import FetchFailedError, KubernetesSnapshotSource
from kubepulse.models.config import KubernetesConfig

_TS = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


def _v1_pod(
    statuses: list[tuple[bool, int]] | None,
    containers: int = 2,
    phase: str | None = "Running",
) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(
            name="api-7d9f8b6c5-x2kjq",
            namespace="prod",
            creation_timestamp=_TS,
            deletion_timestamp=None,
        ),
        spec=SimpleNamespace(
            containers=[SimpleNamespace(name=f"c{i}") for i in range(containers)],
            node_name="node-1",
        ),
        status=SimpleNamespace(
            phase=phase,
            container_statuses=(
                None
                if statuses is None
                else [SimpleNamespace(ready=ready, restart_count=restarts) for ready, restarts in statuses]
            ),
        ),
    )


def _v1_node(ready: str = "True", labels: dict[str, str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        metadata=SimpleNamespace(name="node-1", labels=labels),
        status=SimpleNamespace(
            conditions=[
                SimpleNamespace(type="MemoryPressure", status="False"),
                SimpleNamespace(type="Ready", status=ready),
            ],
            node_info=SimpleNamespace(kubelet_version="v1.30.2"),
        ),
    )


# ---------------------------------------------------------------------------
# pod_record_from_api
# ---------------------------------------------------------------------------


class TestPodParser:
    def test_sums_restarts_and_counts_ready(self) -> None:
        record = pod_record_from_api(_v1_pod([(True, 3), (False, 4)]))
        assert record.restart_count == 7
        assert record.ready_containers == 1
        assert record.total_containers == 2
        assert not record.ready
        assert record.node == "node-1"
        assert record.created_at == _TS

    def test_all_ready_running_pod_is_healthy(self) -> None:
        record = pod_record_from_api(_v1_pod([(True, 0), (True, 0)]))
        assert record.is_healthy

    def test_unscheduled_pod_has_no_statuses(self) -> None:
        record = pod_record_from_api(_v1_pod(None, phase="Pending"))
        assert record.total_containers == 2
        assert record.ready_containers == 0
        assert record.restart_count == 0
        assert record.is_pending

    def test_missing_phase_is_unknown(self) -> None:
        assert pod_record_from_api(_v1_pod([], phase=None)).phase == "Unknown"


# ---------------------------------------------------------------------------
# node_record_from_api
# ---------------------------------------------------------------------------


class TestNodeParser:
    def test_ready_condition(self) -> None:
        assert node_record_from_api(_v1_node("True")).ready is True
        assert node_record_from_api(_v1_node("Unknown")).ready is False

    def test_roles_from_labels(self) -> None:
        record = node_record_from_api(
            _v1_node(labels={"node-role.kubernetes.io/master": "", "kubernetes.io/os": "linux"})
        )
        assert record.roles == ("control-plane",)
        assert record.kubelet_version == "v1.30.2"

    def test_default_role_is_worker(self) -> None:
        assert node_record_from_api(_v1_node(labels=None)).roles == ("worker",)


# ---------------------------------------------------------------------------
# KubernetesSnapshotSource
# ---------------------------------------------------------------------------


class TestSnapshotSource:
    async def test_not_connected_raises_fetch_failed(self) -> None:
        source = KubernetesSnapshotSource(KubernetesConfig(kubeconfig="/tmp/kc"))
        with pytest.raises(FetchFailedError):
            await source.list_pods()

    async def test_api_exception_maps_to_fetch_failed(self) -> None:
        source = KubernetesSnapshotSource(KubernetesConfig(kubeconfig="/tmp/kc"))
        api = MagicMock()
        api.list_pod_for_all_namespaces = AsyncMock(side_effect=ApiException(status=403, reason="Forbidden"))
        source._core_v1 = api
        with pytest.raises(FetchFailedError) as excinfo:
            await source.list_pods()
        assert excinfo.value.operation == "list_pods"
        assert "403" in str(excinfo.value)

    async def test_connection_error_maps_to_fetch_failed(self) -> None:
        source = KubernetesSnapshotSource(KubernetesConfig(kubeconfig="/tmp/kc"))
        api = MagicMock()
        api.list_node = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))
        source._core_v1 = api
        with pytest.raises(FetchFailedError):
            await source.list_nodes()

    async def test_lists_are_parsed(self) -> None:
        source = KubernetesSnapshotSource(KubernetesConfig(kubeconfig="/tmp/kc", fetch_timeout_seconds=7))
        api = MagicMock()
        api.list_pod_for_all_namespaces = AsyncMock(
            return_value=SimpleNamespace(items=[_v1_pod([(True, 0), (True, 0)])])
        )
        source._core_v1 = api
        (pod,) = await source.list_pods()
        assert pod.name == "api-7d9f8b6c5-x2kjq"
        api.list_pod_for_all_namespaces.assert_awaited_once_with(_request_timeout=7)
