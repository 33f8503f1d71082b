"""Cluster snapshot sources.

The monitor depends only on the two protocols below.  A failed listing
must surface as :class:`FetchFailedError`, never as an empty list: an
empty result means "no pods exist", which the monitor would treat as every
workload having stopped.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import aiohttp
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException

from kubepulse.collector.parsers import node_record_from_api, pod_record_from_api
from kubepulse.models.cluster import NodeRecord, PodRecord
from kubepulse.models.config import KubernetesConfig
from kubepulse.observability.logging import get_logger

_log = get_logger("collector.source")


class FetchFailedError(Exception):
    """Raised when a cluster listing could not be completed."""

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class PodSnapshotSource(Protocol):
    async def list_pods(self) -> list[PodRecord]: ...


class NodeSnapshotSource(Protocol):
    async def list_nodes(self) -> list[NodeRecord]: ...


class KubernetesSnapshotSource:
    """Pod and node listing backed by kubernetes-asyncio ``CoreV1Api``.

    Args:
        config: Cluster access settings.  ``fetch_timeout_seconds`` bounds
                each list call on the server side as well.
    """

    def __init__(self, config: KubernetesConfig) -> None:
        self._config = config
        self._api_client: k8s_client.ApiClient | None = None
        self._core_v1: k8s_client.CoreV1Api | None = None

    @property
    def connected(self) -> bool:
        return self._core_v1 is not None

    async def connect(self) -> None:
        """Load credentials and build the API client.

        In-cluster service-account credentials are tried first when
        ``in_cluster`` is set, otherwise (or on failure) the kubeconfig file.
        """
        if self._config.in_cluster:
            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                _log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                if not self._config.kubeconfig:
                    raise
                await self._load_kubeconfig()
        else:
            await self._load_kubeconfig()

        self._api_client = k8s_client.ApiClient()
        self._core_v1 = k8s_client.CoreV1Api(self._api_client)

    async def _load_kubeconfig(self) -> None:
        await k8s_config.load_kube_config(
            config_file=self._config.kubeconfig or None,
            context=self._config.context or None,
        )
        _log.info("k8s client configured from kubeconfig", path=self._config.kubeconfig)

    async def close(self) -> None:
        if self._api_client is None:
            return
        try:
            await self._api_client.close()
        except Exception as exc:
            _log.debug("k8s client close raised (non-fatal)", error=str(exc))
        finally:
            self._api_client = None
            self._core_v1 = None

    async def list_pods(self) -> list[PodRecord]:
        api = self._require_api("list_pods")
        try:
            response = await api.list_pod_for_all_namespaces(
                _request_timeout=self._config.fetch_timeout_seconds,
            )
        except ApiException as exc:
            raise FetchFailedError("list_pods", f"HTTP {exc.status} {exc.reason}") from exc
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
            raise FetchFailedError("list_pods", exc) from exc
        return [pod_record_from_api(item) for item in response.items or []]

    async def list_nodes(self) -> list[NodeRecord]:
        api = self._require_api("list_nodes")
        try:
            response = await api.list_node(_request_timeout=self._config.fetch_timeout_seconds)
        except ApiException as exc:
            raise FetchFailedError("list_nodes", f"HTTP {exc.status} {exc.reason}") from exc
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
            raise FetchFailedError("list_nodes", exc) from exc
        return [node_record_from_api(item) for item in response.items or []]

    def _require_api(self, operation: str) -> k8s_client.CoreV1Api:
        if self._core_v1 is None:
            raise FetchFailedError(operation, "kubernetes client not connected")
        return self._core_v1
