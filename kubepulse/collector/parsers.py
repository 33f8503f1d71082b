"""Convert kubernetes-asyncio API objects into PodRecord / NodeRecord.

Parsers read attributes defensively: list responses routinely omit
``status.container_statuses`` for pods that have not been scheduled yet,
and nodes may lack ``status.node_info`` while registering.
"""

from __future__ import annotations

from typing import Any

from kubepulse.models.cluster import NodeRecord, PodRecord

_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
_CONTROL_PLANE_ROLES = frozenset({"master", "control-plane"})


def pod_record_from_api(pod: Any) -> PodRecord:
    """Build a PodRecord from a ``V1Pod``."""
    metadata = pod.metadata
    status = pod.status
    spec = pod.spec

    container_statuses = list(getattr(status, "container_statuses", None) or [])
    declared = list(getattr(spec, "containers", None) or [])
    total = max(len(declared), len(container_statuses))
    ready = sum(1 for cs in container_statuses if getattr(cs, "ready", False))
    restarts = sum(int(getattr(cs, "restart_count", 0) or 0) for cs in container_statuses)

    return PodRecord(
        name=str(metadata.name),
        namespace=str(metadata.namespace or "default"),
        phase=str(getattr(status, "phase", None) or "Unknown"),
        ready_containers=ready,
        total_containers=total,
        restart_count=restarts,
        node=str(getattr(spec, "node_name", None) or ""),
        created_at=getattr(metadata, "creation_timestamp", None),
        deleted_at=getattr(metadata, "deletion_timestamp", None),
    )


def node_record_from_api(node: Any) -> NodeRecord:
    """Build a NodeRecord from a ``V1Node``; Ready means condition status "True"."""
    metadata = node.metadata
    status = node.status
    conditions = list(getattr(status, "conditions", None) or [])
    ready = any(c.type == "Ready" and c.status == "True" for c in conditions)

    node_info = getattr(status, "node_info", None)
    kubelet_version = str(getattr(node_info, "kubelet_version", "") or "")

    return NodeRecord(
        name=str(metadata.name),
        ready=ready,
        roles=_node_roles(getattr(metadata, "labels", None) or {}),
        kubelet_version=kubelet_version,
    )


def _node_roles(labels: dict[str, str]) -> tuple[str, ...]:
    roles: list[str] = []
    for label in sorted(labels):
        if not label.startswith(_ROLE_LABEL_PREFIX):
            continue
        role = label[len(_ROLE_LABEL_PREFIX) :]
        if role in _CONTROL_PLANE_ROLES:
            role = "control-plane"
        if role and role not in roles:
            roles.append(role)
    return tuple(roles) if roles else ("worker",)
