"""Point-in-time records produced by the snapshot source each scan."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

RUNNING_PHASE = "Running"
PENDING_PHASE = "Pending"


@dataclass(frozen=True)
class PodRecord:
    """Immutable view of one pod as listed from the cluster.

    Owned transiently by a single scan; never mutated after creation.
    """

    name: str
    namespace: str
    phase: str
    ready_containers: int
    total_containers: int
    restart_count: int
    node: str
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def ready(self) -> bool:
        return self.total_containers > 0 and self.ready_containers >= self.total_containers

    @property
    def is_running(self) -> bool:
        return self.phase == RUNNING_PHASE

    @property
    def is_pending(self) -> bool:
        return self.phase == PENDING_PHASE

    @property
    def is_healthy(self) -> bool:
        """Ready and in the Running phase."""
        return self.ready and self.is_running

    @property
    def key(self) -> tuple[str, str]:
        return (self.namespace, self.name)


@dataclass(frozen=True)
class NodeRecord:
    """Immutable view of one node's readiness."""

    name: str
    ready: bool
    roles: tuple[str, ...] = field(default_factory=lambda: ("worker",))
    kubelet_version: str = ""
