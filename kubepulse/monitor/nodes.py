"""Node readiness transition tracking (no batching, no alerting)."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from kubepulse.models.alerts import NodeTransition
from kubepulse.models.cluster import NodeRecord
from kubepulse.observability.logging import get_logger
from kubepulse.observability.metrics import node_ready, node_transitions_total

_log = get_logger("monitor.nodes")


def _forget_gauge(node: str) -> None:
    with contextlib.suppress(KeyError):
        node_ready.remove(node)


@dataclass
class _NodeState:
    ready: bool
    last_seen: datetime


class NodeHealthMonitor:
    def __init__(self) -> None:
        self._nodes: dict[str, _NodeState] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def ready_count(self) -> int:
        return sum(1 for state in self._nodes.values() if state.ready)

    def observe(self, nodes: Iterable[NodeRecord], now: datetime) -> list[NodeTransition]:
        transitions: list[NodeTransition] = []
        seen: set[str] = set()
        for node in nodes:
            seen.add(node.name)
            previous = self._nodes.get(node.name)
            if previous is not None and previous.ready != node.ready:
                transition = NodeTransition(
                    name=node.name,
                    previous_ready=previous.ready,
                    ready=node.ready,
                    observed_at=now,
                )
                transitions.append(transition)
                node_transitions_total.labels(to="ready" if node.ready else "not_ready").inc()
                _log.warning(
                    "node_readiness_changed",
                    node=node.name,
                    previous="Ready" if previous.ready else "NotReady",
                    current="Ready" if node.ready else "NotReady",
                )
            self._nodes[node.name] = _NodeState(ready=node.ready, last_seen=now)
            node_ready.labels(node=node.name).set(1 if node.ready else 0)

        for name in [name for name in self._nodes if name not in seen]:
            del self._nodes[name]
            _forget_gauge(name)
            _log.info("node_removed", node=name)

        _log.debug("node_check_completed", nodes=len(self._nodes), ready=self.ready_count)
        return transitions

    def reset(self) -> None:
        for name in self._nodes:
            _forget_gauge(name)
        self._nodes.clear()
