"""Shared fixtures for KubePulse integration tests.

Provides an in-memory snapshot source, a controllable clock and a
recording notifier so the monitor can be driven scan by scan without a
cluster.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest

from kubepulse.collector.source import FetchFailedError
from kubepulse.models.alerts import BatchNotification, RestartStormAlert
from kubepulse.models.cluster import NodeRecord, PodRecord
from kubepulse.models.config import MonitorConfig, RestartAlertConfig
from kubepulse.monitor.engine import WorkloadMonitor

# ---------------------------------------------------------------------------
# Pod factory
# ---------------------------------------------------------------------------

_POD_SUFFIXES = ("x2kjq", "b7m4p", "q9w2z", "t5n8c", "h6r2v")


def deployment_pods(
    name: str,
    namespace: str = "prod",
    healthy: int = 3,
    total: int = 3,
    restarts: int = 0,
) -> list[PodRecord]:
    """Pods of one Deployment, the first *healthy* of them ready and Running."""
    return [
        PodRecord(
            name=f"{name}-7d9f8b6c5-{_POD_SUFFIXES[i]}",
            namespace=namespace,
            phase="Running",
            ready_containers=1 if i < healthy else 0,
            total_containers=1,
            restart_count=restarts,
            node=f"node-{i % 2}",
        )
        for i in range(total)
    ]


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 2) -> None:
        self.now += timedelta(minutes=minutes)


class FakeSource:
    """Pod/node source whose listings and failures are set by the test."""

    def __init__(self) -> None:
        self.pods: list[PodRecord] = []
        self.nodes: list[NodeRecord] = []
        self.fail_pods = False
        self.fail_nodes = False
        self.pod_calls = 0

    async def list_pods(self) -> list[PodRecord]:
        self.pod_calls += 1
        if self.fail_pods:
            raise FetchFailedError("list_pods", "connection refused")
        return list(self.pods)

    async def list_nodes(self) -> list[NodeRecord]:
        if self.fail_nodes:
            raise FetchFailedError("list_nodes", "connection refused")
        return list(self.nodes)


class RecordingNotifier:
    def __init__(self) -> None:
        self.enabled = True
        self.result = True
        self.batches: list[BatchNotification] = []
        self.restart_alerts: list[RestartStormAlert] = []

    async def deliver_batch(self, notification: BatchNotification) -> bool:
        self.batches.append(notification)
        return self.result

    async def deliver_restart_alert(self, alert: RestartStormAlert) -> bool:
        self.restart_alerts.append(alert)
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
async def monitor(source: FakeSource, notifier: RecordingNotifier, clock: FakeClock) -> AsyncIterator[WorkloadMonitor]:
    """Monitor with timers long enough that only explicit calls advance it."""
    mon = WorkloadMonitor(
        pod_source=source,
        node_source=source,
        notifier=notifier,
        config=MonitorConfig(
            scan_interval_seconds=3600,
            startup_delay_seconds=3600,
            grace_period_seconds=3600,
            batch_delay_seconds=3600,
        ),
        restart_config=RestartAlertConfig(threshold=5, cooldown_minutes=10),
        fetch_timeout_seconds=0.5,
        clock=clock,
    )
    yield mon
    await mon.stop()
    mon.reset_state()


async def capture_baseline(monitor: WorkloadMonitor) -> None:
    """Run the baseline scan and end the grace period immediately."""
    await monitor.scan()
    assert monitor.baseline.complete()
