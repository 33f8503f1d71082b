"""Workload monitor: the scan loop and its control surface.

One scan lists pods, updates restart tracking, then either refreshes the
baseline (before initialization completes) or diffs against the previous
scan and queues alert events for batching.  Node readiness is checked in
the same tick but independently: a failure on either path leaves the
other untouched.

All state is owned by a single event loop.  Scans never overlap; a tick
that fires while a scan is running is skipped.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Protocol, TypeVar

from kubepulse.collector.source import FetchFailedError, NodeSnapshotSource, PodSnapshotSource
from kubepulse.health.grouping import group_pods
from kubepulse.health.missing import detect_missing_workloads
from kubepulse.health.overview import build_cluster_overview, summarize_health
from kubepulse.health.scoring import score_workload
from kubepulse.health.transitions import (
    classify_by_severity,
    classify_from_baseline,
    classify_transition,
)
from kubepulse.models.alerts import (
    AlertEvent,
    BatchNotification,
    ClusterOverview,
    HealthSummary,
    NodeTransition,
    RestartStormAlert,
)
from kubepulse.models.cluster import PodRecord
from kubepulse.models.config import MonitorConfig, RestartAlertConfig
from kubepulse.models.workloads import WorkloadKey, WorkloadState
from kubepulse.monitor.baseline import BaselineManager
from kubepulse.monitor.coalescer import AlertCoalescer, PendingAlertBatch
from kubepulse.monitor.nodes import NodeHealthMonitor
from kubepulse.monitor.restarts import RestartAlertSettings, RestartStormTracker
from kubepulse.observability.logging import get_logger, scan_context
from kubepulse.observability.metrics import alert_events_total, restart_storm_alerts_total, scans_total

_log = get_logger("monitor.engine")

_T = TypeVar("_T")


class AlertNotifier(Protocol):
    """Delivery side of the monitor.  ``enabled`` is False without recipients."""

    @property
    def enabled(self) -> bool: ...

    async def deliver_batch(self, notification: BatchNotification) -> bool: ...

    async def deliver_restart_alert(self, alert: RestartStormAlert) -> bool: ...


class ScanOutcome(StrEnum):
    COMPLETED = "completed"
    BASELINE = "baseline"
    FETCH_FAILED = "fetch_failed"
    SKIPPED = "skipped"


@dataclass
class ScanReport:
    """What one scan observed and produced."""

    outcome: ScanOutcome
    scanned_at: datetime
    pod_count: int = 0
    workload_count: int = 0
    events: list[AlertEvent] = field(default_factory=list)
    restart_alerts: list[RestartStormAlert] = field(default_factory=list)
    node_transitions: list[NodeTransition] = field(default_factory=list)
    error: str = ""


@dataclass(frozen=True)
class MonitorStatus:
    running: bool
    configured: bool
    initialization_complete: bool
    baseline_captured_at: datetime | None
    grace_period_active: bool
    tracked_workloads: int
    baseline_workloads: int
    tracked_pods: int
    tracked_nodes: int
    ready_nodes: int
    pending_alerts: int
    flush_deadline: datetime | None
    last_scan_at: datetime | None
    last_scan_outcome: ScanOutcome | None
    consecutive_failures: int
    restart_alerts: RestartAlertSettings
    health: HealthSummary


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class WorkloadMonitor:
    """Periodic workload health monitor.

    Args:
        pod_source:            Pod listings.  None leaves the monitor in the
                               "not configured" state where ``start()`` refuses.
        node_source:           Node listings; node checks are skipped without it.
        notifier:              Batch and restart-storm delivery.  Events are
                               classified but not buffered while it is absent
                               or disabled.
        config:                Scan, baseline and batching settings.
        restart_config:        Initial restart-storm settings.
        fetch_timeout_seconds: Upper bound on every cluster listing.
        clock:                 Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        pod_source: PodSnapshotSource | None,
        node_source: NodeSnapshotSource | None = None,
        notifier: AlertNotifier | None = None,
        config: MonitorConfig | None = None,
        restart_config: RestartAlertConfig | None = None,
        fetch_timeout_seconds: float = 20.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._pod_source = pod_source
        self._node_source = node_source
        self._notifier = notifier
        self._config = config or MonitorConfig()
        self._fetch_timeout = fetch_timeout_seconds
        self._clock = clock

        restart_config = restart_config or RestartAlertConfig()
        self._restarts = RestartStormTracker(
            enabled=restart_config.enabled,
            threshold=restart_config.threshold,
            cooldown_minutes=restart_config.cooldown_minutes,
        )
        self._baseline = BaselineManager(self._config.grace_period_seconds)
        self._coalescer = AlertCoalescer(
            self._fresh_overview,
            self._deliver_batch,
            delay_seconds=self._config.batch_delay_seconds,
            max_pending=self._config.max_pending_alerts,
            clock=clock,
        )
        self._nodes = NodeHealthMonitor()

        self._workloads: dict[WorkloadKey, WorkloadState] = {}
        self._scan_lock = asyncio.Lock()
        self._loop_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[bool]] = set()
        self._running = False
        self._last_scan_at: datetime | None = None
        self._last_outcome: ScanOutcome | None = None
        self._consecutive_failures = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def configured(self) -> bool:
        return self._pod_source is not None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def baseline(self) -> BaselineManager:
        return self._baseline

    @property
    def workloads(self) -> Mapping[WorkloadKey, WorkloadState]:
        return MappingProxyType(self._workloads)

    @property
    def pending(self) -> PendingAlertBatch:
        return self._coalescer.batch

    @property
    def restart_tracker(self) -> RestartStormTracker:
        return self._restarts

    @property
    def node_monitor(self) -> NodeHealthMonitor:
        return self._nodes

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        if self._running:
            _log.info("monitor_already_running")
            return False
        if not self.configured:
            _log.warning("monitor_start_refused", reason="kubernetes client not configured")
            return False

        self._baseline.reset()
        self._running = True
        self._loop_task = asyncio.create_task(self._run_loop(), name="workload-monitor-loop")
        _log.info(
            "monitor_started",
            scan_interval_seconds=self._config.scan_interval_seconds,
            startup_delay_seconds=self._config.startup_delay_seconds,
            grace_period_seconds=self._config.grace_period_seconds,
        )
        return True

    async def stop(self) -> bool:
        if not self._running:
            return False
        self._running = False

        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None

        await self._baseline.shutdown()
        if self._config.flush_on_stop and self._coalescer.pending_count:
            await self._coalescer.flush()
        dropped = self._coalescer.discard()
        await self._coalescer.shutdown()

        background = list(self._background)
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        self._background.clear()

        _log.info("monitor_stopped", discarded_alerts=dropped, cancelled_deliveries=len(background))
        return True

    async def _run_loop(self) -> None:
        await asyncio.sleep(self._config.startup_delay_seconds)
        while True:
            try:
                await self.scan()
            except Exception as exc:
                _log.error("scan_failed_unexpectedly", error=str(exc))
            await asyncio.sleep(self._config.scan_interval_seconds)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def scan(self) -> ScanReport:
        """Run one scan now, or report it skipped if another is in flight."""
        if self._scan_lock.locked():
            scans_total.labels(outcome=ScanOutcome.SKIPPED).inc()
            _log.info("scan_skipped", reason="previous scan still running")
            return ScanReport(outcome=ScanOutcome.SKIPPED, scanned_at=self._clock())

        async with self._scan_lock:
            with scan_context():
                report = await self._scan_workloads()
                report.node_transitions = await self._scan_nodes()
                return report

    async def _scan_workloads(self) -> ScanReport:
        if self._pod_source is None:
            return ScanReport(
                outcome=ScanOutcome.FETCH_FAILED,
                scanned_at=self._clock(),
                error="kubernetes client not configured",
            )

        try:
            pods = await self._fetch(self._pod_source.list_pods(), "list_pods")
        except FetchFailedError as exc:
            now = self._clock()
            self._consecutive_failures += 1
            self._record_outcome(ScanOutcome.FETCH_FAILED, now)
            _log.warning(
                "workload_scan_fetch_failed",
                error=str(exc),
                consecutive_failures=self._consecutive_failures,
            )
            return ScanReport(outcome=ScanOutcome.FETCH_FAILED, scanned_at=now, error=str(exc))

        now = self._clock()
        self._consecutive_failures = 0
        groups = group_pods(pods)
        restart_alerts = self._track_restarts(pods, now)

        if not self._baseline.initialization_complete:
            self._workloads = self._baseline.capture(groups, self._workloads, now)
            self._record_outcome(ScanOutcome.BASELINE, now)
            return ScanReport(
                outcome=ScanOutcome.BASELINE,
                scanned_at=now,
                pod_count=len(pods),
                workload_count=len(groups),
                restart_alerts=restart_alerts,
            )

        events = detect_missing_workloads(groups.keys(), self._workloads, now)
        for event in events:
            self._enqueue(event)

        next_states: dict[WorkloadKey, WorkloadState] = {}
        for key, group in groups.items():
            previous = self._workloads.get(key)
            current = score_workload(group, previous, now, is_baseline=False)
            next_states[key] = current
            event = self._classify(current, previous)
            if event is not None:
                events.append(event)
                self._enqueue(event)
        self._workloads = next_states

        self._record_outcome(ScanOutcome.COMPLETED, now)
        _log.debug(
            "workload_scan_completed",
            pods=len(pods),
            workloads=len(next_states),
            events=len(events),
            pending=self._coalescer.pending_count,
        )
        return ScanReport(
            outcome=ScanOutcome.COMPLETED,
            scanned_at=now,
            pod_count=len(pods),
            workload_count=len(next_states),
            events=events,
            restart_alerts=restart_alerts,
        )

    async def _scan_nodes(self) -> list[NodeTransition]:
        if self._node_source is None:
            return []
        try:
            nodes = await self._fetch(self._node_source.list_nodes(), "list_nodes")
            return self._nodes.observe(nodes, self._clock())
        except FetchFailedError as exc:
            _log.warning("node_scan_fetch_failed", error=str(exc))
        except Exception as exc:
            _log.error("node_scan_failed", error=str(exc))
        return []

    def _classify(self, current: WorkloadState, previous: WorkloadState | None) -> AlertEvent | None:
        if previous is not None and previous.is_baseline:
            return classify_from_baseline(current, previous)
        event = classify_transition(current, previous)
        if event is None and previous is not None and self._config.enhanced_classification:
            event = classify_by_severity(current, previous, self._config.persistent_critical_minutes)
        return event

    def _enqueue(self, event: AlertEvent) -> None:
        alert_events_total.labels(type=event.type).inc()
        if self._notifier is None or not self._notifier.enabled:
            _log.info(
                "alert_not_buffered",
                reason="no recipient group",
                type=str(event.type),
                workload=str(event.workload.key),
            )
            return
        self._coalescer.add(event)
        _log.info(
            "alert_queued",
            type=str(event.type),
            workload=str(event.workload.key),
            reason=event.reason,
            pending=self._coalescer.pending_count,
        )

    def _track_restarts(self, pods: list[PodRecord], now: datetime) -> list[RestartStormAlert]:
        alerts: list[RestartStormAlert] = []
        for pod in pods:
            alert = self._restarts.observe(pod, now)
            if alert is None:
                continue
            alerts.append(alert)
            restart_storm_alerts_total.inc()
            _log.warning(
                "restart_storm_detected",
                namespace=alert.namespace,
                pod=alert.pod_name,
                node=alert.node,
                restart_count=alert.restart_count,
                previous_count=alert.previous_count,
                threshold=alert.threshold,
            )
            self._dispatch_restart_alert(alert)
        self._restarts.prune({pod.key for pod in pods})
        return alerts

    def _dispatch_restart_alert(self, alert: RestartStormAlert) -> None:
        if self._notifier is None or not self._notifier.enabled:
            return
        task = asyncio.create_task(
            self._notifier.deliver_restart_alert(alert),
            name=f"restart-alert-{alert.alert_id}",
        )
        self._background.add(task)
        task.add_done_callback(self._on_restart_delivery_done)

    def _on_restart_delivery_done(self, task: asyncio.Task[bool]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _log.error("restart_alert_delivery_failed", error=str(exc))

    def _record_outcome(self, outcome: ScanOutcome, now: datetime) -> None:
        self._last_scan_at = now
        self._last_outcome = outcome
        scans_total.labels(outcome=outcome).inc()

    async def _fetch(self, call: Awaitable[_T], operation: str) -> _T:
        try:
            return await asyncio.wait_for(call, timeout=self._fetch_timeout)
        except TimeoutError as exc:
            raise FetchFailedError(operation, f"timed out after {self._fetch_timeout}s") from exc

    # ------------------------------------------------------------------
    # Batch delivery hooks
    # ------------------------------------------------------------------

    async def _fresh_overview(self) -> ClusterOverview | None:
        """Tally a fresh listing for the batch without touching tracked state."""
        if self._pod_source is None:
            return None
        try:
            pods = await self._fetch(self._pod_source.list_pods(), "list_pods")
        except FetchFailedError as exc:
            _log.warning("overview_fetch_failed", error=str(exc))
            return None
        now = self._clock()
        states = [score_workload(group, None, now, is_baseline=False) for group in group_pods(pods).values()]
        return build_cluster_overview(states)

    async def _deliver_batch(self, notification: BatchNotification) -> bool:
        if self._notifier is None:
            return False
        return await self._notifier.deliver_batch(notification)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    async def recapture_baseline(self) -> bool:
        """Replace tracked state with a fresh baseline snapshot.

        The next scan compares against it with the relaxed baseline rules.
        """
        if self._pod_source is None:
            return False
        async with self._scan_lock:
            try:
                pods = await self._fetch(self._pod_source.list_pods(), "list_pods")
            except FetchFailedError as exc:
                _log.warning("baseline_recapture_failed", error=str(exc))
                return False
            now = self._clock()
            self._workloads = self._baseline.capture(group_pods(pods), {}, now)
            _log.info("baseline_recaptured", workloads=len(self._workloads))
            return True

    def reset_state(self) -> None:
        """Forget everything; the next successful scan captures a new baseline."""
        self._workloads.clear()
        self._restarts.reset()
        self._nodes.reset()
        self._coalescer.discard()
        self._baseline.reset()
        self._consecutive_failures = 0
        _log.info("monitor_state_reset")

    def configure_restart_alerts(
        self,
        enabled: bool | None = None,
        threshold: int | None = None,
        cooldown_minutes: int | None = None,
    ) -> RestartAlertSettings:
        return self._restarts.configure(
            enabled=enabled,
            threshold=threshold,
            cooldown_minutes=cooldown_minutes,
        )

    async def flush_alerts(self) -> bool:
        return await self._coalescer.flush()

    def status(self) -> MonitorStatus:
        states = list(self._workloads.values())
        return MonitorStatus(
            running=self._running,
            configured=self.configured,
            initialization_complete=self._baseline.initialization_complete,
            baseline_captured_at=self._baseline.captured_at,
            grace_period_active=self._baseline.grace_active,
            tracked_workloads=len(states),
            baseline_workloads=sum(1 for state in states if state.is_baseline),
            tracked_pods=sum(state.total_pods for state in states),
            tracked_nodes=len(self._nodes),
            ready_nodes=self._nodes.ready_count,
            pending_alerts=self._coalescer.pending_count,
            flush_deadline=self._coalescer.batch.flush_deadline,
            last_scan_at=self._last_scan_at,
            last_scan_outcome=self._last_outcome,
            consecutive_failures=self._consecutive_failures,
            restart_alerts=self._restarts.settings,
            health=summarize_health(states),
        )
